"""
PlaceOS release version resolution.

Tags come in three shapes:
- full calendar version:  placeos-<major>.<YYMM>.<patch>[-rc<N>]
- month calendar version: placeos-<major>.<YYMM>
- channel:                nightly, preview or latest

Resolution works over an already fetched, version-sorted (descending) tag list
and never checks whether a requested tag actually exists on the remote.
"""

import re
import subprocess
from enum import Enum
from typing import Iterable, Sequence

from .errors import FetchFailure, InvalidVersionFormat

VERSION_PREFIX = "placeos-"
CHANNELS = ("nightly", "preview", "latest")

_MONTH = r"(?:\d{6}|\d{4})"
_CHANNEL_SEARCH = re.compile("|".join(CHANNELS))
_EMBEDDED_CALVER = re.compile(
    rf"(?<![\d.])(\d+\.{_MONTH}(?:\.\d+(?:-rc\d+)?)?)(?![\d.])"
)
_TAG_REF_PREFIX = "refs/tags/"


class TagKind(Enum):
    """The closed set of accepted tag shapes, each owning its pattern."""

    FULL_CALVER = rf"{VERSION_PREFIX}\d+\.{_MONTH}\.\d+(?:-rc\d+)?"
    MONTH_CALVER = rf"{VERSION_PREFIX}\d+\.{_MONTH}"
    CHANNEL = "|".join(CHANNELS)

    def matches(self, tag: str) -> bool:
        """Check whether the whole tag has this shape."""
        return re.fullmatch(self.value, tag) is not None

    @property
    def is_calver(self) -> bool:
        return self is not TagKind.CHANNEL


def classify_tag(tag: str) -> TagKind | None:
    """Return the shape of a tag, or None if it has none of the accepted shapes."""
    for kind in TagKind:
        if kind.matches(tag):
            return kind
    return None


def is_valid_version(tag: str) -> bool:
    return classify_tag(tag) is not None


def is_channel(tag: str) -> bool:
    """True for tags naming a floating release channel anywhere in the name."""
    return _CHANNEL_SEARCH.search(tag) is not None


def strip_prefix(tag: str) -> str:
    """Drop the 'placeos-' prefix used by tags but not by changelog headers."""
    if tag.startswith(VERSION_PREFIX):
        return tag[len(VERSION_PREFIX) :]
    return tag


def resolve_version(
    requested_version: str | None, remote_tags: Sequence[str]
) -> str | None:
    """
    Determine the version to act on.

    Args:
        requested_version: Version given by the operator. Empty or None selects
            the newest calendar-versioned release: tags naming a channel are
            skipped, and so are tags of no accepted shape. Lists produced by
            normalize_tag_refs hold only accepted shapes, so for them this is
            the first non-channel tag.
        remote_tags: Remote tags sorted descending by version

    Returns:
        The resolved tag, or None if no stable release exists in remote_tags.
        A returned tag always has one of the accepted shapes.

    Raises:
        InvalidVersionFormat: If requested_version has none of the accepted shapes
    """
    if not requested_version:
        for tag in remote_tags:
            if is_channel(tag):
                continue
            kind = classify_tag(tag)
            if kind is not None and kind.is_calver:
                return tag
        return None

    if not is_valid_version(requested_version):
        raise InvalidVersionFormat(requested_version, list(remote_tags))

    return requested_version


def normalize_tag_refs(lines: Iterable[str]) -> list[str]:
    """
    Turn `git ls-remote` output into PlaceOS tag names.

    Only refs under refs/tags/ are kept. A calendar version found anywhere in
    the tag name is rewritten to 'placeos-<calver>', channel names are kept
    verbatim and everything else is dropped. Order is preserved, duplicates
    are removed.
    """
    tags: list[str] = []
    for line in lines:
        parts = line.split()
        if len(parts) < 2 or not parts[1].startswith(_TAG_REF_PREFIX):
            continue

        name = parts[1][len(_TAG_REF_PREFIX) :]
        if name in CHANNELS:
            tag = name
        else:
            match = _EMBEDDED_CALVER.search(name)
            if not match:
                continue
            tag = f"{VERSION_PREFIX}{match.group(1)}"

        if tag not in tags:
            tags.append(tag)

    return tags


def list_remote_tags(repository_url: str) -> list[str]:
    """
    List the release tags published on a remote repository.

    Args:
        repository_url: Git URL of the product repository

    Returns:
        list[str]: Normalized tags, newest first

    Raises:
        FetchFailure: If git is unavailable or the remote cannot be listed
    """
    try:
        result = subprocess.run(
            [
                "git",
                "ls-remote",
                "--tags",
                "--refs",
                "--sort=-v:refname",
                repository_url,
            ],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise FetchFailure(
            f"Failed to list tags for {repository_url}: {e.stderr}"
        ) from e
    except FileNotFoundError as e:
        raise FetchFailure("git not found. Please ensure git is installed.") from e

    return normalize_tag_refs(result.stdout.splitlines())
