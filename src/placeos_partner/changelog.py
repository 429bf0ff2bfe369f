"""
Changelog retrieval and slicing.

The PlaceOS changelog is a markdown document with one '## <version>' header per
release, newest first. Sections are located by exact header match and cut at
the next calendar-version header.
"""

import os
import re
import shutil
import tempfile
import urllib.error
import urllib.request
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .errors import FetchFailure, VersionNotFound
from .versions import strip_prefix

HEADER_PREFIX = "## "
DEFAULT_LINK_BASE = "https://github.com/PlaceOS/PlaceOS/blob/nightly/CHANGELOG.md"

_CALVER_HEADER = re.compile(r"^## \d+\.(?:\d{6}|\d{4})\.\d+(?:-rc\d+)?$")
_ANCHOR_STRIP = re.compile(r"[\s.#]")


@dataclass
class ChangelogExcerpt:
    """
    A slice of the changelog for one or more releases.

    Attributes:
        version: Version the excerpt was requested for (without 'placeos-')
        header: The anchor header line, e.g. "## 1.2312.5"
        lines: Excerpt lines, starting with the anchor header
        link: URL deep-linking to the anchor header on the rendered changelog
    """

    version: str
    header: str
    lines: list[str] = field(default_factory=list)
    link: str = ""

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def anchor_fragment(header: str) -> str:
    """Derive the markdown anchor for a header: '## 1.2312.5' -> '123125'."""
    return _ANCHOR_STRIP.sub("", header)


def deep_link(header: str, link_base: str = DEFAULT_LINK_BASE) -> str:
    return f"{link_base}#{anchor_fragment(header)}"


def extract_changelog_section(
    document: str,
    version: str,
    include_all_prior: bool = False,
    link_base: str = DEFAULT_LINK_BASE,
) -> ChangelogExcerpt:
    """
    Extract the notes for a release from the changelog.

    Args:
        document: Changelog text
        version: Release to extract, with or without the 'placeos-' prefix
        include_all_prior: Also return every older release after the anchor
        link_base: URL of the rendered changelog used for the deep link

    Returns:
        ChangelogExcerpt: Lines from the anchor header up to (excluding) the
        next release header, or to the end of the document

    Raises:
        VersionNotFound: If no '## <version>' header exists
    """
    version = strip_prefix(version)
    anchor = f"{HEADER_PREFIX}{version}"
    lines = document.splitlines()

    try:
        start = lines.index(anchor)
    except ValueError:
        raise VersionNotFound(version) from None

    remainder = lines[start:]

    if not include_all_prior:
        for offset, line in enumerate(remainder[1:], start=1):
            if _CALVER_HEADER.match(line):
                remainder = remainder[:offset]
                break

    return ChangelogExcerpt(
        version=version,
        header=anchor,
        lines=remainder,
        link=deep_link(anchor, link_base),
    )


def latest_version_header(document: str) -> str:
    """
    Find the newest release in the changelog.

    Returns:
        str: Version of the first calendar-version header, without '## '

    Raises:
        VersionNotFound: If the document has no release header
    """
    for line in document.splitlines():
        if _CALVER_HEADER.match(line):
            return line[len(HEADER_PREFIX) :]
    raise VersionNotFound("latest")


@contextmanager
def _temporary_path(suffix: str = ".md") -> Iterator[Path]:
    fd, name = tempfile.mkstemp(prefix="placeos-changelog-", suffix=suffix)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            # removal failures are ignored
            pass


def fetch_changelog(url: str, timeout: float = 30) -> str:
    """
    Download the changelog document.

    The body is streamed to a temporary file which is always removed,
    whether or not the download succeeds.

    Args:
        url: Raw changelog URL
        timeout: Socket timeout in seconds

    Returns:
        str: Changelog text (may be empty)

    Raises:
        FetchFailure: If the changelog cannot be downloaded
    """
    request = urllib.request.Request(url, headers={"User-Agent": "placeos-partner"})
    with _temporary_path() as path:
        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                with path.open("wb") as out:
                    shutil.copyfileobj(response, out)
        except (urllib.error.URLError, OSError) as e:
            raise FetchFailure(f"Failed to fetch changelog from {url}: {e}") from e

        return path.read_text(encoding="utf-8", errors="replace")
