"""
Tests for release version classification and resolution.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from placeos_partner import (
    FetchFailure,
    InvalidVersionFormat,
    TagKind,
    classify_tag,
    is_valid_version,
    list_remote_tags,
    resolve_version,
)
from placeos_partner.versions import is_channel, normalize_tag_refs, strip_prefix

from conftest import SAMPLE_LS_REMOTE

REMOTE_TAGS = [
    "preview",
    "placeos-2.2410.1",
    "placeos-2.2410.0",
    "placeos-2.2409.0",
    "nightly",
    "latest",
]


class TestClassifyTag:
    """Test tag shape classification."""

    @pytest.mark.parametrize(
        "tag",
        ["placeos-2.2409.0", "placeos-1.2312.5", "placeos-2.2410.1-rc3", "placeos-1.202401.0"],
    )
    def test_full_calendar_versions(self, tag):
        """Test that major.YYMM.patch tags, with optional rc suffix, are full calver."""
        assert classify_tag(tag) is TagKind.FULL_CALVER

    @pytest.mark.parametrize("tag", ["placeos-2.2409", "placeos-1.202312"])
    def test_month_calendar_versions(self, tag):
        """Test that major.YYMM tags are month calver."""
        assert classify_tag(tag) is TagKind.MONTH_CALVER

    @pytest.mark.parametrize("tag", ["nightly", "preview", "latest"])
    def test_channels(self, tag):
        """Test that channel names are recognized."""
        assert classify_tag(tag) is TagKind.CHANNEL
        assert not TagKind.CHANNEL.is_calver

    @pytest.mark.parametrize(
        "tag",
        [
            "",
            "2.2409.0",
            "v2.2409.0",
            "placeos-2.2409.0-beta1",
            "placeos-2.24.0",
            "placeos-2.2409.0.1",
            "stable",
            "nightly-2024",
            "placeos-latest",
        ],
    )
    def test_invalid_shapes(self, tag):
        """Test that anything else has no shape."""
        assert classify_tag(tag) is None
        assert not is_valid_version(tag)

    def test_each_kind_matches_independently(self):
        """Test that each shape is matched by exactly one kind."""
        assert TagKind.FULL_CALVER.matches("placeos-2.2409.0")
        assert not TagKind.MONTH_CALVER.matches("placeos-2.2409.0")
        assert TagKind.MONTH_CALVER.matches("placeos-2.2409")
        assert not TagKind.FULL_CALVER.matches("placeos-2.2409")
        assert not TagKind.CHANNEL.matches("placeos-2.2409")


class TestResolveVersion:
    """Test version selection."""

    def test_empty_request_selects_first_non_channel_tag(self):
        """Test that the newest calendar release is chosen, skipping channels."""
        assert resolve_version("", REMOTE_TAGS) == "placeos-2.2410.1"

    def test_none_request_selects_first_non_channel_tag(self):
        """Test that None behaves like an empty request."""
        assert resolve_version(None, REMOTE_TAGS) == "placeos-2.2410.1"

    def test_empty_request_with_only_channels(self):
        """Test that no selection is made when only channels are published."""
        assert resolve_version("", ["preview", "nightly", "latest"]) is None

    def test_empty_request_with_no_tags(self):
        """Test that an empty tag list yields no selection."""
        assert resolve_version("", []) is None

    def test_empty_request_skips_channel_named_tags(self):
        """Test that tags containing a channel name are skipped."""
        tags = ["placeos-nightly-2024", "placeos-2.2409.0"]
        assert resolve_version("", tags) == "placeos-2.2409.0"

    def test_empty_request_skips_tags_of_no_accepted_shape(self):
        """Test that an unnormalized tag list never yields a malformed selection."""
        tags = ["v2.2410.0", "placeos-2", "placeos-2.2409.0"]
        assert resolve_version("", tags) == "placeos-2.2409.0"

    @pytest.mark.parametrize(
        "version",
        ["placeos-2.2409.0", "placeos-2.2409", "placeos-9.9999.9-rc1", "nightly", "preview", "latest"],
    )
    def test_valid_request_returned_unchanged(self, version):
        """Test that well-formed versions are returned as-is, even if not on the remote."""
        assert resolve_version(version, REMOTE_TAGS) == version

    @pytest.mark.parametrize("version", ["2.2409.0", "stable", "placeos-2", "placeos-2.2409.0-beta"])
    def test_invalid_request_raises(self, version):
        """Test that malformed versions are rejected with the remote tags as remediation."""
        with pytest.raises(InvalidVersionFormat, match=f"Invalid version '{version}'") as exc_info:
            resolve_version(version, REMOTE_TAGS)

        assert exc_info.value.version == version
        assert exc_info.value.valid_versions == REMOTE_TAGS

    def test_invalid_request_is_value_error(self):
        """Test that InvalidVersionFormat can be handled as a ValueError."""
        with pytest.raises(ValueError):
            resolve_version("bogus", [])


class TestHelpers:
    """Test small version helpers."""

    def test_strip_prefix(self):
        assert strip_prefix("placeos-1.2312.5") == "1.2312.5"
        assert strip_prefix("1.2312.5") == "1.2312.5"

    def test_is_channel_searches_anywhere(self):
        assert is_channel("nightly")
        assert is_channel("placeos-preview")
        assert not is_channel("placeos-2.2409.0")


class TestNormalizeTagRefs:
    """Test conversion of git ls-remote output to tag names."""

    def test_rewrites_calendar_versions(self):
        """Test that embedded calendar versions get the placeos- prefix."""
        lines = [
            "abc\trefs/tags/v2.2409.0",
            "def\trefs/tags/release/2.2410.1-rc2",
            "123\trefs/tags/placeos-2.2411",
        ]
        assert normalize_tag_refs(lines) == [
            "placeos-2.2409.0",
            "placeos-2.2410.1-rc2",
            "placeos-2.2411",
        ]

    def test_keeps_channels_and_drops_others(self):
        """Test that channels are kept verbatim and unrelated refs dropped."""
        lines = [
            "abc\trefs/tags/nightly",
            "def\trefs/tags/some-tool-v1.2.3",
            "123\trefs/heads/placeos-2.2409.0",
            "",
            "malformed",
        ]
        assert normalize_tag_refs(lines) == ["nightly"]

    def test_preserves_order_and_removes_duplicates(self):
        """Test that sort order from git is kept and duplicates collapse."""
        lines = [
            "a\trefs/tags/placeos-2.2410.0",
            "b\trefs/tags/v2.2410.0",
            "c\trefs/tags/placeos-2.2409.0",
        ]
        assert normalize_tag_refs(lines) == ["placeos-2.2410.0", "placeos-2.2409.0"]


class TestListRemoteTags:
    """Test remote tag listing through git."""

    def test_list_remote_tags_successful_call(self):
        """Test that git ls-remote is called and its output normalized."""
        with patch("placeos_partner.versions.subprocess.run") as mock_run:
            mock_result = MagicMock()
            mock_result.stdout = SAMPLE_LS_REMOTE
            mock_run.return_value = mock_result

            tags = list_remote_tags("https://github.com/PlaceOS/PlaceOS")

            mock_run.assert_called_once_with(
                [
                    "git",
                    "ls-remote",
                    "--tags",
                    "--refs",
                    "--sort=-v:refname",
                    "https://github.com/PlaceOS/PlaceOS",
                ],
                capture_output=True,
                text=True,
                check=True,
            )
            assert tags == REMOTE_TAGS

    def test_list_remote_tags_command_failure(self):
        """Test that a failing git call raises FetchFailure."""
        with patch("placeos_partner.versions.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.CalledProcessError(
                returncode=128,
                cmd=["git", "ls-remote"],
                stderr="fatal: unable to access repository",
            )

            with pytest.raises(FetchFailure, match="unable to access repository"):
                list_remote_tags("https://github.com/PlaceOS/PlaceOS")

    def test_list_remote_tags_git_not_found(self):
        """Test that a missing git binary raises FetchFailure."""
        with patch("placeos_partner.versions.subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("git")

            with pytest.raises(FetchFailure, match="git not found"):
                list_remote_tags("https://github.com/PlaceOS/PlaceOS")

    def test_list_remote_tags_empty_output(self):
        """Test that no tags yields an empty list."""
        with patch("placeos_partner.versions.subprocess.run") as mock_run:
            mock_run.return_value.stdout = ""

            assert list_remote_tags("https://github.com/PlaceOS/PlaceOS") == []
