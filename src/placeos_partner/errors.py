"""
Exception types raised by the PlaceOS partner environment tooling.

Every failure is terminal for the invocation; the CLI entry point prints the
message and exits non-zero.
"""


class PlaceOSError(Exception):
    """Base class for errors raised by this package."""


class InvalidVersionFormat(PlaceOSError, ValueError):
    """
    Requested version matches none of the accepted tag shapes.

    Attributes:
        version: The rejected version string
        valid_versions: Versions available on the remote, shown as remediation
    """

    def __init__(self, version: str, valid_versions: list[str] | None = None):
        self.version = version
        self.valid_versions = list(valid_versions or [])
        super().__init__(f"Invalid version '{version}'")


class VersionNotFound(PlaceOSError, LookupError):
    """No changelog header exists for the requested version."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Version '{version}' not found in changelog")


class FetchFailure(PlaceOSError, RuntimeError):
    """Remote tags or the changelog could not be downloaded."""


class ComposeError(PlaceOSError, RuntimeError):
    """A docker compose or git command failed."""
