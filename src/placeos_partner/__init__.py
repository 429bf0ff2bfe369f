"""
PlaceOS partner environment tooling.

Wraps docker compose lifecycle operations (start, stop, update, upgrade,
migrate, uninstall) for a PlaceOS deployment and resolves which platform
release to run.

Main components:
- versions: Release tag shapes and version resolution against remote tags
- changelog: Changelog download, section extraction and deep links
- config: Environment configuration loaded from .env and the process environment
- compose: Docker Compose and Docker Engine operations
- prompt: Interactive prompts
- placeos: Workflow orchestration for each CLI command
"""

from .changelog import (
    ChangelogExcerpt,
    extract_changelog_section,
    fetch_changelog,
    latest_version_header,
)
from .compose import ComposeManager, ComposeProject, ContainerState
from .config import PlaceOSConfig, load_config
from .errors import (
    ComposeError,
    FetchFailure,
    InvalidVersionFormat,
    PlaceOSError,
    VersionNotFound,
)
from .prompt import prompt_confirm
from .versions import (
    TagKind,
    classify_tag,
    is_valid_version,
    list_remote_tags,
    resolve_version,
)

__all__ = [
    # Version resolution
    "TagKind",
    "classify_tag",
    "is_valid_version",
    "list_remote_tags",
    "resolve_version",
    # Changelog
    "ChangelogExcerpt",
    "extract_changelog_section",
    "fetch_changelog",
    "latest_version_header",
    # Configuration
    "PlaceOSConfig",
    "load_config",
    # Docker operations
    "ComposeManager",
    "ComposeProject",
    "ContainerState",
    # User interaction functions
    "prompt_confirm",
    # Errors
    "PlaceOSError",
    "InvalidVersionFormat",
    "VersionNotFound",
    "FetchFailure",
    "ComposeError",
]
