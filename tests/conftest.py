"""
Shared pytest fixtures.

Ensures the src directory is importable and provides sample changelog and
environment data.
"""
import sys
from pathlib import Path

import pytest

# Add the src directory to Python path so the package imports without installing
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

SAMPLE_CHANGELOG = """# Changelog

All notable changes to PlaceOS.

## 1.2401.0

### Feat

- **api**: add zone metadata search

## 1.2312.5

### Fix

- **core**: reconnect drivers after redis failover
- **auth**: refresh expired tokens

## 1.2301.1

### Feat

- initial calendar versioned release
"""

SAMPLE_LS_REMOTE = "\n".join(
    [
        "1111111111111111111111111111111111111111\trefs/tags/preview",
        "2222222222222222222222222222222222222222\trefs/tags/placeos-2.2410.1",
        "3333333333333333333333333333333333333333\trefs/tags/placeos-2.2410.0",
        "4444444444444444444444444444444444444444\trefs/tags/placeos-2.2409.0",
        "5555555555555555555555555555555555555555\trefs/tags/nightly",
        "6666666666666666666666666666666666666666\trefs/tags/latest",
    ]
)


@pytest.fixture
def changelog_document():
    return SAMPLE_CHANGELOG


@pytest.fixture
def env_dir(tmp_path):
    """A partner environment directory with a minimal .env file."""
    (tmp_path / ".env").write_text(
        "PLACEOS_TAG=placeos-2.2409.0\n"
        "PLACE_DOMAIN=placeos.example.com\n"
        "COMPOSE_PROJECT_NAME=partner\n"
    )
    return tmp_path
