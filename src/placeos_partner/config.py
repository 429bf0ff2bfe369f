import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values, set_key

DEFAULT_PRODUCT_REPO = "PlaceOS/PlaceOS"
DEFAULT_PRODUCT_BRANCH = "nightly"
DEFAULT_PROJECT_NAME = "placeos"
DEFAULT_DOMAIN = "localhost:8443"

TAG_KEY = "PLACEOS_TAG"


@dataclass
class PlaceOSConfig:
    """
    Settings for one PlaceOS partner environment.

    Built once per invocation from the environment's .env file overlaid by the
    process environment, then passed to every operation.

    Attributes:
        directory: Partner environment checkout containing docker-compose.yml
        env_file: Name of the dotenv file inside directory (e.g. ".env")
        product_repo: GitHub "<owner>/<name>" of the PlaceOS product repository
        product_branch: Branch the changelog is read from
        project_name: Docker Compose project name
        current_tag: PLACEOS_TAG currently configured, if any
        values: Merged raw key/value settings
    """

    directory: Path
    env_file: str = ".env"
    product_repo: str = DEFAULT_PRODUCT_REPO
    product_branch: str = DEFAULT_PRODUCT_BRANCH
    project_name: str = DEFAULT_PROJECT_NAME
    domain: str = DEFAULT_DOMAIN
    current_tag: str | None = None
    email: str | None = None
    password: str | None = None
    verbose: bool = False
    values: dict[str, str] = field(default_factory=dict)

    @property
    def env_path(self) -> Path:
        return self.directory / self.env_file

    @property
    def secrets_file(self) -> Path:
        return self.directory / ".env.secret"

    @property
    def secrets_generator(self) -> Path:
        return self.directory / "scripts" / "generate-secrets"

    @property
    def repository_url(self) -> str:
        return f"https://github.com/{self.product_repo}"

    @property
    def changelog_url(self) -> str:
        return f"https://raw.githubusercontent.com/{self.product_repo}/{self.product_branch}/CHANGELOG.md"

    @property
    def changelog_link_base(self) -> str:
        return f"https://github.com/{self.product_repo}/blob/{self.product_branch}/CHANGELOG.md"

    def require(self, key: str) -> str:
        """Get a setting that must be present."""
        value = self.values.get(key)
        if not value:
            raise ValueError(f"{key} environment variable is not set")
        return value

    def set_env_value(self, key: str, value: str) -> None:
        """Persist a setting to the environment's .env file."""
        self.env_path.touch(exist_ok=True)
        set_key(str(self.env_path), key, value, quote_mode="never")
        self.values[key] = value
        if key == TAG_KEY:
            self.current_tag = value


def load_config(
    directory: str | Path = ".",
    env_file: str = ".env",
    environ: Mapping[str, str] | None = None,
    verbose: bool = False,
) -> PlaceOSConfig:
    """
    Load configuration for a partner environment.

    Args:
        directory: Partner environment directory
        env_file: Dotenv file name relative to directory
        environ: Process environment, defaults to os.environ. Its values take
            precedence over the dotenv file.
        verbose: Echo external commands before running them

    Returns:
        PlaceOSConfig: Resolved configuration
    """
    directory = Path(directory).resolve()
    environ = os.environ if environ is None else environ

    values: dict[str, str] = {
        key: value
        for key, value in dotenv_values(directory / env_file).items()
        if value is not None
    }
    values.update(environ)

    return PlaceOSConfig(
        directory=directory,
        env_file=env_file,
        product_repo=values.get("PLACEOS_PRODUCT_REPO") or DEFAULT_PRODUCT_REPO,
        product_branch=values.get("PLACEOS_PRODUCT_BRANCH") or DEFAULT_PRODUCT_BRANCH,
        project_name=values.get("COMPOSE_PROJECT_NAME") or DEFAULT_PROJECT_NAME,
        domain=values.get("PLACE_DOMAIN") or DEFAULT_DOMAIN,
        current_tag=values.get(TAG_KEY) or None,
        email=values.get("PLACE_EMAIL") or None,
        password=values.get("PLACE_PASSWORD") or None,
        verbose=verbose,
        values=values,
    )
