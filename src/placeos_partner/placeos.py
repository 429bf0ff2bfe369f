"""
PlaceOS partner environment workflows.

This module contains the business logic behind each CLI command, separated
from argument parsing and process exit handling.
"""

from argparse import Namespace

from rich.console import Console
from rich.table import Table

from .changelog import (
    ChangelogExcerpt,
    extract_changelog_section,
    fetch_changelog,
    latest_version_header,
)
from .compose import INIT_SERVICE, ComposeManager
from .config import TAG_KEY, PlaceOSConfig, load_config
from .errors import (
    ComposeError,
    FetchFailure,
    InvalidVersionFormat,
    PlaceOSError,
    VersionNotFound,
)
from .prompt import prompt_admin_credentials, prompt_confirm
from .versions import (
    TagKind,
    classify_tag,
    is_valid_version,
    list_remote_tags,
    resolve_version,
)

CREATE_ADMIN_TASK = ("task", "create:admin")
MIGRATE_TASK = ("task", "migrate")


class PlaceOS:
    """
    PlaceOS lifecycle orchestration.

    Each handle_<name>_command method implements one CLI command. Configuration
    is loaded per command from the environment directory named in the
    arguments.
    """

    def __init__(self, console: Console) -> None:
        """
        Initialize the orchestrator.

        Args:
            console: Rich Console instance for formatted output
        """
        self.console = console

    def handle_start_command(self, args: Namespace) -> None:
        """
        Start the platform.

        Generates secrets on first run, brings the services up, waits for them
        to report healthy and then runs the init container to create the
        administrator account.
        """
        config = self._get_config(args)

        with ComposeManager(config, self.console) as compose:
            if compose.generate_secrets():
                self.console.print("  Generated secrets")

            self.console.print("  Starting PlaceOS...")
            compose.up()

            self.console.print("  Waiting for services to become healthy...")
            compose.wait_until_ready()

            if not getattr(args, "skip_init", False):
                self._initialize(compose, config)

        self.console.print(
            f"  PlaceOS started: https://{config.domain}/backoffice",
            style="bold green",
        )

    def handle_stop_command(self, args: Namespace) -> None:
        """Stop all platform containers, keeping their data."""
        config = self._get_config(args)

        with ComposeManager(config, self.console) as compose:
            self.console.print("  Stopping PlaceOS...")
            compose.stop()

        self.console.print("  PlaceOS stopped", style="bold green")

    def handle_update_command(self, args: Namespace) -> None:
        """
        Switch the platform to another release.

        The requested version (latest stable release by default) is validated
        before PLACEOS_TAG is written or any image is pulled.

        Raises:
            InvalidVersionFormat: If the requested version is malformed
            PlaceOSError: If no stable release exists on the remote
        """
        config = self._get_config(args)
        version = self._resolve_version(config, getattr(args, "version", None))

        self.console.print(f"  Updating PlaceOS to {version}...")
        config.set_env_value(TAG_KEY, version)

        with ComposeManager(config, self.console) as compose:
            compose.pull()
            compose.up()

        self.console.print(f"  PlaceOS updated to {version}", style="bold green")

        if getattr(args, "no_changelog", False):
            return

        try:
            self._show_changelog(config, version, include_all_prior=False)
        except (VersionNotFound, FetchFailure) as e:
            self.console.print(f"  Changelog unavailable: {e}", style="yellow")

    def handle_upgrade_command(self, args: Namespace) -> None:
        """Pull the latest partner environment, then update the platform."""
        config = self._get_config(args)

        self.console.print("  Upgrading partner environment...")
        ComposeManager(config, self.console).run(
            ["git", "pull", "--ff-only"], "upgrade the partner environment"
        )

        self.handle_update_command(args)

    def handle_migrate_command(self, args: Namespace) -> None:
        """
        Run database migrations through the init container.

        Raises:
            ComposeError: If the compose project defines no init service
        """
        config = self._get_config(args)

        with ComposeManager(config, self.console) as compose:
            project = compose.project()
            if not project.has_service(INIT_SERVICE):
                raise ComposeError(
                    f"No '{INIT_SERVICE}' service defined in the compose configuration"
                )

            self.console.print("  Running migrations...")
            compose.run_task(*MIGRATE_TASK)

        self.console.print("  Migrations completed", style="bold green")

    def handle_uninstall_command(self, args: Namespace) -> None:
        """
        Remove all platform containers, volumes and images.

        Warning:
            This permanently deletes all PlaceOS data.
        """
        config = self._get_config(args)

        if not getattr(args, "force", False) and not prompt_confirm(
            "This will remove all PlaceOS containers, volumes and images. Continue?"
        ):
            self.console.print("  Uninstall cancelled", style="yellow")
            return

        with ComposeManager(config, self.console) as compose:
            self.console.print("  Removing PlaceOS...")
            compose.down(remove_volumes=True, remove_images=True)

        self.console.print("  PlaceOS uninstalled", style="bold green")

    def handle_changelog_command(self, args: Namespace) -> None:
        """Print the changelog for a release, the newest one by default."""
        config = self._get_config(args)
        self._show_changelog(
            config,
            getattr(args, "version", None),
            include_all_prior=getattr(args, "full", False),
        )

    def handle_versions_command(self, args: Namespace) -> None:
        """List the releases available on the remote."""
        config = self._get_config(args)

        for tag in list_remote_tags(config.repository_url):
            if tag == config.current_tag:
                self.console.print(f"{tag} (current)", style="bold")
            else:
                self.console.print(tag)

    def handle_status_command(self, args: Namespace) -> None:
        """Show the state of every platform container."""
        config = self._get_config(args)

        with ComposeManager(config, self.console) as compose:
            states = compose.container_states()

        if not states:
            self.console.print("  PlaceOS is not running", style="yellow")
            return

        table = Table(title=f"PlaceOS {config.current_tag or ''}".strip())
        table.add_column("Service")
        table.add_column("Container")
        table.add_column("Status")
        table.add_column("Health")
        for state in states:
            style = "green" if state.is_ready else "red"
            table.add_row(
                state.service,
                state.name,
                state.status,
                state.health or "-",
                style=style,
            )
        self.console.print(table)

    def _get_config(self, args: Namespace) -> PlaceOSConfig:
        """Load configuration for the environment directory given in args."""
        return load_config(
            directory=getattr(args, "directory", "."),
            env_file=getattr(args, "env_file", ".env"),
            verbose=getattr(args, "verbose", False),
        )

    def _resolve_version(self, config: PlaceOSConfig, requested: str | None) -> str:
        """
        Resolve the requested version.

        Remote tags are listed to pick the latest release when no version is
        requested, and to report valid versions when the request is malformed.

        Raises:
            InvalidVersionFormat: If requested is malformed
            PlaceOSError: If no stable release is published
        """
        if requested and not is_valid_version(requested):
            raise InvalidVersionFormat(requested, self._valid_versions(config))

        tags = [] if requested else list_remote_tags(config.repository_url)
        version = resolve_version(requested, tags)
        if version is None:
            raise PlaceOSError(
                f"No stable PlaceOS release found on {config.repository_url}"
            )
        return version

    def _valid_versions(self, config: PlaceOSConfig) -> list[str]:
        """Remote tags offered as remediation, empty if they cannot be listed."""
        try:
            return list_remote_tags(config.repository_url)
        except FetchFailure:
            return []

    def _initialize(self, compose: ComposeManager, config: PlaceOSConfig) -> None:
        """Create the administrator account with the init container."""
        email, password = prompt_admin_credentials(config.email, config.password)
        if not email or not password:
            raise ValueError(
                "PLACE_EMAIL and PLACE_PASSWORD are required to initialize PlaceOS"
            )

        self.console.print("  Initializing PlaceOS...")
        compose.run_task(
            *CREATE_ADMIN_TASK,
            env={
                "PLACE_EMAIL": email,
                "PLACE_PASSWORD": password,
                "PLACE_DOMAIN": config.domain,
            },
        )

    def _show_changelog(
        self,
        config: PlaceOSConfig,
        requested: str | None,
        include_all_prior: bool,
    ) -> None:
        """
        Fetch the changelog and print the section for a release.

        Without a version, or for a channel, the newest release section is
        shown. A malformed version is rejected before anything is fetched.

        Raises:
            InvalidVersionFormat: If requested is malformed
            VersionNotFound: If the changelog has no section for the release
            FetchFailure: If the changelog cannot be downloaded
        """
        kind = classify_tag(requested) if requested else None
        if requested and kind is None:
            raise InvalidVersionFormat(requested, self._valid_versions(config))

        document = fetch_changelog(config.changelog_url)

        if requested and kind is not TagKind.CHANNEL:
            version = requested
        else:
            version = latest_version_header(document)

        excerpt = extract_changelog_section(
            document,
            version,
            include_all_prior=include_all_prior,
            link_base=config.changelog_link_base,
        )
        self._display_changelog(excerpt)

    def _display_changelog(self, excerpt: ChangelogExcerpt) -> None:
        """Print heading, deep link and excerpt body as plain text."""
        self.console.print(f"PlaceOS {excerpt.version} changelog", style="bold")
        self.console.print(excerpt.link, markup=False, highlight=False)
        self.console.print()
        self.console.print(excerpt.text, markup=False, highlight=False)
