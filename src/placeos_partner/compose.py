"""
Docker Compose operations for a PlaceOS partner environment.

Lifecycle commands are delegated to the `docker compose` CLI, run from the
environment directory. Container inspection goes through the Docker SDK.
"""

import os
import subprocess
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import docker
import yaml
from docker.models.containers import Container
from rich.console import Console

from .errors import ComposeError

if TYPE_CHECKING:
    from .config import PlaceOSConfig

INIT_SERVICE = "init"


@dataclass
class ComposeProject:
    """Parsed output of `docker compose config`."""

    name: str | None
    services: dict[str, dict] = field(default_factory=dict)

    def has_service(self, name: str) -> bool:
        return name in self.services


@dataclass
class ContainerState:
    """Summary of a project container for status reporting."""

    name: str
    service: str
    status: str
    health: str | None = None
    exit_code: int | None = None

    @property
    def is_ready(self) -> bool:
        """
        A running container is ready once healthy, or immediately without a
        health check. One-shot containers are ready once they exited cleanly.
        """
        if self.status == "exited":
            return self.exit_code == 0
        if self.status != "running":
            return False
        return self.health in (None, "healthy")

    @classmethod
    def from_container(cls, container: Container) -> "ContainerState":
        labels = container.labels or {}
        state = container.attrs.get("State", {})
        return cls(
            name=container.name,
            service=labels.get("com.docker.compose.service", ""),
            status=container.status,
            health=state.get("Health", {}).get("Status"),
            exit_code=state.get("ExitCode"),
        )


class ComposeManager:
    """
    Context manager for Docker Compose operations on a PlaceOS deployment.

    Args:
        config: Environment configuration (directory, project name)
        console: Rich console used to echo commands in verbose mode

    Example:
        with ComposeManager(config, console) as compose:
            compose.up()
            compose.wait_until_ready()
    """

    def __init__(self, config: "PlaceOSConfig", console: Optional[Console] = None):
        self.client: Optional[docker.DockerClient] = None
        self.config = config
        self.console = console or Console()

    def __enter__(self) -> "ComposeManager":
        self.client = docker.from_env()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            self.client.close()

    def _command(self, *args: str) -> list[str]:
        return ["docker", "compose", "--project-name", self.config.project_name, *args]

    def run(
        self,
        command: list[str],
        description: str,
        capture: bool = False,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """
        Run an external command from the environment directory.

        Args:
            command: Command and arguments
            description: What the command does, used in error messages
            capture: Capture stdout/stderr instead of streaming them
            env: Extra environment variables for the command

        Raises:
            ComposeError: If the command is missing or exits non-zero
        """
        if self.config.verbose:
            self.console.print(f"$ {' '.join(command)}", style="dim")

        run_env = {**os.environ, **env} if env else None
        try:
            return subprocess.run(
                command,
                cwd=self.config.directory,
                env=run_env,
                capture_output=capture,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            detail = f": {e.stderr.strip()}" if e.stderr else ""
            raise ComposeError(f"Failed to {description}{detail}") from e
        except FileNotFoundError as e:
            raise ComposeError(
                f"{command[0]} not found. Please ensure it is installed."
            ) from e

    def compose(
        self,
        *args: str,
        description: str | None = None,
        capture: bool = False,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """Run a docker compose subcommand for this project."""
        description = description or f"run docker compose {args[0]}"
        return self.run(self._command(*args), description, capture=capture, env=env)

    def project(self) -> ComposeProject:
        """
        Parse the resolved compose configuration.

        Returns:
            ComposeProject with the project name and service definitions

        Raises:
            ComposeError: If docker compose config fails
        """
        result = self.compose(
            "config", capture=True, description="get docker compose config"
        )
        raw_data = yaml.safe_load(result.stdout)
        if raw_data is None:
            return ComposeProject(name=None)

        return ComposeProject(
            name=raw_data.get("name"),
            services=raw_data.get("services") or {},
        )

    def up(self) -> None:
        self.compose("up", "--detach", description="start services")

    def stop(self) -> None:
        self.compose("stop", description="stop services")

    def pull(self) -> None:
        self.compose("pull", description="pull images")

    def down(self, remove_volumes: bool = True, remove_images: bool = True) -> None:
        """
        Remove the project's containers, and optionally its volumes and images.

        Warning:
            With remove_volumes all platform data is permanently deleted.
        """
        args = ["down", "--remove-orphans"]
        if remove_volumes:
            args.append("--volumes")
        if remove_images:
            args.extend(["--rmi", "all"])
        self.compose(*args, description="remove services")

    def run_task(
        self,
        *task: str,
        service: str = INIT_SERVICE,
        env: dict[str, str] | None = None,
    ) -> None:
        """
        Run a one-off task in a fresh container of the given service.

        Environment variables are passed by name so their values never
        appear on the command line.
        """
        args = ["run", "--rm"]
        for key in env or {}:
            args.extend(["--env", key])
        args.extend([service, *task])
        self.compose(*args, env=env, description=f"run {' '.join(task)} in {service}")

    def generate_secrets(self) -> bool:
        """
        Create the secrets file with the environment's generator, once.

        Returns:
            bool: True if secrets were generated, False if they already existed
        """
        if self.config.secrets_file.exists():
            return False

        generator = self.config.secrets_generator
        if not generator.exists():
            raise ComposeError(f"Secrets generator not found at {generator}")

        self.run([str(generator)], "generate secrets")
        return True

    def list_containers(self) -> list[Container]:
        """
        List all containers (running or not) belonging to the compose project.

        Raises:
            ComposeError: If ComposeManager is not used as a context manager
        """
        if self.client is None:
            raise ComposeError(
                "ComposeManager not properly initialized. Use as context manager."
            )

        labels = [f"com.docker.compose.project={self.config.project_name}"]
        return self.client.containers.list(all=True, filters={"label": labels})

    def container_states(self) -> list[ContainerState]:
        states = [ContainerState.from_container(c) for c in self.list_containers()]
        return sorted(states, key=lambda state: state.service)

    def wait_until_ready(self, sleep: float = 5, timeout: float = 300) -> None:
        """
        Wait until every project container is running and healthy.

        Containers without a health check count as ready once running.

        Args:
            sleep: Time to wait between checks
            timeout: Maximum total time to wait

        Raises:
            ComposeError: If containers are still not ready after timeout
        """
        max_tries = max(int(timeout // sleep), 1)
        pending: list[str] = []

        for attempt in range(max_tries):
            containers = self.list_containers()
            for container in containers:
                container.reload()
            states = [ContainerState.from_container(c) for c in containers]
            pending = [state.name for state in states if not state.is_ready]

            if states and not pending:
                return

            if attempt < max_tries - 1:
                time.sleep(sleep)

        raise ComposeError(
            f"Services did not become healthy within {timeout} seconds: "
            f"{', '.join(pending) or 'no containers found'}"
        )
