"""
Environment registry: one Remote Config client per named environment.

Environments are fixed at startup. Each one gets its own firebase_admin app
(named after the environment) and its own RemoteConfigClient, built from a
service-account file named serviceAccount_<env>.json.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import firebase_admin
from firebase_admin import credentials

from fireconfig_mcp.utils import RemoteConfigClient, get_logger

logger = get_logger("registry")

DEFAULT_ENV = "dev"


class CredentialError(Exception):
    """Raised when an environment's service-account file cannot be loaded."""

    def __init__(self, env: str, path: Path, reason: str | None = None):
        self.env = env
        self.path = path
        self.message = reason or (
            f"{path.name} not found. Please create one and place it in {path.parent}."
        )
        super().__init__(self.message)


def credentials_path(env: str, credentials_dir: str | Path = ".") -> Path:
    """Location of the service-account file for ``env``."""
    return Path(credentials_dir).expanduser() / f"serviceAccount_{env}.json"


@dataclass(frozen=True)
class EnvironmentHandle:
    """A registered environment: its client and (in production) its Firebase app."""

    name: str
    client: Any
    app: firebase_admin.App | None = None


class EnvironmentRegistry:
    """
    Immutable mapping of environment name -> EnvironmentHandle.

    Usage:
        registry = EnvironmentRegistry.from_credentials(["dev", "prod"])
        env = registry.resolve(requested_env)
        handle = registry.get(env)
    """

    def __init__(
        self,
        handles: Iterable[EnvironmentHandle],
        startup_names: Sequence[str] = (),
    ):
        self._handles: dict[str, EnvironmentHandle] = {h.name: h for h in handles}
        self._startup_names = tuple(startup_names)

    @classmethod
    def from_clients(
        cls,
        clients: Mapping[str, Any],
        startup_names: Sequence[str] | None = None,
    ) -> "EnvironmentRegistry":
        """Build a registry around ready-made clients (no Firebase apps)."""
        names = list(clients) if startup_names is None else startup_names
        return cls(
            (EnvironmentHandle(name=name, client=client) for name, client in clients.items()),
            startup_names=names,
        )

    @classmethod
    def from_credentials(
        cls,
        envs: Sequence[str],
        credentials_dir: str | Path = ".",
    ) -> "EnvironmentRegistry":
        """
        Load credentials and create a client for every environment.

        Args:
            envs: Environment names; an empty list means ["dev"]
            credentials_dir: Directory holding serviceAccount_<env>.json files

        Returns:
            Registry with one handle per environment

        Raises:
            CredentialError: If any environment's file is missing or invalid.
                Apps created for earlier environments are deleted first.
        """
        # Repeated names would ask firebase_admin for the same app twice
        names = list(dict.fromkeys(envs)) or [DEFAULT_ENV]
        handles: list[EnvironmentHandle] = []
        try:
            for env in names:
                logger.info(f"Loading Firebase config for env: {env}")
                handles.append(_load_environment(env, credentials_dir))
        except CredentialError:
            for handle in handles:
                firebase_admin.delete_app(handle.app)
            raise
        return cls(handles, startup_names=names)

    @property
    def names(self) -> list[str]:
        """Registered environment names, in registration order."""
        return list(self._handles)

    @property
    def startup_names(self) -> tuple[str, ...]:
        return self._startup_names

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def get(self, name: str) -> EnvironmentHandle | None:
        return self._handles.get(name)

    def resolve(self, env: str | None = None) -> str:
        """
        Pick the environment for a tool call.

        First match wins:
        1. ``env`` if it names a registered environment
        2. the first environment given at startup
        3. "dev"
        4. the first registered environment
        5. "dev" even though it is not registered; the caller reports it

        Never raises.
        """
        if isinstance(env, str) and env and env in self._handles:
            return env
        if self._startup_names:
            first = self._startup_names[0]
            if first and first in self._handles:
                return first
        if DEFAULT_ENV in self._handles:
            return DEFAULT_ENV
        if self._handles:
            return next(iter(self._handles))
        return DEFAULT_ENV

    async def aclose(self):
        """
        Close every client and delete the Firebase apps.

        A failure for one environment is logged and does not stop the rest
        from being released.
        """
        for handle in self._handles.values():
            close = getattr(handle.client, "aclose", None)
            try:
                if close is not None:
                    await close()
            except Exception as e:
                logger.warning(f"Error closing client for env {handle.name}: {e}")
            finally:
                if handle.app is not None:
                    firebase_admin.delete_app(handle.app)
        logger.info("Environment registry closed")


def _load_environment(env: str, credentials_dir: str | Path) -> EnvironmentHandle:
    path = credentials_path(env, credentials_dir)
    if not path.is_file():
        raise CredentialError(env, path)

    try:
        cred = credentials.Certificate(str(path))
    except (ValueError, OSError) as e:
        raise CredentialError(env, path, f"{path.name} is not a valid service account file: {e}") from e
    if not cred.project_id:
        raise CredentialError(env, path, f"{path.name} has no project_id")

    # Naming the app after the environment keeps projects isolated
    try:
        app = firebase_admin.initialize_app(cred, name=env)
    except ValueError as e:
        raise CredentialError(env, path, f"Cannot initialize Firebase app for env {env}: {e}") from e
    client = RemoteConfigClient(cred, cred.project_id)
    return EnvironmentHandle(name=env, client=client, app=app)
