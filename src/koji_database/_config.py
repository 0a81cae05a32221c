"""Configuration model — project credentials and where they come from."""

from __future__ import annotations

import dataclasses
import os
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from koji_database._errors import ConfigurationMissing

if TYPE_CHECKING:
    from collections.abc import Mapping

PROJECT_ID_ENV = "KOJI_PROJECT_ID"
PROJECT_TOKEN_ENV = "KOJI_PROJECT_TOKEN"
TEST_MODE_ENV = "KOJI_DATABASE_TEST"

PRODUCTION_BASE_URL = "https://database.api.gokoji.com"
TEST_BASE_URL = "http://localhost:3129"


@dataclasses.dataclass(frozen=True)
class Config:
    """Credentials addressing one project on the service.

    :param project_id: The project identifier.
    :param project_token: The project secret token.
    """

    project_id: str
    project_token: str

    def __repr__(self) -> str:
        return f"Config(project_id={self.project_id!r}, project_token='***')"


@runtime_checkable
class ConfigProvider(Protocol):
    """Anything that can produce a :class:`Config` on demand."""

    def load(self) -> Config: ...


class StaticConfigProvider:
    """Returns a fixed, explicitly supplied config."""

    def __init__(self, config: Config) -> None:
        self._config = config

    def load(self) -> Config:
        return self._config


class EnvConfigProvider:
    """Reads credentials from ``KOJI_PROJECT_ID`` and ``KOJI_PROJECT_TOKEN``.

    :param environ: Mapping to read from. Defaults to ``os.environ`` at load time.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def load(self) -> Config:
        """Build a config from the environment.

        :raises ConfigurationMissing: If either variable is unset or empty.
        """
        environ = os.environ if self._environ is None else self._environ
        project_id = environ.get(PROJECT_ID_ENV)
        project_token = environ.get(PROJECT_TOKEN_ENV)
        if not project_id or not project_token:
            missing = [
                name
                for name, value in ((PROJECT_ID_ENV, project_id), (PROJECT_TOKEN_ENV, project_token))
                if not value
            ]
            raise ConfigurationMissing(
                f"Couldn't find {' or '.join(missing)} in the environment. "
                f"Outside of a Koji project, either pass a Config explicitly or "
                f"export {PROJECT_ID_ENV} and {PROJECT_TOKEN_ENV}."
            )
        return Config(project_id=project_id, project_token=project_token)


def resolve_config(config: Config | None = None, provider: ConfigProvider | None = None) -> Config:
    """Resolve the config a client should use.

    An explicit ``config`` is returned unchanged; otherwise ``provider`` is
    asked, falling back to :class:`EnvConfigProvider`.

    :raises ConfigurationMissing: If no source can supply credentials.
    """
    if config is not None:
        return config
    if provider is None:
        provider = EnvConfigProvider()
    return provider.load()


def resolve_base_url(environ: Mapping[str, str] | None = None) -> str:
    """Return the local test endpoint when ``KOJI_DATABASE_TEST`` is set, production otherwise."""
    environ = os.environ if environ is None else environ
    if environ.get(TEST_MODE_ENV):
        return TEST_BASE_URL
    return PRODUCTION_BASE_URL
