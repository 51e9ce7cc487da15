"""Run-mode configuration for the task sync engine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from ..const import (
    CONF_API_TOKEN,
    CONF_ENDPOINT_URL,
    CONF_LOCALE,
    CONF_MODE,
    CONF_REQUEST_TIMEOUT,
    CONFIG_STORAGE_KEY,
    DEFAULT_LOCALE,
    DEFAULT_REQUEST_TIMEOUT,
    MODE_DEMO,
    MODE_LIVE,
    RUN_MODES,
)
from ..utils.redact import redact
from .local_storage import LocalStorage

_LOGGER = logging.getLogger(__name__)


def _upper(value: Any) -> str:
    return str(value).strip().upper()


def _stripped(value: Any) -> str:
    return "" if value is None else str(value).strip()


CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_MODE, default=MODE_DEMO): vol.All(_upper, vol.In(RUN_MODES)),
        vol.Optional(CONF_ENDPOINT_URL, default=""): _stripped,
        vol.Optional(CONF_API_TOKEN, default=""): _stripped,
        vol.Optional(CONF_LOCALE, default=DEFAULT_LOCALE): vol.All(_stripped, vol.Length(min=2)),
        vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=1, max=300)
        ),
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(slots=True)
class SyncConfig:
    """Settings that select and parameterise the task store."""

    mode: str = MODE_DEMO
    endpoint_url: str = ""
    api_token: str = ""
    locale: str = DEFAULT_LOCALE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> SyncConfig:
        """Validate ``options`` and build a config.

        Raises :class:`voluptuous.Invalid` when a value is out of range.
        """

        data = CONFIG_SCHEMA(dict(options))
        return cls(
            mode=data[CONF_MODE],
            endpoint_url=data[CONF_ENDPOINT_URL],
            api_token=data[CONF_API_TOKEN],
            locale=data[CONF_LOCALE],
            request_timeout=data[CONF_REQUEST_TIMEOUT],
        )

    @property
    def is_live(self) -> bool:
        return self.mode == MODE_LIVE

    @property
    def ready(self) -> bool:
        if not self.is_live:
            return True
        return bool(self.endpoint_url and self.api_token)

    def as_dict(self, *, redact_secrets: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            CONF_MODE: self.mode,
            CONF_ENDPOINT_URL: self.endpoint_url,
            CONF_API_TOKEN: self.api_token,
            CONF_LOCALE: self.locale,
            CONF_REQUEST_TIMEOUT: self.request_timeout,
        }
        if redact_secrets:
            return redact(data, (CONF_API_TOKEN,))
        return data


def load_config(storage: LocalStorage, overrides: Mapping[str, Any] | None = None) -> SyncConfig:
    """Return the stored config merged over the defaults.

    Unreadable or invalid stored settings fall back to the defaults so a bad
    file never blocks start-up; ``overrides`` are applied last and are
    validated strictly.
    """

    stored = storage.get(CONFIG_STORAGE_KEY, {})
    options: dict[str, Any] = {}
    if isinstance(stored, Mapping):
        try:
            options = SyncConfig.from_options(stored).as_dict()
        except vol.Invalid as err:
            _LOGGER.warning("Ignoring invalid stored settings: %s", err)
    elif stored:
        _LOGGER.warning("Ignoring stored settings of type %s", type(stored).__name__)
    if overrides:
        options.update({key: value for key, value in overrides.items() if value is not None})
    return SyncConfig.from_options(options)


def save_config(storage: LocalStorage, config: SyncConfig) -> bool:
    return storage.set(CONFIG_STORAGE_KEY, config.as_dict())


__all__ = ["CONFIG_SCHEMA", "SyncConfig", "load_config", "save_config"]
