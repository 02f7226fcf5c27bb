"""Client and engine configuration for pyaet."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyaet._constants import BASE_URL, RENEWAL_WINDOW_DAYS
from pyaet.exceptions import AetConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class AetConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Backend base URL (no trailing slash).
    session_cookie : str or None
        Raw ``Cookie`` header value of an authenticated backend session.
        Login itself is handled by the surrounding application.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    lookup_timeout : float
        Seconds an active-authorization lookup may take before it is
        reported as a lookup failure.  ``0`` disables the timeout.
    renewal_window_days : int
        A jurisdiction is blocked while an existing authorization has more
        days left than this.
    debounce_seconds : float
        Quiescence interval before a plate change triggers the batched
        re-check of selected jurisdictions.
    api_trace_enabled : bool
        Log every request and response body at ``DEBUG`` level.
    """

    base_url: str = BASE_URL
    session_cookie: str | None = None
    request_timeout: float = 15.0
    lookup_timeout: float = 10.0
    renewal_window_days: int = RENEWAL_WINDOW_DAYS
    debounce_seconds: float = 0.5
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.renewal_window_days < 0:
            raise AetConfigError(f"renewal_window_days must be >= 0, got {self.renewal_window_days}")
        if self.debounce_seconds < 0:
            raise AetConfigError(f"debounce_seconds must be >= 0, got {self.debounce_seconds}")
        if self.lookup_timeout < 0 or self.request_timeout < 0:
            raise AetConfigError("timeouts must be >= 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> AetConfig:
        """Create configuration from environment variables.

        Reads optional ``AET_*`` variables.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        AetConfig
            Populated configuration.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        _ENV_STR_MAP = {
            "AET_BASE_URL": "base_url",
            "AET_SESSION_COOKIE": "session_cookie",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "AET_REQUEST_TIMEOUT": ("request_timeout", float),
            "AET_LOOKUP_TIMEOUT": ("lookup_timeout", float),
            "AET_RENEWAL_WINDOW_DAYS": ("renewal_window_days", int),
            "AET_DEBOUNCE_SECONDS": ("debounce_seconds", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = cast(val)
            except ValueError as exc:
                raise AetConfigError(f"{env_key} is not a valid {cast.__name__}: {val!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("AET_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)
        if isinstance(config_kwargs.get("base_url"), str):
            config_kwargs["base_url"] = config_kwargs["base_url"].rstrip("/")

        return cls(**config_kwargs)
