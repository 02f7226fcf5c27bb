"""Custom exception hierarchy for pyaet.

Business-rule violations (wrong vehicle in a slot, blocked jurisdiction)
are *returned* as outcome models, never raised.  The exceptions below are
the fault channel for conditions the caller cannot fix by changing input.
"""

from __future__ import annotations

from collections.abc import Iterable


class AetError(Exception):
    """Base exception for all pyaet errors."""


class AetConfigError(AetError):
    """Invalid or missing configuration."""


class AetTransportError(AetError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class AetApiError(AetError):
    """Backend answered, but with a payload we cannot use."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class AetLookupError(AetError):
    """Active-authorization lookup failed or timed out.

    Never means "eligible" nor "blocked".  The selection orchestrator
    converts it into a retryable :class:`~pyaet.models.LookupFailed`
    outcome before it reaches the UI layer.
    """

    def __init__(self, message: str, *, jurisdictions: Iterable[str] = ()) -> None:
        self.jurisdictions = tuple(jurisdictions)
        super().__init__(message)
