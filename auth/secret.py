"""
auth/secret.py -- Signing secret lifecycle.

The signing secret is loaded once at process start, held for the process
lifetime and injected into both TokenIssuer and TokenVerifier. There is no
module-level mutable key: tests and tools build their own SigningSecret and
pass it in, so two secrets can coexist in one process.

The raw value is only reachable through reveal(). repr() and str() mask it
so it cannot leak through logs or tracebacks.
"""

from __future__ import annotations

import hmac

from pydantic import ValidationError

from auth.errors import ConfigurationError
from core.config import Settings, get_settings

_MASK = "**********"


class SigningSecret:
    """Immutable HMAC key material shared by the issuer and the verifier."""

    __slots__ = ("_value",)

    def __init__(self, value: str | bytes | None) -> None:
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if not isinstance(value, str) or not value:
            raise ConfigurationError("Signing secret is not configured.")
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name, value) -> None:
        raise AttributeError("SigningSecret is immutable")

    def reveal(self) -> str:
        """Return the raw key for the signing library. Never log the result."""
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SigningSecret):
            return NotImplemented
        return hmac.compare_digest(self._value.encode("utf-8"), other._value.encode("utf-8"))

    def __hash__(self) -> int:
        return hash((SigningSecret, len(self._value)))

    def __repr__(self) -> str:
        return f"SigningSecret({_MASK!r})"

    __str__ = __repr__


def load_signing_secret(settings: Settings | None = None) -> SigningSecret:
    """Build the process signing secret from Settings.secret_key.

    Raises ConfigurationError when the key is empty or Settings fail validation
    (e.g. no SECRET_KEY in production mode). Call this during startup
    so a misconfigured deployment fails before serving requests.
    """
    if settings is None:
        try:
            settings = get_settings()
        except ValidationError as exc:
            raise ConfigurationError("Settings are invalid; cannot load the signing secret.") from exc
    return SigningSecret(settings.secret_key)
