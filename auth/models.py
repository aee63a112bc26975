"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, minimal logic). Stores, the token
core and routes do the work; these classes only own shape and invariants.

  User        -- the stored identity handed to us by the credential store.
  Claims      -- the payload carried inside a token.
  LoginResult -- typed outcome of a username/password login.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from auth.errors import MalformedTokenError

# Claim names owned by Claims itself. Extension claims may not reuse them.
RESERVED_CLAIMS = frozenset({"sub", "iat", "exp"})


@dataclass
class User:
    """Represents a stored identity.

    The token core only ever reads username (it becomes the "sub" claim).
    hashed_password is a bcrypt hash and is opaque to everything except
    auth/credentials.py.
    """

    username: str
    id: int | None = None
    hashed_password: str | None = None
    created_at: str | None = None
    is_active: bool = True


def _to_epoch(value: datetime) -> int:
    return int(value.timestamp())


def _from_epoch(name: str, value: Any) -> datetime:
    # bool is an int subclass; a literal true/false is not a timestamp.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedTokenError(f"Claim {name!r} must be a numeric timestamp.")
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedTokenError(f"Claim {name!r} is out of range.") from exc


@dataclass(frozen=True)
class Claims:
    """The payload encoded in a token.

    expires_at > issued_at always holds; __post_init__ enforces it. extra is
    the extension point for future claims and is exposed read-only.
    """

    subject: str
    issued_at: datetime
    expires_at: datetime
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.subject, str) or not self.subject:
            raise ValueError("Claims.subject must be a non-empty string.")
        if self.expires_at <= self.issued_at:
            raise ValueError("Claims.expires_at must be later than issued_at.")
        clash = RESERVED_CLAIMS.intersection(self.extra)
        if clash:
            raise ValueError(f"Extension claims may not override reserved names: {sorted(clash)}")
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def to_payload(self) -> dict[str, Any]:
        """Return the flat claim dict that gets signed (timestamps as epoch seconds)."""
        payload: dict[str, Any] = dict(self.extra)
        payload["sub"] = self.subject
        payload["iat"] = _to_epoch(self.issued_at)
        payload["exp"] = _to_epoch(self.expires_at)
        return payload

    @classmethod
    def from_payload(cls, payload: Any) -> Claims:
        """Build Claims from a decoded payload. Raises MalformedTokenError on bad data."""
        if not isinstance(payload, dict):
            raise MalformedTokenError("Token payload is not a JSON object.")
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedTokenError("Token payload has no usable 'sub' claim.")
        if "iat" not in payload or "exp" not in payload:
            raise MalformedTokenError("Token payload is missing 'iat' or 'exp'.")
        issued_at = _from_epoch("iat", payload["iat"])
        expires_at = _from_epoch("exp", payload["exp"])
        extra = {k: v for k, v in payload.items() if k not in RESERVED_CLAIMS}
        try:
            return cls(subject=subject, issued_at=issued_at, expires_at=expires_at, extra=extra)
        except ValueError as exc:
            raise MalformedTokenError(str(exc)) from exc


@dataclass(frozen=True)
class LoginResult:
    """Outcome of AuthenticationFlow.login().

    Bad credentials are a normal result, not an exception. Only internal
    failures (e.g. a missing signing secret) propagate as exceptions.
    """

    ok: bool
    token: str | None = None
    subject: str | None = None
    expires_in: int = 0
    failure: str | None = None

    @classmethod
    def success(cls, token: str, subject: str, expires_in: int) -> LoginResult:
        return cls(ok=True, token=token, subject=subject, expires_in=expires_in)

    @classmethod
    def failed(cls, failure: str = "bad_credentials") -> LoginResult:
        return cls(ok=False, failure=failure)
