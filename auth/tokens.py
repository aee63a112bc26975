"""
auth/tokens.py -- Token issuance and verification (HS256 JWT).

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub, iat and exp plus any
       extension claims. The wire format is the compact JWS serialization:
       base64url(header).base64url(payload).base64url(signature).

  Algorithm: fixed to HS256. The verifier reads the header only to reject
       any other "alg" (including "none") before the signature is checked;
       the token never chooses how it is verified.

  Verification order: structure -> algorithm -> signature -> claims. No
       claim is read until jws.verify() has recomputed the HMAC with our
       secret (constant-time compare inside python-jose).

  Canonical base64url: every segment must re-encode to exactly the same
       text. Without this, flipping the final character of a segment can
       change only the discarded padding bits and leave the token valid.

  Errors: the core raises typed errors from auth/errors.py. validate()
       returns False only for a well-formed token that is expired or names
       another subject; structural and signature failures propagate so the
       transport layer can log them separately.

  Secret: injected at construction (see auth/secret.py). get_token_issuer()
       and get_token_verifier() build lru_cache singletons from Settings for
       the module-level functions used by the transport layer.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import binascii
import json
import logging
import re
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from jose import jws, jwt
from jose.exceptions import JOSEError
from jose.utils import base64url_decode, base64url_encode

from auth.errors import ConfigurationError, InvalidSignatureError, MalformedTokenError, UnsupportedAlgorithmError
from auth.models import Claims
from auth.secret import SigningSecret, load_signing_secret
from core.config import DEFAULT_TOKEN_EXPIRE_SECONDS, get_settings

logger = logging.getLogger("tokengate.auth")

ALGORITHM = "HS256"

DEFAULT_VALIDITY = timedelta(seconds=DEFAULT_TOKEN_EXPIRE_SECONDS)

_SEGMENT_RE = re.compile(r"[A-Za-z0-9_-]+")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_secret(secret: SigningSecret | None) -> SigningSecret:
    if not isinstance(secret, SigningSecret):
        raise ConfigurationError("Signing secret is not configured.")
    return secret


# ---------------------------------------------------------------------------
# Structure helpers
# ---------------------------------------------------------------------------


def _check_segments(token: Any) -> None:
    """Check the compact token shape.

    Raises MalformedTokenError unless the token is exactly three non-empty,
    canonical base64url segments joined by '.'.
    """
    if not isinstance(token, str):
        raise MalformedTokenError("Token must be a string.")
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError("Token must have exactly three segments.")
    for part in parts:
        if not _SEGMENT_RE.fullmatch(part):
            raise MalformedTokenError("Token segment is empty or not base64url.")
        raw = part.encode("ascii")
        try:
            decoded = base64url_decode(raw)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise MalformedTokenError("Token segment is not valid base64url.") from exc
        if base64url_encode(decoded) != raw:
            raise MalformedTokenError("Token segment is not canonical base64url.")


def _check_header(token: str) -> None:
    try:
        header = jws.get_unverified_header(token)
    except JOSEError as exc:
        raise MalformedTokenError("Token header could not be decoded.") from exc
    if not isinstance(header, dict):
        raise MalformedTokenError("Token header is not a JSON object.")
    alg = header.get("alg")
    if alg != ALGORITHM:
        raise UnsupportedAlgorithmError(alg)


# ---------------------------------------------------------------------------
# Issuer
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Builds signed tokens for already-authenticated subjects.

    The issuer performs no credential checking: callers hand it a username
    that the credential verifier has accepted.
    """

    def __init__(
        self,
        secret: SigningSecret | None,
        validity: timedelta = DEFAULT_VALIDITY,
        clock: Clock = _utcnow,
    ) -> None:
        if validity <= timedelta(0):
            raise ValueError("Token validity window must be positive.")
        self._secret = _require_secret(secret)
        self._validity = validity
        self._clock = clock

    @property
    def validity(self) -> timedelta:
        return self._validity

    def issue(self, subject: str, extra: Mapping[str, Any] | None = None) -> str:
        """Return a signed token for subject, valid for the configured window.

        Args:
            subject: Verified identity name. Must be a non-empty string.
            extra:   Extension claims copied into the payload unchanged.
                     sub, iat and exp are reserved.
        """
        secret = _require_secret(self._secret)
        if not isinstance(subject, str) or not subject:
            raise ValueError("Token subject must be a non-empty string.")
        issued_at = self._clock().replace(microsecond=0)
        claims = Claims(
            subject=subject,
            issued_at=issued_at,
            expires_at=issued_at + self._validity,
            extra=extra or {},
        )
        try:
            token = jwt.encode(claims.to_payload(), secret.reveal(), algorithm=ALGORITHM)
        except JOSEError as exc:
            raise ConfigurationError("Signing secret cannot be used as an HMAC key.") from exc
        logger.debug("Issued token for subject=%s exp=%s", subject, claims.expires_at.isoformat())
        return token


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


class TokenVerifier:
    """Checks signature, expiry and subject of presented tokens.

    Nothing is cached between calls: each call recomputes the token's state
    from the current clock and the signing secret.
    """

    def __init__(
        self,
        secret: SigningSecret | None,
        clock: Clock = _utcnow,
        leeway: timedelta = timedelta(0),
    ) -> None:
        if leeway < timedelta(0):
            raise ValueError("Clock skew leeway must not be negative.")
        self._secret = _require_secret(secret)
        self._clock = clock
        self._leeway = leeway

    def parse_claims(self, token: str) -> Claims:
        """Verify the signature and return the decoded Claims.

        Raises:
            MalformedTokenError:       bad structure, header or payload.
            UnsupportedAlgorithmError: header alg is not HS256.
            InvalidSignatureError:     signature mismatch.
            ConfigurationError:        no signing secret.
        """
        secret = _require_secret(self._secret)
        _check_segments(token)
        _check_header(token)
        try:
            payload_bytes = jws.verify(token, secret.reveal(), algorithms=[ALGORITHM])
        except JOSEError as exc:
            raise InvalidSignatureError("Token signature verification failed.") from exc
        try:
            payload = json.loads(payload_bytes)
        except ValueError as exc:
            raise MalformedTokenError("Token payload is not valid JSON.") from exc
        return Claims.from_payload(payload)

    def extract_subject(self, token: str) -> str:
        return self.parse_claims(token).subject

    def extract_expiry(self, token: str) -> datetime:
        return self.parse_claims(token).expires_at

    def is_expired(self, token: str) -> bool:
        """True once the token's expiry lies in the past (minus leeway)."""
        return self._expired(self.extract_expiry(token))

    def validate(self, token: str, expected_subject: str) -> bool:
        """Return True iff the token is authentic, unexpired and names expected_subject.

        Expired and wrong-subject tokens return False. Malformed and forged
        tokens raise; callers must treat those as authentication failures.
        """
        claims = self.parse_claims(token)
        if claims.subject != expected_subject:
            logger.info("Token rejected: subject mismatch")
            return False
        if self._expired(claims.expires_at):
            logger.info("Token rejected: expired at %s", claims.expires_at.isoformat())
            return False
        return True

    def _expired(self, expires_at: datetime) -> bool:
        return expires_at < self._clock() - self._leeway


# ---------------------------------------------------------------------------
# Process-wide defaults -- built once from Settings
# ---------------------------------------------------------------------------


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Return the TokenIssuer bound to the configured signing secret."""
    secret = load_signing_secret()
    settings = get_settings()
    return TokenIssuer(
        secret,
        validity=timedelta(seconds=settings.token_expire_seconds),
    )


@lru_cache
def get_token_verifier() -> TokenVerifier:
    """Return the TokenVerifier bound to the configured signing secret."""
    secret = load_signing_secret()
    settings = get_settings()
    return TokenVerifier(
        secret,
        leeway=timedelta(seconds=settings.clock_skew_seconds),
    )


def issue(subject: str, extra: Mapping[str, Any] | None = None) -> str:
    return get_token_issuer().issue(subject, extra)


def parse_claims(token: str) -> Claims:
    return get_token_verifier().parse_claims(token)


def extract_subject(token: str) -> str:
    return get_token_verifier().extract_subject(token)


def extract_expiry(token: str) -> datetime:
    return get_token_verifier().extract_expiry(token)


def is_expired(token: str) -> bool:
    return get_token_verifier().is_expired(token)


def validate(token: str, expected_subject: str) -> bool:
    return get_token_verifier().validate(token, expected_subject)
