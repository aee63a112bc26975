"""
auth/flow.py -- Authentication flow: credentials in, token out, token back to user.

AuthenticationFlow wires the credential store, the credential verifier and
the token core together:

  login()              username/password -> LoginResult (typed, never raises
                       for bad credentials)
  authenticate_token() bearer token -> User | None (raises for malformed or
                       forged tokens so callers can log them distinctly)

Security:
  Unknown username, wrong password and disabled account all produce the same
  "bad_credentials" result. The verifier runs bcrypt in every case so timing
  does not reveal which one happened.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from typing import Protocol

from auth.credentials import CredentialVerifier
from auth.models import LoginResult, User
from auth.tokens import TokenIssuer, TokenVerifier

logger = logging.getLogger("tokengate.auth")


class CredentialStore(Protocol):
    def find_by_username(self, username: str) -> User | None: ...


class AuthenticationFlow:
    def __init__(
        self,
        store: CredentialStore,
        verifier: CredentialVerifier,
        issuer: TokenIssuer,
        token_verifier: TokenVerifier,
    ) -> None:
        self.store = store
        self.verifier = verifier
        self.issuer = issuer
        self.token_verifier = token_verifier

    def login(self, username: str, password: str) -> LoginResult:
        """Check credentials and issue a token for the stored username.

        ConfigurationError from the issuer propagates: a missing signing
        secret is an internal error, not a credential problem.
        """
        user = self.store.find_by_username(username)
        if not self.verifier.matches(password, user):
            logger.info("Login failed: bad credentials")
            return LoginResult.failed("bad_credentials")
        if not user.is_active:
            logger.info("Login failed: account disabled (user_id=%s)", user.id)
            return LoginResult.failed("bad_credentials")

        token = self.issuer.issue(user.username)
        logger.info("Login succeeded (user_id=%s)", user.id)
        return LoginResult.success(
            token=token,
            subject=user.username,
            expires_in=int(self.issuer.validity.total_seconds()),
        )

    def authenticate_token(self, token: str) -> User | None:
        """Resolve a bearer token to an active stored user.

        Returns None when the token is well-formed but expired, names an
        unknown or disabled user, or fails the subject check. Raises
        MalformedTokenError / InvalidSignatureError for structural failures.
        """
        subject = self.token_verifier.extract_subject(token)
        user = self.store.find_by_username(subject)
        if user is None or not user.is_active:
            return None
        if not self.token_verifier.validate(token, user.username):
            return None
        return user
