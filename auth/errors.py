"""
auth/errors.py -- Exception taxonomy for the token core.

The core models each failure distinctly so callers can log and count them
separately. The transport layer collapses all of them into one generic
"authentication failed" response; never echo the class name or message to
an end user.

  TokenError
   +-- ConfigurationError        signing secret missing or empty
   +-- MalformedTokenError       not three base64url segments / bad claims data
   +-- InvalidSignatureError     signature mismatch (tampering, wrong secret)
        +-- UnsupportedAlgorithmError   header asserts an algorithm other than HS256

Layer rule: stdlib only.
"""


class TokenError(Exception):
    """Base class for every failure raised by the token core."""


class ConfigurationError(TokenError):
    """The signing secret is unset or empty."""


class MalformedTokenError(TokenError):
    """The token does not decode into a well-formed header.payload.signature structure."""


class InvalidSignatureError(TokenError):
    """The presented signature does not match the one recomputed with our secret."""


class UnsupportedAlgorithmError(InvalidSignatureError):
    """The token header names an algorithm this service does not sign with.

    Subclasses InvalidSignatureError: a token asserting "none" or a different
    HMAC is treated as a forgery attempt, not a parse problem.
    """

    def __init__(self, alg: object) -> None:
        super().__init__(f"Unsupported token algorithm: {alg!r}")
        self.alg = alg
