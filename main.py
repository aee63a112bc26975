#!/usr/bin/env python3
"""
TokenGate -- operator command-line tool.

Issues and inspects bearer tokens with the configured SECRET_KEY, and seeds
the credential store. Uses the same Settings as the API, so tokens printed
here are accepted by a running server that shares the key.

Usage:
  python main.py issue alice
  python main.py issue alice --claim tenant=acme --claim level=3
  python main.py inspect <token>
  python main.py verify <token> alice
  python main.py create-user alice

Environment variables:
  SECRET_KEY    HMAC signing key (required unless DEBUG=true).
  AUTH_DB_URL   Credential store URL (default: SQLite file in auth/).

Exit codes for verify:
  0  token valid for the subject
  1  token well-formed but expired or for another subject
  2  token malformed or signature invalid
"""

import argparse
import getpass
import json
import logging
import sys
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from auth.credentials import MAX_PASSWORD_BYTES, hash_password, password_too_long
from auth.errors import ConfigurationError, InvalidSignatureError, MalformedTokenError
from auth.models import User
from auth.store import DEFAULT_DB_URL, UserStore
from auth.tokens import get_token_issuer, get_token_verifier
from core.config import get_settings

logger = logging.getLogger("tokengate.cli")


def _parse_claim(raw: str) -> tuple[str, Any]:
    """Split key=value. JSON literals (numbers, true, lists) are decoded, anything else stays a string."""
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"'{raw}' is not in key=value form")
    try:
        return key, json.loads(value)
    except ValueError:
        return key, value


def _cmd_issue(args: argparse.Namespace) -> int:
    extra = dict(args.claim or [])
    try:
        token = get_token_issuer().issue(args.subject, extra)
    except ValueError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 2
    print(token)
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    verifier = get_token_verifier()
    try:
        claims = verifier.parse_claims(args.token)
    except (MalformedTokenError, InvalidSignatureError) as e:
        print(f"error: {type(e).__name__}", file=sys.stderr)
        return 2
    body = {
        "sub": claims.subject,
        "iat": claims.issued_at.isoformat(),
        "exp": claims.expires_at.isoformat(),
        "expired": verifier.is_expired(args.token),
        "extra": dict(claims.extra),
    }
    print(json.dumps(body, indent=2))
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    try:
        ok = get_token_verifier().validate(args.token, args.subject)
    except (MalformedTokenError, InvalidSignatureError) as e:
        print(f"error: {type(e).__name__}", file=sys.stderr)
        return 2
    print("valid" if ok else "invalid")
    return 0 if ok else 1


def _cmd_create_user(args: argparse.Namespace) -> int:
    password = getpass.getpass(f"Password for {args.username}: ")
    if not password:
        print("  [!] Password must not be empty.", file=sys.stderr)
        return 2
    if password_too_long(password):
        print(f"  [!] Password must be at most {MAX_PASSWORD_BYTES} bytes.", file=sys.stderr)
        return 2
    store = UserStore(db_url=get_settings().auth_db_url or DEFAULT_DB_URL)
    try:
        user_id = store.create_user(User(username=args.username, hashed_password=hash_password(password)))
    except IntegrityError:
        print(f"  [!] User '{args.username}' already exists.", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"Created user '{args.username}' (id={user_id}).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokengate",
        description="Issue, inspect and verify signed bearer tokens.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py issue alice
  python main.py verify "$TOKEN" alice
  SECRET_KEY=... python main.py inspect "$TOKEN"
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_issue = sub.add_parser("issue", help="Print a new token for SUBJECT")
    p_issue.add_argument("subject", help="Identity name to place in the sub claim")
    p_issue.add_argument(
        "--claim",
        action="append",
        type=_parse_claim,
        metavar="KEY=VALUE",
        help="Extra claim to embed (repeatable). sub, iat and exp are reserved.",
    )
    p_issue.set_defaults(func=_cmd_issue)

    p_inspect = sub.add_parser("inspect", help="Verify the signature and print the claims as JSON")
    p_inspect.add_argument("token")
    p_inspect.set_defaults(func=_cmd_inspect)

    p_verify = sub.add_parser("verify", help="Check a token against SUBJECT")
    p_verify.add_argument("token")
    p_verify.add_argument("subject")
    p_verify.set_defaults(func=_cmd_verify)

    p_user = sub.add_parser("create-user", help="Add a user to the credential store (prompts for password)")
    p_user.add_argument("username")
    p_user.set_defaults(func=_cmd_create_user)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 3
    except ValidationError as e:
        # Settings could not be built from the environment.
        logger.error("Configuration error: %s", e)
        return 3


if __name__ == "__main__":
    sys.exit(main())
