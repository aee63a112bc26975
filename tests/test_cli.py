"""
tests/test_cli.py -- Tests for the operator CLI in main.py.

The CLI uses the process-wide issuer/verifier built from Settings (DEBUG=true
in tests, so a random key), which keeps issue -> verify consistent within
one test session.
"""

from __future__ import annotations

import json

import pytest

import main
from auth.secret import SigningSecret
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings


def _issue(capsys, *args: str) -> str:
    assert main.main(["issue", *args]) == 0
    return capsys.readouterr().out.strip()


def test_no_command_prints_help(capsys):
    assert main.main([]) == 0
    assert "usage: tokengate" in capsys.readouterr().out


def test_issue_then_verify(capsys):
    token = _issue(capsys, "alice")
    assert main.main(["verify", token, "alice"]) == 0
    assert capsys.readouterr().out.strip() == "valid"


def test_verify_wrong_subject_exits_1(capsys):
    token = _issue(capsys, "alice")
    assert main.main(["verify", token, "bob"]) == 1
    assert capsys.readouterr().out.strip() == "invalid"


def test_verify_malformed_exits_2(capsys):
    assert main.main(["verify", "not-a-token", "alice"]) == 2
    assert "MalformedTokenError" in capsys.readouterr().err


def test_verify_foreign_token_exits_2(capsys):
    foreign = TokenIssuer(SigningSecret("someone-else")).issue("alice")
    assert main.main(["verify", foreign, "alice"]) == 2
    assert "InvalidSignatureError" in capsys.readouterr().err


def test_inspect_prints_claims_with_extensions(capsys):
    token = _issue(capsys, "alice", "--claim", "tenant=acme", "--claim", "level=3")
    assert main.main(["inspect", token]) == 0
    body = json.loads(capsys.readouterr().out)
    assert body["sub"] == "alice"
    assert body["extra"] == {"tenant": "acme", "level": 3}
    assert body["expired"] is False


def test_inspect_extension_cannot_mask_expiry(capsys):
    token = _issue(capsys, "alice", "--claim", "expired=true")
    assert main.main(["inspect", token]) == 0
    body = json.loads(capsys.readouterr().out)
    assert body["expired"] is False
    assert body["extra"] == {"expired": True}


def test_issue_reserved_claim_rejected(capsys):
    assert main.main(["issue", "alice", "--claim", "sub=mallory"]) == 2


def test_claim_without_equals_is_usage_error():
    with pytest.raises(SystemExit):
        main.main(["issue", "alice", "--claim", "tenant"])


class TestCreateUser:
    @pytest.fixture
    def settings(self, tmp_path, monkeypatch) -> Settings:
        s = Settings(_env_file=None, debug=True, auth_db_url=f"sqlite:///{tmp_path / 'auth.db'}")
        monkeypatch.setattr(main, "get_settings", lambda: s)
        return s

    def test_creates_user(self, settings, monkeypatch, capsys):
        monkeypatch.setattr(main.getpass, "getpass", lambda prompt: "wonderland")
        assert main.main(["create-user", "alice"]) == 0
        assert "Created user 'alice'" in capsys.readouterr().out

    def test_duplicate_user(self, settings, monkeypatch, capsys):
        monkeypatch.setattr(main.getpass, "getpass", lambda prompt: "wonderland")
        assert main.main(["create-user", "alice"]) == 0
        assert main.main(["create-user", "alice"]) == 1
        assert "already exists" in capsys.readouterr().err

    def test_empty_password_rejected(self, settings, monkeypatch):
        monkeypatch.setattr(main.getpass, "getpass", lambda prompt: "")
        assert main.main(["create-user", "alice"]) == 2

    def test_password_over_72_bytes_rejected(self, settings, monkeypatch, capsys):
        monkeypatch.setattr(main.getpass, "getpass", lambda prompt: "x" * 73)
        assert main.main(["create-user", "alice"]) == 2
        assert "at most 72 bytes" in capsys.readouterr().err


@pytest.fixture
def production_without_key(monkeypatch):
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_invalid_environment_exits_3(production_without_key, monkeypatch):
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt: "wonderland")
    assert main.main(["create-user", "bob"]) == 3
