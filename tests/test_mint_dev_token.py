"""Tests for the development token script."""

import importlib.util
from pathlib import Path

import pytest

from common.auth import JWTAuth
from mindbridge.config import Settings

SCRIPT_PATH = Path(__file__).resolve().parent.parent / "scripts" / "mint_dev_token.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("mint_dev_token", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("JWT_SECRET", "ENVIRONMENT", "JWT_ACCESS_TOKEN_EXPIRE_MINUTES"):
        monkeypatch.delenv(name, raising=False)


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestMintToken:
    @pytest.mark.asyncio
    async def test_token_verifies_with_configured_secret(self, script):
        settings = make_settings(JWT_SECRET="dev-secret")

        token = await script.mint_token(settings, " user-7 ")

        assert await JWTAuth(secret="dev-secret").subject_of(token) == "user-7"

    @pytest.mark.asyncio
    async def test_refuses_outside_development(self, script):
        settings = make_settings(JWT_SECRET="dev-secret", ENVIRONMENT="production")

        with pytest.raises(RuntimeError, match="production"):
            await script.mint_token(settings, "user-7")

    @pytest.mark.asyncio
    async def test_requires_secret(self, script):
        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            await script.mint_token(make_settings(), "user-7")

    @pytest.mark.asyncio
    async def test_negative_lifetime_yields_expired_token(self, script):
        settings = make_settings(JWT_SECRET="dev-secret")

        token = await script.mint_token(settings, "user-7", minutes=-1)

        with pytest.raises(ValueError, match="expired"):
            await JWTAuth(secret="dev-secret").verify_token(token)


class TestMain:
    def test_prints_token(self, script, monkeypatch, capsys):
        monkeypatch.setenv("JWT_SECRET", "dev-secret")

        assert script.main(["user-7"]) == 0

        token = capsys.readouterr().out.strip()
        assert token.count(".") == 2

    def test_reports_missing_secret(self, script, capsys):
        assert script.main(["user-7"]) == 1
        assert "JWT_SECRET" in capsys.readouterr().err
