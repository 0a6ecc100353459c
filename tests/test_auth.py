"""Tests for JWT verification and the bearer-token dependencies."""

from typing import Annotated, Optional

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from common.auth import JWTAuth, create_auth_dependency, create_optional_auth_dependency

SECRET = "test-secret"


@pytest.fixture
def auth():
    return JWTAuth(secret=SECRET)


@pytest.fixture
def client(auth):
    require = create_auth_dependency(lambda: auth)
    optional = create_optional_auth_dependency(lambda: auth)
    app = FastAPI()

    @app.get("/me")
    async def me(user_id: Annotated[str, Depends(require)]):
        return {"userId": user_id}

    @app.get("/maybe")
    async def maybe(user_id: Annotated[Optional[str], Depends(optional)]):
        return {"userId": user_id}

    return TestClient(app)


class TestJWTAuth:
    def test_rejects_empty_secret(self):
        with pytest.raises(ValueError):
            JWTAuth(secret="")

    @pytest.mark.asyncio
    async def test_round_trip_carries_subject(self, auth):
        token = await auth.create_token("user-42")

        claims = await auth.verify_token(token)

        assert claims["sub"] == "user-42"

    @pytest.mark.asyncio
    async def test_wrong_secret_is_rejected(self, auth):
        token = await JWTAuth(secret="other").create_token("user-42")

        with pytest.raises(ValueError):
            await auth.verify_token(token)

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self):
        auth = JWTAuth(secret=SECRET, access_token_expire_minutes=-1)
        token = await auth.create_token("user-42")

        with pytest.raises(ValueError, match="expired"):
            await auth.verify_token(token)

    @pytest.mark.asyncio
    async def test_subject_must_be_present(self, auth):
        token = jwt.encode({"role": "admin"}, SECRET, algorithm="HS256")

        with pytest.raises(ValueError, match="user ID"):
            await auth.subject_of(token)


class TestAuthDependencies:
    def test_valid_bearer_token(self, client):
        token = jwt.encode({"sub": "user-42"}, SECRET, algorithm="HS256")

        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"userId": "user-42"}

    def test_missing_header(self, client):
        response = client.get("/me")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"

    def test_wrong_scheme(self, client):
        response = client.get("/me", headers={"Authorization": "Basic abc"})

        assert response.json()["detail"]["code"] == "INVALID_AUTH_SCHEME"

    def test_garbage_token(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer not.a.jwt"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_TOKEN"

    def test_optional_auth_without_token(self, client):
        response = client.get("/maybe")

        assert response.json() == {"userId": None}

    def test_optional_auth_ignores_bad_token(self, client):
        response = client.get("/maybe", headers={"Authorization": "Bearer nope"})

        assert response.json() == {"userId": None}
