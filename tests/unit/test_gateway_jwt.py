"""Unit tests for JWT handler and Actor."""

from datetime import timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.qm_common.enums import Role
from src.qm_common.errors import InvalidCredentialsError, RoleRequiredError
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.jwt_handler import create_access_token, decode_actor


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("user-123", [Role.BUYER, Role.SELLER])
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"
    assert sorted(payload["roles"]) == ["BUYER", "SELLER"]
    assert "rating" not in payload


def test_decode_valid_token_to_actor() -> None:
    token = create_access_token("prov-1", [Role.PROVIDER], rating=4.5)
    actor = decode_actor(token)
    assert actor.user_id == "prov-1"
    assert actor.roles == frozenset({Role.PROVIDER})
    assert actor.rating == 4.5


def test_expired_token_raises_credentials_error() -> None:
    token = create_access_token("user-1", [Role.BUYER], expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_actor(token)


def test_tampered_token_raises_credentials_error() -> None:
    token = create_access_token("user-1", [Role.BUYER])
    with pytest.raises(InvalidCredentialsError):
        decode_actor(token[:-4] + "AAAA")


def test_wrong_secret_raises_credentials_error() -> None:
    token = jwt.encode(
        {"sub": "user-1", "type": "access", "roles": ["BUYER"]},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_actor(token)


def test_unknown_role_raises_credentials_error() -> None:
    token = jwt.encode(
        {"sub": "user-1", "type": "access", "roles": ["SUPERUSER"]},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_actor(token)


def test_missing_subject_raises_credentials_error() -> None:
    token = jwt.encode(
        {"type": "access", "roles": ["BUYER"]},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_actor(token)


def test_non_access_token_type_rejected() -> None:
    token = jwt.encode(
        {"sub": "user-1", "type": "refresh", "roles": ["BUYER"]},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_actor(token)


class TestActor:
    def test_require_passes_for_held_role(self) -> None:
        Actor("u1", frozenset({Role.BUYER})).require(Role.BUYER)

    def test_require_raises_for_missing_role(self) -> None:
        with pytest.raises(RoleRequiredError):
            Actor("u1", frozenset({Role.BUYER})).require(Role.PROVIDER)
