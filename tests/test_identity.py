import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from storefront.domain.models import Principal, Role
from storefront.domain.exceptions import UnauthenticatedError
from storefront.infrastructure.identity import JWTIdentityGate

USER_ID = "e5a304bf-6c1d-4f0e-9a55-2b7c0d3e8f11"


def encode(claims):
    claims.setdefault("exp", datetime.now(timezone.utc) + timedelta(minutes=5))
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def test_issued_token_verifies(gate):
    token = gate.issue(Principal(id=USER_ID, role=Role.ADMIN))

    principal = gate.verify(token)

    assert principal == Principal(id=USER_ID, role=Role.ADMIN)
    assert principal.is_admin


def test_role_defaults_to_user(gate):
    assert gate.verify(encode({"sub": USER_ID})).role == Role.USER


@pytest.mark.parametrize("sub", [USER_ID.upper(), "{" + USER_ID + "}", USER_ID.replace("-", "")])
def test_subject_is_normalized(gate, sub):
    assert gate.verify(encode({"sub": sub})).id == USER_ID


def test_expired_token():
    gate = JWTIdentityGate("test-secret", ttl_seconds=-10)
    token = gate.issue(Principal(id=USER_ID))

    with pytest.raises(UnauthenticatedError, match="Token expired"):
        gate.verify(token)


def test_token_signed_with_other_secret(gate):
    token = JWTIdentityGate("other-secret").issue(Principal(id=str(uuid.uuid4())))

    with pytest.raises(UnauthenticatedError, match="Invalid token"):
        gate.verify(token)


@pytest.mark.parametrize("claims", [
    {"role": "user"},
    {"sub": USER_ID, "role": "superuser"},
    {"sub": "u-1"},
])
def test_malformed_claims(gate, claims):
    with pytest.raises(UnauthenticatedError, match="Invalid token"):
        gate.verify(encode(claims))
