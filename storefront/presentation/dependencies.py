import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.config import settings
from storefront.database import AsyncSessionLocal
from storefront.domain.models import Principal
from storefront.domain.exceptions import ForbiddenError, InvalidArgumentError, UnauthenticatedError
from storefront.infrastructure.identity import JWTIdentityGate
from storefront.infrastructure.unit_of_work import UnitOfWork

bearer_scheme = HTTPBearer(auto_error=False)


def get_unit_of_work():
    return UnitOfWork(AsyncSessionLocal)


def get_identity_gate():
    return JWTIdentityGate(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_TTL_SECONDS)


def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    gate=Depends(get_identity_gate),
) -> Optional[Principal]:
    """Principal, если передан Authorization: Bearer; невалидный токен дает 401"""
    if credentials is None:
        return None
    return gate.verify(credentials.credentials)


def get_principal(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise UnauthenticatedError("Not authorized, no token")
    return principal


def get_admin_principal(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenError("Access denied")
    return principal


def ensure_id(value: Optional[str], label: str) -> str:
    """Id сущностей должны быть UUID, все остальное отклоняется как 400"""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise InvalidArgumentError(f"Invalid {label} ID")
