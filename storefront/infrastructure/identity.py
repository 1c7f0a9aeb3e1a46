import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from storefront.application.interfaces import IdentityGate
from storefront.domain.models import Principal, Role
from storefront.domain.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


class JWTIdentityGate(IdentityGate):
    """Проверка bearer-токена (JWT): в sub id пользователя, в role роль"""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 3600):
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds

    def verify(self, token: str) -> Principal:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]}
            )
        except jwt.ExpiredSignatureError:
            raise UnauthenticatedError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Невалидный токен: {e}")
            raise UnauthenticatedError("Invalid token")

        # sub приводится к каноническому виду UUID, как и id из запросов
        try:
            user_id = str(uuid.UUID(str(claims["sub"])))
            role = Role(claims.get("role", Role.USER.value))
        except ValueError:
            raise UnauthenticatedError("Invalid token")
        return Principal(id=user_id, role=role)

    def issue(self, principal: Principal) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": principal.id,
            "role": principal.role.value,
            "iat": now,
            "exp": now + timedelta(seconds=self._ttl_seconds)
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)
