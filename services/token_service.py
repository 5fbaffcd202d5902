from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import jwt, JWTError

from core.config import Settings
from core.exceptions import AuthenticationError


class TokenService:
    """
    Issues and reads the bearer tokens used by the back office.
    """

    @staticmethod
    def create_access_token(settings: Settings, email: str, user_id: int, role: str,
                            expires_delta: Optional[timedelta] = None) -> str:
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        payload = {
            "sub": email,
            "id": user_id,
            "role": role,
            "type": "access",
            "exp": datetime.now(timezone.utc) + expires_delta
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_access_token(settings: Settings, token: str) -> dict:
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise AuthenticationError()

        if payload.get("sub") is None or payload.get("id") is None:
            raise AuthenticationError()

        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type. Access token required.")

        return payload
