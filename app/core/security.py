"""
Beveiliging: aanmaken en verifiëren van JWT tokens
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from app.core.config import get_settings

settings = get_settings()


def create_access_token(user_id: str, email: str, role: str = "participant") -> str:
    """
    Maakt een JWT zodat de gebruiker geauthenticeerde requests kan doen

    De JWT bevat user_id, email en rol
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_expire_minutes)

    payload = {
        "sub": user_id,      # Subject: de gebruiker
        "email": email,
        "role": role,
        "exp": expire,
        "iat": now,
    }

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decodeert en valideert een JWT

    Geeft de payload terug als hij geldig is, None als hij verlopen of corrupt is
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None
