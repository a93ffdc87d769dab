"""
FastAPI dependencies voor authenticatie en injectie van de DB
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.security import decode_access_token
from app.database import get_database
from app.repositories.user_repository import UserRepository
from app.models.user import User, UserRole

# Beveiligingsschema: verwacht een header "Authorization: Bearer <token>"
security = HTTPBearer()


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "UNAUTHORIZED", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> User:
    """
    Dependency die de JWT van de gebruiker valideert.

    Wordt gebruikt in endpoints die authenticatie vereisen.
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise _unauthorized("Token ongeldig of verlopen")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Ongeldige token payload")

    user_repo = UserRepository(db)
    user = await user_repo.get_by_id(user_id)

    if not user:
        raise _unauthorized("Gebruiker niet gevonden")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "ACCOUNT_DISABLED", "message": "Account is gedeactiveerd"},
        )

    return user


async def get_current_admin(
    user: Annotated[User, Depends(get_current_user)]
) -> User:
    """Zelfde als get_current_user, maar alleen voor admins."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "UNAUTHORIZED", "message": "Admin toegang vereist"},
        )
    return user


# Type aliases zodat de endpoints er netter uitzien
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentAdmin = Annotated[User, Depends(get_current_admin)]
Database = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
