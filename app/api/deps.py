from typing import Annotated, Any
import uuid
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.security import verify_access_token
from app.services.push_gateway import FirebasePushGateway, get_push_gateway


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme
security = HTTPBearer()


class Account:
    """Identity carried by a valid access token."""

    def __init__(self, account_id: uuid.UUID, account_type: str, claims: dict[str, Any]):
        self.id = account_id
        self.account_type = account_type
        self.claims = claims

    def require(self, account_id: uuid.UUID, account_type: str) -> None:
        """403 unless the token belongs to exactly this account."""
        if self.id != account_id or self.account_type != account_type:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed to act on this account"
            )


async def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Account:
    """
    Dependency returning the student or teacher behind the bearer token.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_access_token(credentials.credentials)
    if payload is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise credentials_exception

    try:
        account_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        logger.warning(f"Invalid subject in token: {payload.get('sub')}")
        raise credentials_exception

    return Account(account_id, payload.get("account_type", ""), payload)


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentAccount = Annotated[Account, Depends(get_current_account)]
PushGateway = Annotated[FirebasePushGateway, Depends(get_push_gateway)]
