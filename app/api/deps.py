from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.security import decode_access_token, is_admin_claims
from app.db.session import get_db
from app.repositories.booking_store import BookingStore, SqlAlchemyBookingStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_booking_store(db: Session = Depends(get_db)) -> BookingStore:
    return SqlAlchemyBookingStore(db)


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any] | None:
    if credentials is None:
        return None
    try:
        return decode_access_token(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None


def is_admin_request(claims: dict[str, Any] | None = Depends(get_token_claims)) -> bool:
    return claims is not None and is_admin_claims(claims)


def require_admin(claims: dict[str, Any] | None = Depends(get_token_claims)) -> dict[str, Any]:
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not is_admin_claims(claims):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return claims
