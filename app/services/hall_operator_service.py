from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.hall_locks import normalize_hall
from app.db.models import HallOperator
from app.schemas.hall_operator import HallOperatorCreateRequest
from app.services.booking_validator import PHONE_PATTERN

OPERATOR_NOT_FOUND_DETAIL = "Operator not found"


def _validate_head_email(email: str) -> str:
    normalized = email.strip().lower()
    allowed = [f"@{domain.strip().lower()}" for domain in settings.operator_email_domains]
    if not any(normalized.endswith(domain) for domain in allowed):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Head email must end with one of: {', '.join(allowed)}",
        )
    return normalized


def _validate_phone(phone: str | None) -> str | None:
    if phone is None or not phone.strip():
        return None
    if not PHONE_PATTERN.match(phone.strip()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone must be 10 digits starting with 6/7/8/9",
        )
    return phone.strip()


def add_operator(db: Session, payload: HallOperatorCreateRequest) -> HallOperator:
    operator = HallOperator(
        hall_name=payload.hall_name.strip(),
        head_name=payload.head_name.strip(),
        head_email=_validate_head_email(payload.head_email),
        phone=_validate_phone(payload.phone),
    )
    db.add(operator)
    db.commit()
    db.refresh(operator)
    return operator


def list_operators(db: Session, hall_name: str | None = None) -> list[HallOperator]:
    query = select(HallOperator)
    if hall_name:
        query = query.where(func.lower(HallOperator.hall_name) == normalize_hall(hall_name))
    return list(db.scalars(query.order_by(HallOperator.id)).all())


def operators_for_hall(db: Session, hall_name: str | None) -> list[HallOperator]:
    if not hall_name:
        return []
    return list_operators(db, hall_name=hall_name)


def delete_operator(db: Session, operator_id: int) -> None:
    operator = db.get(HallOperator, operator_id)
    if operator is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=OPERATOR_NOT_FOUND_DETAIL)
    db.delete(operator)
    db.commit()
