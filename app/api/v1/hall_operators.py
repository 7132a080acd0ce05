from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.session import get_db
from app.schemas.hall_operator import HallOperatorCreateRequest, HallOperatorResponse
from app.services.hall_operator_service import add_operator, delete_operator, list_operators

router = APIRouter(prefix="/hall-operators", tags=["hall-operators"])


@router.post("", response_model=HallOperatorResponse, status_code=status.HTTP_201_CREATED)
def create_hall_operator(
    payload: HallOperatorCreateRequest,
    _: dict = Depends(require_admin),
    db: Session = Depends(get_db),
) -> HallOperatorResponse:
    return HallOperatorResponse.model_validate(add_operator(db, payload))


@router.get("", response_model=list[HallOperatorResponse], status_code=status.HTTP_200_OK)
def get_hall_operators(
    hall: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[HallOperatorResponse]:
    return [HallOperatorResponse.model_validate(operator) for operator in list_operators(db, hall_name=hall)]


@router.delete("/{operator_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_hall_operator(
    operator_id: int,
    _: dict = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Response:
    delete_operator(db, operator_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
