"""
Finished Goods Endpoints

Recording and listing happen under /work-orders/{id}/finished-goods.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orderflow.db.session import get_db, transaction
from orderflow.schemas.common import ApiResponse
from orderflow.schemas.finished_good import FinishedGoodResponse, FinishedGoodUpdate
from orderflow.services import finished_goods_service

router = APIRouter(prefix="/finished-goods", tags=["Finished Goods"])


@router.patch("/{finished_good_id}", response_model=ApiResponse[FinishedGoodResponse])
async def update_finished_good(
    finished_good_id: int,
    data: FinishedGoodUpdate,
    db: Session = Depends(get_db),
):
    with transaction(db):
        finished_good = finished_goods_service.update_finished_good(
            db,
            finished_good_id,
            quantity=data.quantity,
            produced_at=data.produced_at,
            notes=data.notes,
        )
    return ApiResponse(
        message="Finished good updated successfully",
        data=FinishedGoodResponse.model_validate(finished_good),
    )


@router.delete("/{finished_good_id}", response_model=ApiResponse[dict])
async def delete_finished_good(finished_good_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        finished_goods_service.delete_finished_good(db, finished_good_id)
    return ApiResponse(message="Finished good deleted successfully", data={"id": finished_good_id})
