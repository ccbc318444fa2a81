"""
Theft Alert Routes.
Activating and ending promoted alerts.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models import TheftAlert, TheftAlertStatus
from services import TheftAlertService
from routes.schemas import TheftAlertUpdate, TheftAlertResponse

router = APIRouter(prefix="/theft-alerts", tags=["Theft Alerts"])


def theft_alert_response(theft_alert: TheftAlert) -> TheftAlertResponse:
    return TheftAlertResponse(
        id=theft_alert.id,
        stolen_record_id=theft_alert.stolen_record_id,
        status=theft_alert.status.value,
        amount_cents=theft_alert.amount_cents,
        begin_at=theft_alert.begin_at,
        end_at=theft_alert.end_at,
        recovery_notified_at=theft_alert.recovery_notified_at
    )


@router.get("/{theft_alert_id}", response_model=TheftAlertResponse)
async def get_theft_alert(
    theft_alert_id: int,
    db: Session = Depends(get_db)
):
    theft_alert = TheftAlertService.get_by_id(db, theft_alert_id)
    if not theft_alert:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Theft alert not found"
        )
    return theft_alert_response(theft_alert)


@router.put("/{theft_alert_id}", response_model=TheftAlertResponse)
async def update_theft_alert(
    theft_alert_id: int,
    update: TheftAlertUpdate,
    db: Session = Depends(get_db)
):
    """
    Move a promoted alert to pending, active or inactive.

    - Activation records when the campaign began
    - Deactivation records when it ended
    """
    theft_alert = TheftAlertService.get_by_id(db, theft_alert_id)
    if not theft_alert:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Theft alert not found"
        )

    theft_alert = TheftAlertService.update_status(db, theft_alert, TheftAlertStatus(update.status.value))
    return theft_alert_response(theft_alert)
