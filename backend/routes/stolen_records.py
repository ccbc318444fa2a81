"""
Stolen Record Routes.
Theft report lookups, recovery, alert images and recovery curation.
"""

import os
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models import AlertImage, StolenRecord
from services import (
    AlertImageService, BikeService, RecoveryDisplayService, RecoveryDisplayStatus,
    RecoveryPersistenceError, StolenRecordService, TheftAlertService,
    Overridden, dispatch_effects, recovery_display_state
)
from routes.schemas import (
    StolenRecordResponse, RecoveryRequest, RecoveryResponse,
    AlertImageRequest, AlertImageResponse, RecoveryDisplayStatusUpdate,
    RecoveryDisplayCreate, RecoveryDisplayResponse,
    TheftAlertCreate, TheftAlertResponse
)
from routes.theft_alerts import theft_alert_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stolen-records", tags=["Stolen Records"])


def stolen_record_response(stolen_record: StolenRecord) -> StolenRecordResponse:
    """Public view of a stolen record; the street address is never exposed."""
    display_state = recovery_display_state(stolen_record)
    return StolenRecordResponse(
        id=stolen_record.id,
        bike_id=stolen_record.bike_id,
        current=stolen_record.current,
        date_stolen=stolen_record.date_stolen,
        phone=stolen_record.phone,
        city=stolen_record.city,
        state=stolen_record.state,
        country=stolen_record.country,
        address_location=stolen_record.address_location(),
        latitude=stolen_record.latitude_public,
        longitude=stolen_record.longitude_public,
        recovered_at=stolen_record.recovered_at,
        recovered_description=stolen_record.recovered_description,
        can_share_recovery=stolen_record.can_share_recovery,
        index_helped_recovery=stolen_record.index_helped_recovery,
        recovering_user_id=stolen_record.recovering_user_id,
        recovery_display_status=display_state.status.value,
        recovery_display_status_overridden=isinstance(display_state, Overridden),
        alert_image_id=stolen_record.alert_image.id if stolen_record.alert_image else None
    )


def alert_image_response(alert_image: AlertImage) -> AlertImageResponse:
    return AlertImageResponse(
        id=alert_image.id,
        stolen_record_id=alert_image.stolen_record_id,
        source_image_id=alert_image.source_image_id,
        filename=os.path.basename(alert_image.image_path)
    )


def get_stolen_record_or_404(db: Session, stolen_record_id: int) -> StolenRecord:
    stolen_record = StolenRecordService.get_by_id(db, stolen_record_id)
    if not stolen_record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Stolen record not found"
        )
    return stolen_record


@router.get("/recovered", response_model=List[StolenRecordResponse])
async def get_recovered_records(
    displayable_only: bool = False,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db)
):
    """
    List recovered stolen records, most recent first.

    - Set displayable_only=true to only include stories the owner agreed to share
    """
    if displayable_only:
        records = StolenRecordService.get_displayable(db, limit=limit, offset=offset)
    else:
        records = StolenRecordService.get_recovered(db, limit=limit, offset=offset)
    return [stolen_record_response(r) for r in records]


@router.get("/{stolen_record_id}", response_model=StolenRecordResponse)
async def get_stolen_record(
    stolen_record_id: int,
    db: Session = Depends(get_db)
):
    """Get a stolen record with its recovery display status."""
    stolen_record = get_stolen_record_or_404(db, stolen_record_id)
    return stolen_record_response(stolen_record)


@router.post("/{stolen_record_id}/recovery", response_model=RecoveryResponse)
async def mark_recovered(
    stolen_record_id: int,
    recovery: RecoveryRequest,
    db: Session = Depends(get_db)
):
    """
    Mark a stolen bike recovered.

    - recovered_at is read in the given timezone (UTC when omitted);
      unparseable values fall back to the current time
    - Admins are notified once if the record had an active promoted alert
    """
    stolen_record = get_stolen_record_or_404(db, stolen_record_id)

    try:
        result = StolenRecordService.add_recovery_information(
            db,
            stolen_record,
            recovered_description=recovery.recovered_description,
            index_helped_recovery=recovery.index_helped_recovery,
            can_share_recovery=recovery.can_share_recovery,
            recovering_user_id=recovery.recovering_user_id,
            recovered_at=recovery.recovered_at,
            timezone=recovery.timezone
        )
    except RecoveryPersistenceError as e:
        logger.error(f"Recovery failed for stolen record {stolen_record_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record the recovery"
        )

    dispatched = dispatch_effects(result.effects)

    return RecoveryResponse(
        success=result.success,
        stolen_record=stolen_record_response(result.stolen_record),
        notifications_dispatched=dispatched
    )


@router.post("/{stolen_record_id}/alert-image", response_model=AlertImageResponse)
async def generate_alert_image(
    stolen_record_id: int,
    request: AlertImageRequest,
    db: Session = Depends(get_db)
):
    """
    Generate the promoted alert image for a stolen record.

    - Uses the chosen photo when it belongs to the bike, otherwise the
      bike's first public photo
    - Returns the existing image when it was built from the same photo
    """
    stolen_record = get_stolen_record_or_404(db, stolen_record_id)

    if not stolen_record.current:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only current stolen records get an alert image"
        )

    bike_image = None
    if request.bike_image_id is not None and stolen_record.bike_id is not None:
        bike_image = BikeService.get_image(db, stolen_record.bike_id, request.bike_image_id)

    alert_image = AlertImageService.generate(db, stolen_record, bike_image=bike_image)
    if alert_image is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No usable bike photo to build an alert image from"
        )
    return alert_image_response(alert_image)


@router.post("/{stolen_record_id}/recovery-display", response_model=RecoveryDisplayResponse,
             status_code=status.HTTP_201_CREATED)
async def create_recovery_display(
    stolen_record_id: int,
    display_data: RecoveryDisplayCreate,
    db: Session = Depends(get_db)
):
    """
    Publish a recovery story.

    Fields left out are prefilled from the stolen record.
    """
    stolen_record = get_stolen_record_or_404(db, stolen_record_id)

    if stolen_record.current:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Stolen record has not been recovered"
        )
    if stolen_record.recovery_display is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Recovery display already exists: {stolen_record.recovery_display.id}"
        )

    recovery_display = RecoveryDisplayService.create(
        db,
        stolen_record,
        quote=display_data.quote,
        quote_by=display_data.quote_by,
        date_input=display_data.date_recovered,
        link=display_data.link
    )
    return RecoveryDisplayResponse.model_validate(recovery_display)


@router.put("/{stolen_record_id}/recovery-display-status", response_model=StolenRecordResponse)
async def update_recovery_display_status(
    stolen_record_id: int,
    update: RecoveryDisplayStatusUpdate,
    db: Session = Depends(get_db)
):
    """
    Pin or clear the recovery display decision.

    - Only displayed and not_displayed can be pinned
    - null clears the pin and the status is computed again
    """
    stolen_record = get_stolen_record_or_404(db, stolen_record_id)

    new_status = RecoveryDisplayStatus(update.status.value) if update.status else None
    try:
        stolen_record = StolenRecordService.set_recovery_display_status(db, stolen_record, new_status)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return stolen_record_response(stolen_record)


@router.post("/{stolen_record_id}/theft-alerts", response_model=TheftAlertResponse,
             status_code=status.HTTP_201_CREATED)
async def create_theft_alert(
    stolen_record_id: int,
    alert_data: TheftAlertCreate,
    db: Session = Depends(get_db)
):
    """Open a pending promoted alert for a current stolen record."""
    stolen_record = get_stolen_record_or_404(db, stolen_record_id)

    if not stolen_record.current:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only current stolen records can be promoted"
        )

    theft_alert = TheftAlertService.create(
        db,
        stolen_record,
        user_id=alert_data.user_id,
        amount_cents=alert_data.amount_cents
    )
    return theft_alert_response(theft_alert)


@router.get("/{stolen_record_id}/theft-alerts", response_model=List[TheftAlertResponse])
async def get_theft_alerts(
    stolen_record_id: int,
    db: Session = Depends(get_db)
):
    """List a stolen record's promoted alerts, newest first."""
    get_stolen_record_or_404(db, stolen_record_id)
    theft_alerts = TheftAlertService.get_for_stolen_record(db, stolen_record_id)
    return [theft_alert_response(a) for a in theft_alerts]
