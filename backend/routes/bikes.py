"""
Bike Routes.
Registration, photos, theft reports and parking notifications.
"""

import os
import logging

import cv2
import numpy as np
import aiofiles
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models import Bike, ParkingNotification, ParkingNotificationKind
from services import (
    BikeService, ParkingNotificationService, StolenRecordService, StolenRecordPersistenceError
)
from routes.schemas import (
    BikeCreate, BikeResponse, BikeImageResponse,
    StolenRecordCreate, StolenRecordResponse,
    ParkingNotificationCreate, ParkingNotificationResponse,
    ResolveTokenRequest, ResolveTokenResponse, MessageResponse
)
from routes.stolen_records import stolen_record_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bikes", tags=["Bikes"])


def bike_response(bike: Bike) -> BikeResponse:
    return BikeResponse(
        id=bike.id,
        serial_number=bike.serial_number,
        manufacturer=bike.manufacturer,
        frame_model=bike.frame_model,
        primary_color=bike.primary_color,
        owner_id=bike.owner_id,
        status=bike.status.value,
        title=bike.title,
        current_stolen_record_id=bike.current_stolen_record_id,
        images=[BikeImageResponse.model_validate(image) for image in bike.images]
    )


def parking_notification_response(parking_notification: ParkingNotification) -> ParkingNotificationResponse:
    return ParkingNotificationResponse(
        id=parking_notification.id,
        bike_id=parking_notification.bike_id,
        kind=parking_notification.kind.value,
        status=parking_notification.status.value,
        organization_name=parking_notification.organization_name,
        retrieved_kind=parking_notification.retrieved_kind.value if parking_notification.retrieved_kind else None,
        resolved_at=parking_notification.resolved_at
    )


def get_bike_or_404(db: Session, bike_id: int) -> Bike:
    bike = BikeService.get_by_id(db, bike_id)
    if not bike:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bike not found"
        )
    return bike


@router.post("/", response_model=BikeResponse, status_code=status.HTTP_201_CREATED)
async def register_bike(
    bike_data: BikeCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new bike.

    - Serial number is normalized to uppercase
    """
    bike = BikeService.create(
        db=db,
        serial_number=bike_data.serial_number,
        manufacturer=bike_data.manufacturer,
        frame_model=bike_data.frame_model,
        primary_color=bike_data.primary_color,
        owner_id=bike_data.owner_id,
        owner_email=bike_data.owner_email
    )
    return bike_response(bike)


@router.get("/{bike_id}", response_model=BikeResponse)
async def get_bike(
    bike_id: int,
    db: Session = Depends(get_db)
):
    """Get a bike by ID."""
    return bike_response(get_bike_or_404(db, bike_id))


@router.post("/{bike_id}/images", response_model=BikeImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_bike_image(
    bike_id: int,
    file: UploadFile = File(...),
    is_private: bool = Form(False),
    db: Session = Depends(get_db)
):
    """
    Upload a photo of a bike.

    - Supported formats: JPG, JPEG, PNG, WEBP
    - Maximum file size: 20MB
    - The first public photo is used for listings and alert images
    """
    bike = get_bike_or_404(db, bike_id)

    file_ext = os.path.splitext(file.filename or "")[1].lower()
    if file_ext not in settings.ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(settings.ALLOWED_IMAGE_EXTENSIONS))}"
        )

    content = await file.read()
    if len(content) > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size: {settings.MAX_FILE_SIZE // (1024*1024)}MB"
        )

    # Reject anything OpenCV can't decode, alert images are rendered from it
    nparr = np.frombuffer(content, np.uint8)
    if cv2.imdecode(nparr, cv2.IMREAD_COLOR) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to decode image"
        )

    file_path = BikeService.image_path_for(bike.id, file_ext)
    try:
        async with aiofiles.open(file_path, 'wb') as out_file:
            await out_file.write(content)

        image = BikeService.add_image(db, bike, file_path, is_private=is_private)
    except Exception as e:
        # Clean up on error
        if os.path.exists(file_path):
            os.remove(file_path)
        logger.error(f"Bike image upload error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store image"
        )

    return BikeImageResponse.model_validate(image)


@router.delete("/{bike_id}/images/{image_id}", response_model=MessageResponse)
async def delete_bike_image(
    bike_id: int,
    image_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete a bike photo.

    Alert images generated from the photo are removed with it.
    """
    image = BikeService.get_image(db, bike_id, image_id)
    if not image:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bike image not found"
        )

    BikeService.remove_image(db, image)
    return MessageResponse(message="Bike image deleted successfully")


@router.post("/{bike_id}/stolen-records", response_model=StolenRecordResponse,
             status_code=status.HTTP_201_CREATED)
async def report_stolen(
    bike_id: int,
    record_data: StolenRecordCreate,
    db: Session = Depends(get_db)
):
    """
    Report a bike stolen.

    - The new report becomes the bike's current stolen record
    - Any previous current record is marked not current
    """
    bike = get_bike_or_404(db, bike_id)

    try:
        stolen_record = StolenRecordService.create_current(
            db, bike, **record_data.model_dump(exclude_unset=True)
        )
    except StolenRecordPersistenceError as e:
        logger.error(f"Stolen report failed for bike {bike_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save the stolen record"
        )

    return stolen_record_response(stolen_record)


@router.post("/{bike_id}/parking-notifications", response_model=ParkingNotificationResponse,
             status_code=status.HTTP_201_CREATED)
async def create_parking_notification(
    bike_id: int,
    notification_data: ParkingNotificationCreate,
    db: Session = Depends(get_db)
):
    """
    Leave a parking notification on a bike.

    - The owner is emailed a link to mark the bike retrieved
    - Impound notifications move the bike to impounded
    """
    bike = get_bike_or_404(db, bike_id)

    parking_notification = ParkingNotificationService.create(
        db,
        bike,
        kind=ParkingNotificationKind(notification_data.kind.value),
        user_id=notification_data.user_id,
        latitude=notification_data.latitude,
        longitude=notification_data.longitude,
        organization_name=notification_data.organization_name
    )
    return parking_notification_response(parking_notification)


@router.post("/{bike_id}/resolve-token", response_model=ResolveTokenResponse)
async def resolve_token(
    bike_id: int,
    request: ResolveTokenRequest,
    db: Session = Depends(get_db)
):
    """
    Follow the retrieval link emailed with a parking notification.

    The level is success when the bike was marked retrieved, error for
    unknown tokens and impounded bikes, and info when it was already retrieved.
    """
    bike = get_bike_or_404(db, bike_id)

    resolution = ParkingNotificationService.resolve_token(
        db,
        bike,
        request.token,
        user_id=request.user_id,
        user_recovery=request.user_recovery
    )
    return ResolveTokenResponse(
        level=resolution.level,
        message=resolution.message,
        parking_notification_id=resolution.parking_notification_id
    )
