"""
Bike Registry Recovery Service - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import Generator

import cv2
import numpy as np
import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set testing environment before anything reads the settings
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='bike_registry_test_')
os.environ['EMAIL_ALERTS_ENABLED'] = 'false'
os.environ['BREVO_API_KEY'] = ''

from config import settings
from database import Base, SessionLocal, engine, get_db
from main import app
from models import User, TheftAlertStatus
from services import BikeService, StolenRecordService, TheftAlertService

fake = Faker()


@pytest.fixture(autouse=True)
def upload_dirs(tmp_path, monkeypatch):
    """Keep every test's photos and alert images in its own directory"""
    upload_dir = tmp_path / 'uploads'
    alert_dir = upload_dir / 'alert_images'
    alert_dir.mkdir(parents=True)
    monkeypatch.setattr(settings, 'UPLOAD_DIR', str(upload_dir))
    monkeypatch.setattr(settings, 'ALERT_IMAGE_DIR', str(alert_dir))
    return upload_dir


@pytest.fixture(scope='function')
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def image_file(tmp_path):
    """Factory writing a real JPEG to disk and returning its path"""
    def _make(name: str = 'bike.jpg', color=(40, 120, 200), size=(480, 640)) -> str:
        image = np.full((size[0], size[1], 3), color, dtype=np.uint8)
        cv2.rectangle(image, (60, 60), (size[1] - 60, size[0] - 60), (20, 20, 20), 8)
        path = tmp_path / name
        assert cv2.imwrite(str(path), image)
        return str(path)
    return _make


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Encoded JPEG for upload tests"""
    image = np.full((240, 320, 3), (0, 160, 60), dtype=np.uint8)
    ok, buffer = cv2.imencode('.jpg', image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def owner(db_session: Session) -> User:
    """Create a bike owner"""
    user = User(
        username=fake.unique.user_name(),
        name=fake.name(),
        email=fake.email()
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def bike(db_session: Session, owner: User):
    """Create a registered bike without photos"""
    return BikeService.create(
        db_session,
        serial_number=fake.bothify('??#####'),
        manufacturer='Surly',
        frame_model='Cross-Check',
        primary_color='Black',
        owner_id=owner.id,
        owner_email=owner.email
    )


@pytest.fixture
def bike_with_photo(db_session: Session, bike, image_file):
    """Create a bike with one public photo"""
    BikeService.add_image(db_session, bike, image_file('front.jpg'))
    db_session.refresh(bike)
    return bike


@pytest.fixture
def stolen_record(db_session: Session, bike_with_photo):
    """Report the photographed bike stolen"""
    return StolenRecordService.create_current(
        db_session,
        bike_with_photo,
        street='1500 W Fulton St',
        city='Chicago',
        state='IL',
        zipcode='60607',
        country='US',
        latitude=41.8868,
        longitude=-87.6646
    )


@pytest.fixture
def active_theft_alert(db_session: Session, stolen_record):
    """Create an active promoted alert for the stolen record"""
    theft_alert = TheftAlertService.create(db_session, stolen_record, amount_cents=2999)
    return TheftAlertService.update_status(db_session, theft_alert, TheftAlertStatus.ACTIVE)
