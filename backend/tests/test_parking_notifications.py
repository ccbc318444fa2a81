"""
Tests for parking notifications and retrieval links
"""
from unittest.mock import patch

import pytest

from models import BikeStatus, ParkingNotificationKind, ParkingNotificationStatus, RetrievedKind
from services import ParkingNotificationService


@pytest.fixture
def mock_send():
    """Capture owner emails instead of calling Brevo"""
    with patch('services.parking_notification_service.send_parking_notification_email') as mock:
        mock.return_value = True
        yield mock


class TestCreate:
    def test_emails_owner(self, db_session, bike, owner, mock_send):
        parking_notification = ParkingNotificationService.create(
            db_session, bike, organization_name='Campus Parking'
        )

        assert parking_notification.status == ParkingNotificationStatus.CURRENT
        assert parking_notification.retrieval_link_token
        mock_send.assert_called_once()
        kwargs = mock_send.call_args.kwargs
        assert kwargs['user_email'] == owner.email.lower()
        assert kwargs['user_name'] == owner.name
        details = kwargs['notification_details']
        assert details['kind'] == 'parked_incorrectly_notification'
        assert details['organization_name'] == 'Campus Parking'
        assert parking_notification.retrieval_link_token in details['retrieval_link']

    def test_no_email_without_owner_email(self, db_session, mock_send):
        from services import BikeService
        bike = BikeService.create(db_session, serial_number='NOEMAIL1')
        ParkingNotificationService.create(db_session, bike)
        mock_send.assert_not_called()

    def test_impound_marks_bike(self, db_session, bike, mock_send):
        parking_notification = ParkingNotificationService.create(
            db_session, bike, kind=ParkingNotificationKind.IMPOUND, organization_name='City Impound'
        )
        db_session.refresh(bike)
        assert parking_notification.impounded is True
        assert bike.status == BikeStatus.IMPOUNDED


class TestResolveToken:
    """Following the retrieval link from the email"""

    def test_marks_active_notification_retrieved(self, db_session, bike, mock_send):
        parking_notification = ParkingNotificationService.create(db_session, bike)

        resolution = ParkingNotificationService.resolve_token(
            db_session, bike, parking_notification.retrieval_link_token
        )

        db_session.refresh(parking_notification)
        assert resolution.level == 'success'
        assert resolution.parking_notification_id == parking_notification.id
        assert parking_notification.status == ParkingNotificationStatus.RETRIEVED
        assert parking_notification.retrieved_kind == RetrievedKind.LINK_TOKEN_RECOVERY
        assert parking_notification.resolved_at is not None

    def test_user_recovery(self, db_session, bike, owner, mock_send):
        parking_notification = ParkingNotificationService.create(db_session, bike)

        ParkingNotificationService.resolve_token(
            db_session, bike, parking_notification.retrieval_link_token,
            user_id=owner.id, user_recovery=True
        )

        db_session.refresh(parking_notification)
        assert parking_notification.retrieved_kind == RetrievedKind.USER_RECOVERY
        assert parking_notification.retrieved_by_id == owner.id

    def test_already_retrieved(self, db_session, bike, mock_send):
        parking_notification = ParkingNotificationService.create(db_session, bike)
        token = parking_notification.retrieval_link_token
        ParkingNotificationService.resolve_token(db_session, bike, token)

        resolution = ParkingNotificationService.resolve_token(db_session, bike, token)
        assert resolution.level == 'info'

    def test_impounded(self, db_session, bike, mock_send):
        parking_notification = ParkingNotificationService.create(
            db_session, bike, kind=ParkingNotificationKind.IMPOUND, organization_name='City Impound'
        )

        resolution = ParkingNotificationService.resolve_token(
            db_session, bike, parking_notification.retrieval_link_token
        )

        assert resolution.level == 'error'
        assert 'City Impound' in resolution.message
        db_session.refresh(parking_notification)
        assert parking_notification.status == ParkingNotificationStatus.IMPOUNDED

    @pytest.mark.parametrize('token', ['', 'not-a-real-token'])
    def test_unknown_token(self, db_session, bike, token):
        resolution = ParkingNotificationService.resolve_token(db_session, bike, token)
        assert resolution.level == 'error'
        assert resolution.parking_notification_id is None

    def test_token_belongs_to_bike(self, db_session, bike, mock_send):
        """A token only resolves for the bike it was issued for"""
        from services import BikeService
        other_bike = BikeService.create(db_session, serial_number='OTHER2')
        parking_notification = ParkingNotificationService.create(db_session, bike)

        resolution = ParkingNotificationService.resolve_token(
            db_session, other_bike, parking_notification.retrieval_link_token
        )
        assert resolution.level == 'error'


class TestBrevoEmail:
    """Owner emails through the Brevo API"""

    def test_template_params(self):
        from utils.brevo_email import template_params

        params = template_params('Sam', {'kind': 'impound_notification', 'bike_title': 'Red Trek'})
        assert params['subject'] == 'Your bike was impounded'
        assert params['bike_title'] == 'Red Trek'
        assert params['organization_name'] == ''

    def test_unknown_kind_gets_default_subject(self):
        from utils.brevo_email import template_params

        assert template_params('Sam', {'kind': 'something_else'})['subject'] == 'Notification about your bike'

    def test_unconfigured_skips(self):
        from utils.brevo_email import BrevoEmailService

        service = BrevoEmailService()
        assert service.is_configured() is False
        assert service.send_parking_notification_email('owner@example.com', 'Sam', {}) is False

    def test_sends_with_template(self, monkeypatch):
        from config import settings
        from utils.brevo_email import BrevoEmailService

        monkeypatch.setattr(settings, 'BREVO_API_KEY', 'xkeysib-test')
        monkeypatch.setattr(settings, 'BREVO_PARKING_TEMPLATE_ID', 42)
        service = BrevoEmailService()

        with patch('utils.brevo_email.sib_api_v3_sdk.TransactionalEmailsApi') as mock_api:
            mock_api.return_value.send_transac_email.return_value.message_id = '<abc@brevo>'
            sent = service.send_parking_notification_email(
                'owner@example.com', 'Sam',
                {'kind': 'parked_incorrectly_notification', 'parking_notification_id': 5}
            )

        assert sent is True
        message = mock_api.return_value.send_transac_email.call_args.args[0]
        assert message.template_id == 42
        assert message.to == [{'email': 'owner@example.com', 'name': 'Sam'}]
        assert message.headers == {'X-Parking-Notification-Id': '5'}
