"""
Integration tests for the HTTP API
"""
from unittest.mock import MagicMock, patch

import pytest


def register_bike(client, **overrides) -> dict:
    payload = {
        'serial_number': 'wtu123c4567',
        'manufacturer': 'Surly',
        'frame_model': 'Cross-Check',
        'primary_color': 'Black',
        'owner_email': 'Owner@Example.com'
    }
    payload.update(overrides)
    response = client.post('/bikes/', json=payload)
    assert response.status_code == 201
    return response.json()


def upload_photo(client, bike_id: int, content: bytes, filename: str = 'bike.jpg'):
    return client.post(
        f'/bikes/{bike_id}/images',
        files={'file': (filename, content, 'image/jpeg')},
        data={'is_private': 'false'}
    )


@pytest.fixture
def stolen_bike(client, jpeg_bytes) -> dict:
    """A registered bike with a photo, reported stolen"""
    bike = register_bike(client)
    assert upload_photo(client, bike['id'], jpeg_bytes).status_code == 201
    response = client.post(
        f"/bikes/{bike['id']}/stolen-records",
        json={'city': 'CHICAGO', 'state': 'IL', 'country': 'US', 'latitude': 41.8781136, 'longitude': -87.6297982}
    )
    assert response.status_code == 201
    return {'bike': bike, 'stolen_record': response.json()}


class TestHealth:
    def test_root(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert response.json()['status'] == 'running'

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        data = response.json()
        assert data['services']['database'] == 'healthy'
        assert data['services']['admin_email'] == 'disabled'


class TestBikes:
    def test_register(self, client):
        bike = register_bike(client)
        assert bike['serial_number'] == 'WTU123C4567'
        assert bike['status'] == 'status_with_owner'
        assert bike['title'] == 'Black Surly Cross-Check'

    def test_get_missing_bike(self, client):
        assert client.get('/bikes/9999').status_code == 404

    def test_upload_photo(self, client, jpeg_bytes):
        bike = register_bike(client)
        response = upload_photo(client, bike['id'], jpeg_bytes)
        assert response.status_code == 201
        assert response.json()['listing_order'] == 0

        images = client.get(f"/bikes/{bike['id']}").json()['images']
        assert len(images) == 1

    def test_upload_rejects_extension(self, client, jpeg_bytes):
        bike = register_bike(client)
        response = upload_photo(client, bike['id'], jpeg_bytes, filename='bike.gif')
        assert response.status_code == 400

    def test_upload_rejects_undecodable(self, client):
        bike = register_bike(client)
        response = upload_photo(client, bike['id'], b'not an image at all')
        assert response.status_code == 400

    def test_delete_photo(self, client, jpeg_bytes):
        bike = register_bike(client)
        image = upload_photo(client, bike['id'], jpeg_bytes).json()

        response = client.delete(f"/bikes/{bike['id']}/images/{image['id']}")
        assert response.status_code == 200
        assert client.get(f"/bikes/{bike['id']}").json()['images'] == []
        assert client.delete(f"/bikes/{bike['id']}/images/{image['id']}").status_code == 404


class TestStolenRecords:
    def test_report_stolen(self, client, stolen_bike):
        record = stolen_bike['stolen_record']
        assert record['current'] is True
        assert record['city'] == 'Chicago'
        assert record['address_location'] == 'Chicago, IL'
        assert record['latitude'] == 41.88
        assert record['recovery_display_status'] == 'not_eligible'

        bike = client.get(f"/bikes/{stolen_bike['bike']['id']}").json()
        assert bike['status'] == 'status_stolen'
        assert bike['current_stolen_record_id'] == record['id']

    def test_get_missing_record(self, client):
        assert client.get('/stolen-records/9999').status_code == 404

    def test_recovery_flow(self, client, stolen_bike):
        """Report, promote, recover: admins are notified once"""
        record_id = stolen_bike['stolen_record']['id']

        alert_image = client.post(f'/stolen-records/{record_id}/alert-image', json={}).json()
        assert alert_image['filename'].endswith('.jpg')

        theft_alert = client.post(
            f'/stolen-records/{record_id}/theft-alerts', json={'amount_cents': 2999}
        ).json()
        assert theft_alert['status'] == 'pending'
        activated = client.put(f"/theft-alerts/{theft_alert['id']}", json={'status': 'active'}).json()
        assert activated['begin_at'] is not None

        email_service = MagicMock()
        with patch('services.recovery_effects.get_email_service', return_value=email_service):
            response = client.post(
                f'/stolen-records/{record_id}/recovery',
                json={
                    'recovered_description': 'Found it',
                    'can_share_recovery': True,
                    'recovered_at': '2017-01-31T23:57:56',
                    'timezone': 'Atlantic/Reykjavik'
                }
            )
            again = client.post(f'/stolen-records/{record_id}/recovery', json={'can_share_recovery': True})

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['notifications_dispatched'] == 1
        assert data['stolen_record']['current'] is False
        assert data['stolen_record']['alert_image_id'] is None
        assert data['stolen_record']['recovery_display_status'] == 'waiting_on_decision'
        assert again.json()['notifications_dispatched'] == 0
        email_service.send_recovery_notification_async.assert_called_once()

        alert = client.get(f"/theft-alerts/{theft_alert['id']}").json()
        assert alert['recovery_notified_at'] is not None

        bike = client.get(f"/bikes/{stolen_bike['bike']['id']}").json()
        assert bike['status'] == 'status_with_owner'

    def test_recovery_persistence_failure(self, client, stolen_bike, db_session):
        from sqlalchemy.exc import SQLAlchemyError

        record_id = stolen_bike['stolen_record']['id']
        with patch.object(db_session, 'commit', side_effect=SQLAlchemyError('disk full')):
            response = client.post(f'/stolen-records/{record_id}/recovery', json={})
        assert response.status_code == 500
        assert client.get(f'/stolen-records/{record_id}').json()['current'] is True

    def test_alert_image_without_photo(self, client):
        bike = register_bike(client)
        record = client.post(f"/bikes/{bike['id']}/stolen-records", json={'city': 'Chicago'}).json()
        response = client.post(f"/stolen-records/{record['id']}/alert-image", json={})
        assert response.status_code == 400

    def test_curation(self, client, stolen_bike):
        record_id = stolen_bike['stolen_record']['id']
        client.post(f'/stolen-records/{record_id}/recovery', json={'can_share_recovery': True})

        pinned = client.put(
            f'/stolen-records/{record_id}/recovery-display-status', json={'status': 'not_displayed'}
        ).json()
        assert pinned['recovery_display_status'] == 'not_displayed'
        assert pinned['recovery_display_status_overridden'] is True

        cleared = client.put(
            f'/stolen-records/{record_id}/recovery-display-status', json={'status': None}
        ).json()
        assert cleared['recovery_display_status'] == 'waiting_on_decision'
        assert cleared['recovery_display_status_overridden'] is False

        rejected = client.put(
            f'/stolen-records/{record_id}/recovery-display-status', json={'status': 'waiting_on_decision'}
        )
        assert rejected.status_code == 400

    def test_recovery_display(self, client, stolen_bike):
        record_id = stolen_bike['stolen_record']['id']
        assert client.post(f'/stolen-records/{record_id}/recovery-display', json={}).status_code == 400

        client.post(
            f'/stolen-records/{record_id}/recovery',
            json={'can_share_recovery': True, 'recovered_description': 'Back home'}
        )
        response = client.post(
            f'/stolen-records/{record_id}/recovery-display', json={'date_recovered': '02-01-2017'}
        )
        assert response.status_code == 201
        assert response.json()['quote'] == 'Back home'

        record = client.get(f'/stolen-records/{record_id}').json()
        assert record['recovery_display_status'] == 'displayed'
        assert client.post(f'/stolen-records/{record_id}/recovery-display', json={}).status_code == 400

    def test_recovered_listing(self, client, stolen_bike):
        record_id = stolen_bike['stolen_record']['id']
        assert client.get('/stolen-records/recovered').json() == []

        client.post(f'/stolen-records/{record_id}/recovery', json={})

        assert [r['id'] for r in client.get('/stolen-records/recovered').json()] == [record_id]
        assert client.get('/stolen-records/recovered?displayable_only=true').json() == []

    def test_theft_alert_requires_current_record(self, client, stolen_bike):
        record_id = stolen_bike['stolen_record']['id']
        client.post(f'/stolen-records/{record_id}/recovery', json={})
        response = client.post(f'/stolen-records/{record_id}/theft-alerts', json={})
        assert response.status_code == 400

    def test_alert_image_requires_current_record(self, client, stolen_bike):
        """A recovered bike keeps its photos but gets no new alert image"""
        record_id = stolen_bike['stolen_record']['id']
        assert client.post(f'/stolen-records/{record_id}/recovery', json={}).status_code == 200

        response = client.post(f'/stolen-records/{record_id}/alert-image', json={})

        assert response.status_code == 400
        assert client.get(f'/stolen-records/{record_id}').json()['alert_image_id'] is None

    def test_list_theft_alerts(self, client, stolen_bike):
        record_id = stolen_bike['stolen_record']['id']
        first = client.post(f'/stolen-records/{record_id}/theft-alerts', json={'amount_cents': 1999}).json()
        second = client.post(f'/stolen-records/{record_id}/theft-alerts', json={'amount_cents': 2999}).json()

        response = client.get(f'/stolen-records/{record_id}/theft-alerts')

        assert response.status_code == 200
        assert [a['id'] for a in response.json()] == [second['id'], first['id']]
        assert all(a['stolen_record_id'] == record_id for a in response.json())

    def test_list_theft_alerts_missing_record(self, client):
        assert client.get('/stolen-records/9999/theft-alerts').status_code == 404


class TestParkingNotifications:
    def test_notify_and_resolve(self, client):
        bike = register_bike(client)
        with patch('services.parking_notification_service.send_parking_notification_email') as mock_send:
            response = client.post(
                f"/bikes/{bike['id']}/parking-notifications",
                json={'organization_name': 'Campus Parking'}
            )
        assert response.status_code == 201
        assert response.json()['status'] == 'current'

        details = mock_send.call_args.kwargs['notification_details']
        token = details['retrieval_link'].split('token=')[1]

        resolved = client.post(f"/bikes/{bike['id']}/resolve-token", json={'token': token}).json()
        assert resolved['level'] == 'success'

        repeated = client.post(f"/bikes/{bike['id']}/resolve-token", json={'token': token}).json()
        assert repeated['level'] == 'info'

    def test_resolve_unknown_bike(self, client):
        response = client.post('/bikes/9999/resolve-token', json={'token': 'abc'})
        assert response.status_code == 404
