"""
Tests for recovery display status derivation
"""
import pytest

from models import Bike, BikeImage, RecoveryDisplay, StolenRecord
from services.recovery_status import (
    Computed, Overridden, RecoveryDisplayStatus, RecoveryFacts,
    derive_display_state, recovery_display_state, recovery_display_status, stored_override
)


def recovered_record(**kwargs) -> StolenRecord:
    kwargs.setdefault('current', False)
    kwargs.setdefault('can_share_recovery', True)
    return StolenRecord(**kwargs)


def bike_with_images(*private_flags) -> Bike:
    images = [
        BikeImage(image_path=f'/tmp/{i}.jpg', listing_order=i, is_private=flag)
        for i, flag in enumerate(private_flags)
    ]
    return Bike(serial_number='ABC123', images=images)


class TestDeriveDisplayState:
    """Precedence of the derivation over plain facts"""

    def test_current_record_is_not_eligible(self):
        """A bike that is still stolen is never eligible"""
        facts = RecoveryFacts(current=True, can_share_recovery=True, has_photo=True)
        assert derive_display_state(facts) == Computed(RecoveryDisplayStatus.NOT_ELIGIBLE)

    def test_without_consent_is_not_eligible(self):
        """Owners who didn't agree to share are not eligible"""
        facts = RecoveryFacts(current=False, can_share_recovery=False, has_recovery_display=True)
        assert derive_display_state(facts) == Computed(RecoveryDisplayStatus.NOT_ELIGIBLE)

    @pytest.mark.parametrize('override_status', [
        RecoveryDisplayStatus.DISPLAYED,
        RecoveryDisplayStatus.NOT_DISPLAYED,
    ])
    def test_eligibility_beats_override(self, override_status):
        """A pinned status doesn't make a current record eligible"""
        facts = RecoveryFacts(current=True, can_share_recovery=True, override=Overridden(override_status))
        assert derive_display_state(facts).status == RecoveryDisplayStatus.NOT_ELIGIBLE

    def test_override_beats_recovery_display(self):
        """A curator's not_displayed wins over an existing story"""
        override = Overridden(RecoveryDisplayStatus.NOT_DISPLAYED)
        facts = RecoveryFacts(
            current=False, can_share_recovery=True, override=override,
            has_recovery_display=True, has_photo=True
        )
        assert derive_display_state(facts) is override

    def test_recovery_display_means_displayed(self):
        """An existing story is displayed, photo or not"""
        facts = RecoveryFacts(current=False, can_share_recovery=True, has_recovery_display=True)
        assert derive_display_state(facts) == Computed(RecoveryDisplayStatus.DISPLAYED)

    def test_no_photo(self):
        """Shareable without a public photo"""
        facts = RecoveryFacts(current=False, can_share_recovery=True)
        assert derive_display_state(facts) == Computed(RecoveryDisplayStatus.DISPLAYABLE_NO_PHOTO)

    def test_waiting_on_decision(self):
        """Shareable with a photo and no decision yet"""
        facts = RecoveryFacts(current=False, can_share_recovery=True, has_photo=True)
        assert derive_display_state(facts) == Computed(RecoveryDisplayStatus.WAITING_ON_DECISION)

    def test_overridden_and_computed_are_distinct(self):
        """The same status reads differently depending on where it came from"""
        assert Overridden(RecoveryDisplayStatus.DISPLAYED) != Computed(RecoveryDisplayStatus.DISPLAYED)


class TestRecordDisplayStatus:
    """Derivation from stolen record instances"""

    def test_new_record_defaults(self):
        """A freshly built record is current and not shareable"""
        record = StolenRecord()
        assert record.current is True
        assert record.can_share_recovery is False
        assert recovery_display_status(record) == RecoveryDisplayStatus.NOT_ELIGIBLE

    def test_recovered_without_bike_has_no_photo(self):
        """Detached records have no photo to show"""
        assert recovery_display_status(recovered_record()) == RecoveryDisplayStatus.DISPLAYABLE_NO_PHOTO

    def test_private_photos_do_not_count(self):
        """Only public photos make a record displayable with a photo"""
        record = recovered_record(bike=bike_with_images(True))
        assert recovery_display_status(record) == RecoveryDisplayStatus.DISPLAYABLE_NO_PHOTO

    def test_public_photo_waits_on_decision(self):
        record = recovered_record(bike=bike_with_images(True, False))
        assert recovery_display_status(record) == RecoveryDisplayStatus.WAITING_ON_DECISION

    def test_recovery_display_relationship(self):
        """A linked recovery display makes the record displayed"""
        record = recovered_record(bike=bike_with_images(False))
        record.recovery_display = RecoveryDisplay(quote='Got it back!')
        assert recovery_display_status(record) == RecoveryDisplayStatus.DISPLAYED

    def test_stored_override_is_tagged(self):
        """The override column surfaces as an Overridden variant"""
        record = recovered_record(recovery_display_status_override='not_displayed')
        record.recovery_display = RecoveryDisplay(quote='Got it back!')
        state = recovery_display_state(record)
        assert isinstance(state, Overridden)
        assert state.status == RecoveryDisplayStatus.NOT_DISPLAYED

    def test_empty_override_column(self):
        """Blank override values mean compute it"""
        assert stored_override(recovered_record(recovery_display_status_override='')) is None
        assert stored_override(recovered_record()) is None

    def test_computed_state_is_not_overridden(self):
        state = recovery_display_state(recovered_record())
        assert isinstance(state, Computed)
