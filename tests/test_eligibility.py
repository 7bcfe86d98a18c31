"""
Tests for authgate/eligibility.py - Sensor partitioning and credential state
"""

import pytest

from authgate.eligibility import (
    EligibilityPartition, aggregate, is_credential_available, partition_statuses,
)
from authgate.config import ResolverConfig
from authgate.request import AuthenticationRequest
from authgate.sensor import LockoutMode, Modality, SensorDescriptor, Strength
from authgate.status import AuthenticatorStatus
from authgate.utils.error_handling import get_error_aggregator

from conftest import USER_ID


class TestPartitionStatuses:
    @pytest.mark.unit
    def test_split_preserves_order(self, fingerprint_sensor, face_sensor, iris_sensor):
        partition = partition_statuses([
            (iris_sensor, AuthenticatorStatus.OK),
            (fingerprint_sensor, AuthenticatorStatus.NOT_ENROLLED),
            (face_sensor, AuthenticatorStatus.OK),
        ], credential_available=False)
        assert partition.eligible == (iris_sensor, face_sensor)
        assert partition.ineligible == ((fingerprint_sensor, AuthenticatorStatus.NOT_ENROLLED),)
        assert partition.credential_available is False

    @pytest.mark.unit
    def test_privacy_blocked_is_eligible(self, face_sensor):
        partition = partition_statuses([(face_sensor, AuthenticatorStatus.SENSOR_PRIVACY_ENABLED)],
                                       credential_available=True)
        assert partition.eligible == (face_sensor,)
        assert partition.ineligible == ()
        assert partition.privacy_blocked_ids == (face_sensor.id,)
        assert partition.sensor_privacy_enabled is True

    @pytest.mark.unit
    @pytest.mark.parametrize("status", [s for s in AuthenticatorStatus
                                        if s not in (AuthenticatorStatus.OK,
                                                     AuthenticatorStatus.SENSOR_PRIVACY_ENABLED)])
    def test_every_other_status_is_ineligible(self, face_sensor, status):
        partition = partition_statuses([(face_sensor, status)], credential_available=False)
        assert partition.eligible == ()
        assert partition.ineligible == ((face_sensor, status),)

    @pytest.mark.unit
    def test_eligible_modalities(self, fingerprint_sensor, face_sensor):
        partition = EligibilityPartition(eligible=(fingerprint_sensor, face_sensor),
                                         ineligible=(), credential_available=False)
        assert partition.eligible_modalities == Modality.FINGERPRINT | Modality.FACE
        assert partition.sensor_privacy_enabled is False

    @pytest.mark.unit
    def test_empty(self):
        partition = partition_statuses([], credential_available=True)
        assert partition.eligible_modalities == Modality.NONE
        assert partition.credential_available is True


class TestCredentialAvailability:
    @pytest.mark.unit
    def test_available(self, mock_queries):
        assert is_credential_available(mock_queries, USER_ID) is True
        mock_queries.is_credential_available.assert_called_once_with(USER_ID, 0)

    @pytest.mark.unit
    def test_uses_configured_display(self, mock_queries):
        is_credential_available(mock_queries, USER_ID, ResolverConfig(display_id=2))
        mock_queries.is_credential_available.assert_called_once_with(USER_ID, 2)

    @pytest.mark.unit
    def test_insecure_display(self, make_queries):
        queries = make_queries()
        assert is_credential_available(queries, USER_ID, ResolverConfig(display_id=1)) is False

    @pytest.mark.unit
    def test_failure_means_unavailable(self, mock_queries):
        mock_queries.is_credential_available.side_effect = RuntimeError("lock settings unavailable")
        assert is_credential_available(mock_queries, USER_ID) is False
        summary = get_error_aggregator().get_error_summary()
        assert summary['by_category'] == {'credential': 1}


class TestAggregate:
    @pytest.mark.unit
    def test_all_eligible(self, fingerprint_sensor, face_sensor, enrolled_queries):
        partition = aggregate([fingerprint_sensor, face_sensor], AuthenticationRequest(user_id=USER_ID),
                              enrolled_queries)
        assert partition.eligible == (fingerprint_sensor, face_sensor)
        assert partition.ineligible == ()
        assert partition.credential_available is True

    @pytest.mark.unit
    def test_mixed(self, fingerprint_sensor, face_sensor, make_queries):
        queries = make_queries(enrolled=(1,), credential=False)
        partition = aggregate([fingerprint_sensor, face_sensor], AuthenticationRequest(user_id=USER_ID),
                              queries)
        assert partition.eligible == (face_sensor,)
        assert partition.ineligible == ((fingerprint_sensor, AuthenticatorStatus.NOT_ENROLLED),)
        assert partition.credential_available is False

    @pytest.mark.unit
    def test_credential_only_skips_sensors(self, fingerprint_sensor, mock_queries):
        request = AuthenticationRequest(user_id=USER_ID, requested_modalities=Modality.NONE,
                                        credential_requested=True)
        partition = aggregate([fingerprint_sensor], request, mock_queries)
        assert partition.eligible == ()
        assert partition.ineligible == ()
        assert partition.credential_available is True
        mock_queries.is_hardware_detected.assert_not_called()

    @pytest.mark.unit
    def test_credential_queried_even_if_not_requested(self, fingerprint_sensor, mock_queries):
        aggregate([fingerprint_sensor], AuthenticationRequest(user_id=USER_ID), mock_queries)
        mock_queries.is_credential_available.assert_called_once()

    @pytest.mark.unit
    def test_duplicate_ids_rejected(self, fingerprint_sensor, enrolled_queries):
        duplicate = SensorDescriptor(id=fingerprint_sensor.id, modality=Modality.FACE,
                                     factory_strength=Strength.WEAK)
        with pytest.raises(ValueError):
            aggregate([fingerprint_sensor, duplicate], AuthenticationRequest(user_id=USER_ID),
                      enrolled_queries)

    @pytest.mark.unit
    def test_no_sensors(self, enrolled_queries):
        partition = aggregate([], AuthenticationRequest(user_id=USER_ID), enrolled_queries)
        assert partition.eligible == ()
        assert partition.ineligible == ()

    @pytest.mark.unit
    def test_one_failing_sensor_does_not_affect_others(self, fingerprint_sensor, face_sensor,
                                                       mock_queries):
        def lockout(sensor, user_id):
            if sensor.id == fingerprint_sensor.id:
                raise RuntimeError("fingerprint HAL died")
            return LockoutMode.NONE
        mock_queries.get_lockout_mode.side_effect = lockout

        partition = aggregate([fingerprint_sensor, face_sensor], AuthenticationRequest(user_id=USER_ID),
                              mock_queries)
        assert partition.eligible == (face_sensor,)
        assert partition.ineligible == ((fingerprint_sensor, AuthenticatorStatus.HARDWARE_NOT_DETECTED),)

    @pytest.mark.unit
    def test_per_sensor_debug_logging(self, fingerprint_sensor, enrolled_queries, caplog):
        request = AuthenticationRequest(user_id=USER_ID, op_package_name="com.example.wallet")
        with caplog.at_level("DEBUG", logger="authgate.eligibility"):
            aggregate([fingerprint_sensor], request, enrolled_queries)
        assert "com.example.wallet" in caplog.text
        assert "Status: OK" in caplog.text
