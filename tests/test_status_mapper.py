"""
Tests for authgate/api - Public status mapping, error registry and result envelope
"""

import json

import pytest

from authgate.api import (
    BiometricError, CanAuthenticateResult, PreAuthStatus, coarse_result, detailed_result,
    filter_modality, lookup_error, to_can_authenticate_result, to_public_error,
)
from authgate.api.status_mapper import MODALITY_HIDDEN_STATUSES, MODALITY_VISIBLE_STATUSES
from authgate.sensor import Modality
from authgate.status import AuthenticatorStatus, POLICY_STATUSES, USER_ACTIONABLE_STATUSES


PUBLIC_ERROR_TABLE = [
    (AuthenticatorStatus.OK, BiometricError.SUCCESS, CanAuthenticateResult.SUCCESS),
    (AuthenticatorStatus.NO_HARDWARE, BiometricError.HW_NOT_PRESENT,
     CanAuthenticateResult.ERROR_NO_HARDWARE),
    (AuthenticatorStatus.INSUFFICIENT_STRENGTH, BiometricError.HW_NOT_PRESENT,
     CanAuthenticateResult.ERROR_NO_HARDWARE),
    (AuthenticatorStatus.INSUFFICIENT_STRENGTH_AFTER_DOWNGRADE, BiometricError.SECURITY_UPDATE_REQUIRED,
     CanAuthenticateResult.ERROR_SECURITY_UPDATE_REQUIRED),
    (AuthenticatorStatus.NOT_ENROLLED, BiometricError.NO_BIOMETRICS,
     CanAuthenticateResult.ERROR_NONE_ENROLLED),
    (AuthenticatorStatus.CREDENTIAL_NOT_ENROLLED, BiometricError.NO_DEVICE_CREDENTIAL,
     CanAuthenticateResult.ERROR_NONE_ENROLLED),
    (AuthenticatorStatus.DISABLED_BY_POLICY, BiometricError.HW_UNAVAILABLE,
     CanAuthenticateResult.ERROR_HW_UNAVAILABLE),
    (AuthenticatorStatus.HARDWARE_NOT_DETECTED, BiometricError.HW_UNAVAILABLE,
     CanAuthenticateResult.ERROR_HW_UNAVAILABLE),
    (AuthenticatorStatus.NOT_ENABLED_FOR_APPS, BiometricError.HW_UNAVAILABLE,
     CanAuthenticateResult.ERROR_HW_UNAVAILABLE),
    (AuthenticatorStatus.LOCKOUT_TIMED, BiometricError.LOCKOUT, CanAuthenticateResult.SUCCESS),
    (AuthenticatorStatus.LOCKOUT_PERMANENT, BiometricError.LOCKOUT_PERMANENT,
     CanAuthenticateResult.SUCCESS),
    (AuthenticatorStatus.SENSOR_PRIVACY_ENABLED, BiometricError.SENSOR_PRIVACY_ENABLED,
     CanAuthenticateResult.ERROR_HW_UNAVAILABLE),
]


class TestStatusMapping:
    @pytest.mark.unit
    @pytest.mark.parametrize("status,error,result", PUBLIC_ERROR_TABLE,
                             ids=[row[0].name for row in PUBLIC_ERROR_TABLE])
    def test_mapping(self, status, error, result):
        assert to_public_error(status) == error
        assert coarse_result(status) == result

    @pytest.mark.unit
    def test_table_is_exhaustive(self):
        assert {row[0] for row in PUBLIC_ERROR_TABLE} == set(AuthenticatorStatus)

    @pytest.mark.unit
    def test_every_public_error_has_coarse_result(self):
        for error in BiometricError:
            assert isinstance(to_can_authenticate_result(error), CanAuthenticateResult)

    @pytest.mark.unit
    def test_unsupported_never_produced_by_status(self):
        assert CanAuthenticateResult.ERROR_UNSUPPORTED not in {coarse_result(s) for s in AuthenticatorStatus}


class TestModalityFilter:
    @pytest.mark.security
    @pytest.mark.parametrize("status", [
        AuthenticatorStatus.DISABLED_BY_POLICY,
        AuthenticatorStatus.INSUFFICIENT_STRENGTH,
        AuthenticatorStatus.NOT_ENABLED_FOR_APPS,
    ])
    def test_sensitive_statuses_clear_modality(self, status):
        assert filter_modality(Modality.FACE, status) == Modality.NONE

    @pytest.mark.unit
    @pytest.mark.parametrize("status", sorted(MODALITY_VISIBLE_STATUSES))
    def test_visible_statuses_keep_modality(self, status):
        modality = Modality.FINGERPRINT | Modality.CREDENTIAL
        assert filter_modality(modality, status) == modality

    @pytest.mark.security
    def test_user_actionable_statuses_are_visible(self):
        assert USER_ACTIONABLE_STATUSES <= MODALITY_VISIBLE_STATUSES

    @pytest.mark.security
    def test_visible_set_is_closed(self):
        # Anything not listed as visible is cleared, new statuses included
        hidden = set(AuthenticatorStatus) - MODALITY_VISIBLE_STATUSES
        assert hidden == {
            AuthenticatorStatus.DISABLED_BY_POLICY,
            AuthenticatorStatus.INSUFFICIENT_STRENGTH,
            AuthenticatorStatus.NOT_ENABLED_FOR_APPS,
        }
        assert hidden == MODALITY_HIDDEN_STATUSES
        assert hidden <= POLICY_STATUSES

    @pytest.mark.unit
    def test_policy_statuses_exclude_downgrade(self):
        assert POLICY_STATUSES == {
            AuthenticatorStatus.DISABLED_BY_POLICY,
            AuthenticatorStatus.INSUFFICIENT_STRENGTH,
            AuthenticatorStatus.NOT_ENABLED_FOR_APPS,
            AuthenticatorStatus.NO_HARDWARE,
            AuthenticatorStatus.HARDWARE_NOT_DETECTED,
        }
        assert not POLICY_STATUSES & USER_ACTIONABLE_STATUSES
        assert AuthenticatorStatus.INSUFFICIENT_STRENGTH_AFTER_DOWNGRADE in MODALITY_VISIBLE_STATUSES

    @pytest.mark.unit
    def test_detailed_result(self):
        assert detailed_result(Modality.FACE, AuthenticatorStatus.NOT_ENROLLED) == (
            Modality.FACE, BiometricError.NO_BIOMETRICS)
        assert detailed_result(Modality.FACE, AuthenticatorStatus.DISABLED_BY_POLICY) == (
            Modality.NONE, BiometricError.HW_UNAVAILABLE)


class TestErrorRegistry:
    @pytest.mark.unit
    @pytest.mark.parametrize("error", list(BiometricError))
    def test_every_code_registered(self, error):
        entry = lookup_error(int(error))
        assert entry.code == error
        assert entry.message

    @pytest.mark.unit
    def test_unknown_code_falls_back(self):
        assert lookup_error(9999).code == BiometricError.HW_UNAVAILABLE

    @pytest.mark.unit
    def test_hints_present_for_errors(self):
        for error in BiometricError:
            if error != BiometricError.SUCCESS:
                assert lookup_error(error).hint


class TestPreAuthStatus:
    @pytest.mark.unit
    def test_ok(self):
        status = PreAuthStatus(modality=Modality.FINGERPRINT, error=BiometricError.SUCCESS)
        assert status.ok
        assert status.as_pair() == (2, 0)
        d = status.to_dict()
        assert d['status'] == 'ok'
        assert d['modality'] == 2
        assert 'error' not in d

    @pytest.mark.unit
    def test_error_envelope(self):
        status = PreAuthStatus(modality=Modality.FACE, error=BiometricError.SENSOR_PRIVACY_ENABLED)
        assert not status.ok
        d = json.loads(status.to_json())
        assert d['status'] == 'error'
        assert d['modality'] == 8
        assert d['error']['code'] == 18
        assert d['error']['name'] == 'SENSOR_PRIVACY_ENABLED'
        assert d['error']['hint']
        assert d['timestamp'].endswith('Z')

    @pytest.mark.unit
    def test_equality_ignores_timestamp(self):
        a = PreAuthStatus(modality=Modality.FACE, error=BiometricError.LOCKOUT, timestamp="t1")
        b = PreAuthStatus(modality=Modality.FACE, error=BiometricError.LOCKOUT, timestamp="t2")
        assert a == b
