"""
Public Status Mapper
Translates the internal (modality, AuthenticatorStatus) pair into the
coarse capability result and the detailed pre-authentication result.
"""

import logging
from typing import Dict, Tuple

from ..sensor import Modality
from ..status import POLICY_STATUSES, USER_ACTIONABLE_STATUSES, AuthenticatorStatus
from .error_codes import BiometricError, CanAuthenticateResult

logger = logging.getLogger(__name__)

_PUBLIC_ERRORS: Dict[AuthenticatorStatus, BiometricError] = {
    AuthenticatorStatus.OK: BiometricError.SUCCESS,
    AuthenticatorStatus.NO_HARDWARE: BiometricError.HW_NOT_PRESENT,
    AuthenticatorStatus.INSUFFICIENT_STRENGTH: BiometricError.HW_NOT_PRESENT,
    AuthenticatorStatus.INSUFFICIENT_STRENGTH_AFTER_DOWNGRADE: BiometricError.SECURITY_UPDATE_REQUIRED,
    AuthenticatorStatus.NOT_ENROLLED: BiometricError.NO_BIOMETRICS,
    AuthenticatorStatus.CREDENTIAL_NOT_ENROLLED: BiometricError.NO_DEVICE_CREDENTIAL,
    AuthenticatorStatus.DISABLED_BY_POLICY: BiometricError.HW_UNAVAILABLE,
    AuthenticatorStatus.HARDWARE_NOT_DETECTED: BiometricError.HW_UNAVAILABLE,
    AuthenticatorStatus.NOT_ENABLED_FOR_APPS: BiometricError.HW_UNAVAILABLE,
    AuthenticatorStatus.LOCKOUT_TIMED: BiometricError.LOCKOUT,
    AuthenticatorStatus.LOCKOUT_PERMANENT: BiometricError.LOCKOUT_PERMANENT,
    AuthenticatorStatus.SENSOR_PRIVACY_ENABLED: BiometricError.SENSOR_PRIVACY_ENABLED,
}

_COARSE_RESULTS: Dict[BiometricError, CanAuthenticateResult] = {
    BiometricError.SUCCESS: CanAuthenticateResult.SUCCESS,
    BiometricError.NO_BIOMETRICS: CanAuthenticateResult.ERROR_NONE_ENROLLED,
    BiometricError.NO_DEVICE_CREDENTIAL: CanAuthenticateResult.ERROR_NONE_ENROLLED,
    BiometricError.HW_UNAVAILABLE: CanAuthenticateResult.ERROR_HW_UNAVAILABLE,
    BiometricError.HW_NOT_PRESENT: CanAuthenticateResult.ERROR_NO_HARDWARE,
    BiometricError.SECURITY_UPDATE_REQUIRED: CanAuthenticateResult.ERROR_SECURITY_UPDATE_REQUIRED,
    # A locked-out sensor still lets the session start and report the lockout
    BiometricError.LOCKOUT: CanAuthenticateResult.SUCCESS,
    BiometricError.LOCKOUT_PERMANENT: CanAuthenticateResult.SUCCESS,
    BiometricError.SENSOR_PRIVACY_ENABLED: CanAuthenticateResult.ERROR_HW_UNAVAILABLE,
}

# Policy statuses that must not reveal which modality was refused
MODALITY_HIDDEN_STATUSES = frozenset({
    AuthenticatorStatus.DISABLED_BY_POLICY,
    AuthenticatorStatus.INSUFFICIENT_STRENGTH,
    AuthenticatorStatus.NOT_ENABLED_FOR_APPS,
})

# Statuses allowed to reveal which modality produced them. A status in none
# of these groupings is reported with Modality.NONE.
MODALITY_VISIBLE_STATUSES = (
    frozenset({AuthenticatorStatus.OK, AuthenticatorStatus.INSUFFICIENT_STRENGTH_AFTER_DOWNGRADE})
    | USER_ACTIONABLE_STATUSES
    | (POLICY_STATUSES - MODALITY_HIDDEN_STATUSES)
)

_missing = set(AuthenticatorStatus) - set(_PUBLIC_ERRORS)
if _missing:
    raise RuntimeError(f"No public error for statuses: {sorted(s.name for s in _missing)}")
del _missing


def to_public_error(status: AuthenticatorStatus) -> BiometricError:
    """Internal status -> detailed public error"""
    error = _PUBLIC_ERRORS.get(status)
    if error is None:
        logger.error(f"Unhandled authenticator status: {status!r}")
        return BiometricError.HW_UNAVAILABLE
    return error


def to_can_authenticate_result(error: BiometricError) -> CanAuthenticateResult:
    """Detailed public error -> coarse capability result"""
    result = _COARSE_RESULTS.get(error)
    if result is None:
        logger.error(f"Unhandled result code: {error!r}")
        return CanAuthenticateResult.ERROR_HW_UNAVAILABLE
    return result


def coarse_result(status: AuthenticatorStatus) -> CanAuthenticateResult:
    """Internal status -> coarse capability result; modality detail is dropped"""
    return to_can_authenticate_result(to_public_error(status))


def filter_modality(modality: Modality, status: AuthenticatorStatus) -> Modality:
    """Clear the modality for statuses that must not disclose it"""
    if status in MODALITY_VISIBLE_STATUSES:
        return modality
    return Modality.NONE


def detailed_result(modality: Modality,
                    status: AuthenticatorStatus) -> Tuple[Modality, BiometricError]:
    """Internal pair -> (filtered modality, detailed public error)"""
    return filter_modality(modality, status), to_public_error(status)
