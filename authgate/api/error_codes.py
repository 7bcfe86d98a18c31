"""
Public error codes for authgate.

Two caller-facing code spaces:
- BiometricError: detailed pre-authentication result, paired with a
  modality bitmask
- CanAuthenticateResult: coarse answer for capability checks

Plus a central registry of messages and remediation hints per detailed code.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict


class BiometricError(IntEnum):
    """Detailed public error returned with the pre-authentication status"""
    SUCCESS = 0
    HW_UNAVAILABLE = 1
    LOCKOUT = 7
    LOCKOUT_PERMANENT = 9
    NO_BIOMETRICS = 11
    HW_NOT_PRESENT = 12
    NO_DEVICE_CREDENTIAL = 14
    SECURITY_UPDATE_REQUIRED = 15
    SENSOR_PRIVACY_ENABLED = 18


class CanAuthenticateResult(IntEnum):
    """Coarse public result for "can I authenticate" checks"""
    SUCCESS = 0
    ERROR_HW_UNAVAILABLE = 1
    ERROR_NONE_ENROLLED = 11
    ERROR_NO_HARDWARE = 12
    ERROR_SECURITY_UPDATE_REQUIRED = 15
    ERROR_UNSUPPORTED = -2


@dataclass(frozen=True)
class ErrorCode:
    """A single public error code with metadata."""
    code: BiometricError
    message: str
    hint: str = ""


SUCCESS = ErrorCode(BiometricError.SUCCESS, "Authentication can proceed")
HW_UNAVAILABLE = ErrorCode(
    BiometricError.HW_UNAVAILABLE,
    "Biometric hardware unavailable",
    "The sensor is busy, disabled, or not allowed for apps. Try again later or check settings.",
)
LOCKOUT = ErrorCode(
    BiometricError.LOCKOUT,
    "Too many attempts",
    "Wait for the lockout to expire, then try again.",
)
LOCKOUT_PERMANENT = ErrorCode(
    BiometricError.LOCKOUT_PERMANENT,
    "Biometrics locked",
    "Unlock with your PIN, pattern or password to re-enable biometrics.",
)
NO_BIOMETRICS = ErrorCode(
    BiometricError.NO_BIOMETRICS,
    "No biometrics enrolled",
    "Enroll a fingerprint or face in Security settings.",
)
HW_NOT_PRESENT = ErrorCode(
    BiometricError.HW_NOT_PRESENT,
    "No suitable biometric hardware",
    "This device has no sensor that meets the requested strength.",
)
NO_DEVICE_CREDENTIAL = ErrorCode(
    BiometricError.NO_DEVICE_CREDENTIAL,
    "No device credential set",
    "Set a PIN, pattern or password in Security settings.",
)
SECURITY_UPDATE_REQUIRED = ErrorCode(
    BiometricError.SECURITY_UPDATE_REQUIRED,
    "Security update required",
    "A vulnerability lowered this sensor's strength. Install the latest security update.",
)
SENSOR_PRIVACY_ENABLED = ErrorCode(
    BiometricError.SENSOR_PRIVACY_ENABLED,
    "Camera access is blocked",
    "Turn off the camera privacy toggle to use face authentication.",
)

# Registry for code-based lookup
_ALL: Dict[BiometricError, ErrorCode] = {
    ec.code: ec
    for ec in [
        SUCCESS, HW_UNAVAILABLE, LOCKOUT, LOCKOUT_PERMANENT, NO_BIOMETRICS,
        HW_NOT_PRESENT, NO_DEVICE_CREDENTIAL, SECURITY_UPDATE_REQUIRED,
        SENSOR_PRIVACY_ENABLED,
    ]
}


def lookup(code: int) -> ErrorCode:
    """Look up an error code by its numeric value (e.g. 11)."""
    try:
        return _ALL[BiometricError(code)]
    except ValueError:
        return HW_UNAVAILABLE
