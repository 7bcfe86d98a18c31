"""
Request Model - Caller Authentication Request
Immutable snapshot of what the caller asked for.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from .sensor import BIOMETRIC_MODALITIES, Modality, Strength

logger = logging.getLogger(__name__)


class InvalidAuthenticatorConfig(ValueError):
    """Raised when a public authenticator bitmask is not a valid combination"""


class Authenticators:
    """Public authenticator flags accepted by from_authenticators()"""
    EMPTY_SET = 0x0000
    BIOMETRIC_STRONG = 0x000F
    BIOMETRIC_WEAK = 0x00FF
    BIOMETRIC_CONVENIENCE = 0x0FFF
    BIOMETRIC_MIN_STRENGTH = 0x7FFF
    DEVICE_CREDENTIAL = 1 << 15

    # Used when the caller passes no authenticators at all
    DEFAULT = BIOMETRIC_WEAK


def is_valid_authenticator_config(authenticators: int) -> bool:
    """
    Check that the flags name one strength class and/or the credential.

    Zero is valid and means "use the default".
    """
    if authenticators == Authenticators.EMPTY_SET:
        return True

    allowed_bits = Authenticators.DEVICE_CREDENTIAL | Authenticators.BIOMETRIC_MIN_STRENGTH
    if authenticators & ~allowed_bits:
        logger.error(f"Non-biometric, non-credential bits found. Authenticators: {authenticators:#x}")
        return False

    biometric_bits = authenticators & Authenticators.BIOMETRIC_MIN_STRENGTH
    if biometric_bits == Authenticators.EMPTY_SET:
        return bool(authenticators & Authenticators.DEVICE_CREDENTIAL)
    if biometric_bits in (Authenticators.BIOMETRIC_STRONG,
                          Authenticators.BIOMETRIC_WEAK,
                          Authenticators.BIOMETRIC_CONVENIENCE):
        return True

    logger.error(f"Unsupported biometric flags. Authenticators: {authenticators:#x}")
    return False


@dataclass(frozen=True)
class AuthenticationRequest:
    """Request for eligibility resolution"""
    user_id: int
    requested_modalities: Modality = BIOMETRIC_MODALITIES
    requested_strength: Strength = Strength.WEAK
    credential_requested: bool = False
    confirmation_requested: bool = True
    allowed_sensor_ids: Tuple[int, ...] = ()
    ignore_enrollment_state: bool = False
    op_package_name: str = ""

    def __post_init__(self):
        if self.requested_modalities & Modality.CREDENTIAL:
            raise ValueError("Credential is requested via credential_requested, "
                             "not requested_modalities")
        # Accept any iterable for the allow-list but store it as a tuple
        object.__setattr__(self, 'allowed_sensor_ids', tuple(self.allowed_sensor_ids))

    @property
    def biometric_requested(self) -> bool:
        return self.requested_modalities != Modality.NONE

    def allows_sensor(self, sensor_id: int) -> bool:
        """An empty allow-list admits every sensor"""
        return not self.allowed_sensor_ids or sensor_id in self.allowed_sensor_ids

    @classmethod
    def from_authenticators(cls, authenticators: int, user_id: int,
                            confirmation_requested: bool = True,
                            allowed_sensor_ids: Iterable[int] = (),
                            ignore_enrollment_state: bool = False,
                            op_package_name: str = "") -> 'AuthenticationRequest':
        """
        Build a request from public authenticator flags.

        Args:
            authenticators: Bitwise OR of Authenticators values (0 for default)
            user_id: User the request is evaluated for

        Returns:
            AuthenticationRequest

        Raises:
            InvalidAuthenticatorConfig: if the flags are not a valid combination
        """
        if not is_valid_authenticator_config(authenticators):
            raise InvalidAuthenticatorConfig(f"Invalid authenticator configuration: {authenticators:#x}")
        if authenticators == Authenticators.EMPTY_SET:
            authenticators = Authenticators.DEFAULT

        biometric_bits = authenticators & Authenticators.BIOMETRIC_MIN_STRENGTH
        return cls(
            user_id=user_id,
            requested_modalities=BIOMETRIC_MODALITIES if biometric_bits else Modality.NONE,
            requested_strength=Strength(biometric_bits) if biometric_bits else Strength.WEAK,
            credential_requested=bool(authenticators & Authenticators.DEVICE_CREDENTIAL),
            confirmation_requested=confirmation_requested,
            allowed_sensor_ids=tuple(allowed_sensor_ids),
            ignore_enrollment_state=ignore_enrollment_state,
            op_package_name=op_package_name,
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization"""
        return {
            'user_id': self.user_id,
            'requested_modalities': int(self.requested_modalities),
            'requested_strength': self.requested_strength.name,
            'credential_requested': self.credential_requested,
            'confirmation_requested': self.confirmation_requested,
            'allowed_sensor_ids': list(self.allowed_sensor_ids),
            'ignore_enrollment_state': self.ignore_enrollment_state,
            'op_package_name': self.op_package_name,
        }
