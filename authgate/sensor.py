"""
Sensor Descriptor - Registered Authentication Sensors
Static identity plus live strength and session state for one sensor.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum, IntEnum, IntFlag
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


class Modality(IntFlag):
    """
    Authentication modalities, one bit each so that several sensors
    can be OR-combined into a single bitmask.
    """
    NONE = 0
    CREDENTIAL = 1 << 0
    FINGERPRINT = 1 << 1
    IRIS = 1 << 2
    FACE = 1 << 3


BIOMETRIC_MODALITIES = Modality.FINGERPRINT | Modality.IRIS | Modality.FACE


class Strength(IntEnum):
    """
    Strength classes using the public authenticator bit encoding.
    Weaker classes are supersets of the stronger ones' bits, so a lower
    numeric value is a stronger sensor.
    """
    STRONG = 0x000F
    WEAK = 0x00FF
    CONVENIENCE = 0x0FFF


def is_at_least_strength(sensor_strength: int, requested_strength: int) -> bool:
    """True if sensor_strength is as strong or stronger than requested_strength."""
    return (~requested_strength & sensor_strength) == 0


class SensorState(Enum):
    """Session state of a sensor for the current authentication session"""
    IDLE = "idle"
    WAITING_FOR_START = "waiting_for_start"
    ACTIVE = "active"


class LockoutMode(IntEnum):
    """Lockout reported by a sensor driver for a user"""
    NONE = 0
    TIMED = 1
    PERMANENT = 2


@dataclass(frozen=True)
class SensorDescriptor:
    """
    One registered sensor.

    The live strength is derived as ``factory_strength | updated_strength``,
    so it can be downgraded at runtime but never exceed what the sensor was
    provisioned with.
    """
    id: int
    modality: Modality
    factory_strength: Strength
    updated_strength: Optional[Strength] = None
    session_state: SensorState = SensorState.IDLE
    cookie: int = 0

    def __post_init__(self):
        if bin(int(self.modality)).count("1") != 1 or not (self.modality & BIOMETRIC_MODALITIES):
            raise ValueError(f"Sensor {self.id} must have exactly one biometric modality, "
                             f"got {self.modality!r}")
        if self.session_state == SensorState.WAITING_FOR_START and not self.cookie:
            raise ValueError(f"Sensor {self.id} is waiting for start without a cookie")

    @property
    def current_strength(self) -> Strength:
        """Live strength class, never stronger than the factory strength"""
        if self.updated_strength is None:
            return self.factory_strength
        return Strength(self.factory_strength | self.updated_strength)

    @property
    def is_downgraded(self) -> bool:
        return self.current_strength != self.factory_strength

    def downgraded(self, new_strength: Strength) -> 'SensorDescriptor':
        """
        Return a copy with the live strength updated.

        Args:
            new_strength: Strength requested by e.g. a security update

        Returns:
            New descriptor; the original is unchanged
        """
        updated = replace(self, updated_strength=new_strength)
        logger.debug(f"Strength update for sensor {self.id}: "
                     f"{self.current_strength.name} -> {updated.current_strength.name}")
        return updated

    def waiting_for_start(self, cookie: int) -> 'SensorDescriptor':
        """Return a copy that is waiting for a start acknowledgement with cookie"""
        return replace(self, session_state=SensorState.WAITING_FOR_START, cookie=cookie)

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization"""
        return {
            'id': self.id,
            'modality': self.modality.name,
            'factory_strength': self.factory_strength.name,
            'current_strength': self.current_strength.name,
            'session_state': self.session_state.value,
            'cookie': self.cookie,
        }

    def __str__(self) -> str:
        return (f"ID({self.id}), factory: {self.factory_strength.name}, "
                f"current: {self.current_strength.name}, "
                f"modality: {self.modality.name}, state: {self.session_state.value}")


def combine_modalities(sensors: Iterable[SensorDescriptor]) -> Modality:
    """OR together the modalities of the given sensors"""
    modality = Modality.NONE
    for sensor in sensors:
        modality |= sensor.modality
    return modality
