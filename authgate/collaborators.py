"""
Collaborators - External Queries Consumed by the Resolver
Sensor drivers, administrative policy, per-user settings, sensor privacy and
device lock-state, modelled as one synchronous query interface.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Dict, FrozenSet, Tuple

from .sensor import LockoutMode, Modality, SensorDescriptor

logger = logging.getLogger(__name__)


class SensorQueryError(Exception):
    """Raised by a collaborator when a query cannot be answered"""


class KeyguardFeature(IntFlag):
    """Keyguard features an administrator can disable per user"""
    NONE = 0
    FINGERPRINT = 1 << 5
    FACE = 1 << 7
    IRIS = 1 << 8


_KEYGUARD_FEATURE_BY_MODALITY = {
    Modality.FINGERPRINT: KeyguardFeature.FINGERPRINT,
    Modality.IRIS: KeyguardFeature.IRIS,
    Modality.FACE: KeyguardFeature.FACE,
}


def keyguard_feature_for_modality(modality: Modality) -> KeyguardFeature:
    """
    Map a biometric modality to the keyguard feature that disables it.

    Raises:
        SensorQueryError: if the modality has no keyguard feature
    """
    feature = _KEYGUARD_FEATURE_BY_MODALITY.get(modality)
    if feature is None:
        logger.error(f"Error modality={modality!r}")
        raise SensorQueryError(f"Modality unknown to device policy: {modality!r}")
    return feature


class PolicyQueries(ABC):
    """
    Synchronous view of the services the resolver consults.

    The contract:
    1. Every method answers for a single point in time and has no side
       effects from the resolver's point of view.
    2. Any method may raise; the resolver converts sensor-level failures
       into a status value and never lets them escape.
    3. Asynchronous services must be resolved into an implementation of this
       interface before the resolver is invoked (see SnapshotPolicyQueries).
    """

    @abstractmethod
    def is_hardware_detected(self, sensor: SensorDescriptor, op_package_name: str = "") -> bool:
        ...

    @abstractmethod
    def has_enrollments(self, sensor: SensorDescriptor, user_id: int,
                        op_package_name: str = "") -> bool:
        ...

    @abstractmethod
    def get_lockout_mode(self, sensor: SensorDescriptor, user_id: int) -> LockoutMode:
        ...

    @abstractmethod
    def is_sensor_privacy_enabled(self, user_id: int) -> bool:
        """Camera privacy toggle; only consulted for privacy-gated modalities"""
        ...

    @abstractmethod
    def is_disabled_by_admin(self, modality: Modality, user_id: int) -> bool:
        ...

    @abstractmethod
    def is_enabled_for_apps(self, modality: Modality, user_id: int) -> bool:
        ...

    @abstractmethod
    def is_credential_available(self, user_id: int, display_id: int) -> bool:
        """True if the user has a credential and the device is secure on this display"""
        ...


@dataclass(frozen=True)
class SnapshotPolicyQueries(PolicyQueries):
    """
    Point-in-time answers for every query, captured up front.

    Sensors are keyed by id, users by user id. Anything not listed falls back
    to the defaults below: hardware present, nothing enrolled, no lockout,
    privacy off, nothing disabled, enabled for apps, no credential.
    """
    undetected_sensor_ids: FrozenSet[int] = frozenset()
    enrollments: FrozenSet[Tuple[int, int]] = frozenset()  # (sensor_id, user_id)
    lockouts: Dict[Tuple[int, int], LockoutMode] = field(default_factory=dict)
    privacy_enabled_users: FrozenSet[int] = frozenset()
    keyguard_disabled_features: Dict[int, KeyguardFeature] = field(default_factory=dict)
    apps_disabled_users: FrozenSet[int] = frozenset()
    secure_users: FrozenSet[int] = frozenset()
    secure_displays: FrozenSet[int] = frozenset({0})

    def is_hardware_detected(self, sensor: SensorDescriptor, op_package_name: str = "") -> bool:
        return sensor.id not in self.undetected_sensor_ids

    def has_enrollments(self, sensor: SensorDescriptor, user_id: int,
                        op_package_name: str = "") -> bool:
        return (sensor.id, user_id) in self.enrollments

    def get_lockout_mode(self, sensor: SensorDescriptor, user_id: int) -> LockoutMode:
        return self.lockouts.get((sensor.id, user_id), LockoutMode.NONE)

    def is_sensor_privacy_enabled(self, user_id: int) -> bool:
        return user_id in self.privacy_enabled_users

    def is_disabled_by_admin(self, modality: Modality, user_id: int) -> bool:
        feature = keyguard_feature_for_modality(modality)
        disabled = self.keyguard_disabled_features.get(user_id, KeyguardFeature.NONE)
        return bool(feature & disabled)

    def is_enabled_for_apps(self, modality: Modality, user_id: int) -> bool:
        return user_id not in self.apps_disabled_users

    def is_credential_available(self, user_id: int, display_id: int) -> bool:
        return user_id in self.secure_users and display_id in self.secure_displays
