"""
Eligibility Aggregator
Partitions sensors into eligible and ineligible, and resolves whether the
credential fallback is usable.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from .classifier import classify
from .collaborators import PolicyQueries
from .config import ResolverConfig
from .request import AuthenticationRequest
from .sensor import Modality, SensorDescriptor, combine_modalities
from .status import AuthenticatorStatus
from .utils.error_handling import ErrorCategory, safe_execute

logger = logging.getLogger(__name__)

IneligibleSensor = Tuple[SensorDescriptor, AuthenticatorStatus]


@dataclass(frozen=True)
class EligibilityPartition:
    """
    Result of classifying every sensor for one request.

    Both collections keep the sensors' original priority order.
    """
    eligible: Tuple[SensorDescriptor, ...]
    ineligible: Tuple[IneligibleSensor, ...]
    credential_available: bool
    privacy_blocked_ids: Tuple[int, ...] = ()

    @property
    def eligible_modalities(self) -> Modality:
        return combine_modalities(self.eligible)

    @property
    def sensor_privacy_enabled(self) -> bool:
        """True if any eligible sensor is held back only by the privacy toggle"""
        return bool(self.privacy_blocked_ids)


def partition_statuses(classified: Iterable[IneligibleSensor],
                       credential_available: bool) -> EligibilityPartition:
    """
    Split (sensor, status) pairs into an EligibilityPartition.

    Privacy-blocked sensors go to the eligible side.
    """
    classified = tuple(classified)
    return EligibilityPartition(
        eligible=tuple(sensor for sensor, status in classified if status.is_eligible),
        ineligible=tuple((sensor, status) for sensor, status in classified
                         if not status.is_eligible),
        credential_available=credential_available,
        privacy_blocked_ids=tuple(sensor.id for sensor, status in classified
                                  if status == AuthenticatorStatus.SENSOR_PRIVACY_ENABLED),
    )


def is_credential_available(queries: PolicyQueries, user_id: int,
                            config: Optional[ResolverConfig] = None) -> bool:
    """Lock-state query; a failing query counts as no credential"""
    display_id = config.display_id if config else 0
    with safe_execute(
        "credential_available",
        ErrorCategory.CREDENTIAL,
        default_return=False,
        additional_context={'user_id': user_id, 'display_id': display_id},
    ) as result:
        result.value = bool(queries.is_credential_available(user_id, display_id))
    return result.value


def aggregate(sensors: Sequence[SensorDescriptor], request: AuthenticationRequest,
              queries: PolicyQueries,
              config: Optional[ResolverConfig] = None) -> EligibilityPartition:
    """
    Classify every sensor and collect the credential fallback state.

    Sensors are assumed to be listed in priority order. No sensor is
    classified when no biometric was requested.

    Args:
        sensors: Registered sensors, highest priority first
        request: Caller's request
        queries: Collaborator queries
        config: Resolver switches

    Returns:
        EligibilityPartition
    """
    ids = [sensor.id for sensor in sensors]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Sensor ids must be unique within a request: {ids}")

    credential_available = is_credential_available(queries, request.user_id, config)

    classified = []
    if request.biometric_requested:
        for sensor in sensors:
            status = classify(sensor, request, queries, config)
            logger.debug(f"Package: {request.op_package_name}"
                         f" Sensor ID: {sensor.id}"
                         f" Modality: {sensor.modality.name}"
                         f" Status: {status.name}")
            classified.append((sensor, status))

    return partition_statuses(classified, credential_available)
