"""
Priority Resolver - Eligibility Resolution for Authentication Requests
Combines the per-sensor partition into one (modality, status) pair and
exposes the caller-facing views of it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .api.error_codes import CanAuthenticateResult
from .api.response import PreAuthStatus
from .api.status_mapper import coarse_result, detailed_result
from .collaborators import PolicyQueries
from .config import ResolverConfig
from .eligibility import EligibilityPartition, IneligibleSensor, aggregate
from .request import AuthenticationRequest, InvalidAuthenticatorConfig
from .sensor import Modality, SensorDescriptor, SensorState
from .status import AuthenticatorStatus

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ResolverConfig()


def calculate_error_by_priority(ineligible: Sequence[IneligibleSensor]) -> IneligibleSensor:
    """
    Pick the single error to report for a set of ineligible sensors.

    NOT_ENROLLED wins over every other error, wherever it appears; otherwise
    the highest-priority (first) sensor's error is used. A STRONG request on
    a device with an unenrolled STRONG sensor and a WEAK sensor should say
    "enroll", not "insufficient strength".

    Raises:
        ValueError: if ineligible is empty
    """
    if not ineligible:
        raise ValueError("No ineligible sensors to choose an error from")
    for pair in ineligible:
        if pair[1] == AuthenticatorStatus.NOT_ENROLLED:
            return pair
    return ineligible[0]


def _is_privacy_only(modality: Modality, partition: EligibilityPartition,
                     config: ResolverConfig) -> bool:
    """Eligible set is exactly one privacy-gated modality and it is privacy-blocked"""
    value = int(modality)
    single_modality = value != 0 and (value & (value - 1)) == 0
    return (single_modality
            and bool(value & int(config.privacy_gated_modalities))
            and partition.sensor_privacy_enabled)


def resolve(partition: EligibilityPartition, request: AuthenticationRequest,
            config: Optional[ResolverConfig] = None) -> Tuple[Modality, AuthenticatorStatus]:
    """
    Compute the internal (modality, status) pair for the whole request.

    Args:
        partition: Output of aggregate()
        request: Caller's request
        config: Resolver switches

    Returns:
        (modality bitmask, AuthenticatorStatus); the status still needs
        converting to a public code
    """
    config = config or _DEFAULT_CONFIG
    modality = Modality.NONE
    eligible = partition.eligible
    ineligible = partition.ineligible
    credential_available = partition.credential_available

    if request.biometric_requested and request.credential_requested:
        if credential_available or eligible:
            modality |= partition.eligible_modalities
            if credential_available:
                modality |= Modality.CREDENTIAL
                status = AuthenticatorStatus.OK
            elif _is_privacy_only(modality, partition, config):
                # Sensor stays eligible for authenticate(); only the status changes
                status = AuthenticatorStatus.SENSOR_PRIVACY_ENABLED
            else:
                status = AuthenticatorStatus.OK
        elif ineligible:
            sensor, status = calculate_error_by_priority(ineligible)
            modality |= sensor.modality
        else:
            modality |= Modality.CREDENTIAL
            status = AuthenticatorStatus.CREDENTIAL_NOT_ENROLLED

    elif request.biometric_requested:
        if eligible:
            modality |= partition.eligible_modalities
            if _is_privacy_only(modality, partition, config):
                status = AuthenticatorStatus.SENSOR_PRIVACY_ENABLED
            else:
                status = AuthenticatorStatus.OK
        elif ineligible:
            sensor, status = calculate_error_by_priority(ineligible)
            modality |= sensor.modality
        else:
            status = AuthenticatorStatus.NO_HARDWARE

    elif request.credential_requested:
        modality |= Modality.CREDENTIAL
        status = (AuthenticatorStatus.OK if credential_available
                  else AuthenticatorStatus.CREDENTIAL_NOT_ENROLLED)

    else:
        # Not reachable through from_authenticators(); kept so a malformed
        # request still resolves to a status
        logger.error("No authenticators requested")
        status = AuthenticatorStatus.NO_HARDWARE

    logger.debug(f"Internal status Modality: {modality!r} AuthenticatorStatus: {status.name}")
    return modality, status


def count_waiting_for_start(eligible: Iterable[SensorDescriptor]) -> int:
    """Number of eligible sensors still waiting for a start acknowledgement"""
    num_waiting = 0
    for sensor in eligible:
        if sensor.session_state == SensorState.WAITING_FOR_START:
            logger.debug(f"Sensor ID: {sensor.id} Waiting for cookie: {sensor.cookie}")
            num_waiting += 1
    return num_waiting


@dataclass(frozen=True)
class EligibilityReport:
    """
    Everything derived for one request. Built fresh per request and never
    mutated; generating it does not change any sensor state.
    """
    request: AuthenticationRequest
    partition: EligibilityPartition
    config: ResolverConfig = _DEFAULT_CONFIG

    @property
    def eligible(self) -> Tuple[SensorDescriptor, ...]:
        return self.partition.eligible

    @property
    def ineligible(self) -> Tuple[IneligibleSensor, ...]:
        return self.partition.ineligible

    @property
    def credential_available(self) -> bool:
        return self.partition.credential_available

    @property
    def confirmation_requested(self) -> bool:
        return self.request.confirmation_requested

    def internal_status(self) -> Tuple[Modality, AuthenticatorStatus]:
        return resolve(self.partition, self.request, self.config)

    def can_authenticate_result(self) -> CanAuthenticateResult:
        """Coarse result for capability checks"""
        return coarse_result(self.internal_status()[1])

    def pre_authenticate_status(self) -> PreAuthStatus:
        """
        Reason authentication can or cannot start. The modality is cleared
        for statuses that would disclose a policy or strength refusal.
        """
        modality, status = self.internal_status()
        filtered_modality, error = detailed_result(modality, status)
        return PreAuthStatus(modality=filtered_modality, error=error)

    def should_show_credential(self) -> bool:
        """True if the UI should offer credential entry"""
        return self.request.credential_requested and self.partition.credential_available

    def eligible_modalities(self) -> Modality:
        """Modalities that are running or could run for this session"""
        modalities = self.partition.eligible_modalities
        if self.should_show_credential():
            modalities |= Modality.CREDENTIAL
        return modalities

    def count_waiting_for_start(self) -> int:
        return count_waiting_for_start(self.partition.eligible)

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization"""
        return {
            'biometric_requested': self.request.biometric_requested,
            'strength_requested': self.request.requested_strength.name,
            'credential_requested': self.request.credential_requested,
            'eligible': [sensor.id for sensor in self.eligible],
            'ineligible': {sensor.id: status.name for sensor, status in self.ineligible},
            'credential_available': self.credential_available,
        }

    def __str__(self) -> str:
        eligible = " ".join(str(sensor.id) for sensor in self.eligible)
        ineligible = " ".join(f"{sensor.id}:{status.name}" for sensor, status in self.ineligible)
        return (f"BiometricRequested: {self.request.biometric_requested}"
                f", StrengthRequested: {self.request.requested_strength.name}"
                f", CredentialRequested: {self.request.credential_requested}"
                f", Eligible:{{{eligible}}}"
                f", Ineligible:{{{ineligible}}}"
                f", CredentialAvailable: {self.credential_available}")


class EligibilityResolver:
    """
    Evaluates authentication requests against the live sensor state.

    Holds only the collaborator queries and config; every call to evaluate()
    produces an independent EligibilityReport, so one resolver may be shared
    across threads as long as the queries object is.
    """

    def __init__(self, queries: PolicyQueries, config: Optional[ResolverConfig] = None):
        self._queries = queries
        self._config = config or _DEFAULT_CONFIG

    @property
    def config(self) -> ResolverConfig:
        return self._config

    def evaluate(self, sensors: Sequence[SensorDescriptor],
                 request: AuthenticationRequest) -> EligibilityReport:
        """
        Classify all sensors for a request.

        Args:
            sensors: Registered sensors in priority order
            request: Caller's request

        Returns:
            EligibilityReport
        """
        partition = aggregate(sensors, request, self._queries, self._config)
        return EligibilityReport(request=request, partition=partition, config=self._config)

    def can_authenticate(self, sensors: Sequence[SensorDescriptor], authenticators: int,
                         user_id: int, op_package_name: str = "") -> CanAuthenticateResult:
        """
        Coarse capability check from public authenticator flags.

        Returns ERROR_UNSUPPORTED for an invalid flag combination instead of
        raising.
        """
        try:
            request = AuthenticationRequest.from_authenticators(
                authenticators, user_id, op_package_name=op_package_name,
            )
        except InvalidAuthenticatorConfig as e:
            logger.error(f"Unsupported authenticator request from {op_package_name!r}: {e}")
            return CanAuthenticateResult.ERROR_UNSUPPORTED
        return self.evaluate(sensors, request).can_authenticate_result()


if __name__ == '__main__':
    from .collaborators import SnapshotPolicyQueries
    from .sensor import Strength

    logging.basicConfig(level=logging.DEBUG)
    print("Testing Eligibility Resolver...")

    sensors = [
        SensorDescriptor(id=0, modality=Modality.FINGERPRINT, factory_strength=Strength.STRONG),
        SensorDescriptor(id=1, modality=Modality.FACE, factory_strength=Strength.WEAK),
    ]
    queries = SnapshotPolicyQueries(
        enrollments=frozenset({(0, 0), (1, 0)}),
        privacy_enabled_users=frozenset({0}),
        secure_users=frozenset({0}),
    )
    resolver = EligibilityResolver(queries)

    for strength in (Strength.STRONG, Strength.WEAK):
        for credential in (False, True):
            request = AuthenticationRequest(user_id=0, requested_strength=strength,
                                            credential_requested=credential)
            report = resolver.evaluate(sensors, request)
            pre_auth = report.pre_authenticate_status()
            print(f"Strength: {strength.name:8} | Credential: {credential!s:5} | "
                  f"Result: {report.can_authenticate_result().name:30} | "
                  f"Detail: {pre_auth.as_pair()}")
            print(f"  {report}")

    print("\nEligibility resolver test complete.")
