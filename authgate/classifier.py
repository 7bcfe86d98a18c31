"""
Per-Sensor Classifier
Maps one sensor + request + collaborator answers to a single AuthenticatorStatus.

Checks run in a fixed order and stop at the first failure. The order decides
which error is reported when several conditions hold at once:

    1. sensor not selectable by the request     -> NO_HARDWARE
    2. strength (factory, then live)            -> INSUFFICIENT_STRENGTH[_AFTER_DOWNGRADE]
    3. hardware detection                       -> HARDWARE_NOT_DETECTED
    4. enrollment                               -> NOT_ENROLLED
    5. sensor privacy (privacy-gated modality)  -> SENSOR_PRIVACY_ENABLED
    6. lockout                                  -> LOCKOUT_TIMED / LOCKOUT_PERMANENT
    7. enabled for apps                         -> NOT_ENABLED_FOR_APPS
    8. administrative policy                    -> DISABLED_BY_POLICY
"""

import logging
from typing import Any, Callable, Optional

from .collaborators import PolicyQueries
from .config import ResolverConfig
from .request import AuthenticationRequest
from .sensor import LockoutMode, Modality, SensorDescriptor, is_at_least_strength
from .status import AuthenticatorStatus
from .utils.error_handling import ErrorCategory, handle_error

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ResolverConfig()


def classify(sensor: SensorDescriptor, request: AuthenticationRequest,
             queries: PolicyQueries,
             config: Optional[ResolverConfig] = None) -> AuthenticatorStatus:
    """
    Classify a single sensor for a request.

    Never raises for collaborator failures: any exception from a query at
    steps 3-8 is logged and reported as HARDWARE_NOT_DETECTED.

    Args:
        sensor: Sensor to classify
        request: Caller's request
        queries: Collaborator queries
        config: Resolver switches (defaults if omitted)

    Returns:
        AuthenticatorStatus for this sensor
    """
    config = config or _DEFAULT_CONFIG

    if not request.allows_sensor(sensor.id) or not (sensor.modality & request.requested_modalities):
        return AuthenticatorStatus.NO_HARDWARE

    was_strong_enough = is_at_least_strength(sensor.factory_strength, request.requested_strength)
    is_strong_enough = is_at_least_strength(sensor.current_strength, request.requested_strength)
    if not was_strong_enough:
        return AuthenticatorStatus.INSUFFICIENT_STRENGTH
    if not is_strong_enough:
        return AuthenticatorStatus.INSUFFICIENT_STRENGTH_AFTER_DOWNGRADE

    try:
        return _classify_live_state(sensor, request, queries, config)
    except _QueryFailure as failure:
        _record_failure(failure.error, failure.category, sensor, request)
    except Exception as e:
        _record_failure(e, ErrorCategory.SENSOR, sensor, request)
    return AuthenticatorStatus.HARDWARE_NOT_DETECTED


def _record_failure(error: Exception, category: ErrorCategory,
                    sensor: SensorDescriptor, request: AuthenticationRequest) -> None:
    handle_error(
        error,
        "classify_sensor",
        category=category,
        additional_context={
            'sensor_id': sensor.id,
            'modality': sensor.modality.name,
            'user_id': request.user_id,
            'package': request.op_package_name,
        },
    )


class _QueryFailure(Exception):
    """A collaborator query raised; carries the collaborator's category"""

    def __init__(self, category: ErrorCategory, error: Exception):
        super().__init__(str(error))
        self.category = category
        self.error = error


def _ask(category: ErrorCategory, query: Callable[..., Any], *args: Any) -> Any:
    try:
        return query(*args)
    except Exception as e:
        raise _QueryFailure(category, e) from e


def _classify_live_state(sensor: SensorDescriptor, request: AuthenticationRequest,
                         queries: PolicyQueries,
                         config: ResolverConfig) -> AuthenticatorStatus:
    """Steps 3-8; a failing query raises _QueryFailure for the caller to record"""
    user_id = request.user_id

    if not _ask(ErrorCategory.SENSOR, queries.is_hardware_detected, sensor, request.op_package_name):
        return AuthenticatorStatus.HARDWARE_NOT_DETECTED

    if (not _ask(ErrorCategory.SENSOR, queries.has_enrollments, sensor, user_id, request.op_package_name)
            and not request.ignore_enrollment_state):
        return AuthenticatorStatus.NOT_ENROLLED

    if sensor.modality & config.privacy_gated_modalities:
        if _ask(ErrorCategory.PRIVACY, queries.is_sensor_privacy_enabled, user_id):
            return AuthenticatorStatus.SENSOR_PRIVACY_ENABLED

    lockout_mode = _ask(ErrorCategory.SENSOR, queries.get_lockout_mode, sensor, user_id)
    if lockout_mode == LockoutMode.TIMED:
        return AuthenticatorStatus.LOCKOUT_TIMED
    if lockout_mode == LockoutMode.PERMANENT:
        return AuthenticatorStatus.LOCKOUT_PERMANENT

    if not _is_enabled_for_apps(queries, config, sensor.modality, user_id):
        return AuthenticatorStatus.NOT_ENABLED_FOR_APPS

    if config.check_device_policy:
        disabled = _ask(ErrorCategory.POLICY, queries.is_disabled_by_admin, sensor.modality, user_id)
        logger.debug(f"is_disabled_by_admin({sensor.modality.name}, {user_id})={disabled}")
        if disabled:
            logger.warning(f"Sensor {sensor.id} ({sensor.modality.name}) disabled by admin "
                           f"for user {user_id}")
            return AuthenticatorStatus.DISABLED_BY_POLICY

    return AuthenticatorStatus.OK


def _is_enabled_for_apps(queries: PolicyQueries, config: ResolverConfig,
                         modality: Modality, user_id: int) -> bool:
    if modality == Modality.FINGERPRINT and config.fingerprint_always_enabled_for_apps:
        return True
    return _ask(ErrorCategory.SETTINGS, queries.is_enabled_for_apps, modality, user_id)
