"""
authgate - Authentication Eligibility Resolver

Given a caller's authentication request and a snapshot of every registered
sensor plus device policy and privacy state, decides which sensors may be
used, whether the credential fallback should be offered, and which single
error explains a refusal.

Usage:
    from authgate import EligibilityResolver, AuthenticationRequest

    resolver = EligibilityResolver(queries)
    report = resolver.evaluate(sensors, AuthenticationRequest(user_id=0))
    report.can_authenticate_result()
"""

from .sensor import (
    BIOMETRIC_MODALITIES,
    LockoutMode,
    Modality,
    SensorDescriptor,
    SensorState,
    Strength,
    is_at_least_strength,
)
from .request import (
    AuthenticationRequest,
    Authenticators,
    InvalidAuthenticatorConfig,
)
from .status import AuthenticatorStatus
from .collaborators import (
    KeyguardFeature,
    PolicyQueries,
    SensorQueryError,
    SnapshotPolicyQueries,
)
from .config import ConfigError, ResolverConfig, load_config
from .classifier import classify
from .eligibility import EligibilityPartition, aggregate
from .resolver import (
    EligibilityReport,
    EligibilityResolver,
    calculate_error_by_priority,
    count_waiting_for_start,
    resolve,
)
from .api import BiometricError, CanAuthenticateResult, PreAuthStatus

__version__ = "1.0.0"

__all__ = [
    # Sensors
    'BIOMETRIC_MODALITIES',
    'LockoutMode',
    'Modality',
    'SensorDescriptor',
    'SensorState',
    'Strength',
    'is_at_least_strength',

    # Requests
    'AuthenticationRequest',
    'Authenticators',
    'InvalidAuthenticatorConfig',

    # Statuses and public codes
    'AuthenticatorStatus',
    'BiometricError',
    'CanAuthenticateResult',
    'PreAuthStatus',

    # Collaborators
    'KeyguardFeature',
    'PolicyQueries',
    'SensorQueryError',
    'SnapshotPolicyQueries',

    # Configuration
    'ConfigError',
    'ResolverConfig',
    'load_config',

    # Resolution
    'classify',
    'aggregate',
    'resolve',
    'calculate_error_by_priority',
    'count_waiting_for_start',
    'EligibilityPartition',
    'EligibilityReport',
    'EligibilityResolver',
]
