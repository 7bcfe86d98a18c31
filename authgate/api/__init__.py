"""
API Module for authgate

Provides the caller-facing views of a resolution:
- Public error codes (detailed and coarse) with remediation hints
- Mapping from internal statuses to public codes
- Result envelope for the detailed pre-authentication status
"""

from .error_codes import (
    BiometricError,
    CanAuthenticateResult,
    ErrorCode,
    lookup as lookup_error,
)

from .status_mapper import (
    coarse_result,
    detailed_result,
    filter_modality,
    to_can_authenticate_result,
    to_public_error,
)

from .response import (
    PreAuthStatus,
)

__all__ = [
    'BiometricError',
    'CanAuthenticateResult',
    'ErrorCode',
    'lookup_error',
    'coarse_result',
    'detailed_result',
    'filter_modality',
    'to_can_authenticate_result',
    'to_public_error',
    'PreAuthStatus',
]
