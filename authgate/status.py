"""
Authenticator Status - Internal Eligibility Outcomes
Closed set of reasons a sensor or request can (or cannot) be served.
"""

from enum import IntEnum


class AuthenticatorStatus(IntEnum):
    """
    Internal per-sensor and per-request status.
    Values are stable identifiers, not a priority order.
    """
    OK = 1
    NO_HARDWARE = 2
    DISABLED_BY_POLICY = 3
    INSUFFICIENT_STRENGTH = 4
    INSUFFICIENT_STRENGTH_AFTER_DOWNGRADE = 5
    HARDWARE_NOT_DETECTED = 6
    NOT_ENROLLED = 7
    NOT_ENABLED_FOR_APPS = 8
    CREDENTIAL_NOT_ENROLLED = 9
    LOCKOUT_TIMED = 10
    LOCKOUT_PERMANENT = 11
    SENSOR_PRIVACY_ENABLED = 12

    @property
    def is_eligible(self) -> bool:
        """
        Privacy-blocked sensors stay eligible so the prompt can be shown
        briefly and then report the privacy toggle.
        """
        return self in ELIGIBLE_STATUSES


ELIGIBLE_STATUSES = frozenset({
    AuthenticatorStatus.OK,
    AuthenticatorStatus.SENSOR_PRIVACY_ENABLED,
})

# Statuses the user can fix themselves (enroll, wait, toggle privacy)
USER_ACTIONABLE_STATUSES = frozenset({
    AuthenticatorStatus.NOT_ENROLLED,
    AuthenticatorStatus.CREDENTIAL_NOT_ENROLLED,
    AuthenticatorStatus.LOCKOUT_TIMED,
    AuthenticatorStatus.LOCKOUT_PERMANENT,
    AuthenticatorStatus.SENSOR_PRIVACY_ENABLED,
})

# Statuses driven by device policy or sensor capability
POLICY_STATUSES = frozenset({
    AuthenticatorStatus.DISABLED_BY_POLICY,
    AuthenticatorStatus.INSUFFICIENT_STRENGTH,
    AuthenticatorStatus.NOT_ENABLED_FOR_APPS,
    AuthenticatorStatus.NO_HARDWARE,
    AuthenticatorStatus.HARDWARE_NOT_DETECTED,
})
