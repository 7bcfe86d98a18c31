"""
Error Handling Utilities for authgate

The resolver never lets a collaborator failure escape: a sensor driver,
policy, settings, privacy or lock-state query that raises is turned into a
status value by the caller. This module records those failures so they are
still visible:

- ErrorContext captures what failed, where, and the stack at that point
- ErrorAggregator keeps recent failures and collapses repeats of the same
  failure inside a time window (a dead driver fails on every request)
- handle_error() logs and records one failure
- safe_execute() wraps a single query and leaves a fallback value on failure

USAGE:
    from authgate.utils.error_handling import ErrorCategory, handle_error, safe_execute

    with safe_execute("credential_available", ErrorCategory.CREDENTIAL, default_return=False) as result:
        result.value = queries.is_credential_available(user_id, display_id)

    try:
        detected = queries.is_hardware_detected(sensor)
    except Exception as e:
        handle_error(e, "classify_sensor", ErrorCategory.SENSOR, additional_context={'sensor_id': sensor.id})
"""

import logging
import threading
import time
import traceback
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Which collaborator (or local concern) a failure came from"""
    SENSOR = "sensor"            # hardware, enrollment, lockout queries
    POLICY = "policy"            # administrative policy
    SETTINGS = "settings"        # per-user "enabled for apps"
    PRIVACY = "privacy"          # sensor privacy toggle
    CREDENTIAL = "credential"    # device lock state
    CONFIG = "configuration"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorContext:
    """One recorded failure"""
    error: Exception
    category: ErrorCategory
    severity: ErrorSeverity
    operation: str
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat() + "Z")
    thread_name: str = field(default_factory=lambda: threading.current_thread().name)
    stack_trace: str = ""

    def __post_init__(self):
        if not self.stack_trace:
            self.stack_trace = traceback.format_exc()

    @property
    def key(self) -> str:
        """Identity used for de-duplication"""
        return f"{self.category.value}:{type(self.error).__name__}:{self.operation}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.operation,
            'category': self.category.value,
            'severity': self.severity.value,
            'error_type': type(self.error).__name__,
            'error_message': str(self.error),
            'details': dict(self.details),
            'timestamp': self.timestamp,
            'thread_name': self.thread_name,
            'stack_trace': self.stack_trace,
        }

    def format_log_message(self) -> str:
        lines = [f"{self.operation} failed [{self.category.value}/{self.severity.value}] "
                 f"{type(self.error).__name__}: {self.error} (thread {self.thread_name})"]
        lines.extend(f"  {key}: {value}" for key, value in self.details.items())
        trace = self.stack_trace.strip()
        if trace and trace != 'NoneType: None':
            lines.extend(f"    {line}" for line in trace.splitlines())
        return '\n'.join(lines)


class ErrorAggregator:
    """
    Thread-safe store of recent failures.

    A failure whose key was already seen less than dedup_window_seconds ago
    is only counted, not stored again.
    """

    def __init__(self, max_errors: int = 1000, dedup_window_seconds: float = 60):
        self._lock = threading.Lock()
        self._errors: Deque[ErrorContext] = deque(maxlen=max_errors)
        self._dedup_window = dedup_window_seconds
        self._counts: Dict[str, int] = {}
        self._first_seen: Dict[str, float] = {}

    def add_error(self, context: ErrorContext) -> bool:
        """Record a failure. Returns False if it was folded into an earlier one."""
        now = time.monotonic()
        key = context.key
        with self._lock:
            seen = self._first_seen.get(key)
            if seen is not None and now - seen < self._dedup_window:
                self._counts[key] += 1
                return False
            self._first_seen[key] = now
            self._counts[key] = 1
            self._errors.append(context)
            return True

    def get_error_summary(self) -> Dict[str, Any]:
        with self._lock:
            by_category: Dict[str, int] = {}
            by_severity: Dict[str, int] = {}
            for context in self._errors:
                by_category[context.category.value] = by_category.get(context.category.value, 0) + 1
                by_severity[context.severity.value] = by_severity.get(context.severity.value, 0) + 1
            return {
                'total_errors': len(self._errors),
                'by_category': by_category,
                'by_severity': by_severity,
                'deduplicated_counts': dict(self._counts),
            }

    def get_recent_errors(self, count: int = 10) -> List[Dict[str, Any]]:
        with self._lock:
            return [context.to_dict() for context in list(self._errors)[-count:]]

    def clear(self):
        with self._lock:
            self._errors.clear()
            self._counts.clear()
            self._first_seen.clear()


_global_aggregator = ErrorAggregator()


def get_error_aggregator() -> ErrorAggregator:
    """Process-wide aggregator used by handle_error()"""
    return _global_aggregator


def determine_severity(error: Exception, category: ErrorCategory) -> ErrorSeverity:
    """
    Severity for a failure when the caller does not give one.

    Bad configuration affects every resolution and is CRITICAL. Timeouts and
    transport errors are routine while a sensor powers up and are WARNING.
    Everything else, a failing lock-state service included, is ERROR.
    """
    if category == ErrorCategory.CONFIG:
        return ErrorSeverity.CRITICAL
    if 'timeout' in type(error).__name__.lower() or 'timeout' in str(error).lower():
        return ErrorSeverity.WARNING
    if category != ErrorCategory.CREDENTIAL and isinstance(error, (ConnectionError, OSError)):
        return ErrorSeverity.WARNING
    return ErrorSeverity.ERROR


def handle_error(
    error: Exception,
    operation: str,
    category: ErrorCategory = ErrorCategory.UNKNOWN,
    severity: Optional[ErrorSeverity] = None,
    additional_context: Optional[Dict[str, Any]] = None,
    reraise: bool = False,
) -> ErrorContext:
    """
    Log and record a failure.

    Args:
        error: The exception raised by the query
        operation: Short name of what was being done
        category: Collaborator the failure came from
        severity: Overrides determine_severity()
        additional_context: Identifiers worth logging (sensor id, user id, ...)
        reraise: Raise the error again after recording it

    Returns:
        The recorded ErrorContext
    """
    context = ErrorContext(
        error=error,
        category=category,
        severity=severity or determine_severity(error, category),
        operation=operation,
        details=dict(additional_context or {}),
    )
    level = _LOG_LEVELS[context.severity]

    if _global_aggregator.add_error(context):
        logger.log(level, context.format_log_message())
    else:
        logger.log(level, f"[repeat] {operation}: {type(error).__name__}: {error}")

    if reraise:
        raise error
    return context


class _Outcome:
    """Holder yielded by safe_execute()"""

    def __init__(self, default: Any):
        self.value = default
        self.success = True
        self.error: Optional[ErrorContext] = None


@contextmanager
def safe_execute(
    operation: str,
    category: ErrorCategory = ErrorCategory.UNKNOWN,
    default_return: Any = None,
    reraise: bool = False,
    additional_context: Optional[Dict[str, Any]] = None,
):
    """
    Run a block that assigns result.value; on failure the value is reset to
    default_return and the failure is handled by handle_error().
    """
    outcome = _Outcome(default_return)
    try:
        yield outcome
    except Exception as e:
        outcome.success = False
        outcome.value = default_return
        outcome.error = handle_error(e, operation, category=category,
                                     additional_context=additional_context, reraise=reraise)
