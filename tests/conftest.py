"""
Shared fixtures for authgate tests.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from authgate.collaborators import PolicyQueries, SnapshotPolicyQueries
from authgate.sensor import LockoutMode, Modality, SensorDescriptor, Strength
from authgate.utils.error_handling import get_error_aggregator

USER_ID = 0


@pytest.fixture(autouse=True)
def clean_error_aggregator():
    get_error_aggregator().clear()
    yield
    get_error_aggregator().clear()


@pytest.fixture
def fingerprint_sensor() -> SensorDescriptor:
    return SensorDescriptor(id=0, modality=Modality.FINGERPRINT, factory_strength=Strength.STRONG)


@pytest.fixture
def face_sensor() -> SensorDescriptor:
    return SensorDescriptor(id=1, modality=Modality.FACE, factory_strength=Strength.WEAK)


@pytest.fixture
def iris_sensor() -> SensorDescriptor:
    return SensorDescriptor(id=2, modality=Modality.IRIS, factory_strength=Strength.CONVENIENCE)


@pytest.fixture
def make_queries():
    """
    Factory for snapshot queries where the listed sensors are enrolled for
    USER_ID and the user has a secure credential unless told otherwise.
    """
    def _make(enrolled=(0, 1, 2), credential=True, **kwargs) -> SnapshotPolicyQueries:
        kwargs.setdefault('enrollments', frozenset((sensor_id, USER_ID) for sensor_id in enrolled))
        kwargs.setdefault('secure_users', frozenset({USER_ID}) if credential else frozenset())
        return SnapshotPolicyQueries(**kwargs)
    return _make


@pytest.fixture
def enrolled_queries(make_queries) -> SnapshotPolicyQueries:
    return make_queries()


@pytest.fixture
def mock_queries() -> MagicMock:
    """Queries mock where every check passes; override per test."""
    queries = MagicMock(spec=PolicyQueries)
    queries.is_hardware_detected.return_value = True
    queries.has_enrollments.return_value = True
    queries.is_sensor_privacy_enabled.return_value = False
    queries.get_lockout_mode.return_value = LockoutMode.NONE
    queries.is_enabled_for_apps.return_value = True
    queries.is_disabled_by_admin.return_value = False
    queries.is_credential_available.return_value = True
    return queries
