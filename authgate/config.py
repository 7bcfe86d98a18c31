"""
Resolver Configuration
Device-level switches that shape eligibility resolution.

Sources, lowest to highest precedence:
    defaults < config file (YAML or JSON) < AUTHGATE_* environment variables
"""

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .sensor import BIOMETRIC_MODALITIES, Modality
from .utils.error_handling import ErrorCategory, handle_error

logger = logging.getLogger(__name__)

ENV_PREFIX = "AUTHGATE_"

_TRUE_VALUES = frozenset({'1', 'true', 'yes', 'on'})
_FALSE_VALUES = frozenset({'0', 'false', 'no', 'off'})


class ConfigError(ValueError):
    """Raised for unknown keys or unparsable configuration values"""


@dataclass(frozen=True)
class ResolverConfig:
    """
    Switches applied to every resolution.

    check_device_policy: consult administrative policy (classifier step 8)
    fingerprint_always_enabled_for_apps: fingerprint sensors skip the
        per-user "enabled for apps" setting
    privacy_gated_modalities: modalities blocked by the camera privacy toggle
    display_id: display passed to the credential availability query
    """
    check_device_policy: bool = True
    fingerprint_always_enabled_for_apps: bool = False
    privacy_gated_modalities: Modality = Modality.FACE
    display_id: int = 0

    def __post_init__(self):
        if int(self.privacy_gated_modalities) & ~int(BIOMETRIC_MODALITIES):
            raise ConfigError(f"privacy_gated_modalities must be biometric, "
                              f"got {self.privacy_gated_modalities!r}")
        if self.display_id < 0:
            raise ConfigError(f"display_id must be non-negative, got {self.display_id}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any],
                     base: Optional['ResolverConfig'] = None) -> 'ResolverConfig':
        """
        Build a config from a mapping of field name to raw value.

        Args:
            values: Raw values, e.g. parsed from a file or the environment
            base: Config whose values are kept for absent keys

        Raises:
            ConfigError: on unknown keys or unparsable values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(map(str, unknown)))}")

        parsed: Dict[str, Any] = {}
        for key, raw in values.items():
            if key in ('check_device_policy', 'fingerprint_always_enabled_for_apps'):
                parsed[key] = _parse_bool(key, raw)
            elif key == 'privacy_gated_modalities':
                parsed[key] = _parse_modalities(key, raw)
            elif key == 'display_id':
                parsed[key] = _parse_int(key, raw)

        return replace(base or cls(), **parsed)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 base: Optional['ResolverConfig'] = None) -> 'ResolverConfig':
        """
        Overlay AUTHGATE_* environment variables on base (or the defaults).

        AUTHGATE_CHECK_DEVICE_POLICY, AUTHGATE_FINGERPRINT_ALWAYS_ENABLED,
        AUTHGATE_PRIVACY_GATED_MODALITIES (comma separated), AUTHGATE_DISPLAY_ID
        """
        environ = os.environ if environ is None else environ
        env_keys = {
            'CHECK_DEVICE_POLICY': 'check_device_policy',
            'FINGERPRINT_ALWAYS_ENABLED': 'fingerprint_always_enabled_for_apps',
            'PRIVACY_GATED_MODALITIES': 'privacy_gated_modalities',
            'DISPLAY_ID': 'display_id',
        }
        values = {
            field_name: environ[ENV_PREFIX + env_name]
            for env_name, field_name in env_keys.items()
            if ENV_PREFIX + env_name in environ
        }
        if values:
            logger.debug(f"Config overrides from environment: {sorted(values)}")
        return cls.from_mapping(values, base=base)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'check_device_policy': self.check_device_policy,
            'fingerprint_always_enabled_for_apps': self.fingerprint_always_enabled_for_apps,
            'privacy_gated_modalities': _modality_names(self.privacy_gated_modalities),
            'display_id': self.display_id,
        }


def load_config(path: Optional[str] = None,
                environ: Optional[Mapping[str, str]] = None) -> ResolverConfig:
    """
    Load the resolver config from an optional file plus the environment.

    Files ending in .json are parsed as JSON, anything else as YAML.
    Failures are recorded under ErrorCategory.CONFIG before being raised.

    Raises:
        ConfigError: if the file is malformed or holds invalid values
    """
    try:
        return _load_config(path, environ)
    except ConfigError as e:
        handle_error(e, "load_config", category=ErrorCategory.CONFIG,
                     additional_context={'path': path}, reraise=True)
        raise


def _load_config(path: Optional[str], environ: Optional[Mapping[str, str]]) -> ResolverConfig:
    config = ResolverConfig()
    if path:
        config_path = Path(path)
        try:
            text = config_path.read_text(encoding='utf-8')
            if config_path.suffix.lower() == '.json':
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a mapping, got {type(data).__name__}")
        config = ResolverConfig.from_mapping(data, base=config)
        logger.info(f"Loaded resolver config from {path}")

    return ResolverConfig.from_env(environ, base=config)


def _parse_bool(key: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key}: expected a boolean, got {raw!r}")


def _parse_int(key: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ConfigError(f"{key}: expected an integer, got {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key}: expected an integer, got {raw!r}") from e


def _parse_modalities(key: str, raw: Any) -> Modality:
    if isinstance(raw, Modality):
        return raw
    if isinstance(raw, str):
        names = [n for n in (part.strip() for part in raw.split(',')) if n]
    elif isinstance(raw, (list, tuple)):
        names = [str(n).strip() for n in raw]
    else:
        raise ConfigError(f"{key}: expected a list of modality names, got {raw!r}")

    modalities = Modality.NONE
    for name in names:
        try:
            modality = Modality[name.upper()]
        except KeyError as e:
            raise ConfigError(f"{key}: unknown modality {name!r}") from e
        modalities |= modality
    return modalities


def _modality_names(modalities: Modality) -> list:
    return [m.name.lower() for m in (Modality.FINGERPRINT, Modality.IRIS, Modality.FACE)
            if modalities & m]
