"""
Assistant configuration.

Settings are read from a YAML file; keys that are absent keep their defaults.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .analytics import DEFAULT_DETECTION_RATE
from .generator import DEFAULT_EVENT_COUNT

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'ASTROGUARD_CONFIG'


@dataclass
class AssistantConfig:
    """Runtime settings for the assistant.

    Attributes:
        event_count: Size of the synthetic dataset built at start-up
        processing_delay: Seconds the API waits before answering a query
        detection_rate: Detection rate shown on the dashboard
        brute_force_threshold: Failed logins from one ip that raise an alert
        alert_limit: Maximum high-risk events in the proactive alerts
        page_size: Default event explorer page size
        log_level: Logging level name
    """
    event_count: int = DEFAULT_EVENT_COUNT
    processing_delay: float = 0.8
    detection_rate: float = DEFAULT_DETECTION_RATE
    brute_force_threshold: int = 5
    alert_limit: int = 5
    page_size: int = 25
    log_level: str = 'INFO'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssistantConfig':
        """Build a config from a mapping, validating value types.

        Raises:
            ValueError: If a value has the wrong type
        """
        config = cls()
        known = {f.name: f for f in fields(cls)}

        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue

            default = getattr(config, key)
            try:
                if isinstance(value, bool):
                    raise TypeError
                if isinstance(default, int):
                    if isinstance(value, float) and not value.is_integer():
                        raise TypeError
                    value = int(value)
                elif isinstance(default, float):
                    value = float(value)
                else:
                    value = str(value)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid value for '{key}': {value!r}")

            setattr(config, key, value)

        if config.event_count < 0:
            raise ValueError("event_count must not be negative")
        if config.processing_delay < 0:
            raise ValueError("processing_delay must not be negative")
        return config


def load_config(path: Optional[str] = None) -> AssistantConfig:
    """Load configuration from a YAML file.

    Args:
        path: Config file path; falls back to $ASTROGUARD_CONFIG, then defaults

    Returns:
        The loaded AssistantConfig

    Raises:
        ValueError: If the file is missing, not valid YAML or has bad values
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return AssistantConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise ValueError(f"Config file not found: {path}")

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping")

    config = AssistantConfig.from_dict(data)
    logger.info(f"Loaded configuration from {config_path}")
    return config
