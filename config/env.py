# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.

# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from collections.abc import Callable
from logging import getLogger
from os import environ
from typing import TypeVar

T = TypeVar("T")

log = getLogger(__name__)


# Settings
LOG_LEVEL_SETTING = "LOG_LEVEL"
DD_API_KEY_SETTING = "DD_API_KEY"
DD_TELEMETRY_SETTING = "DD_TELEMETRY"
POLLING_INTERVAL_SETTING = "POLLING_INTERVAL_SECONDS"
DELETE_DEADLINE_SETTING = "DELETE_DEADLINE_SECONDS"

DEFAULT_POLLING_INTERVAL_SECONDS = 10.0


def parse_config_option(name: str, parse: Callable[[str], T | None], default: T) -> T:
    """Get a configuration option from the environment, parse it, or return a default"""
    try:
        value = environ.get(name)
        if value is None:
            return default
        result = parse(value)
        if result is None:
            log.error(f"Invalid value for configuration option {name}: {value}")
            return default
        return result
    except ValueError:
        log.error(f"Invalid value for configuration option {name}: {environ.get(name)}")
        return default


def is_truthy(setting_name: str) -> bool:
    return environ.get(setting_name, "").lower().strip() in {"t", "true", "1", "y", "yes"}


def positive_seconds(value: str) -> float | None:
    seconds = float(value)
    return seconds if seconds > 0 else None


def get_polling_interval() -> float:
    return parse_config_option(POLLING_INTERVAL_SETTING, positive_seconds, DEFAULT_POLLING_INTERVAL_SECONDS)


def get_delete_deadline() -> float | None:
    """Deadline for the resource group deletion, `None` waits until the poller finishes"""
    return parse_config_option(DELETE_DEADLINE_SETTING, positive_seconds, None)
