"""Dataclass-based engine configuration.

Defaults are usable out of the box; ``from_env`` lets a host application
override them without code changes. The active config is module state,
read by the cache wrappers, the blocking adapter and configure_logging.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RuleEngineConfig:
    """Engine-wide settings.

    Usage::

        set_config(RuleEngineConfig.from_env())
        cached = rule.cached()  # uses default_cache_ttl_seconds
    """

    default_cache_ttl_seconds: float = 300.0
    allow_blocking_in_event_loop: bool = False
    log_level: str = "info"
    log_json: bool = True

    def __post_init__(self):
        if self.default_cache_ttl_seconds <= 0:
            raise ValueError("default_cache_ttl_seconds must be positive")

    @classmethod
    def default(cls) -> "RuleEngineConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "BUSINESS_RULES_") -> "RuleEngineConfig":
        """Create config from environment variables.

        Example: BUSINESS_RULES_DEFAULT_CACHE_TTL_SECONDS=60
        """
        overrides: dict = {}

        ttl = os.getenv(f"{prefix}DEFAULT_CACHE_TTL_SECONDS")
        if ttl:
            overrides["default_cache_ttl_seconds"] = float(ttl)

        allow_blocking = os.getenv(f"{prefix}ALLOW_BLOCKING_IN_EVENT_LOOP")
        if allow_blocking:
            overrides["allow_blocking_in_event_loop"] = allow_blocking.strip().lower() in _TRUE_VALUES

        log_level = os.getenv(f"{prefix}LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level.strip().lower()

        log_json = os.getenv(f"{prefix}LOG_JSON")
        if log_json:
            overrides["log_json"] = log_json.strip().lower() in _TRUE_VALUES

        return cls(**overrides)


_active_config = RuleEngineConfig.default()


def get_config() -> RuleEngineConfig:
    return _active_config


def set_config(config: RuleEngineConfig) -> RuleEngineConfig:
    """Replace the active config. Returns the previous one."""
    global _active_config
    previous = _active_config
    _active_config = config
    return previous
