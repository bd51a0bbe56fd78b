"""Client configuration for pylocsync."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from pylocsync._constants import BROKER_URL, DEFAULT_POLL_INTERVAL, DEFAULT_REQUEST_TIMEOUT, LOCATION_PATH
from pylocsync.exceptions import LocSyncConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


class DistanceStrategy(StrEnum):
    """How the distance between two samples is computed."""

    GREAT_CIRCLE = "great_circle"
    ROUTED = "routed"


@dataclasses.dataclass(frozen=True)
class LocSyncConfig:
    """Client configuration.

    Parameters
    ----------
    broker_url : str
        Base URL of the location broker holding the latest sample.
    location_path : str
        Path of the broker's latest-sample resource.
    routing_url : str or None
        Base URL of an OSRM-compatible routing service. Required when
        *distance_strategy* is ``routed``.
    routing_profile : str
        Routing profile used in the distance-matrix request
        (e.g. ``"driving"``, ``"foot"``).
    distance_strategy : DistanceStrategy
        ``great_circle`` (haversine, default) or ``routed``.
    degrade_to_great_circle : bool
        When the routed provider fails, fall back to the haversine
        distance instead of skipping the estimation step.
    poll_interval : float
        Seconds between two consumer polls of the broker.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    """

    broker_url: str = BROKER_URL
    location_path: str = LOCATION_PATH
    routing_url: str | None = None
    routing_profile: str = "driving"
    distance_strategy: DistanceStrategy = DistanceStrategy.GREAT_CIRCLE
    degrade_to_great_circle: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        try:
            strategy = DistanceStrategy(self.distance_strategy)
        except ValueError as exc:
            raise LocSyncConfigError(f"Unknown distance strategy: {self.distance_strategy!r}") from exc
        # Frozen dataclass: normalise plain strings to the enum in place.
        object.__setattr__(self, "distance_strategy", strategy)

        if self.poll_interval <= 0:
            raise LocSyncConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.request_timeout <= 0:
            raise LocSyncConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if strategy is DistanceStrategy.ROUTED and not self.routing_url:
            raise LocSyncConfigError("routing_url is required for the routed distance strategy")

    @property
    def location_url(self) -> str:
        return f"{self.broker_url.rstrip('/')}{self.location_path}"

    @classmethod
    def from_env(cls, **overrides: Any) -> LocSyncConfig:
        """Create configuration from environment variables.

        Reads the optional ``LOCSYNC_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        LocSyncConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "LOCSYNC_BROKER_URL": "broker_url",
            "LOCSYNC_LOCATION_PATH": "location_path",
            "LOCSYNC_ROUTING_URL": "routing_url",
            "LOCSYNC_ROUTING_PROFILE": "routing_profile",
            "LOCSYNC_DISTANCE_STRATEGY": "distance_strategy",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Numeric fields, handled separately
        interval_env = env.get("LOCSYNC_POLL_INTERVAL")
        if interval_env is not None and "poll_interval" not in overrides:
            config_kwargs["poll_interval"] = float(interval_env)

        timeout_env = env.get("LOCSYNC_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        if "degrade_to_great_circle" not in overrides:
            config_kwargs["degrade_to_great_circle"] = _env_bool(
                env.get("LOCSYNC_DEGRADE_TO_GREAT_CIRCLE"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
