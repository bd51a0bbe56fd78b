"""Finite-difference kinematics over a pair of position samples."""

from __future__ import annotations

import logging

from pylocsync.distance import DistanceProvider
from pylocsync.exceptions import DistanceUnavailableError, EstimationUnavailableError
from pylocsync.models.estimate import AccelerationComponents, DerivedEstimate, VelocityComponents
from pylocsync.models.sample import PositionSample
from pylocsync.state.policy import elapsed_seconds

_logger = logging.getLogger(__name__)


def derive_estimate(
    previous: PositionSample,
    current: PositionSample,
    distance: float,
    previous_estimate: DerivedEstimate | None = None,
) -> DerivedEstimate | None:
    """Build the estimate for *previous* → *current* given their *distance*.

    Returns ``None`` when the pair is stale or duplicated (``dt <= 0``).
    Acceleration is only filled in when *previous_estimate* is given.
    """
    dt = elapsed_seconds(previous, current)
    if dt <= 0:
        return None

    speed = distance / dt
    velocity = VelocityComponents(
        latitude=(current.latitude - previous.latitude) / dt,
        longitude=(current.longitude - previous.longitude) / dt,
    )

    acceleration: AccelerationComponents | None = None
    if previous_estimate is not None:
        acceleration = AccelerationComponents(
            speed=(speed - previous_estimate.speed) / dt,
            latitude=(velocity.latitude - previous_estimate.velocity.latitude) / dt,
            longitude=(velocity.longitude - previous_estimate.velocity.longitude) / dt,
        )

    return DerivedEstimate(
        distance=distance,
        time_delta=dt,
        speed=speed,
        velocity=velocity,
        acceleration=acceleration,
    )


class KinematicsEstimator:
    """Derives speed, velocity and acceleration from consecutive samples.

    Stateless apart from its distance provider: the retained previous
    estimate is passed in by the caller on every step.
    """

    def __init__(self, provider: DistanceProvider) -> None:
        self._provider = provider

    async def estimate(
        self,
        previous: PositionSample,
        current: PositionSample,
        previous_estimate: DerivedEstimate | None = None,
    ) -> DerivedEstimate | None:
        """Estimate the step from *previous* to *current*.

        Returns ``None`` for a stale or duplicate pair without consulting the
        distance provider.

        Raises
        ------
        EstimationUnavailableError
            If the distance provider fails; no estimate is produced.
        """
        if elapsed_seconds(previous, current) <= 0:
            _logger.debug("Skipping stale pair t=%d -> t=%d", previous.timestamp, current.timestamp)
            return None

        try:
            distance = await self._provider.distance(previous, current)
        except DistanceUnavailableError as exc:
            raise EstimationUnavailableError(str(exc)) from exc

        return derive_estimate(previous, current, distance, previous_estimate)
