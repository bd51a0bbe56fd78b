from __future__ import annotations

import pytest

from pylocsync.distance import GreatCircleDistanceProvider
from pylocsync.estimator import KinematicsEstimator, derive_estimate
from pylocsync.exceptions import DistanceUnavailableError, EstimationUnavailableError
from pylocsync.models.sample import PositionSample


class _CountingProvider:
    def __init__(self, distance: float = 100.0) -> None:
        self.distance_value = distance
        self.calls = 0

    async def distance(self, point_a: PositionSample, point_b: PositionSample) -> float:
        self.calls += 1
        return self.distance_value


class _FailingProvider:
    async def distance(self, point_a: PositionSample, point_b: PositionSample) -> float:
        raise DistanceUnavailableError("Routing response has no distances")


def _sample(lat: float, lon: float, t: int) -> PositionSample:
    return PositionSample(latitude=lat, longitude=lon, timestamp=t)


@pytest.mark.asyncio
async def test_reference_scenario() -> None:
    estimator = KinematicsEstimator(GreatCircleDistanceProvider())

    estimate = await estimator.estimate(_sample(40.0, -75.0, 0), _sample(40.001, -75.0, 10_000))

    assert estimate is not None
    assert estimate.distance == pytest.approx(111.2, abs=0.05)
    assert estimate.time_delta == 10.0
    assert estimate.speed == pytest.approx(11.12, abs=0.005)
    assert estimate.velocity.latitude == pytest.approx(1.0e-4)
    assert estimate.velocity.longitude == 0.0
    assert estimate.acceleration is None


@pytest.mark.asyncio
@pytest.mark.parametrize("current_t", [5_000, 4_000])
async def test_non_positive_time_delta_returns_none_without_distance_call(current_t: int) -> None:
    provider = _CountingProvider()
    estimator = KinematicsEstimator(provider)

    estimate = await estimator.estimate(_sample(40.0, -75.0, 5_000), _sample(40.001, -75.0, current_t))

    assert estimate is None
    assert provider.calls == 0


@pytest.mark.asyncio
async def test_acceleration_from_previous_estimate() -> None:
    estimator = KinematicsEstimator(_CountingProvider(distance=100.0))
    first = await estimator.estimate(_sample(40.0, -75.0, 0), _sample(40.001, -75.0, 10_000))
    assert first is not None  # speed 10 m/s

    estimator = KinematicsEstimator(_CountingProvider(distance=300.0))
    second = await estimator.estimate(_sample(40.001, -75.0, 10_000), _sample(40.004, -75.002, 20_000), first)

    assert second is not None
    assert second.speed == pytest.approx(30.0)
    assert second.acceleration is not None
    assert second.acceleration.speed == pytest.approx((30.0 - 10.0) / 10.0)
    assert second.acceleration.latitude == pytest.approx((3.0e-4 - 1.0e-4) / 10.0)
    assert second.acceleration.longitude == pytest.approx((-2.0e-4 - 0.0) / 10.0)


@pytest.mark.asyncio
async def test_distance_failure_raises_estimation_unavailable() -> None:
    estimator = KinematicsEstimator(_FailingProvider())

    with pytest.raises(EstimationUnavailableError) as excinfo:
        await estimator.estimate(_sample(40.0, -75.0, 0), _sample(40.001, -75.0, 10_000))

    assert isinstance(excinfo.value.__cause__, DistanceUnavailableError)


def test_derive_estimate_is_pure() -> None:
    previous = _sample(10.0, 20.0, 1_000)
    current = _sample(10.0, 20.002, 3_000)

    a = derive_estimate(previous, current, 50.0)
    b = derive_estimate(previous, current, 50.0)

    assert a == b
    assert a is not None
    assert a.time_delta == 2.0
    assert a.speed == 25.0
    assert a.speed_kmh == pytest.approx(90.0)
    assert a.velocity.longitude == pytest.approx(1.0e-3)


def test_zero_distance_gives_zero_speed_not_missing_acceleration() -> None:
    first = derive_estimate(_sample(1.0, 1.0, 0), _sample(1.0, 1.0, 1_000), 0.0)
    assert first is not None
    second = derive_estimate(_sample(1.0, 1.0, 1_000), _sample(1.0, 1.0, 2_000), 0.0, first)

    assert second is not None
    assert second.speed == 0.0
    assert second.acceleration is not None
    assert second.acceleration.speed == 0.0
