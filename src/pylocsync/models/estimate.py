"""Derived kinematics models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pylocsync._constants import MPS_TO_KMH


class VelocityComponents(BaseModel):
    """Per-axis finite difference in degrees per second.

    A vector approximation in angular units, not a metric velocity.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class AccelerationComponents(BaseModel):
    """Change of speed and of each velocity axis over one step.

    ``speed`` is in m/s², the axes in degrees per second².
    """

    model_config = ConfigDict(frozen=True)

    speed: float
    latitude: float
    longitude: float


class DerivedEstimate(BaseModel):
    """Output of one estimation step over a (previous, current) sample pair.

    Parameters
    ----------
    distance : float
        Distance between the two samples in meters.
    time_delta : float
        Elapsed time in seconds, always strictly positive.
    speed : float
        ``distance / time_delta`` in m/s.
    velocity : VelocityComponents
        Latitude and longitude rates in degrees per second.
    acceleration : AccelerationComponents or None
        Present only when a previous estimate was available. ``None``
        means "not yet determinable", never zero acceleration.
    """

    model_config = ConfigDict(frozen=True)

    distance: float = Field(ge=0.0)
    time_delta: float = Field(gt=0.0)
    speed: float
    velocity: VelocityComponents
    acceleration: AccelerationComponents | None = None

    @property
    def speed_kmh(self) -> float:
        return self.speed * MPS_TO_KMH
