"""Data models for samples and derived kinematics."""

from pylocsync.models._base import EpochTimestamp, LocSyncBaseModel, parse_epoch_timestamp
from pylocsync.models.estimate import AccelerationComponents, DerivedEstimate, VelocityComponents
from pylocsync.models.sample import PositionSample

__all__ = [
    "AccelerationComponents",
    "DerivedEstimate",
    "EpochTimestamp",
    "LocSyncBaseModel",
    "PositionSample",
    "VelocityComponents",
    "parse_epoch_timestamp",
]
