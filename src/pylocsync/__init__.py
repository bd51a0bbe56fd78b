"""pylocsync - Async producer/consumer location sync with derived kinematics."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylocsync")
except PackageNotFoundError:
    __version__ = "0+local"
from pylocsync.client import LocSyncClient
from pylocsync.config import DistanceStrategy, LocSyncConfig
from pylocsync.distance import (
    DegradingDistanceProvider,
    DistanceProvider,
    GreatCircleDistanceProvider,
    RoutedDistanceProvider,
    build_distance_provider,
    haversine_distance,
)
from pylocsync.estimator import KinematicsEstimator, derive_estimate
from pylocsync.exceptions import (
    DistanceUnavailableError,
    EstimationUnavailableError,
    LocSyncConfigError,
    LocSyncError,
    LocSyncTransportError,
    SampleUnavailableError,
)
from pylocsync.ingestion.replay import ReplaySensor
from pylocsync.ingestion.sensor import LocationSensor, sample_from_fix
from pylocsync.models import AccelerationComponents, DerivedEstimate, PositionSample, VelocityComponents
from pylocsync.receiver import LocationReceiver
from pylocsync.sender import LocationSender
from pylocsync.state.events import SyncError, SyncErrorKind, TickOutcome
from pylocsync.state.store import SenderState, SyncState

__all__ = [
    "__version__",
    "AccelerationComponents",
    "DegradingDistanceProvider",
    "DerivedEstimate",
    "DistanceProvider",
    "DistanceStrategy",
    "DistanceUnavailableError",
    "EstimationUnavailableError",
    "GreatCircleDistanceProvider",
    "KinematicsEstimator",
    "LocSyncClient",
    "LocSyncConfig",
    "LocSyncConfigError",
    "LocSyncError",
    "LocSyncTransportError",
    "LocationReceiver",
    "LocationSender",
    "LocationSensor",
    "PositionSample",
    "ReplaySensor",
    "RoutedDistanceProvider",
    "SampleUnavailableError",
    "SenderState",
    "SyncError",
    "SyncErrorKind",
    "SyncState",
    "TickOutcome",
    "VelocityComponents",
    "build_distance_provider",
    "derive_estimate",
    "haversine_distance",
    "sample_from_fix",
]
