"""Internal constants shared across the library."""

BROKER_URL = "http://localhost:3001"
LOCATION_PATH = "/location"
USER_AGENT = "pylocsync/1"

#: Mean Earth radius used by the haversine formula, in meters.
EARTH_RADIUS_M = 6_371_000.0

#: Consumer poll interval in seconds.
DEFAULT_POLL_INTERVAL = 3.0

#: Upper bound for a single broker or routing request, in seconds.
DEFAULT_REQUEST_TIMEOUT = 10.0

MS_PER_SECOND = 1000.0
MPS_TO_KMH = 3.6
