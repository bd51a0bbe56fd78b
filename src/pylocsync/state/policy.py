"""Sample acceptance policy.

This module contains *no* payload parsing; samples arriving here are already
validated models.
"""

from __future__ import annotations

from pylocsync._constants import MS_PER_SECOND
from pylocsync.models.sample import PositionSample


def is_new_sample(held: PositionSample | None, incoming: PositionSample) -> bool:
    """Whether *incoming* should shift the retained sample slots.

    A sample is new when its timestamp differs from the one currently held.
    Identity is keyed on the timestamp alone: the broker re-serves the same
    sample until the producer overwrites it.
    """
    if held is None:
        return True
    return incoming.timestamp != held.timestamp


def elapsed_seconds(previous: PositionSample, current: PositionSample) -> float:
    """Signed time between two samples in seconds."""
    return (current.timestamp - previous.timestamp) / MS_PER_SECOND
