"""Session generations for the producer and consumer loops."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SessionGeneration(BaseModel):
    """Identity of one ``start`` of a session.

    Every start (and every reset) creates a new generation with a strictly
    larger number. Work scheduled under an older generation is discarded
    when it completes.

    Parameters
    ----------
    number : int
        Monotonically increasing generation counter.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    number: int = 0

    def next(self) -> SessionGeneration:
        return SessionGeneration(number=self.number + 1)

    def matches(self, other: SessionGeneration) -> bool:
        return self.number == other.number
