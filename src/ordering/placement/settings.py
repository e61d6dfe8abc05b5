"""Placement tuning read from the environment.

    PLACEMENT_LOCK_TIMEOUT   seconds a reservation waits for its stock record (2.0)
    PLACEMENT_MAX_ATTEMPTS   placements tried per request on contention      (3)
    PLACEMENT_RETRY_BACKOFF  seconds slept before retry n, times n           (0.05)
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class PlacementSettings:
    lock_timeout: float = 2.0
    max_attempts: int = 3
    retry_backoff: float = 0.05

    def __post_init__(self):
        if self.lock_timeout <= 0:
            raise ValueError(f"lock_timeout must be positive, got {self.lock_timeout}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.retry_backoff < 0:
            raise ValueError(f"retry_backoff cannot be negative, got {self.retry_backoff}")

    @classmethod
    def from_env(cls, environ=None) -> "PlacementSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        try:
            return cls(
                lock_timeout=float(env.get("PLACEMENT_LOCK_TIMEOUT", defaults.lock_timeout)),
                max_attempts=int(env.get("PLACEMENT_MAX_ATTEMPTS", defaults.max_attempts)),
                retry_backoff=float(env.get("PLACEMENT_RETRY_BACKOFF", defaults.retry_backoff)),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid placement settings: {exc}") from exc
