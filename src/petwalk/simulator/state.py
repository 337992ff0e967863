# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""State dataclasses for the petWalk door simulator."""

from dataclasses import dataclass, field
from typing import Optional

from ..const import (
    CONFIG_FIELDS,
    DOOR_CLOSED,
    FIELD_BRIGHTNESS_SENSOR,
    FIELD_DOOR,
    FIELD_MOTION_IN,
    FIELD_MOTION_OUT,
    FIELD_RFID,
    FIELD_SYSTEM,
    FIELD_TIME,
    SYSTEM_ON,
)


def _default_modes() -> dict:
    return {
        FIELD_BRIGHTNESS_SENSOR: False,
        FIELD_MOTION_IN: True,
        FIELD_MOTION_OUT: True,
        FIELD_RFID: True,
        FIELD_TIME: False,
    }


@dataclass
class DeviceTimingConfig:
    """Configurable timing for the simulated door (all times in seconds)."""

    # Delay before every response is sent
    latency: float = 0.0

    # Time between an accepted door command and the door reporting it
    actuation_delay: float = 0.0


@dataclass
class DeviceSimulatorState:
    """State of the simulated door."""

    # Read vocabulary: "open" / "closed"
    door: str = DOOR_CLOSED
    system: str = SYSTEM_ON

    # Feature toggles served by /modes
    modes: dict = field(default_factory=_default_modes)

    # Fields the real firmware reports that the bridge does not model
    extra_modes: dict = field(default_factory=dict)

    timing: DeviceTimingConfig = field(default_factory=DeviceTimingConfig)

    # Queued status codes to answer with instead of handling, keyed by
    # (method, path)
    forced_failures: dict = field(default_factory=dict)

    def get_states(self) -> dict:
        """Body of GET /states."""
        return {FIELD_DOOR: self.door, FIELD_SYSTEM: self.system}

    def get_modes(self) -> dict:
        """Body of GET /modes."""
        return {**self.modes, **self.extra_modes}

    def set_mode(self, key: str, value: bool) -> None:
        """Set a known mode flag."""
        if key not in CONFIG_FIELDS:
            raise KeyError(key)
        self.modes[key] = bool(value)

    def queue_failure(self, method: str, path: str, status: int) -> None:
        """Answer the next ``method path`` request with ``status``."""
        self.forced_failures.setdefault((method.upper(), path), []).append(status)

    def pop_failure(self, method: str, path: str) -> Optional[int]:
        """Take the next queued failure for a route, if any."""
        queue = self.forced_failures.get((method.upper(), path))
        if not queue:
            return None
        return queue.pop(0)
