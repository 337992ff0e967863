# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Mapping from cached door state to HomeKit characteristic values.

Everything here is a pure function of a ``StateStore``; nothing touches the
network.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .const import (
    CURRENT_DOOR_CLOSED,
    CURRENT_DOOR_OPEN,
    FIELD_MOTION_IN,
    FIELD_MOTION_OUT,
    FIELD_RFID,
    TARGET_DOOR_CLOSED,
    TARGET_DOOR_OPEN,
)
from .state import DoorPosition, StateStore


class DoorSelector(Enum):
    """Which cached door record to read."""

    CURRENT = "current"
    TARGET = "target"


@dataclass(frozen=True)
class AccessorySnapshot:
    """Projected values pushed to the hub after every poll."""

    current_door_state: int
    target_door_state: int
    obstruction_detected: bool
    motion_in: bool
    motion_out: bool
    rfid: bool
    door_reachable: bool
    config_reachable: bool


def project_door_state(store: StateStore, selector: DoorSelector) -> int:
    """Map the selected record's door to CurrentDoorState OPEN/CLOSED.

    The device reports only open/closed, so HomeKit's opening, closing and
    stopped states are never produced.
    """
    state = store.current if selector is DoorSelector.CURRENT else store.target
    if state.door is DoorPosition.OPEN:
        return CURRENT_DOOR_OPEN
    return CURRENT_DOOR_CLOSED


def project_target_door_state(store: StateStore) -> int:
    """Map the target record's door to TargetDoorState OPEN/CLOSED."""
    if store.target.door is DoorPosition.OPEN:
        return TARGET_DOOR_OPEN
    return TARGET_DOOR_CLOSED


def target_from_characteristic(value: Any) -> Optional[DoorPosition]:
    """Map a TargetDoorState value from the hub to a door position.

    Returns None for anything that is not OPEN or CLOSED.
    """
    if isinstance(value, DoorPosition):
        return value
    if isinstance(value, bool):
        return None
    if value == TARGET_DOOR_OPEN:
        return DoorPosition.OPEN
    if value == TARGET_DOOR_CLOSED:
        return DoorPosition.CLOSED
    return None


def project_config_flag(store: StateStore, key: str) -> bool:
    """Cached value of a config flag."""
    return store.config.get(key)


def project_obstruction_detected() -> bool:
    """The door has no obstruction sensor."""
    return False


def project_snapshot(store: StateStore) -> AccessorySnapshot:
    """Project every hub-facing value at once."""
    return AccessorySnapshot(
        current_door_state=project_door_state(store, DoorSelector.CURRENT),
        target_door_state=project_target_door_state(store),
        obstruction_detected=project_obstruction_detected(),
        motion_in=project_config_flag(store, FIELD_MOTION_IN),
        motion_out=project_config_flag(store, FIELD_MOTION_OUT),
        rfid=project_config_flag(store, FIELD_RFID),
        door_reachable=store.current.last_call_ok,
        config_reachable=store.config.last_call_ok,
    )
