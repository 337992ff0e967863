# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Cached door state for one petWalk accessory.

The store keeps three records: the state last confirmed by the door
(``current``), the state the user asked for (``target``) and the door's
feature toggles (``config``). Records are frozen dataclasses and are only ever
replaced whole, so a reader never observes a half-updated record.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .const import (
    CONFIG_FIELDS,
    DOOR_CLOSED,
    DOOR_CMD_CLOSE,
    DOOR_CMD_OPEN,
    DOOR_OPEN,
    FIELD_BRIGHTNESS_SENSOR,
    FIELD_DOOR,
    FIELD_LAST_CALL_OK,
    FIELD_SYSTEM,
    SYSTEM_OFF,
    SYSTEM_ON,
)
from .exceptions import DevicePayloadError


class DoorPosition(Enum):
    """Door position as reported by the device."""

    OPEN = DOOR_OPEN
    CLOSED = DOOR_CLOSED

    @classmethod
    def from_device(cls, value: str) -> "DoorPosition":
        """Convert a device door string to enum."""
        if value == DOOR_OPEN:
            return cls.OPEN
        return cls.CLOSED

    @property
    def write_value(self) -> str:
        """The value the device expects in a PUT /states body.

        The device reads back "closed" but only accepts "close" on write.
        """
        return DOOR_CMD_OPEN if self is DoorPosition.OPEN else DOOR_CMD_CLOSE


class SystemPower(Enum):
    """Whether the door's motor system is enabled."""

    ON = SYSTEM_ON
    OFF = SYSTEM_OFF

    @classmethod
    def from_device(cls, value: str) -> "SystemPower":
        """Convert a device system string to enum."""
        if value == SYSTEM_OFF:
            return cls.OFF
        return cls.ON


@dataclass(frozen=True)
class DoorState:
    """Door position and system power, plus freshness of the last exchange."""

    door: DoorPosition = DoorPosition.OPEN
    system: SystemPower = SystemPower.ON
    last_call_ok: bool = True

    @classmethod
    def from_device(cls, data: Any) -> "DoorState":
        """Create from a GET /states response body.

        Raises:
            DevicePayloadError: If ``door`` or ``system`` is missing or empty.
        """
        if not isinstance(data, dict) or not data.get(FIELD_DOOR) or not data.get(FIELD_SYSTEM):
            raise DevicePayloadError(f"Door status response missing door/system: {data!r}")
        return cls(
            door=DoorPosition.from_device(data[FIELD_DOOR]),
            system=SystemPower.from_device(data[FIELD_SYSTEM]),
            last_call_ok=True,
        )

    def to_device(self) -> dict[str, Any]:
        """Convert to a PUT /states body, using the write vocabulary."""
        return {
            FIELD_DOOR: self.door.write_value,
            FIELD_SYSTEM: self.system.value,
            FIELD_LAST_CALL_OK: self.last_call_ok,
        }

    def stale(self) -> "DoorState":
        """Return a copy flagged as not confirmed by the last exchange."""
        return replace(self, last_call_ok=False)


# Wire key -> dataclass attribute
_CONFIG_ATTRS = {
    FIELD_BRIGHTNESS_SENSOR: "brightness_sensor",
    **{key: key for key in CONFIG_FIELDS if key != FIELD_BRIGHTNESS_SENSOR},
}


@dataclass(frozen=True)
class ConfigState:
    """The door's feature toggles.

    The key set is fixed; keys the device adds are ignored and keys it omits
    keep their cached value.
    """

    brightness_sensor: bool = False
    motion_in: bool = False
    motion_out: bool = True
    rfid: bool = False
    time: bool = False
    last_call_ok: bool = True

    def get(self, key: str) -> bool:
        """Return a flag by its wire key (e.g. ``motion_in``)."""
        return getattr(self, _CONFIG_ATTRS[key])

    def replace_flag(self, key: str, value: bool) -> "ConfigState":
        """Return a copy with one flag changed, by wire key."""
        return replace(self, **{_CONFIG_ATTRS[key]: bool(value)})

    def merge_device(self, data: dict[str, Any]) -> "ConfigState":
        """Return a copy updated from a GET /modes response body.

        Raises:
            DevicePayloadError: If a known key carries a non-boolean value.
        """
        changes = {}
        for key in CONFIG_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if not isinstance(value, bool):
                raise DevicePayloadError(f"Config field {key} is not a boolean: {value!r}")
            changes[_CONFIG_ATTRS[key]] = value
        return replace(self, last_call_ok=True, **changes)

    def to_device(self) -> dict[str, bool]:
        """Convert to a PUT /modes body containing every config key."""
        return {key: self.get(key) for key in CONFIG_FIELDS}

    def diff(self, other: "ConfigState") -> list[tuple[str, bool, bool]]:
        """List ``(key, old, new)`` for each flag that differs from ``other``."""
        return [
            (key, self.get(key), other.get(key))
            for key in CONFIG_FIELDS
            if self.get(key) != other.get(key)
        ]

    def stale(self) -> "ConfigState":
        """Return a copy flagged as not confirmed by the last exchange."""
        return replace(self, last_call_ok=False)


@dataclass
class StateStore:
    """The three records owned by one accessory."""

    current: DoorState = field(default_factory=DoorState)
    target: DoorState = field(default_factory=DoorState)
    config: ConfigState = field(default_factory=ConfigState)
