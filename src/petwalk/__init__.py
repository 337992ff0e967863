# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""petWalk pet door bridge.

Polls a petWalk door's local HTTP API, keeps a cached view of its state, and
exposes it to HomeKit as a garage door opener plus three switches.

Example usage:
    from petwalk import PetwalkAccessory, PetwalkClient

    accessory = PetwalkAccessory(PetwalkClient("192.168.1.50"))
    await accessory.refresh()
    print(accessory.current.door)
"""

from .accessory import ConfigAttributeHandler, PetwalkAccessory
from .client import Endpoint, PetwalkClient, create_session
from .exceptions import (
    ConfigError,
    DeviceConnectionError,
    DevicePayloadError,
    DeviceResponseError,
    PetwalkError,
)
from .projection import AccessorySnapshot, DoorSelector
from .state import ConfigState, DoorPosition, DoorState, StateStore, SystemPower

__all__ = [
    # Main classes
    "PetwalkAccessory",
    "PetwalkClient",
    "ConfigAttributeHandler",
    "create_session",
    "Endpoint",
    # State
    "StateStore",
    "DoorState",
    "ConfigState",
    "DoorPosition",
    "SystemPower",
    # Projection
    "AccessorySnapshot",
    "DoorSelector",
    # Errors
    "PetwalkError",
    "DeviceConnectionError",
    "DeviceResponseError",
    "DevicePayloadError",
    "ConfigError",
]
