# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Bridge configuration file loading.

The bridge reads a YAML file such as:

    bridge:
      name: petWalk Bridge
      port: 51826
      persist_file: petwalk.state
      pincode: "031-45-154"
    poll_interval: 0.5
    timeout: 3.0
    devices:
      - name: Pet Door
        ip_address: 192.168.1.50
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from .const import (
    DEFAULT_BRIDGE_NAME,
    DEFAULT_HAP_PORT,
    DEFAULT_PERSIST_FILE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_SERIAL_NUMBER,
    DEFAULT_TIMEOUT,
)
from .exceptions import ConfigError


@dataclass
class DeviceConfig:
    """One door to bridge."""

    name: str
    ip_address: str
    port: int = DEFAULT_PORT
    serial_number: str = DEFAULT_SERIAL_NUMBER


@dataclass
class BridgeSettings:
    """HomeKit bridge identity and pairing."""

    name: str = DEFAULT_BRIDGE_NAME
    port: int = DEFAULT_HAP_PORT
    persist_file: str = DEFAULT_PERSIST_FILE
    pincode: Optional[str] = None


@dataclass
class PetwalkConfig:
    """Complete bridge configuration."""

    devices: list[DeviceConfig] = field(default_factory=list)
    bridge: BridgeSettings = field(default_factory=BridgeSettings)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT


def _positive_number(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"'{key}' must be a positive number, got {value!r}")
    return float(value)


def _port(data: dict[str, Any], where: str, default: int) -> int:
    value = data.get("port", default)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value < 65536:
        raise ConfigError(f"'{where}.port' must be a TCP port, got {value!r}")
    return value


def _parse_device(index: int, data: Any) -> DeviceConfig:
    where = f"devices[{index}]"
    if not isinstance(data, dict):
        raise ConfigError(f"'{where}' must be a mapping")
    ip_address = data.get("ip_address")
    if not ip_address or not isinstance(ip_address, str):
        raise ConfigError(f"Missing '{where}.ip_address' in configuration")
    return DeviceConfig(
        name=str(data.get("name") or f"petWalk {ip_address}"),
        ip_address=ip_address,
        port=_port(data, where, DEFAULT_PORT),
        serial_number=str(data.get("serial_number", DEFAULT_SERIAL_NUMBER)),
    )


def _parse_bridge(data: Any) -> BridgeSettings:
    if data is None:
        return BridgeSettings()
    if not isinstance(data, dict):
        raise ConfigError("'bridge' must be a mapping")
    pincode = data.get("pincode")
    return BridgeSettings(
        name=str(data.get("name", DEFAULT_BRIDGE_NAME)),
        port=_port(data, "bridge", DEFAULT_HAP_PORT),
        persist_file=str(data.get("persist_file", DEFAULT_PERSIST_FILE)),
        pincode=str(pincode) if pincode is not None else None,
    )


def parse_config(data: Any, *, require_devices: bool = True) -> PetwalkConfig:
    """Validate an already-decoded configuration mapping.

    Raises:
        ConfigError: If a required key is missing or a value is invalid.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    devices = data.get("devices") or []
    if not isinstance(devices, list):
        raise ConfigError("'devices' must be a list")
    if require_devices and not devices:
        raise ConfigError("Missing 'devices' in configuration")

    return PetwalkConfig(
        devices=[_parse_device(i, d) for i, d in enumerate(devices)],
        bridge=_parse_bridge(data.get("bridge")),
        poll_interval=_positive_number(data, "poll_interval", DEFAULT_POLL_INTERVAL),
        timeout=_positive_number(data, "timeout", DEFAULT_TIMEOUT),
    )


def load_config(path: str, *, require_devices: bool = True) -> PetwalkConfig:
    """Load and validate a YAML configuration file.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or fails
            validation.
    """
    if not os.path.exists(path):
        raise ConfigError(f"Configuration file '{path}' not found")
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in '{path}': {e}") from e
    return parse_config(data, require_devices=require_devices)
