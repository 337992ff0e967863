# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Exceptions raised by the petWalk client and configuration loader."""
from __future__ import annotations

from typing import Any


class PetwalkError(Exception):
    """Base class for all petWalk errors."""


class DeviceConnectionError(PetwalkError):
    """The door could not be reached (timeout, refused, DNS, redirects)."""


class DeviceResponseError(PetwalkError):
    """The door answered with an unexpected HTTP status."""

    def __init__(self, status: int, body: Any = None):
        self.status = status
        self.body = body
        super().__init__(f"Unexpected response: status={status} body={body!r}")


class DevicePayloadError(PetwalkError):
    """The door's response body was missing fields or malformed."""


class ConfigError(PetwalkError):
    """The bridge configuration is invalid."""
