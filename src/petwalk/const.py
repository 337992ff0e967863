# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Constants for the petWalk HTTP API and the HomeKit bridge."""

# Device API
DEFAULT_PORT = 8080
ENDPOINT_STATES = "states"
ENDPOINT_MODES = "modes"

METHOD_GET = "GET"
METHOD_PUT = "PUT"

STATUS_OK = 200
STATUS_ACCEPTED = 202

CONTENT_TYPE_JSON = "application/json"

# HTTP client limits
DEFAULT_TIMEOUT = 3.0
MAX_REDIRECTS = 10
MAX_CONTENT_LENGTH = 50 * 1000 * 1000

# Poll loop
DEFAULT_POLL_INTERVAL = 0.5

# /states fields
FIELD_DOOR = "door"
FIELD_SYSTEM = "system"
FIELD_LAST_CALL_OK = "lastCallOk"

# Door values (read vocabulary)
DOOR_OPEN = "open"
DOOR_CLOSED = "closed"

# Door values (write vocabulary)
DOOR_CMD_OPEN = "open"
DOOR_CMD_CLOSE = "close"

SYSTEM_ON = "on"
SYSTEM_OFF = "off"

# /modes fields
FIELD_BRIGHTNESS_SENSOR = "brightnessSensor"
FIELD_MOTION_IN = "motion_in"
FIELD_MOTION_OUT = "motion_out"
FIELD_RFID = "rfid"
FIELD_TIME = "time"

CONFIG_FIELDS = (
    FIELD_BRIGHTNESS_SENSOR,
    FIELD_MOTION_IN,
    FIELD_MOTION_OUT,
    FIELD_RFID,
    FIELD_TIME,
)

# HomeKit characteristic values
CURRENT_DOOR_OPEN = 0
CURRENT_DOOR_CLOSED = 1
TARGET_DOOR_OPEN = 0
TARGET_DOOR_CLOSED = 1

# HomeKit accessory information
MANUFACTURER = "petWalk"
MODEL = "petWalk"
DEFAULT_SERIAL_NUMBER = "Default-Serial"

SWITCH_INBOUND_ENTRY = "Inbound Entry"
SWITCH_OUTBOUND_ENTRY = "Outbound Entry"
SWITCH_RFID_DETECTION = "RFID Detection"

# Hub switch name -> config field it toggles
CONFIG_SWITCHES = (
    (SWITCH_INBOUND_ENTRY, FIELD_MOTION_IN, "MIESW"),
    (SWITCH_OUTBOUND_ENTRY, FIELD_MOTION_OUT, "MOESW"),
    (SWITCH_RFID_DETECTION, FIELD_RFID, "RFIDSW"),
)

# HAP bridge defaults
DEFAULT_BRIDGE_NAME = "petWalk Bridge"
DEFAULT_HAP_PORT = 51826
DEFAULT_PERSIST_FILE = "petwalk.state"
DEFAULT_CONFIG_FILE = "petwalk.yaml"
