# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""CLI for running the petWalk HomeKit bridge."""

import asyncio
import logging
import os
import signal
import sys

from pyhap.accessory_driver import AccessoryDriver

from .client import create_session
from .config import DeviceConfig, PetwalkConfig, load_config, parse_config
from .const import DEFAULT_CONFIG_FILE, DEFAULT_PORT
from .exceptions import ConfigError
from .homekit import build_bridge

logger = logging.getLogger(__name__)


async def run_bridge(config: PetwalkConfig) -> None:
    """Serve every configured door over HomeKit until SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()
    session = create_session(timeout=config.timeout)

    driver_kwargs = {
        "port": config.bridge.port,
        "persist_file": config.bridge.persist_file,
        "loop": loop,
    }
    if config.bridge.pincode:
        driver_kwargs["pincode"] = config.bridge.pincode.encode("utf-8")
    driver = AccessoryDriver(**driver_kwargs)
    driver.add_accessory(build_bridge(driver, config, session=session))

    stop_event = asyncio.Event()

    def _shutdown():
        logger.info("Shutting down...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown)
        except NotImplementedError:
            pass

    try:
        await driver.async_start()
        logger.info(
            f"HomeKit bridge '{config.bridge.name}' running on port {config.bridge.port} "
            f"with {len(config.devices)} door(s)"
        )
        await stop_event.wait()
    finally:
        await driver.async_stop()
        await session.close()


def _parse_device_arg(value: str) -> DeviceConfig:
    """Parse HOST, HOST:PORT, an IPv6 literal, or [IPv6]:PORT."""
    if value.startswith("["):
        host, _, rest = value[1:].partition("]")
        if rest and not rest.startswith(":"):
            raise ValueError(value)
        port = rest[1:]
    elif value.count(":") > 1:
        host, port = value, ""
    else:
        host, _, port = value.partition(":")
    if not host:
        raise ValueError(value)
    return DeviceConfig(
        name=f"petWalk {host}",
        ip_address=host,
        port=int(port) if port else DEFAULT_PORT,
    )


def main():
    """CLI entry point for the bridge."""
    import argparse

    parser = argparse.ArgumentParser(
        description="petWalk HomeKit bridge - expose petWalk doors to Apple Home"
    )
    parser.add_argument(
        "--config", "-c",
        default=DEFAULT_CONFIG_FILE,
        help=f"YAML configuration file (default: {DEFAULT_CONFIG_FILE})"
    )
    parser.add_argument(
        "--device",
        action="append",
        dest="devices",
        metavar="HOST[:PORT]",
        help="Bridge a door at this address. Can be specified multiple times; "
             "added to the doors in the configuration file, if any. "
             "Write IPv6 addresses with a port as [ADDR]:PORT."
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    extra_devices = []
    for value in args.devices or []:
        try:
            extra_devices.append(_parse_device_arg(value))
        except ValueError:
            parser.error(f"Invalid device address '{value}', expected HOST[:PORT]")

    try:
        if extra_devices and not os.path.exists(args.config):
            config = parse_config({}, require_devices=False)
        else:
            config = load_config(args.config, require_devices=not extra_devices)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    config.devices.extend(extra_devices)

    try:
        asyncio.run(run_bridge(config))
    except KeyboardInterrupt:
        print("\nBridge stopped.")


if __name__ == "__main__":
    main()
