"""
Main command-line interface for pyscp.

This script provides a CLI to interact with a Yamaha console over SCP.
"""

import argparse
import asyncio
import logging

from pyscp.catalog import load_catalog_for_model
from pyscp.config import SCP_PORT, ConsoleConfig
from pyscp.console import ScpConsole
from pyscp.families import FAMILIES
from pyscp.listener import LoggingListener


def show_commands(model: str):
    """Print the ordered command listing for a console model."""
    catalog = load_catalog_for_model(model)
    for label, action_id in catalog.command_listing():
        print(f"{label:40s} {action_id}")


async def get_value(config: ConsoleConfig, token: str, x: int, y: int):
    """Query one parameter and print what the console reports."""
    print(f"Connecting to {config.model} console at {config.host}:{config.port}...")

    console = ScpConsole(config)
    await console.async_connect()

    # Wait for the identity query to complete
    await asyncio.sleep(1)
    if console.product_name:
        print(f"Connected to {console.product_name}")

    if console.get(token, {"X": x, "Y": y}) is None:
        print(f"Error: unknown or unsupported parameter '{token}'")
        console.close()
        return

    await asyncio.sleep(2)
    value = console.query(token, x, y)
    print(f"{token} [{x}][{y}] = {value if value is not None else 'no response'}")
    console.close()


async def set_value(config: ConsoleConfig, token: str, x: int, y: int, value: str):
    """Set one parameter."""
    print(f"Connecting to {config.model} console at {config.host}:{config.port}...")

    console = ScpConsole(config)
    await console.async_connect()

    # Wait a bit for the current value to arrive, Toggle needs it
    await asyncio.sleep(1)
    console.get(token, {"X": x, "Y": y})
    await asyncio.sleep(1)

    command = console.set(token, {"X": x, "Y": y, "Val": value})
    if command is None:
        print(f"Error: unknown or unsupported parameter '{token}'")
    else:
        print(f"Sending: {command}")
        await console.wait_until_sent()

    console.close()
    print("Done")


async def watch(config: ConsoleConfig, seconds: float):
    """Log everything the console reports for a while."""
    console = ScpConsole(config)
    console.register_listener(LoggingListener())
    await console.async_connect()
    await asyncio.sleep(seconds)
    console.close()


def main():
    parser = argparse.ArgumentParser(description="Control Yamaha consoles over SCP")
    parser.add_argument("--host", default="192.168.0.128", help="Console hostname or IP (default: 192.168.0.128)")
    parser.add_argument("--port", type=int, default=SCP_PORT, help=f"SCP port (default: {SCP_PORT})")
    parser.add_argument("--model", default="CL/QL", choices=list(FAMILIES), help="Console type (default: CL/QL)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("commands", help="List the parameters of the console model")

    get_parser = subparsers.add_parser("get", help="Query a parameter")
    get_parser.add_argument("token", help="Parameter token, e.g. MIXER_Current/InCh/Fader/Level")
    get_parser.add_argument("x", type=int, nargs="?", default=1, help="Channel / X (1-based)")
    get_parser.add_argument("y", type=int, nargs="?", default=1, help="Y (1-based)")

    set_parser = subparsers.add_parser("set", help="Set a parameter")
    set_parser.add_argument("token", help="Parameter token, e.g. MIXER_Current/InCh/Fader/On")
    set_parser.add_argument("x", type=int, help="Channel / X (1-based)")
    set_parser.add_argument("y", type=int, help="Y (1-based)")
    set_parser.add_argument("value", help="Value, or 'Toggle' for on/off parameters")

    watch_parser = subparsers.add_parser("watch", help="Log console notifications")
    watch_parser.add_argument("seconds", type=float, help="How long to watch")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    config = ConsoleConfig(host=args.host, port=args.port, model=args.model)

    if args.command == "commands":
        show_commands(args.model)
    elif args.command == "get":
        asyncio.run(get_value(config, args.token, args.x, args.y))
    elif args.command == "set":
        asyncio.run(set_value(config, args.token, args.x, args.y, args.value))
    elif args.command == "watch":
        asyncio.run(watch(config, args.seconds))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
