#!/usr/bin/env python3
"""
Manual trigger sender - sends the avatar parameter message to a running
ton-trigger listener.

Usage:
    python3 tools/send_trigger.py [PORT] [--false] [--host=HOST]
"""

import socket
import sys

from ton_trigger.constants import ConfigDefaults, OSCConstants
from ton_trigger.udp_listener.osc_builder import build_trigger_message


def main():
    host = "127.0.0.1"
    port = ConfigDefaults.PORT
    value = True

    for arg in sys.argv[1:]:
        if arg == "--false":
            value = False
        elif arg.startswith("--host="):
            host = arg.split("=", 1)[1]
        else:
            port = int(arg)

    message = build_trigger_message(value)

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.sendto(message, (host, port))
    finally:
        sock.close()

    print(f"→ Sent {OSCConstants.TRIGGER_ADDRESS} {'T' if value else 'F'} to {host}:{port} ({len(message)} bytes)")
    if value:
        print("The listener should start the drag now.")
    else:
        print("False values are ignored; nothing should happen.")


if __name__ == "__main__":
    main()
