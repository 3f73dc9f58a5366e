"""
Trigger dispatch for received OSC datagrams.

Each datagram is decoded, checked against the trigger contract and, on a
match, the drag action is run on a worker thread with the trigger config as
it is at that moment.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from ..actions import DragAction
from ..config import TriggerConfig
from ..errors import ActionError, DecodeError
from ..status import StatusCallback, StatusSeverity, log_status
from ..udp_listener.osc_parser import is_bundle, is_trigger, parse_osc_message

logger = logging.getLogger(__name__)


class TriggerDispatcher:
    """
    Decodes datagrams and runs the drag action on trigger messages.

    handle_packet() is meant to be used as the packet callback of a
    UDPListener. It never raises: decode errors are logged and counted,
    action errors are reported through the status callback.
    """

    def __init__(
        self,
        config_provider: Callable[[], TriggerConfig],
        action: DragAction,
        status_callback: Optional[StatusCallback] = None,
    ):
        """
        Args:
            config_provider: Returns the current trigger config; called once per trigger
            action: Blocking drag action, run off the event loop
            status_callback: Receives action failures (default: log them)
        """
        self.config_provider = config_provider
        self.action = action
        self.status_callback = status_callback or log_status

        self.stats = {
            "packets_handled": 0,
            "parse_errors": 0,
            "bundles_ignored": 0,
            "triggers": 0,
            "action_errors": 0,
        }

    async def handle_packet(self, data: bytes, addr: Optional[tuple] = None) -> None:
        """
        Decode one datagram and dispatch the drag action if it is a trigger.

        Args:
            data: Raw packet data
            addr: Source address tuple (only used for logging)
        """
        self.stats["packets_handled"] += 1

        if is_bundle(data):
            logger.debug(f"Ignoring OSC bundle from {addr}")
            self.stats["bundles_ignored"] += 1
            return

        try:
            msg = parse_osc_message(data)
        except DecodeError as e:
            logger.warning(f"Failed to parse OSC message from {addr}: {e}")
            self.stats["parse_errors"] += 1
            return

        logger.debug(f"[OSC] Address: {msg.address} TypeTag: {msg.type_tags}")

        if not is_trigger(msg):
            return

        await self._run_action()

    async def _run_action(self) -> None:
        """Run the drag action with the config as it is right now."""
        config = self.config_provider()
        self.stats["triggers"] += 1
        logger.info(
            f"Trigger received: dragging '{config.window_name}' for {config.drag_duration_ms} ms"
        )

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, self.action.perform_drag, config.window_name, config.drag_duration_ms
            )
        except ActionError as e:
            self.stats["action_errors"] += 1
            logger.error(f"Drag action failed for '{config.window_name}': {e}")
            self._report(str(e), StatusSeverity.ERROR)
        except Exception as e:
            self.stats["action_errors"] += 1
            logger.exception(f"Unexpected error in drag action: {e}")
            self._report(f"Error: {e}", StatusSeverity.ERROR)

    def _report(self, message: str, severity: StatusSeverity) -> None:
        try:
            self.status_callback(message, severity)
        except Exception as e:
            logger.error(f"Status callback failed: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get dispatcher statistics."""
        return dict(self.stats)
