"""
UDP listener service for receiving OSC messages from VRChat.

Binds a UDP port, receives datagrams on a background task and hands each one
to a packet callback on its own task, so a slow callback never stalls the
receive loop.
"""

import asyncio
import logging
import socket
from concurrent.futures import Future
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from ..constants import ListenerConstants
from ..errors import AlreadyRunningError, BindError, TransportError
from ..status import StatusCallback, StatusSeverity, log_status


logger = logging.getLogger(__name__)

PacketCallback = Callable[[bytes, tuple], Awaitable[None]]


class ListenerState(Enum):
    """Lifecycle state of a UDPListener."""
    STOPPED = "stopped"
    RUNNING = "running"


class UDPListener:
    """
    Async UDP listener for OSC messages.

    The listener is a two-state machine: start() moves it from STOPPED to
    RUNNING and stop() (or the receive loop ending on its own) moves it back.
    start() and stop() must not be called concurrently on the same instance.

    Every received datagram is passed to packet_callback(data, addr) on an
    independent task. Datagrams are not processed in any guaranteed order.
    """

    def __init__(
        self,
        packet_callback: PacketCallback,
        status_callback: Optional[StatusCallback] = None,
        host: str = ListenerConstants.DEFAULT_HOST,
    ):
        """
        Initialize UDP listener.

        Args:
            packet_callback: Async callback for each datagram: callback(data, addr)
            status_callback: Receives status updates (default: log them)
            host: Host to bind to (default: 0.0.0.0 for all interfaces)
        """
        self.host = host
        self.port: Optional[int] = None
        self.packet_callback = packet_callback
        self.status_callback = status_callback or log_status
        self.socket: Optional[socket.socket] = None
        self.last_error: Optional[TransportError] = None

        self._state = ListenerState.STOPPED
        self._stopping = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._packet_tasks: Set[asyncio.Task] = set()

        # Statistics
        self.stats = {
            "packets_received": 0,
            "packets_dispatched": 0,
            "callback_errors": 0,
        }

    @property
    def state(self) -> ListenerState:
        return self._state

    def is_running(self) -> bool:
        """Check if the listener is running."""
        return self._state is ListenerState.RUNNING

    async def start(self, port: int) -> None:
        """
        Bind the UDP port and start the receive loop.

        Args:
            port: UDP port to listen on (0 picks a free port)

        Raises:
            AlreadyRunningError: If the listener is already running
            BindError: If the port is invalid or cannot be bound
        """
        if self.is_running():
            raise AlreadyRunningError(self.port)

        if (
            isinstance(port, bool)
            or not isinstance(port, int)
            or not ListenerConstants.MIN_PORT <= port <= ListenerConstants.MAX_PORT
        ):
            error = BindError(port, "port must be an integer between 0 and 65535")
            self._report(f"Error: {error}", StatusSeverity.ERROR)
            raise error

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.host, port))
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            error = BindError(port, e.strerror or str(e))
            logger.error(f"UDP listener failed to bind {self.host}:{port}: {e}")
            self._report(f"Error: {error}", StatusSeverity.ERROR)
            raise error from e

        self.socket = sock
        self.port = sock.getsockname()[1]
        self.last_error = None
        self._stopping = False
        self._loop = asyncio.get_running_loop()
        self._state = ListenerState.RUNNING
        self._receive_task = asyncio.create_task(
            self._receive_loop(sock), name=f"udp-listener-{self.port}"
        )

        logger.info(f"UDP listener started on {self.host}:{self.port}")
        self._report("Status: Running", StatusSeverity.INFO)

    async def stop(self) -> None:
        """Stop the UDP listener. Does nothing if it is not running."""
        task, self._receive_task = self._receive_task, None

        if not self.is_running():
            return

        self._stopping = True
        self._state = ListenerState.STOPPED

        # Cancel the receive loop first so the socket is no longer registered
        # with the event loop when it is closed
        if task and not task.done():
            task.cancel()
            try:
                await asyncio.wait_for(task, timeout=ListenerConstants.STOP_TIMEOUT_SECONDS)
            except asyncio.CancelledError:
                pass
            except asyncio.TimeoutError:
                logger.warning("Receive loop did not exit in time")

        self._close_socket()

        if self._packet_tasks:
            logger.debug(f"{len(self._packet_tasks)} packet tasks still in flight at stop")

        logger.info("UDP listener stopped")
        self._report("Status: Stopped", StatusSeverity.INFO)

    def request_stop_threadsafe(self) -> Optional[Future]:
        """
        Schedule stop() on the listener's event loop from another thread.

        Returns:
            concurrent.futures.Future for the stop, or None if not running
        """
        if self._loop is None or not self.is_running():
            return None
        return asyncio.run_coroutine_threadsafe(self.stop(), self._loop)

    async def _receive_loop(self, sock: socket.socket) -> None:
        """Main receive loop."""
        loop = asyncio.get_running_loop()

        try:
            while True:
                try:
                    data, addr = await loop.sock_recvfrom(sock, ListenerConstants.RECEIVE_BUFFER_SIZE)
                except asyncio.CancelledError:
                    logger.debug("Receive loop cancelled")
                    break
                except OSError as e:
                    if self._is_shutdown_error(e, sock):
                        logger.debug(f"Receive interrupted by shutdown: {e}")
                        break
                    self.last_error = TransportError(str(e))
                    logger.error(f"Error in receive loop: {e}")
                    self._report(f"Error: {e}", StatusSeverity.ERROR)
                    break

                self.stats["packets_received"] += 1
                self._spawn_packet_task(data, addr)
        finally:
            self._state = ListenerState.STOPPED
            self._close_socket()

    def _spawn_packet_task(self, data: bytes, addr: tuple) -> None:
        """Process a datagram on its own task without waiting for it."""
        task = asyncio.create_task(self._process_packet(data, addr))
        self._packet_tasks.add(task)
        task.add_done_callback(self._packet_tasks.discard)

    async def _process_packet(self, data: bytes, addr: tuple) -> None:
        """
        Run the packet callback for one datagram.

        Args:
            data: Raw packet data
            addr: Source address tuple
        """
        try:
            await self.packet_callback(data, addr)
            self.stats["packets_dispatched"] += 1
        except Exception as e:
            logger.exception(f"Failed to process packet from {addr}: {e}")
            self.stats["callback_errors"] += 1

    def _is_shutdown_error(self, error: OSError, sock: socket.socket) -> bool:
        """Check whether a receive error is the result of stop() closing the socket."""
        return self._stopping or sock.fileno() == -1

    def _close_socket(self) -> None:
        sock, self.socket = self.socket, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Error closing UDP socket: {e}")

    def _report(self, message: str, severity: StatusSeverity) -> None:
        try:
            self.status_callback(message, severity)
        except Exception as e:
            logger.error(f"Status callback failed: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get listener statistics.

        Returns:
            dict: Statistics including packets received, dispatched and failed
        """
        return {
            **self.stats,
            "pending_tasks": len(self._packet_tasks),
        }
