"""Terminal link — the ZeroMQ ROUTER endpoint the terminal bridge dials into."""

import logging
from typing import Awaitable, Callable

import zmq
import zmq.asyncio

from relayhub import wire

logger = logging.getLogger("relayhub.terminal")

EventCallback = Callable[[wire.InboundEvent], Awaitable[None]]
ErrorCallback = Callable[[wire.DecodeError], Awaitable[None]]


class TerminalLink:
    """Owns the single backend slot.

    The first identity that sends a frame is latched and every later send
    targets it, whether or not that peer is still connected. Only clear()
    releases the latch.
    """

    def __init__(
        self,
        host: str = "*",
        port: int = 5555,
        context: zmq.asyncio.Context | None = None,
    ):
        self.host = host
        self.port = port
        self.identity: bytes | None = None
        self._context = context or zmq.asyncio.Context.instance()
        self._socket: zmq.asyncio.Socket | None = None
        self._strangers: set[bytes] = set()

    @property
    def endpoint(self) -> str:
        return f"tcp://{self.host}:{self.port}"

    @property
    def connected(self) -> bool:
        return self.identity is not None

    def bind(self) -> None:
        """Bind the ROUTER socket. A ZMQError here is fatal to the process."""
        sock = self._context.socket(zmq.ROUTER)
        sock.setsockopt(zmq.LINGER, 0)
        try:
            sock.bind(self.endpoint)
        except zmq.ZMQError:
            sock.close()
            raise
        self._socket = sock
        logger.info("Terminal link listening on %s", self.endpoint)

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def clear(self) -> None:
        """Release the latched identity."""
        if self.identity is not None:
            logger.info("Released terminal identity %s", self.identity.hex())
        self.identity = None
        self._strangers.clear()

    def on_frame(self, sender: bytes, raw: bytes | str) -> wire.InboundEvent:
        """Latch the sender if the slot is empty, then decode the frame.

        Raises wire.DecodeError for malformed frames; the latch still happens.
        """
        if self.identity is None:
            self.identity = sender
            logger.info("Terminal connected with identity: %s", sender.hex())
        elif sender != self.identity and sender not in self._strangers:
            self._strangers.add(sender)
            logger.warning(
                "Frame from second terminal %s; replies still go to %s",
                sender.hex(),
                self.identity.hex(),
            )
        return wire.decode_frame(raw)

    async def send(self, text: str) -> bool:
        """Send text to the latched terminal. Returns False if none is latched."""
        if self.identity is None or self._socket is None:
            return False
        await self._socket.send_multipart([self.identity, text.encode("utf-8")])
        logger.info("Sent to terminal: %s", text)
        return True

    async def run(
        self, on_event: EventCallback, on_error: ErrorCallback
    ) -> None:
        """Receive frames forever, handing each decoded event to on_event."""
        if self._socket is None:
            raise RuntimeError("TerminalLink.bind() must be called before run()")

        while True:
            frames = await self._socket.recv_multipart()
            sender, payload = frames[0], frames[-1]
            try:
                event = self.on_frame(sender, payload)
            except wire.DecodeError as e:
                logger.warning("Dropping malformed frame: %s", e)
                await on_error(e)
                continue
            logger.debug("Received from terminal: %r", event)
            await on_event(event)
