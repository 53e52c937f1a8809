"""Client hub — the set of live WebSocket connections and fan-out to them."""

import logging
from typing import Any, Iterable

from websockets.asyncio.server import broadcast

from relayhub import protocol
from relayhub.registry import AgentRegistry
from relayhub.wire import Tick

logger = logging.getLogger("relayhub.hub")


class ClientHub:
    """Tracks dashboard and agent connections alike.

    Sends never await: messages are queued on each connection and closing
    connections are skipped.
    """

    def __init__(self) -> None:
        self.connections: set[Any] = set()
        self.registry = AgentRegistry()

    def add(self, connection: Any) -> None:
        self.connections.add(connection)

    def discard(self, connection: Any) -> None:
        self.connections.discard(connection)

    def _send(self, connections: Iterable[Any], message: str) -> None:
        broadcast(connections, message)

    def broadcast(self, message: str) -> None:
        self._send(self.connections, message)

    def deliver(self, connection: Any, message: str) -> None:
        self._send([connection], message)

    def send_snapshot(self, connection: Any) -> None:
        self.deliver(connection, protocol.update_agents(self.registry.snapshot()))

    def broadcast_snapshot(self) -> None:
        self.broadcast(protocol.update_agents(self.registry.snapshot()))

    def broadcast_tick(self, tick: Tick) -> None:
        self.broadcast(protocol.tick_data(tick.symbol, tick.bid, tick.ask))

    def broadcast_alert(self, raw: str) -> None:
        self.broadcast(protocol.price_alert(raw))

    def broadcast_log(self, text: str) -> None:
        self.broadcast(protocol.log_message(text))
