"""Message router — dispatches terminal events and connection events."""

import logging
from typing import Any

from relayhub import protocol, wire
from relayhub.hub import ClientHub
from relayhub.terminal import TerminalLink

logger = logging.getLogger("relayhub.router")

NOT_CONNECTED = "Error: terminal bridge not connected."


class MessageRouter:
    """The dispatch core between the terminal link and the client hub.

    Handlers never block between a registry mutation and the snapshot
    broadcast that follows it, so both happen atomically on the event loop.
    """

    def __init__(self, hub: ClientHub, terminal: TerminalLink):
        self.hub = hub
        self.terminal = terminal
        self.registry = hub.registry

    # ── Terminal side ─────────────────────────────────────────────────

    async def on_backend_event(self, event: wire.InboundEvent) -> None:
        if isinstance(event, wire.Tick):
            self.hub.broadcast_tick(event)
        elif isinstance(event, wire.Alert):
            self.hub.broadcast_alert(event.raw)
        else:
            self.hub.broadcast_log(event.raw)

    async def on_decode_error(self, error: wire.DecodeError) -> None:
        self.hub.broadcast_log(f"Error: malformed frame from terminal: {error}")

    # ── Connection side ───────────────────────────────────────────────

    def on_connect(self, connection: Any) -> None:
        self.hub.add(connection)
        self.hub.send_snapshot(connection)

    def on_disconnect(self, connection: Any) -> None:
        self.hub.discard(connection)
        record = self.registry.remove(connection)
        if record is not None:
            logger.info("Agent %s disconnected", record.name)
            self.hub.broadcast_snapshot()

    async def on_event(self, connection: Any, msg: dict[str, Any]) -> None:
        msg_type = msg.get("type")

        if msg_type == protocol.MsgType.REGISTER_AGENT.value:
            name = str(msg.get("name", ""))
            self.registry.register(connection, name)
            logger.info("Agent registered: %s", name)
            self.hub.broadcast_snapshot()

        elif msg_type == protocol.MsgType.REPORT_PROFILES.value:
            profiles = msg.get("profiles") or []
            if not isinstance(profiles, list):
                logger.warning("Ignoring non-list profiles: %r", profiles)
                return
            if self.registry.report_profiles(connection, [str(p) for p in profiles]):
                logger.info(
                    "Received profiles from agent %s: %s", msg.get("agent"), profiles
                )
                self.hub.broadcast_snapshot()

        elif msg_type == protocol.MsgType.SEND_TRADE_COMMAND.value:
            await self._send_command(wire.TradeOrder(
                type=msg.get("order_type"),
                symbol=msg.get("symbol"),
                volume=msg.get("volume"),
                sl=msg.get("sl"),
                tp=msg.get("tp"),
            ))

        elif msg_type == protocol.MsgType.SET_ALERT.value:
            await self._send_command(wire.AlertRule(
                symbol=msg.get("symbol"),
                condition=msg.get("condition"),
                price=msg.get("price"),
            ))

        elif msg_type == protocol.MsgType.SUBSCRIBE_SYMBOL.value:
            await self._send_command(wire.Subscribe(symbol=msg.get("symbol")))

        elif msg_type == protocol.MsgType.START_PROFILE_ON_AGENT.value:
            self._start_profile(str(msg.get("agent", "")), str(msg.get("profile", "")))

        elif msg_type == protocol.MsgType.AGENT_LOG.value:
            self.hub.broadcast_log(f"[Agent: {msg.get('agent')}] {msg.get('data')}")

        elif msg_type == protocol.MsgType.PING.value:
            self.hub.deliver(connection, protocol.encode_event(protocol.MsgType.PONG))

        else:
            logger.debug("Ignoring unknown event type %r", msg_type)

    async def _send_command(self, command: wire.Command) -> None:
        text = wire.encode_command(command)
        if await self.terminal.send(text):
            self.hub.broadcast_log(f"Sent to terminal: {text}")
        else:
            logger.warning("Cannot send command, terminal not connected: %s", text)
            self.hub.broadcast_log(NOT_CONNECTED)

    def _start_profile(self, agent: str, profile: str) -> None:
        logger.info("Request to start profile '%s' on agent '%s'", profile, agent)
        handle = self.registry.find_by_name(agent)
        if handle is None:
            logger.warning("Agent %s not found", agent)
            self.hub.broadcast_log(
                f"Error: Agent {agent} not found or is disconnected."
            )
            return
        self.hub.deliver(handle, protocol.start_profile(agent, profile))
        self.hub.broadcast_log(f"Command sent to {agent}: Start profile {profile}")
