"""Relay server — wires the terminal link, router and WebSocket endpoint together."""

import json
import logging
from http import HTTPStatus
from pathlib import Path

import websockets
from websockets.asyncio.server import ServerConnection
from websockets.http11 import Request, Response

from relayhub import protocol
from relayhub.config import Config
from relayhub.hub import ClientHub
from relayhub.router import MessageRouter
from relayhub.terminal import TerminalLink
from relayhub.tls import create_server_ssl_context

logger = logging.getLogger("relayhub.server")


class RelayServer:
    """Serves dashboards and agents over WebSocket and the terminal over ZeroMQ."""

    def __init__(self, config: Config, config_dir: Path | None = None):
        self.config = config
        self.sc = config.server
        self.config_dir = config_dir or Config.config_dir()
        self.hub = ClientHub()
        self.terminal = TerminalLink(self.sc.terminal_host, self.sc.terminal_port)
        self.router = MessageRouter(self.hub, self.terminal)

    def _process_request(
        self, connection: ServerConnection, request: Request
    ) -> Response | None:
        """Answer GET /health; let everything else upgrade to WebSocket."""
        if request.path != "/health":
            return None
        body = json.dumps({
            "status": "ok",
            "terminal_connected": self.terminal.connected,
            "connections": len(self.hub.connections),
            "agents": len(self.hub.registry),
        })
        response = connection.respond(HTTPStatus.OK, body + "\n")
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "application/json"
        return response

    async def _handle_connection(self, ws: ServerConnection) -> None:
        remote = ws.remote_address[0] if ws.remote_address else "unknown"
        logger.info("Client connected: %s from %s", ws.id, remote)

        self.router.on_connect(ws)
        try:
            async for message in ws:
                if isinstance(message, bytes):
                    continue
                try:
                    msg = protocol.decode_event(message)
                except ValueError:
                    logger.warning("Invalid event from %s: %.200s", ws.id, message)
                    continue
                await self.router.on_event(ws, msg)
        except websockets.ConnectionClosed:
            pass
        finally:
            self.router.on_disconnect(ws)
            logger.info("Client disconnected: %s", ws.id)

    async def serve(self) -> None:
        """Bind both endpoints and relay until cancelled.

        Bind failures (zmq.ZMQError, OSError) propagate to the caller.
        """
        ssl_ctx = None
        if self.sc.tls_enabled:
            cert_path = Config.cert_path(self.config_dir)
            key_path = Config.key_path(self.config_dir)
            if not cert_path.exists() or not key_path.exists():
                raise FileNotFoundError(
                    "TLS certificate not found. Run 'relayhub init --tls' first."
                )
            ssl_ctx = create_server_ssl_context(cert_path, key_path)

        self.terminal.bind()
        try:
            scheme = "wss" if ssl_ctx else "ws"
            logger.info(
                "Starting RelayHub on %s://%s:%d", scheme, self.sc.host, self.sc.port
            )
            async with websockets.serve(
                self._handle_connection,
                self.sc.host,
                self.sc.port,
                ssl=ssl_ctx,
                process_request=self._process_request,
                max_size=self.sc.max_message_size,
                ping_interval=30,
                ping_timeout=10,
            ):
                logger.info("Server is ready. Waiting for connections...")
                await self.terminal.run(
                    self.router.on_backend_event, self.router.on_decode_error
                )
        finally:
            self.terminal.close()
