"""Agent process — registers with the hub and restarts the local terminal on command."""

import asyncio
import logging
import os
from pathlib import Path

import websockets
from websockets.asyncio.client import ClientConnection

from relayhub import protocol
from relayhub.config import AgentConfig
from relayhub.tls import create_client_ssl_context, peer_fingerprint

logger = logging.getLogger("relayhub.agent")

SYSTEM_PROFILES = {"default", "tester"}


class CertificateMismatchError(ConnectionError):
    """The hub presented a certificate other than the pinned one."""


def scan_profiles(profiles_dir: Path) -> list[str]:
    """List the user profiles found in the terminal's profiles directory."""
    logger.info("Scanning for profiles in: %s", profiles_dir)
    if not profiles_dir.is_dir():
        logger.error(
            "Profiles directory not found: %s. Check terminal_path or profiles_dir.",
            profiles_dir,
        )
        return []
    try:
        entries = list(profiles_dir.iterdir())
    except OSError as e:
        logger.error("Error reading profiles directory: %s", e)
        return []
    return sorted(
        p.name for p in entries
        if p.is_dir() and p.name.lower() not in SYSTEM_PROFILES
    )


class TerminalLauncher:
    """Stops the running terminal and relaunches it with a given profile."""

    def __init__(self, terminal_path: str, restart_delay: float = 2.0):
        self.terminal_path = terminal_path
        self.restart_delay = restart_delay
        self.process: asyncio.subprocess.Process | None = None

    def stop_command(self) -> list[str]:
        exe = Path(self.terminal_path).name
        if os.name == "nt":
            return ["taskkill", "/F", "/IM", exe]
        return ["pkill", "-f", exe]

    def start_command(self, profile: str) -> list[str]:
        return [self.terminal_path, f"/profile:{profile}"]

    async def stop(self) -> None:
        """Stop any running terminal. Failure is only logged."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.stop_command(),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
        except OSError as e:
            logger.warning("Could not run stop command: %s", e)
            return
        if proc.returncode == 0:
            logger.info("Existing terminal process terminated.")
        else:
            # non-zero also means "no such process"
            logger.info(
                "Stop command exited %d: %s",
                proc.returncode,
                stderr.decode(errors="replace").strip(),
            )

    async def start_profile(self, profile: str) -> None:
        """Restart the terminal with profile. Raises OSError if launch fails."""
        logger.info("Attempting to start terminal with profile: %s", profile)
        await self.stop()
        await asyncio.sleep(self.restart_delay)

        command = self.start_command(profile)
        logger.info("Executing: %s", command)
        self.process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )


class ProfileAgent:
    """Keeps a connection to the hub alive and serves start_profile requests."""

    def __init__(self, config: AgentConfig, launcher: TerminalLauncher | None = None):
        self.config = config
        self.name = config.name
        self.launcher = launcher or TerminalLauncher(
            config.terminal_path, config.restart_delay
        )
        self.ws: ClientConnection | None = None
        self._tasks: set[asyncio.Task] = set()

    async def announce(self, ws: ClientConnection) -> None:
        """Register and report profiles; sent on every (re)connect."""
        await ws.send(protocol.register_agent(self.name))
        profiles = scan_profiles(self.config.resolved_profiles_dir())
        logger.info("Found profiles: %s", profiles)
        await ws.send(protocol.report_profiles(self.name, profiles))

    async def report(self, data: str) -> None:
        if self.ws is None:
            logger.warning("Not connected, dropping agent log: %s", data)
            return
        try:
            await self.ws.send(protocol.agent_log(self.name, data))
        except websockets.ConnectionClosed:
            logger.warning("Connection lost, dropping agent log: %s", data)

    async def switch_profile(self, profile: str) -> None:
        try:
            await self.launcher.start_profile(profile)
        except OSError as e:
            message = f"Error starting terminal: {e}"
            logger.error(message)
        else:
            message = f"Successfully switched to profile: {profile}"
            logger.info(message)
        await self.report(message)

    def handle_event(self, msg: dict) -> asyncio.Task | None:
        if msg.get("type") != protocol.MsgType.START_PROFILE.value:
            return None
        if msg.get("agent") != self.name:
            return None
        profile = str(msg.get("profile", ""))
        logger.info("Received command to start profile: %s", profile)
        task = asyncio.create_task(self.switch_profile(profile))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _check_pin(self, ws: ClientConnection) -> None:
        """Close ws and raise CertificateMismatchError unless the pin matches."""
        expected = self.config.cert_fingerprint
        if not expected:
            return
        ssl_object = ws.transport.get_extra_info("ssl_object")
        actual = peer_fingerprint(ssl_object) if ssl_object else None
        if actual is None or actual.lower() != expected.lower():
            logger.error(
                "CERTIFICATE MISMATCH: expected %s, got %s", expected, actual
            )
            await ws.close()
            raise CertificateMismatchError(
                f"Certificate mismatch: expected {expected}, got {actual}"
            )

    async def run(self) -> None:
        """Connect, announce and serve forever, reconnecting on loss.

        Raises CertificateMismatchError if the hub fails the fingerprint pin.
        """
        url = self.config.server_url
        ssl_ctx = create_client_ssl_context() if url.startswith("wss://") else None

        logger.info("Starting agent %s", self.name)
        async for ws in websockets.connect(url, ssl=ssl_ctx, ping_interval=30):
            if ssl_ctx is not None:
                await self._check_pin(ws)
            self.ws = ws
            logger.info("Connected to server at %s", url)
            try:
                await self.announce(ws)
                async for message in ws:
                    if isinstance(message, bytes):
                        continue
                    try:
                        msg = protocol.decode_event(message)
                    except ValueError:
                        continue
                    self.handle_event(msg)
            except websockets.ConnectionClosed:
                pass
            finally:
                self.ws = None
            logger.info("Disconnected from server. Will try to reconnect...")
