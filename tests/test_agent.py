"""Tests for the agent process."""

import asyncio
import json
import os
import sys
import tempfile
from pathlib import Path

import pytest

from relayhub.agent import ProfileAgent, TerminalLauncher, scan_profiles
from relayhub.config import AgentConfig


def test_scan_profiles_skips_system_and_files():
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        for name in ("Scalping", "default", "Tester", "Swing"):
            (root / name).mkdir()
        (root / "notes.txt").write_text("x")
        assert scan_profiles(root) == ["Scalping", "Swing"]


def test_scan_profiles_missing_dir():
    with tempfile.TemporaryDirectory() as tmp:
        assert scan_profiles(Path(tmp) / "nope") == []


def test_launcher_commands():
    launcher = TerminalLauncher("/opt/mt4/terminal.exe")
    assert launcher.start_command("Swing") == ["/opt/mt4/terminal.exe", "/profile:Swing"]
    stop = launcher.stop_command()
    assert stop[-1] == "terminal.exe"
    if os.name == "nt":
        assert stop[0] == "taskkill"
    else:
        assert stop[0] == "pkill"


class RecordingLauncher(TerminalLauncher):
    def __init__(self, fail=False):
        super().__init__("terminal.exe", restart_delay=0)
        self.fail = fail
        self.started: list[str] = []

    async def start_profile(self, profile):
        if self.fail:
            raise FileNotFoundError(f"No such file: {self.terminal_path}")
        self.started.append(profile)


class FakeConnection:
    def __init__(self):
        self.sent: list[dict] = []

    async def send(self, message):
        self.sent.append(json.loads(message))


def _agent(launcher, profiles_dir=""):
    config = AgentConfig(name="PC-01", terminal_path="terminal.exe", profiles_dir=profiles_dir)
    return ProfileAgent(config, launcher=launcher)


@pytest.mark.asyncio
async def test_announce_registers_then_reports():
    with tempfile.TemporaryDirectory() as tmp:
        (Path(tmp) / "Scalping").mkdir()
        agent = _agent(RecordingLauncher(), profiles_dir=tmp)
        conn = FakeConnection()
        await agent.announce(conn)
    assert conn.sent == [
        {"type": "register_agent", "name": "PC-01"},
        {"type": "report_profiles", "agent": "PC-01", "profiles": ["Scalping"]},
    ]


@pytest.mark.asyncio
async def test_start_profile_for_self():
    launcher = RecordingLauncher()
    agent = _agent(launcher)
    agent.ws = FakeConnection()

    task = agent.handle_event({"type": "start_profile", "agent": "PC-01", "profile": "Swing"})
    assert task is not None
    await task

    assert launcher.started == ["Swing"]
    assert agent.ws.sent == [{
        "type": "agent_log",
        "agent": "PC-01",
        "data": "Successfully switched to profile: Swing",
    }]


@pytest.mark.asyncio
async def test_start_profile_for_other_agent_ignored():
    launcher = RecordingLauncher()
    agent = _agent(launcher)
    assert agent.handle_event(
        {"type": "start_profile", "agent": "PC-02", "profile": "Swing"}
    ) is None
    assert agent.handle_event({"type": "update_agents", "agents": []}) is None
    assert launcher.started == []


@pytest.mark.asyncio
async def test_start_failure_reported():
    agent = _agent(RecordingLauncher(fail=True))
    agent.ws = FakeConnection()
    await agent.switch_profile("Swing")
    [log] = agent.ws.sent
    assert log["type"] == "agent_log"
    assert log["data"].startswith("Error starting terminal:")


@pytest.mark.asyncio
async def test_report_without_connection_is_dropped():
    agent = _agent(RecordingLauncher())
    await agent.report("nobody listening")


@pytest.mark.asyncio
@pytest.mark.skipif(os.name == "nt", reason="POSIX executable")
async def test_real_launch_runs_executable():
    with tempfile.TemporaryDirectory() as tmp:
        marker = Path(tmp) / "started"
        script = Path(tmp) / "fake-terminal"
        script.write_text(
            f"#!{sys.executable}\n"
            "import sys, pathlib\n"
            f"pathlib.Path({str(marker)!r}).write_text(sys.argv[1])\n"
        )
        script.chmod(0o755)

        launcher = TerminalLauncher(str(script), restart_delay=0)
        await launcher.start_profile("Swing")
        await asyncio.wait_for(launcher.process.wait(), timeout=10)
        assert marker.read_text() == "/profile:Swing"
