"""Tests for the command line."""

import tempfile
from pathlib import Path

import pytest

from relayhub.cli import main
from relayhub.config import Config


def test_init_writes_config():
    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        main(["--config-dir", str(tmp), "init", "--port", "6001", "--terminal-port", "6555"])
        cfg = Config.load(tmp)
        assert cfg.server.port == 6001
        assert cfg.server.terminal_port == 6555
        assert cfg.server.tls_enabled is False
        assert cfg.agent.server_url == "ws://localhost:6001"


def test_init_tls_and_show_fingerprint(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        main(["--config-dir", str(tmp), "init", "--tls"])
        cfg = Config.load(tmp)
        assert cfg.server.tls_enabled is True
        assert cfg.agent.server_url.startswith("wss://")
        assert cfg.agent.cert_fingerprint == cfg.server.cert_fingerprint

        capsys.readouterr()
        main(["--config-dir", str(tmp), "show-fingerprint"])
        assert cfg.server.cert_fingerprint in capsys.readouterr().out


def test_show_fingerprint_without_cert():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(SystemExit) as exc:
            main(["--config-dir", tmp, "show-fingerprint"])
        assert exc.value.code == 1


def test_agent_requires_terminal_path():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(SystemExit) as exc:
            main(["--config-dir", tmp, "agent"])
        assert exc.value.code == 1


def test_agent_pin_mismatch_exits_nonzero(monkeypatch):
    from relayhub.agent import CertificateMismatchError, ProfileAgent

    async def refuse(self):
        raise CertificateMismatchError("Certificate mismatch: expected 00:11, got aa:bb")

    monkeypatch.setattr(ProfileAgent, "run", refuse)
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(SystemExit) as exc:
            main(["--config-dir", tmp, "agent", "--terminal-path", "terminal.exe"])
        assert exc.value.code == 1
