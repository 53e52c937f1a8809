"""CLI entry point for RelayHub."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import zmq

from relayhub import __version__
from relayhub.config import Config


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="relayhub",
        description="Relay hub between a trading-terminal bridge and dashboards/agents",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Override configuration directory",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # ── init ──────────────────────────────────────────────────────────
    init_p = sub.add_parser("init", help="Write a default configuration")
    init_p.add_argument(
        "--port", type=int, default=5001, help="WebSocket port (default: 5001)"
    )
    init_p.add_argument(
        "--terminal-port",
        type=int,
        default=5555,
        help="ZeroMQ port the terminal bridge connects to (default: 5555)",
    )
    init_p.add_argument(
        "--tls",
        action="store_true",
        help="Generate a self-signed certificate and serve wss://",
    )
    init_p.add_argument(
        "--hostname",
        default="localhost",
        help="Hostname for the TLS certificate (default: localhost)",
    )

    # ── server ────────────────────────────────────────────────────────
    server_p = sub.add_parser("server", help="Start the relay hub")
    server_p.add_argument("--host", default=None, help="Override bind address")
    server_p.add_argument("--port", type=int, default=None, help="Override port")
    server_p.add_argument(
        "--terminal-port", type=int, default=None, help="Override ZeroMQ port"
    )

    # ── agent ─────────────────────────────────────────────────────────
    agent_p = sub.add_parser("agent", help="Run a terminal management agent")
    agent_p.add_argument("--server-url", default=None, help="Hub URL (ws:// or wss://)")
    agent_p.add_argument("--name", default=None, help="Name to register under")
    agent_p.add_argument(
        "--terminal-path", default=None, help="Path to the terminal executable"
    )
    agent_p.add_argument(
        "--profiles-dir", default=None, help="Override the profiles directory"
    )
    agent_p.add_argument(
        "--fingerprint",
        default=None,
        help="Expected TLS certificate fingerprint for pinning",
    )

    # ── show-fingerprint ──────────────────────────────────────────────
    sub.add_parser(
        "show-fingerprint",
        help="Show the TLS certificate fingerprint (for agent pinning)",
    )

    args = parser.parse_args(argv)
    config_dir = Config.config_dir(args.config_dir)

    if args.command == "init":
        _cmd_init(args, config_dir)
    elif args.command == "server":
        _setup_logging(args.verbose)
        _cmd_server(args, config_dir)
    elif args.command == "agent":
        _setup_logging(args.verbose)
        _cmd_agent(args, config_dir)
    elif args.command == "show-fingerprint":
        _cmd_show_fingerprint(config_dir)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Command implementations ──────────────────────────────────────────────


def _cmd_init(args: argparse.Namespace, config_dir: Path) -> None:
    config = Config.load(config_dir)
    config.server.port = args.port
    config.server.terminal_port = args.terminal_port

    scheme = "ws"
    if args.tls:
        from relayhub.tls import generate_self_signed_cert

        cert_path = Config.cert_path(config_dir)
        key_path = Config.key_path(config_dir)
        print(f"Generating TLS certificate for '{args.hostname}'...")
        fingerprint = generate_self_signed_cert(
            cert_path, key_path, hostname=args.hostname
        )
        print(f"  Certificate: {cert_path}")
        print(f"  Private key: {key_path}")
        print(f"  Fingerprint: {fingerprint}")
        config.server.tls_enabled = True
        config.server.cert_fingerprint = fingerprint
        config.agent.cert_fingerprint = fingerprint
        scheme = "wss"

    config.agent.server_url = f"{scheme}://{args.hostname}:{args.port}"

    config_file = config.save(config_dir)
    print(f"\nConfiguration saved to: {config_file}")
    print("\nTo start the hub:    relayhub server")
    print("To start an agent:   relayhub agent --terminal-path <terminal.exe>")


def _cmd_server(args: argparse.Namespace, config_dir: Path) -> None:
    from relayhub.server import RelayServer

    config = Config.load(config_dir)
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.terminal_port:
        config.server.terminal_port = args.terminal_port

    server = RelayServer(config, config_dir)
    logger = logging.getLogger("relayhub.server")

    try:
        asyncio.run(server.serve())
    except KeyboardInterrupt:
        print("\nServer stopped.")
    except (zmq.ZMQError, OSError) as e:
        logger.error("Fatal: %s", e)
        sys.exit(1)


def _cmd_agent(args: argparse.Namespace, config_dir: Path) -> None:
    from relayhub.agent import CertificateMismatchError, ProfileAgent

    config = Config.load(config_dir)
    ac = config.agent
    if args.server_url:
        ac.server_url = args.server_url
    if args.name:
        ac.name = args.name
    if args.terminal_path:
        ac.terminal_path = args.terminal_path
    if args.profiles_dir:
        ac.profiles_dir = args.profiles_dir
    if args.fingerprint:
        ac.cert_fingerprint = args.fingerprint

    if not ac.terminal_path:
        print(
            "No terminal path configured. Pass --terminal-path or set agent.terminal_path.",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        asyncio.run(ProfileAgent(ac).run())
    except KeyboardInterrupt:
        print("\nAgent stopped.")
    except CertificateMismatchError as e:
        print(f"Connection refused: {e}", file=sys.stderr)
        sys.exit(1)


def _cmd_show_fingerprint(config_dir: Path) -> None:
    cert_path = Config.cert_path(config_dir)
    if not cert_path.exists():
        print("No certificate found. Run 'relayhub init --tls' first.", file=sys.stderr)
        sys.exit(1)

    from relayhub.tls import get_cert_fingerprint
    fp = get_cert_fingerprint(cert_path)
    print(f"TLS Certificate Fingerprint (SHA-256):\n  {fp}")
    print(f"\nUse this with agents:  relayhub agent --fingerprint \"{fp}\"")


if __name__ == "__main__":
    main()
