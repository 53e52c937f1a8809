"""RelayHub — bridges a trading-terminal ZeroMQ link to WebSocket dashboards and agents."""

__version__ = "0.1.0"
