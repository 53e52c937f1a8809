"""Wire codec for the terminal bridge's pipe-delimited text protocol.

Inbound frames (terminal -> hub):
  - TICK|DATA|{symbol}|{bid}|{ask}
  - ALERT|TRIGGERED|...
  - anything else is a free-text log line

Outbound commands (hub -> terminal):
  - TRADE|OPEN|{type}|{symbol}|{volume}|{sl}|{tp}
  - ALERT|SET|{symbol}|{condition}|{price}
  - TICK|SUBSCRIBE|{symbol}

Field values are not escaped; a "|" inside a value shifts every later field.
"""

import math
from dataclasses import dataclass
from typing import Any, Union

DELIMITER = "|"


class DecodeError(ValueError):
    """A frame could not be decoded into its typed event."""


@dataclass(frozen=True)
class Tick:
    symbol: str
    bid: float
    ask: float


@dataclass(frozen=True)
class Alert:
    raw: str


@dataclass(frozen=True)
class Log:
    raw: str


InboundEvent = Union[Tick, Alert, Log]


@dataclass(frozen=True)
class TradeOrder:
    type: Any
    symbol: Any
    volume: Any
    sl: Any
    tp: Any


@dataclass(frozen=True)
class AlertRule:
    symbol: Any
    condition: Any
    price: Any


@dataclass(frozen=True)
class Subscribe:
    symbol: Any


Command = Union[TradeOrder, AlertRule, Subscribe]


def _parse_price(field: str, name: str) -> float:
    try:
        value = float(field)
    except ValueError:
        raise DecodeError(f"{name} is not a number: {field!r}") from None
    if not math.isfinite(value):
        raise DecodeError(f"{name} is not finite: {field!r}")
    return value


def decode_frame(text: str | bytes) -> InboundEvent:
    """Decode one frame from the terminal into a typed event."""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    parts = text.split(DELIMITER)
    topic = parts[0]

    if topic == "TICK":
        if len(parts) < 5:
            raise DecodeError(
                f"TICK frame needs 5 fields, got {len(parts)}: {text!r}"
            )
        return Tick(
            symbol=parts[2],
            bid=_parse_price(parts[3], "bid"),
            ask=_parse_price(parts[4], "ask"),
        )
    if topic == "ALERT":
        return Alert(raw=text)
    return Log(raw=text)


def format_field(value: Any) -> str:
    """Render a field value the way the terminal expects it.

    Whole floats drop their fractional part (1.0 -> "1"), other floats use
    their shortest repr (0.1 -> "0.1"), None renders empty.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _join(*fields: Any) -> str:
    return DELIMITER.join(format_field(f) for f in fields)


def encode_command(command: Command) -> str:
    """Encode a command for the terminal. Never fails."""
    if isinstance(command, TradeOrder):
        return _join(
            "TRADE", "OPEN", command.type, command.symbol,
            command.volume, command.sl, command.tp,
        )
    if isinstance(command, AlertRule):
        return _join(
            "ALERT", "SET", command.symbol, command.condition, command.price
        )
    if isinstance(command, Subscribe):
        return _join("TICK", "SUBSCRIBE", command.symbol)
    raise TypeError(f"Unknown command type: {type(command).__name__}")
