"""Push-channel protocol between the hub and its WebSocket connections.

Every event is one JSON text frame: {"type": "<event>", ...fields}.

Inbound (connection -> hub):
  - register_agent:         {"type":"register_agent","name":"..."}
  - report_profiles:        {"type":"report_profiles","agent":"...","profiles":[...]}
  - send_trade_command:     {"type":"send_trade_command","order_type":"BUY","symbol":"...",
                             "volume":N,"sl":N,"tp":N}
  - set_alert:              {"type":"set_alert","symbol":"...","condition":"...","price":N}
  - subscribe_symbol:       {"type":"subscribe_symbol","symbol":"..."}
  - start_profile_on_agent: {"type":"start_profile_on_agent","agent":"...","profile":"..."}
  - agent_log:              {"type":"agent_log","agent":"...","data":"..."}
  - ping:                   {"type":"ping"}

Outbound (hub -> connection):
  - update_agents: {"type":"update_agents","agents":[{"name":"...","profiles":[...]}]}
  - tick_data:     {"type":"tick_data","symbol":"...","bid":N,"ask":N}
  - price_alert:   {"type":"price_alert","data":"..."}
  - log_message:   {"type":"log_message","data":"..."}
  - start_profile: {"type":"start_profile","agent":"...","profile":"..."}
  - pong:          {"type":"pong"}

The trade side ("BUY"/"SELL") travels as "order_type" because "type"
is taken by the event name.
"""

import json
from enum import Enum
from typing import Any


class MsgType(str, Enum):
    REGISTER_AGENT = "register_agent"
    REPORT_PROFILES = "report_profiles"
    SEND_TRADE_COMMAND = "send_trade_command"
    SET_ALERT = "set_alert"
    SUBSCRIBE_SYMBOL = "subscribe_symbol"
    START_PROFILE_ON_AGENT = "start_profile_on_agent"
    AGENT_LOG = "agent_log"
    PING = "ping"

    UPDATE_AGENTS = "update_agents"
    TICK_DATA = "tick_data"
    PRICE_ALERT = "price_alert"
    LOG_MESSAGE = "log_message"
    START_PROFILE = "start_profile"
    PONG = "pong"


def encode_event(msg_type: MsgType, **kwargs: Any) -> str:
    """Encode an event as JSON."""
    return json.dumps({"type": msg_type.value, **kwargs})


def decode_event(raw: str) -> dict[str, Any]:
    """Decode a JSON event."""
    data = json.loads(raw)
    if not isinstance(data, dict) or "type" not in data:
        raise ValueError("Missing 'type' field in event")
    return data


def update_agents(agents: list[dict[str, Any]]) -> str:
    return encode_event(MsgType.UPDATE_AGENTS, agents=agents)


def tick_data(symbol: str, bid: float, ask: float) -> str:
    return encode_event(MsgType.TICK_DATA, symbol=symbol, bid=bid, ask=ask)


def price_alert(data: str) -> str:
    return encode_event(MsgType.PRICE_ALERT, data=data)


def log_message(data: str) -> str:
    return encode_event(MsgType.LOG_MESSAGE, data=data)


def start_profile(agent: str, profile: str) -> str:
    return encode_event(MsgType.START_PROFILE, agent=agent, profile=profile)


def register_agent(name: str) -> str:
    return encode_event(MsgType.REGISTER_AGENT, name=name)


def report_profiles(agent: str, profiles: list[str]) -> str:
    return encode_event(MsgType.REPORT_PROFILES, agent=agent, profiles=profiles)


def agent_log(agent: str, data: str) -> str:
    return encode_event(MsgType.AGENT_LOG, agent=agent, data=data)
