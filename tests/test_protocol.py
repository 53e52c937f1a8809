"""Tests for the push-channel protocol."""

import pytest

from relayhub.protocol import (
    MsgType,
    agent_log,
    decode_event,
    encode_event,
    log_message,
    register_agent,
    report_profiles,
    start_profile,
    tick_data,
    update_agents,
)


def test_update_agents():
    d = decode_event(update_agents([{"name": "A", "profiles": ["p1"]}]))
    assert d["type"] == "update_agents"
    assert d["agents"] == [{"name": "A", "profiles": ["p1"]}]


def test_tick_data():
    d = decode_event(tick_data("EURUSD", 1.1, 1.1002))
    assert d == {"type": "tick_data", "symbol": "EURUSD", "bid": 1.1, "ask": 1.1002}


def test_log_message():
    d = decode_event(log_message("hello"))
    assert d["type"] == MsgType.LOG_MESSAGE.value
    assert d["data"] == "hello"


def test_start_profile():
    d = decode_event(start_profile("PC-01", "Scalping"))
    assert d == {"type": "start_profile", "agent": "PC-01", "profile": "Scalping"}


def test_agent_messages():
    assert decode_event(register_agent("PC-01"))["name"] == "PC-01"
    d = decode_event(report_profiles("PC-01", ["a", "b"]))
    assert d["agent"] == "PC-01"
    assert d["profiles"] == ["a", "b"]
    assert decode_event(agent_log("PC-01", "ok"))["data"] == "ok"


def test_encode_without_fields():
    assert decode_event(encode_event(MsgType.PONG)) == {"type": "pong"}


def test_decode_missing_type():
    with pytest.raises(ValueError):
        decode_event('{"foo": "bar"}')


def test_decode_not_an_object():
    with pytest.raises(ValueError):
        decode_event("[1, 2]")


def test_decode_invalid_json():
    with pytest.raises(ValueError):
        decode_event("not json")
