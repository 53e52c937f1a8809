"""Tests for the agent registry."""

import random

from relayhub.registry import AgentRegistry


def test_register_starts_without_profiles():
    reg = AgentRegistry()
    reg.register("h1", "A")
    assert reg.snapshot() == [{"name": "A", "profiles": []}]
    assert reg.find_by_name("A") == "h1"


def test_report_profiles_replaces():
    reg = AgentRegistry()
    reg.register("h1", "A")
    assert reg.report_profiles("h1", ["p1", "p2"])
    assert reg.report_profiles("h1", ["p3"])
    assert reg.snapshot() == [{"name": "A", "profiles": ["p3"]}]


def test_report_profiles_unknown_handle_is_noop():
    reg = AgentRegistry()
    assert not reg.report_profiles("ghost", ["p1"])
    assert reg.snapshot() == []


def test_reregister_resets_profiles():
    reg = AgentRegistry()
    reg.register("h1", "A")
    reg.report_profiles("h1", ["p1"])
    reg.register("h1", "A")
    assert reg.snapshot() == [{"name": "A", "profiles": []}]
    assert len(reg) == 1


def test_rename_on_reregister():
    reg = AgentRegistry()
    reg.register("h1", "A")
    reg.register("h1", "B")
    assert reg.find_by_name("A") is None
    assert reg.find_by_name("B") == "h1"


def test_remove():
    reg = AgentRegistry()
    reg.register("h1", "A")
    reg.register("h2", "B")
    record = reg.remove("h1")
    assert record is not None and record.name == "A"
    assert reg.snapshot() == [{"name": "B", "profiles": []}]
    assert reg.find_by_name("A") is None
    assert reg.remove("h1") is None


def test_duplicate_name_last_write_wins():
    reg = AgentRegistry()
    reg.register("h1", "A")
    reg.register("h2", "A")
    assert reg.find_by_name("A") == "h2"


def test_duplicate_name_falls_back_on_remove():
    reg = AgentRegistry()
    reg.register("h1", "A")
    reg.register("h2", "A")
    reg.register("h3", "A")
    reg.remove("h3")
    assert reg.find_by_name("A") == "h2"
    reg.remove("h1")
    assert reg.find_by_name("A") == "h2"
    reg.remove("h2")
    assert reg.find_by_name("A") is None


def test_snapshot_is_a_copy():
    reg = AgentRegistry()
    reg.register("h1", "A")
    reg.report_profiles("h1", ["p1"])
    snap = reg.snapshot()
    snap[0]["profiles"].append("mutated")
    assert reg.snapshot() == [{"name": "A", "profiles": ["p1"]}]


def test_snapshot_matches_live_records_for_random_sequences():
    rng = random.Random(1234)
    handles = [f"h{i}" for i in range(6)]
    names = ["A", "B", "C"]

    for _ in range(50):
        reg = AgentRegistry()
        model: dict[str, dict] = {}
        for _ in range(40):
            h = rng.choice(handles)
            op = rng.choice(["register", "report", "remove"])
            if op == "register":
                name = rng.choice(names)
                reg.register(h, name)
                model[h] = {"name": name, "profiles": []}
            elif op == "report":
                profiles = [f"p{rng.randint(0, 9)}"]
                reg.report_profiles(h, profiles)
                if h in model:
                    model[h]["profiles"] = profiles
            else:
                reg.remove(h)
                model.pop(h, None)

            assert reg.snapshot() == list(model.values())
            assert len(reg) == len(model)
            for name in names:
                owner = reg.find_by_name(name)
                if owner is None:
                    assert all(r["name"] != name for r in model.values())
                else:
                    assert model[owner]["name"] == name
