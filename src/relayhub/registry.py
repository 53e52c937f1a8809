"""Registry of connected agents and the profiles each has reported."""

import itertools
from dataclasses import dataclass, field
from typing import Any, Hashable


@dataclass
class AgentRecord:
    name: str
    profiles: list[str] = field(default_factory=list)
    # registration order, used to resolve duplicate names
    seq: int = 0


class AgentRegistry:
    """Maps live connection handles to agent records.

    The name index always resolves to the most recent live registration of
    a name. Duplicate names are accepted.
    """

    def __init__(self) -> None:
        self._records: dict[Hashable, AgentRecord] = {}
        self._by_name: dict[str, Hashable] = {}
        self._seq = itertools.count(1)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, handle: Hashable) -> bool:
        return handle in self._records

    def get(self, handle: Hashable) -> AgentRecord | None:
        return self._records.get(handle)

    def register(self, handle: Hashable, name: str) -> AgentRecord:
        """Create or overwrite the record for handle, with no profiles."""
        previous = self._records.get(handle)
        record = AgentRecord(name=name, seq=next(self._seq))
        self._records[handle] = record
        if previous is not None and previous.name != name:
            self._reindex(previous.name)
        self._by_name[name] = handle
        return record

    def report_profiles(self, handle: Hashable, profiles: list[str]) -> bool:
        """Replace the profiles of a registered handle.

        Returns False, changing nothing, when the handle never registered.
        """
        record = self._records.get(handle)
        if record is None:
            return False
        record.profiles = list(profiles)
        return True

    def remove(self, handle: Hashable) -> AgentRecord | None:
        record = self._records.pop(handle, None)
        if record is not None and self._by_name.get(record.name) == handle:
            self._reindex(record.name)
        return record

    def find_by_name(self, name: str) -> Hashable | None:
        return self._by_name.get(name)

    def snapshot(self) -> list[dict[str, Any]]:
        """Current view of all live records, in connection order."""
        return [
            {"name": r.name, "profiles": list(r.profiles)}
            for r in self._records.values()
        ]

    def _reindex(self, name: str) -> None:
        candidates = [
            (r.seq, h) for h, r in self._records.items() if r.name == name
        ]
        if candidates:
            self._by_name[name] = max(candidates, key=lambda c: c[0])[1]
        else:
            self._by_name.pop(name, None)
