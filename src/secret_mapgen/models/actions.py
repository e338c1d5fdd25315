"""Closed set of contract actions and queries.

Every kind serializes to the opaque JSON message the contract expects,
keyed by its snake_case name.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Union


@dataclass(frozen=True)
class _Message:
    kind: ClassVar[str] = ""

    def to_msg(self) -> dict[str, Any]:
        return {self.kind: asdict(self)}


# ── Execute actions ────────────────────────────────────


@dataclass(frozen=True)
class Increment(_Message):
    kind: ClassVar[str] = "increment"


@dataclass(frozen=True)
class Reset(_Message):
    kind: ClassVar[str] = "reset"
    count: int = 0


@dataclass(frozen=True)
class Generate(_Message):
    kind: ClassVar[str] = "generate"


@dataclass(frozen=True)
class Clear(_Message):
    kind: ClassVar[str] = "clear"


# ── Queries ────────────────────────────────────────────


@dataclass(frozen=True)
class GetCount(_Message):
    kind: ClassVar[str] = "get_count"


@dataclass(frozen=True)
class GetMaps(_Message):
    kind: ClassVar[str] = "get_maps"


@dataclass(frozen=True)
class GetMap(_Message):
    kind: ClassVar[str] = "get_map"
    index: int = 0


@dataclass(frozen=True)
class GetMapCount(_Message):
    kind: ClassVar[str] = "get_map_count"


ExecuteAction = Union[Increment, Reset, Generate, Clear]
QueryAction = Union[GetCount, GetMaps, GetMap, GetMapCount]

EXECUTE_ACTIONS: dict[str, type] = {
    cls.kind: cls for cls in (Increment, Reset, Generate, Clear)
}
QUERY_ACTIONS: dict[str, type] = {
    cls.kind: cls for cls in (GetCount, GetMaps, GetMap, GetMapCount)
}


def parse_action(name: str, **params: Any) -> ExecuteAction:
    """Build an execute action from its snake_case name."""
    try:
        cls = EXECUTE_ACTIONS[name]
    except KeyError:
        raise ValueError(
            f"unknown action '{name}' (expected one of {', '.join(EXECUTE_ACTIONS)})"
        ) from None
    return cls(**params)


def parse_query(name: str, **params: Any) -> QueryAction:
    """Build a query from its snake_case name."""
    try:
        cls = QUERY_ACTIONS[name]
    except KeyError:
        raise ValueError(
            f"unknown query '{name}' (expected one of {', '.join(QUERY_ACTIONS)})"
        ) from None
    return cls(**params)
