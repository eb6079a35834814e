"""Plot data model.

Usage:
    plot = Plot("world", 3, -2, owner="Alice")
    empty = Plot.empty("world", 0, 0)
    shared = plot.add_helper("Bob")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

LIST_SEPARATOR = ","

PlotKey = tuple[str, int, int]
"""(level_name, x, z) - logical identity of a plot."""


def _as_entries(entries: Iterable[str], field_name: str) -> tuple[str, ...]:
    normalized = tuple(entries)
    for entry in normalized:
        if LIST_SEPARATOR in entry:
            raise ValueError(f"{field_name} entry {entry!r} contains separator {LIST_SEPARATOR!r}")
    return normalized


@dataclass(frozen=True, slots=True)
class Plot:
    """Claim state of one grid cell.

    A Plot with every optional field at its default is the empty sentinel:
    it stands for an unclaimed cell and is returned instead of raising when
    nothing is stored for a coordinate.

    Attributes:
        level_name: World the plot belongs to.
        x: Grid X coordinate.
        z: Grid Z coordinate.
        name: Display name ("" = unset).
        owner: Owner identifier ("" = unclaimed).
        helpers: Players allowed to build, in stored order.
        denied: Players banned from the plot, in stored order.
        biome: Terrain hint ("" = level default).
        pvp: None inherits the level default.
        id: Storage key, -1 until persisted.
    """

    level_name: str
    x: int
    z: int
    name: str = ""
    owner: str = ""
    helpers: tuple[str, ...] = field(default=())
    denied: tuple[str, ...] = field(default=())
    biome: str = ""
    pvp: bool | None = None
    id: int = -1

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "helpers", _as_entries(self.helpers, "helpers"))
        object.__setattr__(self, "denied", _as_entries(self.denied, "denied"))

    @classmethod
    def empty(cls, level_name: str, x: int, z: int) -> Plot:
        """Build the unclaimed sentinel for a coordinate."""
        return cls(level_name, x, z)

    @property
    def key(self) -> PlotKey:
        return (self.level_name, self.x, self.z)

    @property
    def is_empty(self) -> bool:
        """True for the sentinel: nothing stored, nothing claimed."""
        return (
            self.id < 0
            and not self.name
            and not self.owner
            and not self.helpers
            and not self.denied
            and not self.biome
            and self.pvp is None
        )

    @property
    def is_claimed(self) -> bool:
        return bool(self.owner)

    def is_helper(self, player: str) -> bool:
        return player in self.helpers

    def is_denied(self, player: str) -> bool:
        return player in self.denied

    def with_owner(self, owner: str) -> Plot:
        return replace(self, owner=owner)

    def add_helper(self, player: str) -> Plot:
        """Return a copy with player appended to helpers (no-op if present)."""
        if self.is_helper(player):
            return self
        return replace(self, helpers=(*self.helpers, player))

    def remove_helper(self, player: str) -> Plot:
        return replace(self, helpers=tuple(h for h in self.helpers if h != player))

    def deny_player(self, player: str) -> Plot:
        if self.is_denied(player):
            return self
        return replace(self, denied=(*self.denied, player))

    def undeny_player(self, player: str) -> Plot:
        return replace(self, denied=tuple(d for d in self.denied if d != player))
