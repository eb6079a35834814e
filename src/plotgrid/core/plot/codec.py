"""Row codec for plots.

Stored rows keep helpers/denied as comma-joined text and pvp as a nullable
integer. Decoding never raises on malformed metadata: blank lists decode to ()
and non-numeric pvp decodes to None. A row without usable coordinates cannot
name a cell, so plot_from_row rejects it with ValueError.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from plotgrid.core.plot.models import LIST_SEPARATOR, Plot


def encode_list(entries: Iterable[str]) -> str:
    return LIST_SEPARATOR.join(entries)


def decode_list(text: Any) -> tuple[str, ...]:
    """Split stored list text. Blank or NULL yields an empty tuple, never ("",)."""
    if text is None:
        return ()
    text = str(text)
    if not text.strip():
        return ()
    return tuple(text.split(LIST_SEPARATOR))


def encode_pvp(pvp: bool | None) -> int | None:
    if pvp is None:
        return None
    return 1 if pvp else 0


def decode_pvp(value: Any) -> bool | None:
    """Finite numeric values decode to bool, everything else to None (inherit)."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    try:
        number = float(value) if isinstance(value, float) else float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return bool(number)


def decode_coordinate(value: Any) -> int | None:
    """Integer coordinate from a stored value, or None when it has none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value) if isinstance(value, float) else float(str(value).strip())
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def plot_from_row(
    row: Mapping[str, Any],
    level_name: str | None = None,
    x: int | None = None,
    z: int | None = None,
) -> Plot:
    """Rebuild a Plot from a row with lower-case column keys.

    Coordinates given explicitly win over row values; point queries select
    only the mutable columns and pass the coordinates they asked for.

    Raises:
        ValueError: If a coordinate is neither given nor decodable from the row.
    """
    if x is None:
        x = decode_coordinate(row.get("x"))
    if z is None:
        z = decode_coordinate(row.get("z"))
    if x is None or z is None:
        raise ValueError(f"Row {row.get('id')!r} has no usable coordinates")

    raw_id = row.get("id")
    return Plot(
        level_name=level_name if level_name is not None else _text(row.get("level")),
        x=x,
        z=z,
        name=_text(row.get("name")),
        owner=_text(row.get("owner")),
        helpers=decode_list(row.get("helpers")),
        denied=decode_list(row.get("denied")),
        biome=_text(row.get("biome")),
        pvp=decode_pvp(row.get("pvp")),
        id=int(raw_id) if raw_id is not None else -1,
    )


def plot_params(plot: Plot) -> dict[str, Any]:
    """Named statement parameters for a plot write."""
    return {
        "id": plot.id,
        "level": plot.level_name,
        "x": plot.x,
        "z": plot.z,
        "name": plot.name,
        "owner": plot.owner,
        "helpers": encode_list(plot.helpers),
        "denied": encode_list(plot.denied),
        "biome": plot.biome,
        "pvp": encode_pvp(plot.pvp),
    }
