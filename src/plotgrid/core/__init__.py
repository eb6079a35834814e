"""Core functionalities.

Architecture Note:
    core/ holds stateless building blocks: the Plot record with its row codec
    and the ring geometry of the spiral search. Stateful services (cache,
    providers, executors) live in storage/.
"""

from plotgrid.core.plot import (
    LIST_SEPARATOR,
    Plot,
    PlotKey,
    decode_coordinate,
    decode_list,
    decode_pvp,
    encode_list,
    encode_pvp,
    plot_from_row,
    plot_params,
)
from plotgrid.core.spiral import (
    Coordinate,
    OccupancyQuery,
    find_free_in_ring,
    find_next_free,
    in_ring,
    iter_ring,
    ring_candidates,
    ring_size,
)

__all__ = [
    # Plot
    "Plot",
    "PlotKey",
    "LIST_SEPARATOR",
    "encode_list",
    "decode_list",
    "encode_pvp",
    "decode_pvp",
    "decode_coordinate",
    "plot_from_row",
    "plot_params",
    # Spiral
    "Coordinate",
    "OccupancyQuery",
    "ring_size",
    "in_ring",
    "ring_candidates",
    "iter_ring",
    "find_free_in_ring",
    "find_next_free",
]
