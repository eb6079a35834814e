"""Spiral search functionality: ring geometry and the next-free-cell driver."""

from plotgrid.core.spiral.operations import (
    Coordinate,
    find_free_in_ring,
    in_ring,
    iter_ring,
    ring_candidates,
    ring_size,
)
from plotgrid.core.spiral.search import OccupancyQuery, find_next_free

__all__ = [
    "Coordinate",
    "ring_size",
    "in_ring",
    "ring_candidates",
    "iter_ring",
    "find_free_in_ring",
    "find_next_free",
    "OccupancyQuery",
]
