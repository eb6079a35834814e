"""Expanding-ring search over an asynchronously queried occupancy set.

Usage:
    async def occupied(radius: int) -> set[tuple[int, int]]:
        ...

    cell = await find_next_free(occupied, limit_xz=10)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from itertools import count

from plotgrid.core.spiral.operations import Coordinate, find_free_in_ring, in_ring, ring_size

logger = logging.getLogger(__name__)

OccupancyQuery = Callable[[int], Awaitable[Iterable[Coordinate]]]
"""Async callable: ring radius -> occupied (x, z) cells on that ring."""


async def find_next_free(occupied_in_ring: OccupancyQuery, limit_xz: int = 0) -> Coordinate | None:
    """Find the first unclaimed cell in canonical ring order.

    Rings are queried one at a time; ring i + 1 is only requested after ring i
    has been fully processed.

    Args:
        occupied_in_ring: Occupancy query for a single ring.
        limit_xz: Number of rings to examine (0 or negative = unlimited).

    Returns:
        The free (x, z) cell, or None when the ring limit is exhausted.
    """
    rings = count() if limit_xz <= 0 else range(limit_xz)
    for radius in rings:
        cells = {(int(x), int(z)) for x, z in await occupied_in_ring(radius)}
        occupied = {cell for cell in cells if in_ring(*cell, radius)}
        if len(occupied) == ring_size(radius):
            logger.debug("Ring %d full, expanding", radius)
            continue

        cell = find_free_in_ring(radius, occupied)
        if cell is not None:
            return cell
        logger.warning(
            "Ring %d reported %d occupied cells but no free cell was found",
            radius,
            len(occupied),
        )
    return None
