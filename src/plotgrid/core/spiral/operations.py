"""Ring geometry for the next-free-plot search.

Ring i holds every (x, z) with max(|x|, |z|) == i. Ring 0 is the origin,
ring i > 0 has 8i cells. Within a ring, cells are visited by sub-order
a = 0..i; each sub-order yields the symmetric positions at offset a along
the ring edges, so the visiting order depends on (a, i) only.
"""

from __future__ import annotations

from collections.abc import Iterator, Set

Coordinate = tuple[int, int]


def ring_size(radius: int) -> int:
    """Number of cells on a ring (1 for the origin)."""
    return max(1, 8 * radius)


def in_ring(x: int, z: int, radius: int) -> bool:
    return (abs(x) == radius and abs(z) <= radius) or (abs(z) == radius and abs(x) <= radius)


def ring_candidates(a: int, radius: int) -> list[Coordinate]:
    """Candidates of sub-order a on a ring, in canonical order, without repeats.

    Args:
        a: Offset along the ring edge, 0 <= a <= radius.
        radius: Ring radius.

    Returns:
        Up to eight coordinates: (a, i), (i, a), (-a, i), (i, -a),
        (-i, a), (a, -i), (-a, -i), (-i, -a).
    """
    if not 0 <= a <= radius:
        raise ValueError(f"sub-order {a} outside ring {radius}")
    i = radius
    ordered = [(a, i), (i, a), (-a, i), (i, -a), (-i, a), (a, -i), (-a, -i), (-i, -a)]
    seen: set[Coordinate] = set()
    candidates: list[Coordinate] = []
    for cell in ordered:
        if cell not in seen:
            seen.add(cell)
            candidates.append(cell)
    return candidates


def iter_ring(radius: int) -> Iterator[Coordinate]:
    """Every cell of a ring in canonical scan order."""
    for a in range(radius + 1):
        yield from ring_candidates(a, radius)


def find_free_in_ring(radius: int, occupied: Set[Coordinate]) -> Coordinate | None:
    """First cell of the ring absent from occupied, or None if the ring is full."""
    for cell in iter_ring(radius):
        if cell not in occupied:
            return cell
    return None
