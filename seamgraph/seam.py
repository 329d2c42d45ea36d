"""
Seam computation.

A seam is the minimum cumulative-energy path across the grid, one pixel per
row (vertical seam, top to bottom) or one pixel per column (horizontal seam,
left to right). It is found with dynamic programming over the energy map:

    M[i, j] = E[i, j] + min(M[i-1, j-1], M[i-1, j], M[i-1, j+1])

with the out-of-range diagonal dropped at the left and right edges.
Ties go to the first candidate in the order NW, N, NE (NW, W, SW for
horizontal seams), and the terminal is the first minimum of the last row.
"""

import torch
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Tuple

from .grid import Grid, grid_dimensions, node_matrix
from .energy import energy_map


VERTICAL = 'vertical'
HORIZONTAL = 'horizontal'
DIRECTIONS = (VERTICAL, HORIZONTAL)


class SeamLink(NamedTuple):
    node: int       # arena handle of the pixel
    weight: float   # cumulative energy from the origin up to and including node


@dataclass(frozen=True)
class Seam:
    """
    Immutable seam: links ordered from origin (top row / left column) to
    terminal (bottom row / right column).

    `positions` holds the column of each node per row (vertical) or the row
    of each node per column (horizontal), as they were when the seam was found.
    """
    direction: str
    links: Tuple[SeamLink, ...]
    positions: Tuple[int, ...]

    def __len__(self):
        return len(self.links)

    @property
    def origin(self) -> SeamLink:
        return self.links[0]

    @property
    def terminal(self) -> SeamLink:
        return self.links[-1]

    @property
    def total_weight(self) -> float:
        return self.terminal.weight

    @property
    def nodes(self) -> Tuple[int, ...]:
        return tuple(link.node for link in self.links)

    def came_from(self, index: int) -> Optional[SeamLink]:
        """The link preceding links[index], or None at the origin."""
        index = index % len(self.links)
        return self.links[index - 1] if index > 0 else None

    def walk_back(self) -> Iterator[Tuple[SeamLink, Optional[SeamLink]]]:
        """Yield (link, came_from) pairs from the terminal back to the origin."""
        for i in range(len(self.links) - 1, -1, -1):
            yield self.links[i], self.came_from(i)


def dp_seam(energy: torch.Tensor, direction: str = 'vertical') -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Minimum cumulative-energy seam through an energy map.

    Args:
        energy: Energy map (H, W)
        direction: 'vertical' or 'horizontal'

    Returns:
        positions: for vertical (H,) column index per row,
                   for horizontal (W,) row index per column
        weights: cumulative energy along the seam, same length as positions
    """
    if direction == 'horizontal':
        return dp_seam(energy.t(), direction='vertical')
    elif direction != 'vertical':
        raise ValueError(f"Invalid direction: {direction}")

    H, W = energy.shape
    M = torch.empty_like(energy)
    back = torch.zeros(H, W, dtype=torch.long)
    M[0] = energy[0]

    inf = torch.full((1,), float('inf'), dtype=energy.dtype)
    for i in range(1, H):
        prev = M[i - 1]
        from_left = torch.cat([inf, prev[:-1]])
        from_right = torch.cat([prev[1:], inf])

        # Strict comparisons keep the earliest candidate on ties
        best = from_left
        offset = torch.full((W,), -1, dtype=torch.long)
        take = prev < best
        best = torch.where(take, prev, best)
        offset = torch.where(take, torch.zeros_like(offset), offset)
        take = from_right < best
        best = torch.where(take, from_right, best)
        offset = torch.where(take, torch.ones_like(offset), offset)

        M[i] = energy[i] + best
        back[i] = offset

    last = M[-1]
    positions = torch.empty(H, dtype=torch.long)
    positions[-1] = torch.nonzero(last == last.min())[0, 0]
    for i in range(H - 1, 0, -1):
        positions[i - 1] = positions[i] + back[i, positions[i]]

    weights = M[torch.arange(H), positions]
    return positions, weights


def _find_seam(grid: Grid, direction: str) -> Seam:
    w, h = grid_dimensions(grid)
    across = w if direction == VERTICAL else h
    if across < 3:
        raise ValueError(f"Grid of {w}x{h} pixels is too small for a {direction} seam; "
                         f"check should_stop() first")

    nodes = node_matrix(grid)
    interior = nodes[1:-1, 1:-1]
    energy = energy_map(grid, nodes)

    positions, weights = dp_seam(energy, direction=direction)
    positions = positions.tolist()
    weights = weights.tolist()

    if direction == VERTICAL:
        handles = [interior[i, p] for i, p in enumerate(positions)]
    else:
        handles = [interior[p, j] for j, p in enumerate(positions)]

    links = tuple(SeamLink(int(n), float(wt)) for n, wt in zip(handles, weights))
    return Seam(direction, links, tuple(positions))


def find_vertical_seam(grid: Grid) -> Seam:
    """Minimum-energy top-to-bottom seam. Does not modify the grid."""
    return _find_seam(grid, VERTICAL)


def find_horizontal_seam(grid: Grid) -> Seam:
    """Minimum-energy left-to-right seam. Does not modify the grid."""
    return _find_seam(grid, HORIZONTAL)


def find_seam(grid: Grid, direction: str = 'vertical') -> Seam:
    if direction not in DIRECTIONS:
        raise ValueError(f"Invalid direction: {direction}")
    return _find_seam(grid, direction)
