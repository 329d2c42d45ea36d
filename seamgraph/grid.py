"""
Linked pixel grid.

The grid is a flat arena of nodes. Each node has a kind tag (interior pixel or
border sentinel), a colour row and four neighbour handles (north, east, south,
west) stored as integer indices into the arena. A one-node ring of border
sentinels encloses the interior:

- top sentinels link north to themselves,
- bottom sentinels link south to themselves,
- left sentinels link west to themselves,
- right sentinels link east to themselves.

Seam surgery rewrites the neighbour handles in place. Removed nodes keep their
own handles frozen so a removal can be reversed later.
"""

import enum
import numpy as np
import torch
from typing import Dict, List, Optional, Tuple


NORTH, EAST, SOUTH, WEST = 0, 1, 2, 3
OPPOSITE = (SOUTH, WEST, NORTH, EAST)
DIRECTION_NAMES = ('north', 'east', 'south', 'west')


class NodeKind(enum.IntEnum):
    INTERIOR = 0
    BORDER = 1


class Grid:
    """
    Mutable linked grid of pixel nodes.

    `width` and `height` include the sentinel ring, so the visible image is
    (width - 2) x (height - 2). `access` is the top-left sentinel; the
    interior top-left node is always one step south then one step east of it.
    `history` is the stack of removed seams, most recent last.
    """

    def __init__(self, links: np.ndarray, kinds: np.ndarray, colors: torch.Tensor,
                 width: int, height: int, access: int = 0):
        self.links = links      # (n_nodes, 4) int64: north, east, south, west
        self.kinds = kinds      # (n_nodes,) uint8 NodeKind tags
        self.colors = colors    # (n_nodes, C) uint8, zero for sentinels
        self.width = width
        self.height = height
        self.access = access
        self.history = []

    @property
    def n_channels(self) -> int:
        return self.colors.shape[1]

    def step(self, node: int, *directions: int) -> int:
        """Follow neighbour links from `node`, e.g. step(n, NORTH, EAST)."""
        for d in directions:
            node = int(self.links[node, d])
        return node

    def is_border(self, node: int) -> bool:
        return self.kinds[node] == NodeKind.BORDER

    def __repr__(self):
        w, h = grid_dimensions(self)
        return f"Grid({w}x{h}, removed={len(self.history)})"


def _as_color_tensor(pixels, width: Optional[int], height: Optional[int]) -> torch.Tensor:
    """Normalise supported pixel inputs to a (C, H, W) uint8 tensor."""
    if isinstance(pixels, np.ndarray):
        if pixels.ndim != 3:
            raise ValueError(f"Expected (H, W, C) array, got shape {pixels.shape}")
        pixels = torch.from_numpy(np.ascontiguousarray(pixels)).permute(2, 0, 1)

    if isinstance(pixels, torch.Tensor):
        if pixels.dim() != 3:
            raise ValueError(f"Expected (C, H, W) tensor, got shape {tuple(pixels.shape)}")
        if pixels.is_floating_point():
            pixels = (pixels * 255.0).round().clamp(0, 255)
        image = pixels.to(torch.uint8)
    else:
        # Flat row-major sequence of colour tuples
        if width is None or height is None:
            raise ValueError("width and height are required for a flat pixel sequence")
        if len(pixels) != width * height:
            raise ValueError(f"Expected {width * height} colours, got {len(pixels)}")
        if len(pixels) == 0:
            raise ValueError("Cannot build a grid from an empty image")
        image = torch.tensor([list(c) for c in pixels], dtype=torch.uint8)
        image = image.reshape(height, width, -1).permute(2, 0, 1)

    C, H, W = image.shape
    if C not in (3, 4):
        raise ValueError(f"Expected 3 or 4 colour channels, got {C}")
    if H == 0 or W == 0:
        raise ValueError("Cannot build a grid from an empty image")
    if width is not None and width != W:
        raise ValueError(f"width {width} does not match image width {W}")
    if height is not None and height != H:
        raise ValueError(f"height {height} does not match image height {H}")
    return image


def build_grid(pixels, width: Optional[int] = None,
               height: Optional[int] = None) -> Grid:
    """
    Build a fully linked grid enclosed by a ring of border sentinels.

    Args:
        pixels: (C, H, W) tensor (uint8, or float in [0, 1]), (H, W, C) numpy
                array, or a flat row-major sequence of RGB/RGBA tuples
        width: Image width (required for flat sequences)
        height: Image height (required for flat sequences)

    Returns:
        Grid whose access point is the top-left sentinel
    """
    image = _as_color_tensor(pixels, width, height)
    C, H, W = image.shape
    H2, W2 = H + 2, W + 2

    idx = np.arange(H2 * W2, dtype=np.int64).reshape(H2, W2)

    # Outward-facing sentinel links point back at the sentinel itself
    north = np.vstack([idx[:1], idx[:-1]])
    south = np.vstack([idx[1:], idx[-1:]])
    west = np.hstack([idx[:, :1], idx[:, :-1]])
    east = np.hstack([idx[:, 1:], idx[:, -1:]])
    links = np.stack([north.ravel(), east.ravel(), south.ravel(), west.ravel()], axis=1)

    kinds = np.full((H2, W2), NodeKind.BORDER, dtype=np.uint8)
    kinds[1:-1, 1:-1] = NodeKind.INTERIOR

    colors = torch.zeros(H2, W2, C, dtype=torch.uint8)
    colors[1:-1, 1:-1] = image.permute(1, 2, 0)

    return Grid(links, kinds.ravel(), colors.reshape(H2 * W2, C), W2, H2, access=int(idx[0, 0]))


def grid_dimensions(grid: Grid) -> Tuple[int, int]:
    """Interior (width, height), excluding the sentinel ring."""
    return grid.width - 2, grid.height - 2


def node_matrix(grid: Grid) -> np.ndarray:
    """
    Handles of every live node laid out as a (height, width) matrix,
    sentinel ring included.

    Rows are found by walking south from the access point; columns are then
    filled for all rows at once by following east links.
    """
    rows = np.empty(grid.height, dtype=np.int64)
    node = grid.access
    for i in range(grid.height):
        rows[i] = node
        node = grid.links[node, SOUTH]

    nodes = np.empty((grid.height, grid.width), dtype=np.int64)
    nodes[:, 0] = rows
    for j in range(1, grid.width):
        nodes[:, j] = grid.links[nodes[:, j - 1], EAST]
    return nodes


def interior_handles(grid: Grid) -> np.ndarray:
    """Handles of the visible pixels as an (h, w) matrix."""
    return np.ascontiguousarray(node_matrix(grid)[1:-1, 1:-1])


def broken_links(grid: Grid) -> List[Tuple[int, str]]:
    """
    Find violations of the grid invariants among live nodes.

    Reports (node, what) pairs where `what` is a direction name for a link
    whose neighbour does not point back, or that leads out of the live grid,
    or 'kind' for a node sitting on the wrong side of the sentinel ring.
    An empty list means the grid is well formed.
    """
    nodes = node_matrix(grid)
    live = nodes.ravel()
    problems = []

    ring = np.ones(nodes.shape, dtype=bool)
    ring[1:-1, 1:-1] = False
    expected = np.where(ring, NodeKind.BORDER, NodeKind.INTERIOR).ravel()
    for node in live[grid.kinds[live] != expected]:
        problems.append((int(node), 'kind'))

    if len(np.unique(live)) != len(live):
        problems.append((int(grid.access), 'duplicate'))

    is_border = grid.kinds[live] == NodeKind.BORDER
    for d in range(4):
        neighbour = grid.links[live, d]
        back = grid.links[neighbour, OPPOSITE[d]]
        self_link = neighbour == live
        bad = (~self_link & (back != live)) | (self_link & ~is_border)
        bad |= ~np.isin(neighbour, live)
        for node in live[bad]:
            problems.append((int(node), DIRECTION_NAMES[d]))

    # Rows and columns must line up, not just link back symmetrically
    skewed = grid.links[nodes[:-1], SOUTH] != nodes[1:]
    for node in nodes[:-1][skewed]:
        problems.append((int(node), 'south'))
    skewed = grid.links[nodes[:, :-1], EAST] != nodes[:, 1:]
    for node in nodes[:, :-1][skewed]:
        problems.append((int(node), 'east'))
    return problems


def connectivity(grid: Grid) -> Dict[int, Tuple[int, int, int, int]]:
    """Snapshot of the live topology: node -> (north, east, south, west)."""
    live = node_matrix(grid).ravel()
    return {int(n): tuple(int(x) for x in grid.links[n]) for n in live}
