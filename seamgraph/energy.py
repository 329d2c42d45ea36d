"""
Energy functions for seam carving.

The energy function determines which pixels are "important".
Low-energy seams are preferred for removal.

Energy is the gradient magnitude of brightness over the eight neighbours of a
node (Sobel weights), following links through the grid so that it stays
correct after seams have been removed:

    h = (NW + 2W + SW) - (NE + 2E + SE)
    v = (NW + 2N + NE) - (SW + 2S + SE)
    E = sqrt(h^2 + v^2)

Border sentinels have brightness 0 and energy 0.
"""

import math
import numpy as np
import torch

from .grid import Grid, NodeKind, NORTH, EAST, SOUTH, WEST, node_matrix


def brightness(grid: Grid, node: int) -> float:
    """Integer mean of the RGB channels scaled to [0, 1]; 0 for sentinels."""
    if grid.is_border(node):
        return 0.0
    rgb = grid.colors[node, :3].to(torch.int64)
    return (int(rgb.sum()) // 3) / 255.0


def node_energy(grid: Grid, node: int) -> float:
    """Gradient magnitude energy of a single node, read through its links."""
    if grid.is_border(node):
        return 0.0

    north = grid.step(node, NORTH)
    south = grid.step(node, SOUTH)

    n = brightness(grid, north)
    s = brightness(grid, south)
    w = brightness(grid, grid.step(node, WEST))
    e = brightness(grid, grid.step(node, EAST))
    nw = brightness(grid, grid.step(north, WEST))
    ne = brightness(grid, grid.step(north, EAST))
    sw = brightness(grid, grid.step(south, WEST))
    se = brightness(grid, grid.step(south, EAST))

    horiz = (nw + 2 * w + sw) - (ne + 2 * e + se)
    vert = (nw + 2 * n + ne) - (sw + 2 * s + se)
    return math.sqrt(horiz * horiz + vert * vert)


def brightness_map(grid: Grid, nodes: np.ndarray = None) -> torch.Tensor:
    """
    Brightness of every live node, sentinel ring included.

    Args:
        grid: Grid to read
        nodes: Optional precomputed node_matrix(grid)

    Returns:
        Brightness (height, width) float64 tensor with zeros on the ring
    """
    if nodes is None:
        nodes = node_matrix(grid)
    index = torch.from_numpy(nodes)
    rgb = grid.colors[index][..., :3].to(torch.int64).sum(dim=-1)
    bright = torch.div(rgb, 3, rounding_mode='floor').to(torch.float64) / 255.0

    border = torch.from_numpy(grid.kinds[nodes] == NodeKind.BORDER)
    return torch.where(border, torch.zeros_like(bright), bright)


def energy_map(grid: Grid, nodes: np.ndarray = None) -> torch.Tensor:
    """
    Energy of every interior node.

    Computed with shifted views of the brightness map; the ring of zero
    sentinels plays the role of the padding. Produces exactly the values
    node_energy() gives node by node.

    Returns:
        Energy map (height - 2, width - 2) float64 tensor
    """
    b = brightness_map(grid, nodes)

    nw, n, ne = b[:-2, :-2], b[:-2, 1:-1], b[:-2, 2:]
    w, e = b[1:-1, :-2], b[1:-1, 2:]
    sw, s, se = b[2:, :-2], b[2:, 1:-1], b[2:, 2:]

    horiz = (nw + 2 * w + sw) - (ne + 2 * e + se)
    vert = (nw + 2 * n + ne) - (sw + 2 * s + se)
    return torch.sqrt(horiz * horiz + vert * vert)


def normalize_energy(energy: torch.Tensor) -> torch.Tensor:
    """Scale energy by its maximum so the strongest edge maps to 1.

    An all-zero map stays all zeros.
    """
    e_max = energy.max() if energy.numel() else energy.new_tensor(0.0)
    if e_max <= 0:
        return torch.zeros_like(energy)
    return energy / e_max
