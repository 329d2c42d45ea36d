"""
High-level carving functions built on the linked grid: rendering, repeated
carving, and a headless session that replays the interactive carving loop.
"""

import random
import numpy as np
import torch
from typing import List, Optional, Sequence

from .grid import Grid, build_grid, interior_handles
from .energy import energy_map, normalize_energy
from .seam import (
    Seam, find_seam, find_vertical_seam, find_horizontal_seam, DIRECTIONS, VERTICAL,
)
from .surgery import remove_seam, undo_last_removal, should_stop


def _pad_color(color: Sequence[int], n_channels: int) -> List[int]:
    """Trim or pad a colour to n_channels, filling alpha with 255."""
    color = list(color)[:n_channels]
    return color + [255] * (n_channels - len(color))


def render_colors(grid: Grid, highlight: Optional[Seam] = None,
                  highlight_color: Sequence[int] = (255, 0, 0)) -> torch.Tensor:
    """
    Render the visible pixels of the grid.

    Args:
        grid: Grid to render
        highlight: Optional seam to paint over the image
        highlight_color: 0-255 colour used for the highlighted seam

    Returns:
        Image tensor (C, h, w) with values in [0, 1]
    """
    nodes = interior_handles(grid)
    pixels = grid.colors[torch.from_numpy(nodes)].clone()  # (h, w, C)

    if highlight is not None:
        color = _pad_color(highlight_color, pixels.shape[-1])
        mask = torch.from_numpy(np.isin(nodes, highlight.nodes))
        pixels[mask] = torch.tensor(color, dtype=torch.uint8)

    return pixels.permute(2, 0, 1).float() / 255.0


def highlight_seam(image: torch.Tensor, seam: Seam,
                   color: Sequence[int] = (255, 0, 0)) -> torch.Tensor:
    """
    Paint a seam onto an already rendered (C, h, w) image in [0, 1].

    The seam's positions index the image the seam was found on, so `image`
    must be a render of the grid from before the seam was removed.
    """
    out = image.clone()
    value = torch.tensor(_pad_color(color, out.shape[0]), dtype=out.dtype) / 255.0
    idx = torch.arange(len(seam))
    pos = torch.tensor(seam.positions)
    if seam.direction == VERTICAL:
        out[:, idx, pos] = value.unsqueeze(1)
    else:
        out[:, pos, idx] = value.unsqueeze(1)
    return out


def render_energy_map(grid: Grid) -> torch.Tensor:
    """Energy of the visible pixels scaled to [0, 1], shape (h, w)."""
    return normalize_energy(energy_map(grid)).float()


def carve(grid: Grid, n_seams: int, direction: str = 'vertical') -> List[Seam]:
    """
    Remove up to n_seams seams from the grid in place.

    Stops early once should_stop() reports the grid is too small.

    Returns:
        The removed seams in removal order
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"Invalid direction: {direction}")

    removed = []
    for i in range(n_seams):
        if should_stop(grid):
            break
        seam = find_seam(grid, direction)
        remove_seam(grid, seam)
        removed.append(seam)
    return removed


def carve_image(image: torch.Tensor, n_seams: int,
                direction: str = 'vertical') -> torch.Tensor:
    """
    Seam carving on an image tensor.

    Args:
        image: Image tensor (C, H, W), uint8 or float in [0, 1]
        n_seams: Number of seams to remove
        direction: 'vertical' (narrower) or 'horizontal' (shorter)

    Returns:
        Carved image (C, H', W') with values in [0, 1]
    """
    grid = build_grid(image)
    carve(grid, n_seams, direction=direction)
    return render_colors(grid)


class CarvingSession:
    """
    Headless carving loop.

    Every two ticks one seam is carved: the first tick picks a random direction,
    finds the seam and marks it for display, the second tick removes it. While
    paused no new seam is marked, but a marked seam is still removed.

    Keys (see on_key):
        ' '  toggle pause
        'v'  remove one vertical seam right away
        'h'  remove one horizontal seam right away
        'g'  toggle between the colour image and the grayscale energy map
        'u'  undo the last removal
    Keys other than the space bar are ignored while a seam is marked.
    """

    def __init__(self, grid: Grid, rng: Optional[random.Random] = None):
        self.grid = grid
        self.rng = rng if rng is not None else random.Random()
        self.counter = 0
        self.paused = False
        self.grayscale = False
        self.direction = 'vertical'
        self.pending: Optional[Seam] = None
        self.finished = False

    def tick(self):
        if self.finished:
            return
        if should_stop(self.grid):
            self.finished = True
            return

        if self.counter % 2 == 0:
            self.direction = self.rng.choice(DIRECTIONS)
            if self.paused:
                return
            self.pending = find_seam(self.grid, self.direction)
        else:
            remove_seam(self.grid, self.pending)
            self.pending = None
        self.counter += 1

    def on_key(self, key: str):
        if key == ' ':
            self.paused = not self.paused
        elif self.pending is not None:
            return
        elif key == 'v' and not should_stop(self.grid):
            remove_seam(self.grid, find_vertical_seam(self.grid))
        elif key == 'h' and not should_stop(self.grid):
            remove_seam(self.grid, find_horizontal_seam(self.grid))
        elif key == 'g':
            self.grayscale = not self.grayscale
        elif key == 'u':
            undo_last_removal(self.grid)

    def frame(self) -> torch.Tensor:
        """Current picture as a (C, h, w) tensor in [0, 1]."""
        if self.grayscale:
            return render_energy_map(self.grid).unsqueeze(0).expand(3, -1, -1).clone()
        return render_colors(self.grid, highlight=self.pending)
