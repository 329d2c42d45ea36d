"""
Seam carving on a doubly-linked pixel grid.

Seams are removed by rewiring neighbour links rather than copying pixels,
which keeps every removal reversible: the last removed seam can always be
put back exactly where it was.
"""

__version__ = "0.1.0"

from .grid import Grid, NodeKind, build_grid, grid_dimensions, interior_handles, broken_links
from .energy import brightness, node_energy, energy_map, normalize_energy
from .seam import (Seam, SeamLink, dp_seam, find_seam, find_vertical_seam,
                   find_horizontal_seam)
from .surgery import (
    remove_seam,
    remove_vertical_seam,
    remove_horizontal_seam,
    undo_last_removal,
    should_stop,
)
from .carving import (render_colors, highlight_seam, render_energy_map, carve, carve_image,
                      CarvingSession)
from .io import load_image, save_image, load_grid

__all__ = [
    'Grid',
    'NodeKind',
    'build_grid',
    'grid_dimensions',
    'interior_handles',
    'broken_links',
    'brightness',
    'node_energy',
    'energy_map',
    'normalize_energy',
    'Seam',
    'SeamLink',
    'dp_seam',
    'find_seam',
    'find_vertical_seam',
    'find_horizontal_seam',
    'remove_seam',
    'remove_vertical_seam',
    'remove_horizontal_seam',
    'undo_last_removal',
    'should_stop',
    'render_colors',
    'highlight_seam',
    'render_energy_map',
    'carve',
    'carve_image',
    'CarvingSession',
    'load_image',
    'save_image',
    'load_grid',
]
