"""
Seam removal and reinsertion by rewriting neighbour links.

Removing a vertical seam walks it from the bottom row back to the top. For
each seam node P and the seam node B below it:

- if B sits south-east of P, P's east neighbour takes over P's south link,
- if B sits south-west of P, P's west neighbour takes over P's south link,
- otherwise B is straight below and the column links need no change,

and P's west and east neighbours are joined across the gap. The bottom and
top sentinels of the seam's column are dropped from the border ring. A
horizontal seam is the same procedure with the axes transposed.

Removed nodes keep their own links, so undoing a removal only has to point
their neighbours back at them. Removals are undone strictly last-in first-out.
"""

from typing import Optional

from .grid import Grid, NodeKind, NORTH, EAST, SOUTH, WEST, OPPOSITE, grid_dimensions
from .seam import Seam, VERTICAL, HORIZONTAL

# direction -> (forward, backward, (side, side)); forward is the way the seam travels
_AXES = {
    VERTICAL: (SOUTH, NORTH, (EAST, WEST)),
    HORIZONTAL: (EAST, WEST, (NORTH, SOUTH)),
}


def _unlink(grid: Grid, node: int, side_a: int, side_b: int):
    """Join the neighbours on either side of `node`, skipping over it."""
    links = grid.links
    a = links[node, side_a]
    b = links[node, side_b]
    links[a, side_b] = b
    links[b, side_a] = a


def _reattach(grid: Grid, node: int):
    """Point every neighbour of `node` back at it, ignoring self-links."""
    links = grid.links
    for d in range(4):
        neighbour = links[node, d]
        if neighbour != node:
            links[neighbour, OPPOSITE[d]] = node


def _check_removable(grid: Grid, seam: Seam, direction: str):
    if seam.direction != direction:
        raise ValueError(f"Expected a {direction} seam, got a {seam.direction} seam")

    w, h = grid_dimensions(grid)
    expected = h if direction == VERTICAL else w
    if len(seam) != expected:
        raise ValueError(f"Seam has {len(seam)} nodes but the grid needs {expected}")

    links = grid.links
    for node in seam.nodes:
        detached = any(links[links[node, d], OPPOSITE[d]] != node for d in range(4))
        if grid.kinds[node] != NodeKind.INTERIOR or detached:
            raise ValueError(f"Seam node {node} is not part of the grid")

    # Each step moves one row (column) forward and at most one pixel sideways
    forward, _, sides = _AXES[direction]
    for prev, node in zip(seam.nodes, seam.nodes[1:]):
        ahead = links[prev, forward]
        if node not in (ahead, links[ahead, sides[0]], links[ahead, sides[1]]):
            raise ValueError(f"Seam node {node} is not adjacent to the previous node {prev}")


def _remove(grid: Grid, seam: Seam):
    forward, backward, sides = _AXES[seam.direction]
    across_a, across_b = sides[1], sides[0]
    links = grid.links

    terminal = seam.terminal.node
    _unlink(grid, int(links[terminal, forward]), across_a, across_b)
    _unlink(grid, terminal, across_a, across_b)

    if seam.direction == VERTICAL:
        grid.width -= 1
    else:
        grid.height -= 1

    for link, came_from in seam.walk_back():
        if came_from is None:
            _unlink(grid, int(links[link.node, backward]), across_a, across_b)
            break

        node, prev = link.node, came_from.node
        for side in sides:
            neighbour = links[prev, side]
            if links[neighbour, forward] == node:
                after = links[prev, forward]
                links[neighbour, forward] = after
                links[after, backward] = neighbour
                break
        _unlink(grid, prev, across_a, across_b)

    grid.history.append(seam)


def remove_vertical_seam(grid: Grid, seam: Seam):
    """
    Cut a vertical seam out of the grid, shrinking its width by one.

    Args:
        grid: Grid to modify in place
        seam: Vertical seam found on the current grid
    """
    _check_removable(grid, seam, VERTICAL)
    _remove(grid, seam)


def remove_horizontal_seam(grid: Grid, seam: Seam):
    """
    Cut a horizontal seam out of the grid, shrinking its height by one.

    Args:
        grid: Grid to modify in place
        seam: Horizontal seam found on the current grid
    """
    _check_removable(grid, seam, HORIZONTAL)
    _remove(grid, seam)


def remove_seam(grid: Grid, seam: Seam):
    """Remove a seam of either direction."""
    if seam.direction == VERTICAL:
        remove_vertical_seam(grid, seam)
    elif seam.direction == HORIZONTAL:
        remove_horizontal_seam(grid, seam)
    else:
        raise ValueError(f"Invalid direction: {seam.direction}")


def undo_last_removal(grid: Grid) -> Optional[Seam]:
    """
    Put the most recently removed seam back into the grid.

    Returns:
        The reinserted seam, or None (and no change) when nothing was removed
    """
    if not grid.history:
        return None

    seam = grid.history.pop()
    forward, backward, _ = _AXES[seam.direction]
    links = grid.links

    for link in reversed(seam.links):
        _reattach(grid, link.node)
    _reattach(grid, int(links[seam.terminal.node, forward]))
    _reattach(grid, int(links[seam.origin.node, backward]))

    if seam.direction == VERTICAL:
        grid.width += 1
    else:
        grid.height += 1
    return seam


def should_stop(grid: Grid) -> bool:
    """True once the interior is down to two pixels in either dimension.

    Searching needs at least three pixels across the seam, so no further
    seam can be carved from such a grid.
    """
    w, h = grid_dimensions(grid)
    return w <= 2 or h <= 2
