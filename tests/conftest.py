"""Shared test fixtures for the seamgraph test suite."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import torch
import pytest
from seamgraph.grid import build_grid


LIGHT_BLUE = (142, 207, 242)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def make_grid(rows):
    """Build a grid from a list of rows of RGB tuples."""
    height, width = len(rows), len(rows[0])
    flat = [color for row in rows for color in row]
    return build_grid(flat, width, height)


def random_image(H, W, channels=3, seed=0):
    """Random (C, H, W) uint8 image."""
    gen = torch.Generator().manual_seed(seed)
    return torch.randint(0, 256, (channels, H, W), generator=gen, dtype=torch.uint8)


def checkerboard_rows(H, W):
    return [[WHITE if (i + j) % 2 == 0 else BLACK for j in range(W)] for i in range(H)]


@pytest.fixture
def blue_white_grid():
    """4x4 light blue image with a 2x2 white block at rows 1-2, columns 0-1."""
    B, Wt = LIGHT_BLUE, WHITE
    return make_grid([
        [B, B, B, B],
        [Wt, Wt, B, B],
        [Wt, Wt, B, B],
        [B, B, B, B],
    ])


@pytest.fixture
def stepped_grid():
    """4x4 light blue image with a white step shape in rows 1-2."""
    B, Wt = LIGHT_BLUE, WHITE
    return make_grid([
        [B, B, B, B],
        [Wt, Wt, B, B],
        [Wt, Wt, Wt, B],
        [B, B, B, B],
    ])


@pytest.fixture
def random_grid():
    """12x9 grid of random colours."""
    return build_grid(random_image(9, 12, seed=7))
