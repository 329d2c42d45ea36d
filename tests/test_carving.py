"""Tests for rendering, carving and the headless carving session."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import random
import torch
import pytest
from seamgraph.grid import build_grid, grid_dimensions, connectivity
from seamgraph.seam import find_vertical_seam, find_horizontal_seam
from seamgraph.carving import (
    render_colors, highlight_seam, render_energy_map, carve, carve_image, CarvingSession,
)

from conftest import random_image


class TestRender:
    def test_matches_input(self):
        img = random_image(6, 8)
        out = render_colors(build_grid(img))
        assert out.shape == (3, 6, 8)
        assert out.dtype == torch.float32
        assert torch.allclose(out, img.float() / 255.0)

    def test_rgba_keeps_alpha(self):
        img = random_image(4, 5, channels=4)
        out = render_colors(build_grid(img))
        assert out.shape == (4, 4, 5)
        assert torch.allclose(out, img.float() / 255.0)

    def test_highlight_paints_seam(self, random_grid):
        seam = find_vertical_seam(random_grid)
        plain = render_colors(random_grid)
        marked = render_colors(random_grid, highlight=seam)
        for i, p in enumerate(seam.positions):
            assert marked[:, i, p].tolist() == [1.0, 0.0, 0.0]
        mask = torch.ones(9, 12, dtype=torch.bool)
        for i, p in enumerate(seam.positions):
            mask[i, p] = False
        assert torch.equal(marked[:, mask], plain[:, mask])

    def test_highlight_leaves_grid_alone(self, random_grid):
        before = render_colors(random_grid)
        render_colors(random_grid, highlight=find_vertical_seam(random_grid))
        assert torch.equal(render_colors(random_grid), before)

    def test_highlight_rgba_is_opaque(self):
        grid = build_grid(random_image(4, 4, channels=4))
        seam = find_vertical_seam(grid)
        marked = render_colors(grid, highlight=seam, highlight_color=(0, 255, 0))
        i, p = 0, seam.positions[0]
        assert marked[:, i, p].tolist() == [0.0, 1.0, 0.0, 1.0]

    def test_highlight_seam_matches_render_overlay(self, random_grid):
        for seam in (find_vertical_seam(random_grid), find_horizontal_seam(random_grid)):
            plain = render_colors(random_grid)
            painted = highlight_seam(plain, seam)
            assert torch.equal(painted, render_colors(random_grid, highlight=seam))
            assert not torch.equal(painted, plain)

    def test_energy_map_range(self, random_grid):
        energy = render_energy_map(random_grid)
        assert energy.shape == (9, 12)
        assert energy.min() >= 0
        assert energy.max() == pytest.approx(1.0)

    def test_energy_map_of_flat_image(self):
        img = torch.full((3, 5, 5), 100, dtype=torch.uint8)
        energy = render_energy_map(build_grid(img))
        # Only the pixels touching the black border carry energy
        assert (energy[1:-1, 1:-1] == 0).all()
        assert (energy[0] > 0).all()


class TestCarve:
    def test_carve_vertical(self, random_grid):
        removed = carve(random_grid, 5, direction='vertical')
        assert len(removed) == 5
        assert grid_dimensions(random_grid) == (7, 9)
        assert random_grid.history == removed

    def test_carve_horizontal(self, random_grid):
        carve(random_grid, 3, direction='horizontal')
        assert grid_dimensions(random_grid) == (12, 6)

    def test_carve_stops_when_too_small(self):
        grid = build_grid(random_image(4, 4))
        removed = carve(grid, 10)
        assert len(removed) == 2
        assert grid_dimensions(grid) == (2, 4)

    def test_carve_invalid_direction(self, random_grid):
        with pytest.raises(ValueError):
            carve(random_grid, 1, direction='diagonal')

    def test_carve_image_shape(self):
        img = random_image(10, 15)
        assert carve_image(img, 4).shape == (3, 10, 11)
        assert carve_image(img, 4, direction='horizontal').shape == (3, 6, 15)

    def test_carve_image_float_input(self):
        img = random_image(8, 8).float() / 255.0
        out = carve_image(img, 2)
        assert out.shape == (3, 8, 6)
        assert out.min() >= 0 and out.max() <= 1

    def test_seams_avoid_strong_edge(self):
        """A bright stripe in a dark image survives carving."""
        img = torch.full((3, 12, 16), 40, dtype=torch.uint8)
        img[:, :, 7] = 255
        out = carve_image(img, 4)
        assert out.shape == (3, 12, 12)
        stripe = (out == 1.0).all(dim=0)
        assert stripe.sum(dim=1).tolist() == [1] * 12

    def test_zero_seams(self, random_grid):
        before = connectivity(random_grid)
        assert carve(random_grid, 0) == []
        assert connectivity(random_grid) == before


class TestCarvingSession:
    def test_two_ticks_remove_one_seam(self, random_grid):
        session = CarvingSession(random_grid, rng=random.Random(0))
        session.tick()
        assert session.pending is not None
        assert session.counter == 1
        assert random_grid.history == []

        seam = session.pending
        session.tick()
        assert session.pending is None
        assert random_grid.history == [seam]
        assert session.counter == 2

    def test_direction_from_rng(self, random_grid):
        session = CarvingSession(random_grid, rng=random.Random(5))
        expected = random.Random(5)
        for _ in range(4):
            session.tick()
            assert session.pending.direction == expected.choice(['vertical', 'horizontal'])
            session.tick()

    def test_pause_stops_new_seams(self, random_grid):
        session = CarvingSession(random_grid, rng=random.Random(0))
        session.on_key(' ')
        assert session.paused
        for _ in range(3):
            session.tick()
        assert session.pending is None
        assert session.counter == 0
        assert random_grid.history == []

        session.on_key(' ')
        session.tick()
        assert session.pending is not None

    def test_pending_seam_removed_while_paused(self, random_grid):
        session = CarvingSession(random_grid, rng=random.Random(0))
        session.tick()
        session.on_key(' ')
        session.tick()
        assert session.pending is None
        assert len(random_grid.history) == 1

    def test_keys_ignored_while_seam_pending(self, random_grid):
        session = CarvingSession(random_grid, rng=random.Random(0))
        session.tick()
        for key in 'vhgu':
            session.on_key(key)
        assert random_grid.history == []
        assert not session.grayscale

    def test_manual_keys(self, random_grid):
        session = CarvingSession(random_grid, rng=random.Random(0))
        session.on_key('v')
        assert grid_dimensions(random_grid) == (11, 9)
        session.on_key('h')
        assert grid_dimensions(random_grid) == (11, 8)
        session.on_key('u')
        session.on_key('u')
        assert grid_dimensions(random_grid) == (12, 9)
        session.on_key('u')
        assert grid_dimensions(random_grid) == (12, 9)
        session.on_key('x')
        assert random_grid.history == []

    def test_grayscale_frame(self, random_grid):
        session = CarvingSession(random_grid)
        session.on_key('g')
        frame = session.frame()
        assert frame.shape == (3, 9, 12)
        assert torch.equal(frame[0], frame[1])
        assert torch.equal(frame[0], render_energy_map(random_grid))
        session.on_key('g')
        assert torch.equal(session.frame(), render_colors(random_grid))

    def test_frame_marks_pending_seam(self, random_grid):
        session = CarvingSession(random_grid, rng=random.Random(0))
        session.tick()
        assert torch.equal(session.frame(), render_colors(random_grid, highlight=session.pending))

    def test_finishes_on_small_grid(self):
        grid = build_grid(random_image(3, 3))
        session = CarvingSession(grid, rng=random.Random(0))
        session.tick()
        session.tick()
        assert len(grid.history) == 1
        session.tick()
        assert session.finished
        session.tick()
        assert session.counter == 2

    def test_manual_keys_respect_minimum_size(self):
        grid = build_grid(random_image(3, 3))
        session = CarvingSession(grid)
        session.on_key('v')
        session.on_key('v')
        session.on_key('h')
        assert grid_dimensions(grid) == (2, 3)
