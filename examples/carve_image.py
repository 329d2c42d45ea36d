"""
Carve an image file with the linked-grid seam carver.

Removes vertical and/or horizontal seams, then writes to the output directory:
  - carved.png        the carved image
  - energy.png        grayscale energy map of the carved image
  - carving.gif       (--gif) every step, with the next seam marked in red
  - comparison.png    (--plot) original / carved / energy side by side
  - restored.png      (--restore) the image after undoing every removal

Run:
    python examples/carve_image.py photo.jpg --vertical 50 --horizontal 20 --gif --plot
"""

import sys
import argparse
import random
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

from seamgraph.grid import grid_dimensions
from seamgraph.seam import find_seam
from seamgraph.surgery import remove_seam, undo_last_removal, should_stop
from seamgraph.carving import render_colors, render_energy_map
from seamgraph.io import load_image, load_grid, save_image, to_pil


def tensor_to_numpy(t):
    """Convert (C,H,W) or (H,W) tensor to numpy for display."""
    if t.dim() == 3:
        return t.permute(1, 2, 0).clamp(0, 1).cpu().numpy()
    return t.clamp(0, 1).cpu().numpy()


def save_comparison(images, titles, path):
    """Save a row of images side-by-side."""
    fig, axes = plt.subplots(1, len(images), figsize=(6 * len(images), 6))
    for ax, img, title in zip(axes, images, titles):
        if img.ndim == 2:
            ax.imshow(img, cmap='gray')
        else:
            ax.imshow(img)
        ax.set_title(title, fontsize=11)
        ax.axis('off')
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"Saved: {path}")


def main():
    parser = argparse.ArgumentParser(
        description="Content-aware image shrinking with reversible seam carving"
    )
    parser.add_argument('input', type=str, help='Input image file')
    parser.add_argument('--vertical', type=int, default=0,
                        help='Number of vertical seams to remove (default: 0)')
    parser.add_argument('--horizontal', type=int, default=0,
                        help='Number of horizontal seams to remove (default: 0)')
    parser.add_argument('--order', choices=['vertical-first', 'horizontal-first', 'random'],
                        default='vertical-first',
                        help='Order in which the two kinds of seams are removed')
    parser.add_argument('--seed', type=int, default=0,
                        help='Random seed for --order random (default: 0)')
    parser.add_argument('--output-dir', type=str, default='output',
                        help='Directory for results (default: output)')
    parser.add_argument('--gif', action='store_true',
                        help='Write an animated GIF of the carving steps')
    parser.add_argument('--fps', type=int, default=10,
                        help='Frames per second for the GIF (default: 10)')
    parser.add_argument('--plot', action='store_true',
                        help='Write a matplotlib comparison figure')
    parser.add_argument('--restore', action='store_true',
                        help='Undo every removal afterwards and save the result')
    args = parser.parse_args()

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    print("Loading image...")
    original = load_image(args.input)
    grid = load_grid(args.input)
    w, h = grid_dimensions(grid)
    print(f"Image size: {w} x {h}")

    plan = ['vertical'] * args.vertical + ['horizontal'] * args.horizontal
    if args.order == 'horizontal-first':
        plan.reverse()
    elif args.order == 'random':
        random.Random(args.seed).shuffle(plan)

    frames = []
    for i, direction in enumerate(plan):
        if should_stop(grid):
            print(f"Image too small to continue after {i} seams")
            break
        seam = find_seam(grid, direction)
        if args.gif:
            frames.append(to_pil(render_colors(grid, highlight=seam)))
        remove_seam(grid, seam)

        if (i + 1) % 20 == 0:
            w, h = grid_dimensions(grid)
            print(f"  Removed {i + 1}/{len(plan)} seams, size: {w} x {h}")

    carved = render_colors(grid)
    energy = render_energy_map(grid)
    save_image(carved, out_dir / 'carved.png')
    save_image(energy, out_dir / 'energy.png')
    print(f"Saved: {out_dir / 'carved.png'}")
    print(f"Saved: {out_dir / 'energy.png'}")

    if args.gif and frames:
        frames.append(to_pil(carved))
        gif_path = out_dir / 'carving.gif'
        frames[0].save(
            gif_path,
            save_all=True,
            append_images=frames[1:],
            duration=int(1000 / args.fps),
            loop=0,
            optimize=False
        )
        print(f"Saved: {gif_path} ({len(frames)} frames)")

    if args.plot:
        cw, ch = grid_dimensions(grid)
        save_comparison(
            [tensor_to_numpy(original.float() / 255.0), tensor_to_numpy(carved),
             tensor_to_numpy(energy)],
            [f"Original ({original.shape[2]} x {original.shape[1]})",
             f"Carved ({cw} x {ch})", "Energy"],
            out_dir / 'comparison.png'
        )

    if args.restore:
        print(f"Undoing {len(grid.history)} removals...")
        while undo_last_removal(grid) is not None:
            pass
        save_image(render_colors(grid), out_dir / 'restored.png')
        print(f"Saved: {out_dir / 'restored.png'}")

    print("\nDone!")


if __name__ == '__main__':
    main()
