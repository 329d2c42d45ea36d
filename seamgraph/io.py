"""Image file helpers (Pillow <-> torch)."""

import numpy as np
import torch
from PIL import Image

from .grid import Grid, build_grid


def load_image(path) -> torch.Tensor:
    """Load an image file as a (3, H, W) uint8 tensor."""
    img = Image.open(path).convert('RGB')
    img_array = np.array(img, dtype=np.uint8)
    return torch.from_numpy(img_array).permute(2, 0, 1).contiguous()


def to_pil(tensor: torch.Tensor) -> Image.Image:
    """Convert a (C, H, W) or (H, W) tensor, uint8 or float in [0, 1], to a PIL image."""
    tensor = tensor.detach().cpu()
    if tensor.is_floating_point():
        tensor = (tensor * 255).round().clamp(0, 255)
    tensor = tensor.to(torch.uint8)

    if tensor.dim() == 2:
        return Image.fromarray(tensor.numpy())
    img_array = tensor.permute(1, 2, 0).numpy()
    if img_array.shape[2] == 1:
        return Image.fromarray(np.ascontiguousarray(img_array[:, :, 0]))
    return Image.fromarray(np.ascontiguousarray(img_array))


def save_image(tensor: torch.Tensor, path):
    """Save a tensor as an image file."""
    to_pil(tensor).save(path)


def load_grid(path) -> Grid:
    """Load an image file straight into a linked grid."""
    return build_grid(load_image(path))
