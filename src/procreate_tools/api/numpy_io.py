from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from procreate_tools.api.layers import Layer


def get_array(layer: "Layer", channel: Optional[str]) -> Optional[np.ndarray]:
    """
    Get the pixels of a loaded layer as a float32 ``(height, width, c)`` array
    in ``[0, 1]``, not premultiplied.
    """
    if layer.image is None:
        return None
    array = get_image_data(layer.image)
    if channel == "color":
        return array[:, :, :3]
    elif channel == "alpha":
        return array[:, :, 3:4]
    elif channel is None:
        return array
    raise ValueError("Unknown channel: %r" % channel)


def get_image_data(image) -> np.ndarray:
    array = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    return array.astype(np.float32) / np.float32(255.0)


def to_uint8(array: np.ndarray) -> np.ndarray:
    """Quantize a float array in ``[0, 1]`` to 8 bits."""
    return np.rint(np.clip(array, 0.0, 1.0) * 255.0).astype(np.uint8)


def paste(size: tuple, array: np.ndarray, background: float = 0.0) -> np.ndarray:
    """
    Place ``array`` at the origin of a ``(width, height)`` canvas, cropping
    or padding with ``background``.
    """
    width, height = size
    if array.shape[0] == height and array.shape[1] == width:
        return array
    view = np.full((height, width, array.shape[2]), background, dtype=np.float32)
    h, w = min(height, array.shape[0]), min(width, array.shape[1])
    view[:h, :w, :] = array[:h, :w, :]
    return view
