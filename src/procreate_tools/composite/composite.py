"""Composite implementation for layer rendering and blending."""

import logging
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

from procreate_tools.api import numpy_io
from procreate_tools.api.layers import Group, Layer
from procreate_tools.api.tiling import Size
from procreate_tools.composite.blend import get_blend_func
from procreate_tools.errors import RenderError

logger = logging.getLogger(__name__)


def composite_pil(node: Union[Layer, Group], size: Size) -> Image.Image:
    """
    Composite a layer tree and return a PIL Image.

    :param node: root of the tree to render.
    :param size: canvas size.
    :return: ``RGBA`` :py:class:`PIL.Image`.
    """
    color, alpha = composite(node, size)
    pixels = numpy_io.to_uint8(np.concatenate((color, alpha), axis=2))
    return Image.fromarray(pixels)


def composite(
    node: Union[Layer, Group], size: Size
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Composite a layer tree and return NumPy arrays.

    Children of a group are drawn in reverse stored order, so the first
    child ends up on top. Hidden nodes are skipped. The hidden flag of
    ``node`` itself is honored only when it is a layer; a group passed
    here is always rendered, like the document root.

    :param node: root of the tree to render.
    :param size: canvas size.
    :return: Tuple of (color, alpha) as float32 ndarrays with shape
        (height, width, channels), not premultiplied, in [0, 1].
    :raise RenderError: when a rendered layer has no image.
    """
    compositor = Compositor(size)
    if isinstance(node, Group):
        compositor.apply(node)
    else:
        compositor.apply(Group(children=[node]))
    return compositor.finish()


class Compositor(object):
    """Composite context.

    The accumulator starts fully transparent and is the only array written
    during the traversal.

    Example::

        compositor = Compositor(document.size)
        compositor.apply(document.root)
        color, alpha = compositor.finish()
    """

    def __init__(self, size: Size):
        self._size = size
        self._color = np.zeros((self.height, self.width, 3), dtype=np.float32)
        self._alpha = np.zeros((self.height, self.width, 1), dtype=np.float32)

    def apply(self, group: Group) -> None:
        """Render the children of ``group``, bottom-most first."""
        clip_mask: Optional[Tuple[np.ndarray, float]] = None
        for node in reversed(group.children):
            if node.hidden:
                logger.debug("Ignore hidden %s" % node)
                continue

            if isinstance(node, Group):
                self.apply(node)
                logger.debug("Finished %s" % node)
                continue

            logger.debug("Compositing %s" % node)
            color, alpha = self._get_object(node)
            if node.clipped:
                if clip_mask is not None:
                    mask_alpha, mask_opacity = clip_mask
                    alpha = alpha * mask_alpha * mask_opacity
            else:
                clip_mask = (alpha, node.opacity)

            self._apply_source(color, alpha * node.opacity, node.blend)

    def finish(self) -> Tuple[np.ndarray, np.ndarray]:
        return self._color, self._alpha

    @property
    def width(self) -> int:
        return self._size.width

    @property
    def height(self) -> int:
        return self._size.height

    def _get_object(self, layer: Layer) -> Tuple[np.ndarray, np.ndarray]:
        """Get canvas-sized color and alpha of a layer."""
        pixels = layer.numpy()
        if pixels is None:
            raise RenderError("Layer has no image: %r (%s)" % (layer, layer.uuid))
        pixels = numpy_io.paste((self.width, self.height), pixels)
        return pixels[:, :, :3], pixels[:, :, 3:4]

    def _apply_source(self, color: np.ndarray, alpha: np.ndarray, blend: int) -> None:
        color_b, alpha_b = self._color, self._alpha
        blend_fn = get_blend_func(blend)
        color_s = (1.0 - alpha_b) * color + alpha_b * blend_fn(color_b, color)

        self._alpha = alpha + alpha_b * (1.0 - alpha)
        self._color = divide(
            alpha * color_s + alpha_b * color_b * (1.0 - alpha), self._alpha
        )


def divide(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Un-premultiply; fully transparent pixels get zero color."""
    c = np.divide(a, b, out=np.zeros_like(a), where=b > 0)
    return np.clip(c, 0.0, 1.0).astype(np.float32)
