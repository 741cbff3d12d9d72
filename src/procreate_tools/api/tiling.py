"""
Tiling module.

Layer pixels are stored as square tiles of ``tile_size`` pixels, one
container entry per tile, named after the owning layer::

    <layer uuid>/<column>~<row>.chunk

Tiles on the last column and row are cropped to the canvas: their width is
``tile_size - diff.width`` and their height ``tile_size - diff.height``, where
``diff`` is how far the tile grid overshoots the canvas. For example, a 300px
wide canvas with 256px tiles has 2 columns, ``diff.width == 212`` and a last
column 44px wide.

:py:func:`assemble_layer` decompresses every tile of one layer and pastes it
into a transparent image of the layer's declared size. Opacity is not applied
here; it is a compositing-time factor.
"""

import logging
import re
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Tuple

from attrs import define
from PIL import Image

from procreate_tools import compression
from procreate_tools.constants import CHANNELS
from procreate_tools.errors import (
    ArchiveError,
    ContainerError,
    TileDecodeError,
    TileNameError,
    TypeMismatch,
)

if TYPE_CHECKING:
    from procreate_tools.api.layers import Layer, LayerNode
    from procreate_tools.archive.container import Container
    from procreate_tools.archive.keyed import KeyedArchive

logger = logging.getLogger(__name__)

SIZE_PATTERN = re.compile(r"^\{\s*(\d+(?:\.\d*)?)\s*,\s*(\d+(?:\.\d*)?)\s*\}$")
TILE_PATTERN = re.compile(r"^/?(\d+)~(\d+)$")


@define(frozen=True)
class Size:
    """
    Unsigned width and height.

    Archived sizes are strings in the ``"{width, height}"`` form.
    """

    width: int = 0
    height: int = 0

    @classmethod
    def from_archive(
        cls, archive: "KeyedArchive", value: Any, key: Optional[str] = None
    ) -> "Size":
        if not isinstance(value, str):
            raise TypeMismatch(key, "size string", type(value).__name__)
        match = SIZE_PATTERN.match(value)
        if match is None:
            raise TypeMismatch(key, "size string", repr(value))
        return cls(int(float(match.group(1))), int(float(match.group(2))))


@define(frozen=True)
class TilingMeta:
    """
    Tile grid of a document.

    .. py:attribute:: columns
    .. py:attribute:: rows
    .. py:attribute:: tile_size
    .. py:attribute:: diff

        Overshoot of the grid past the canvas, each side in
        ``[0, tile_size)``.
    """

    columns: int
    rows: int
    tile_size: int
    diff: Size

    @classmethod
    def from_size(cls, size: Size, tile_size: int) -> "TilingMeta":
        """
        Derive the tile grid covering a canvas.

        :param size: canvas size.
        :param tile_size: tile edge length in pixels.
        """
        if tile_size <= 0:
            raise ArchiveError("Invalid tile size: %d" % tile_size)
        columns = -(-size.width // tile_size)
        rows = -(-size.height // tile_size)
        return cls(
            columns=columns,
            rows=rows,
            tile_size=tile_size,
            diff=Size(columns * tile_size - size.width, rows * tile_size - size.height),
        )

    def tile_dimensions(self, column: int, row: int) -> Tuple[int, int]:
        """Width and height of the tile at ``(column, row)``."""
        width = self.tile_size
        if column == self.columns - 1:
            width -= self.diff.width
        height = self.tile_size
        if row == self.rows - 1:
            height -= self.diff.height
        return width, height

    def tile_offset(self, column: int, row: int) -> Tuple[int, int]:
        """Pixel offset of the tile at ``(column, row)``."""
        return column * self.tile_size, row * self.tile_size


def parse_tile_name(name: str, uuid: str) -> Tuple[int, int]:
    """
    Parse the ``(column, row)`` of a tile entry owned by ``uuid``.

    The part of the name after the uuid, up to the first ``.``, must be
    ``<column>~<row>``, optionally preceded by a ``/`` directory separator.

    :raise TileNameError: when the suffix is malformed.
    """
    stem = name[len(uuid) :].split(".", 1)[0]
    match = TILE_PATTERN.match(stem)
    if match is None:
        raise TileNameError("Malformed tile name: %r" % name, name)
    return int(match.group(1)), int(match.group(2))


def tile_names(uuid: str, names: Iterable[str]) -> List[str]:
    """Container entries holding tiles of the layer ``uuid``."""
    if not uuid:
        return []
    return [n for n in names if n.startswith(uuid) and not n.endswith("/")]


def assemble_layer(
    layer: "Layer",
    tiling: TilingMeta,
    container: "Container",
    names: Iterable[str],
    strict: bool = True,
) -> Image.Image:
    """
    Build the pixel image of one layer from its tiles and store it in
    ``layer.image``.

    :param layer: layer to load.
    :param tiling: tile grid of the document.
    :param container: container to read tiles from.
    :param names: all entry names of the container.
    :param strict: when `True`, the first malformed, unreadable or corrupt
        tile raises. When `False`, malformed names are skipped and unreadable
        or corrupt tiles are left transparent, with a warning.
    :return: :py:class:`PIL.Image` in ``RGBA`` mode.
    """
    image = Image.new("RGBA", (layer.width, layer.height), (0, 0, 0, 0))
    for name in tile_names(layer.uuid, names):
        try:
            column, row = parse_tile_name(name, layer.uuid)
        except TileNameError:
            if strict:
                raise
            logger.warning("Skipping malformed tile name %r" % name)
            continue

        width, height = tiling.tile_dimensions(column, row)
        length = width * height * CHANNELS
        try:
            data = compression.decompress(container.read(name), length)
        except ContainerError as e:
            if strict:
                raise
            logger.warning("Leaving unreadable tile %r transparent: %s" % (name, e))
            continue
        except ValueError as e:
            if strict:
                raise TileDecodeError("%s: %s" % (name, e), name, length) from e
            logger.warning("Leaving corrupt tile %r transparent: %s" % (name, e))
            continue

        tile = Image.frombytes("RGBA", (width, height), data)
        image.paste(tile, tiling.tile_offset(column, row))

    layer.image = image
    return image


def assemble_tree(
    node: "LayerNode",
    tiling: TilingMeta,
    container: "Container",
    names: Iterable[str],
    strict: bool = True,
) -> None:
    """
    Load the image of every layer reachable from ``node``, including nested
    masks.
    """
    from procreate_tools.api.layers import Group

    names = list(names)
    layers = node.descendants() if isinstance(node, Group) else [node]
    for layer in layers:
        if isinstance(layer, Group):
            continue
        assemble_layer(layer, tiling, container, names, strict)
        if layer.mask is not None:
            assemble_layer(layer.mask, tiling, container, names, strict)
        logger.debug("Loaded %s" % layer)
