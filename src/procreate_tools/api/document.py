"""
Procreate document module.

This module provides :py:class:`ProcreateDocument`, the entry point for
reading ``.procreate`` files. Opening a document runs three stages in order:

1. decode ``Document.archive`` into the layer tree (no pixels yet),
2. assemble the tiles of every layer into its image,
3. on request, composite the tree into one image.

A decoding error aborts at stage 1; no partial document is returned.

Example usage::

    from procreate_tools import ProcreateDocument

    document = ProcreateDocument.open('artwork.procreate')
    print(f"Size: {document.width}x{document.height}")

    for layer in document:
        print(layer.name)

    document.composite().save('final.png')
    document.thumbnail().save('reference.png')
"""

import logging
import os
from typing import Any, BinaryIO, Iterator, Optional, Union

import numpy as np
from PIL import Image

from procreate_tools.api.layers import Group, Layer, LayerNode
from procreate_tools.api.tiling import Size, TilingMeta, assemble_tree
from procreate_tools.archive.container import Container
from procreate_tools.archive.keyed import KeyedArchive
from procreate_tools.constants import DOCUMENT_ARCHIVE
from procreate_tools.errors import RenderError

logger = logging.getLogger(__name__)


class ProcreateDocument(object):
    """
    Procreate document.

    The synthetic root group is accessible at :py:attr:`root`; the document
    itself iterates and indexes like that group.

    Example::

        from procreate_tools import ProcreateDocument

        document = ProcreateDocument.open('example.procreate')
        image = document.composite()

        for layer in document.descendants():
            layer_image = layer.topil()
    """

    def __init__(
        self,
        size: Size,
        tile_size: int,
        composite_layer: Layer,
        layers: list,
        author_name: Optional[str] = None,
        **metadata: Any,
    ):
        self._size = size
        self._tiling = TilingMeta.from_size(size, tile_size)
        self._composite_layer = composite_layer
        self._root = Group(name="Root", hidden=False, children=list(layers))
        self._author_name = author_name
        self._metadata = metadata

    @classmethod
    def open(
        cls,
        fp: Union[BinaryIO, str, os.PathLike],
        strict: bool = True,
        entry: str = DOCUMENT_ARCHIVE,
    ) -> "ProcreateDocument":
        """
        Open a document and load all layer images.

        :param fp: filename or file-like object.
        :param strict: tile error policy. When `True`, a malformed or corrupt
            tile aborts loading. When `False`, the tile is skipped and left
            transparent with a warning.
        :param entry: name of the keyed archive entry.
        :return: :py:class:`ProcreateDocument`
        """
        with Container.open(fp) as container:
            archive = KeyedArchive.frombytes(container.read(entry))
            self = cls.from_archive(archive)
            self.load_images(container, strict=strict)
        return self

    @classmethod
    def from_archive(cls, archive: KeyedArchive) -> "ProcreateDocument":
        """
        Decode the document tree from a keyed archive. Layer images are not
        loaded; see :py:meth:`load_images`.

        :raise MissingKey: when a required key is absent.
        :raise TypeMismatch: when a value has the wrong shape or class.
        """
        root = archive.root
        size = archive.decode(root, "size", Size)
        tile_size = archive.decode(root, "tileSize", int)
        composite_layer = archive.decode(root, "composite", Layer)
        layers = archive.decode(root, "unwrappedLayers", list[LayerNode])
        return cls(
            size,
            tile_size,
            composite_layer,
            layers,
            author_name=archive.decode(root, "authorName", Optional[str]),
            name=archive.decode(root, "name", Optional[str]),
            stroke_count=archive.decode(root, "strokeCount", Optional[int]),
            dpi=archive.decode(root, "SilicaDocumentArchiveDPIKey", Optional[float]),
            orientation=archive.decode(root, "orientation", Optional[int]),
            flipped_horizontally=archive.decode(
                root, "flippedHorizontally", Optional[bool]
            ),
            flipped_vertically=archive.decode(
                root, "flippedVertically", Optional[bool]
            ),
            background_hidden=archive.decode(root, "backgroundHidden", Optional[bool]),
        )

    def load_images(self, container: Container, strict: bool = True) -> None:
        """
        Assemble the tiles of every layer, nested masks and the composite
        layer.

        :param container: container holding the tile entries.
        :param strict: tile error policy, see :py:meth:`open`.
        """
        names = container.names()
        assemble_tree(self._composite_layer, self._tiling, container, names, strict)
        assemble_tree(self._root, self._tiling, container, names, strict)
        logger.debug("Loaded %d nodes" % len(list(self.descendants())))

    def composite(self) -> Image.Image:
        """
        Composite the layer tree.

        :return: ``RGBA`` :py:class:`PIL.Image` of the canvas size.
        :raise RenderError: when a visible layer has no image.
        """
        from procreate_tools.composite import composite_pil

        return composite_pil(self._root, self._size)

    def numpy(self) -> np.ndarray:
        """
        Composite the layer tree into a float32 ``(height, width, 4)`` array.
        """
        from procreate_tools.composite import composite

        color, alpha = composite(self._root, self._size)
        return np.concatenate((color, alpha), axis=2)

    def thumbnail(self) -> Image.Image:
        """
        The stored composite layer, tile-assembled but not re-composited.

        :return: ``RGBA`` :py:class:`PIL.Image`.
        """
        image = self._composite_layer.topil()
        if image is None:
            raise RenderError("Composite layer is not loaded")
        return image

    def descendants(self) -> Iterator[LayerNode]:
        """Iterate over all nodes of the layer tree, depth first."""
        return self._root.descendants()

    def __len__(self) -> int:
        return len(self._root)

    def __iter__(self) -> Iterator[LayerNode]:
        return iter(self._root)

    def __getitem__(self, key: Any) -> Any:
        return self._root[key]

    def __repr__(self) -> str:
        return "%s(size=%dx%d layers=%d)" % (
            self.__class__.__name__,
            self.width,
            self.height,
            len(self),
        )

    @property
    def root(self) -> Group:
        """Synthetic root group wrapping the top-level layers."""
        return self._root

    @property
    def composite_layer(self) -> Layer:
        """Standalone composite layer stored with the document."""
        return self._composite_layer

    @property
    def tiling(self) -> TilingMeta:
        """Tile grid, see :py:class:`~procreate_tools.api.tiling.TilingMeta`."""
        return self._tiling

    @property
    def tile_size(self) -> int:
        return self._tiling.tile_size

    @property
    def size(self) -> Size:
        """
        Canvas size.

        :return: :py:class:`~procreate_tools.api.tiling.Size`
        """
        return self._size

    @property
    def width(self) -> int:
        return self._size.width

    @property
    def height(self) -> int:
        return self._size.height

    @property
    def author_name(self) -> Optional[str]:
        return self._author_name

    @property
    def name(self) -> Optional[str]:
        """Artwork title, when stored."""
        return self._metadata.get("name")

    @property
    def metadata(self) -> dict:
        """
        Optional document settings, `None` when absent: ``name``,
        ``stroke_count``, ``dpi``, ``orientation``, ``flipped_horizontally``,
        ``flipped_vertically`` and ``background_hidden``.
        """
        return dict(self._metadata)
