"""
Layer module.

This module defines the layer tree of a document:

- :py:class:`Layer`: raster layer, decoded from a ``SilicaLayer`` record
- :py:class:`Group`: folder of layers, decoded from a ``SilicaGroup`` record
- :py:data:`LayerNode`: either of the two

Children of a group are stored topmost first: ``group[0]`` is drawn last.

Example usage::

    from procreate_tools import ProcreateDocument

    document = ProcreateDocument.open('artwork.procreate')
    for layer in document.descendants():
        print(layer.kind, layer.name, layer.visible)

    pixels = document[0].numpy()  # float32 array in [0, 1]
"""

import logging
from typing import TYPE_CHECKING, Any, Iterator, List, Literal, Optional, Union

import numpy as np
from attrs import define, field
from PIL import Image

from procreate_tools.api import numpy_io
from procreate_tools.constants import GROUP_CLASS, LAYER_CLASS, BlendMode
from procreate_tools.errors import TypeMismatch
from procreate_tools.registry import register

if TYPE_CHECKING:
    from procreate_tools.archive.keyed import KeyedArchive

logger = logging.getLogger(__name__)


@register(LAYER_CLASS)
@define(repr=False)
class Layer:
    """
    Raster layer.

    .. py:attribute:: uuid

        Identifier, unique within the document. Tile entries of this layer
        are prefixed with it.

    .. py:attribute:: blend

        Stored blend mode id; see :py:attr:`blend_mode`.

    .. py:attribute:: clipped

        Whether the layer is clipped to the nearest unclipped layer below.

    .. py:attribute:: opacity

        Opacity in ``[0, 1]``, applied at compositing time.

    .. py:attribute:: mask

        Nested mask layer. Decoded and loaded, but not used for compositing.

    .. py:attribute:: image

        ``RGBA`` :py:class:`PIL.Image` of the declared size, or `None` until
        tiles are loaded.
    """

    uuid: str
    blend: int = 0
    clipped: bool = False
    hidden: bool = False
    opacity: float = 1.0
    name: Optional[str] = None
    width: int = 0
    height: int = 0
    version: int = 0
    locked: Optional[bool] = None
    preserve: Optional[bool] = None
    private: Optional[bool] = None
    mask: Optional["Layer"] = None
    image: Optional[Image.Image] = field(default=None, eq=False)

    @classmethod
    def from_archive(
        cls, archive: "KeyedArchive", record: dict, key: Optional[str] = None
    ) -> "Layer":
        return cls(
            uuid=archive.decode(record, "UUID", str),
            blend=archive.decode(record, "blend", int),
            clipped=archive.decode(record, "clipped", bool),
            hidden=archive.decode(record, "hidden", bool),
            opacity=archive.decode(record, "opacity", float),
            name=archive.decode(record, "name", Optional[str]),
            width=_decode_unsigned(archive, record, "sizeWidth"),
            height=_decode_unsigned(archive, record, "sizeHeight"),
            version=archive.decode(record, "version", int),
            locked=archive.decode(record, "locked", Optional[bool]),
            preserve=archive.decode(record, "preserve", Optional[bool]),
            private=archive.decode(record, "private", Optional[bool]),
            mask=archive.decode(record, "mask", Optional[Layer]),
        )

    @property
    def kind(self) -> str:
        """
        Kind of this node.

        :return: `'layer'`
        """
        return "layer"

    @property
    def visible(self) -> bool:
        """Layer visibility."""
        return not self.hidden

    @property
    def blend_mode(self) -> BlendMode:
        """
        Blend mode. Ids without a compositing rule map to
        :py:attr:`BlendMode.NORMAL`.
        """
        return BlendMode.from_id(self.blend)

    @property
    def size(self) -> tuple:
        """(width, height) tuple."""
        return self.width, self.height

    def has_pixels(self) -> bool:
        """Whether the tiles of this layer are loaded."""
        return self.image is not None

    def has_mask(self) -> bool:
        """Whether the layer carries a nested mask layer."""
        return self.mask is not None

    def topil(self) -> Optional[Image.Image]:
        """
        Get the layer image, without opacity applied.

        :return: :py:class:`PIL.Image`, or `None` before tiles are loaded.
        """
        return self.image

    def numpy(
        self, channel: Optional[Literal["color", "alpha"]] = None
    ) -> Optional[np.ndarray]:
        """
        Get the layer pixels as a float32 array in ``[0, 1]``.

        :param channel: 'color', 'alpha', or `None` for color and alpha.
        :return: :py:class:`numpy.ndarray`, or `None` before tiles are loaded.
        """
        return numpy_io.get_array(self, channel)

    def __repr__(self) -> str:
        return "%s(%r size=%dx%d%s%s)" % (
            self.__class__.__name__,
            self.name,
            self.width,
            self.height,
            " clipped" if self.clipped else "",
            "" if self.visible else " hidden",
        )


@register(GROUP_CLASS)
@define(repr=False)
class Group:
    """
    Group of layers. Iterating a group yields its children topmost first.
    """

    name: str = ""
    hidden: bool = False
    children: List["LayerNode"] = field(factory=list)

    @classmethod
    def from_archive(
        cls, archive: "KeyedArchive", record: dict, key: Optional[str] = None
    ) -> "Group":
        return cls(
            hidden=archive.decode(record, "isHidden", bool),
            name=archive.decode(record, "name", str),
            children=archive.decode(record, "children", list[LayerNode]),
        )

    @property
    def kind(self) -> str:
        """
        Kind of this node.

        :return: `'group'`
        """
        return "group"

    @property
    def visible(self) -> bool:
        """Group visibility."""
        return not self.hidden

    def descendants(self) -> Iterator["LayerNode"]:
        """
        Return a generator to iterate over all descendant nodes, depth first
        in stored order.

        Example::

            # Iterate over all layers
            for layer in group.descendants():
                print(layer)

            # Iterate over all layers in reverse order
            for layer in reversed(list(group.descendants())):
                print(layer)
        """
        for child in self.children:
            yield child
            if isinstance(child, Group):
                for node in child.descendants():
                    yield node

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator["LayerNode"]:
        return iter(self.children)

    def __getitem__(self, key: Any) -> Any:
        return self.children[key]

    def __repr__(self) -> str:
        return "%s(%r children=%d%s)" % (
            self.__class__.__name__,
            self.name,
            len(self.children),
            "" if self.visible else " hidden",
        )


LayerNode = Union[Layer, Group]


def _decode_unsigned(archive: "KeyedArchive", record: dict, key: str) -> int:
    value = archive.decode(record, key, int)
    if value < 0:
        raise TypeMismatch(key, "unsigned int", str(value))
    return value
