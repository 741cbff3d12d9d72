"""
Various constants for procreate_tools
"""

from enum import IntEnum

#: Name of the container entry holding the keyed archive.
DOCUMENT_ARCHIVE = "Document.archive"

#: Class tag of a layer record in the keyed archive.
LAYER_CLASS = "SilicaLayer"

#: Class tag of a group record in the keyed archive.
GROUP_CLASS = "SilicaGroup"

#: Number of bytes per RGBA8 pixel.
CHANNELS = 4


class BlendMode(IntEnum):
    """
    Blend mode ids stored in the ``blend`` field of a layer.

    Only the modes the compositor implements are listed. Any other id,
    including ids Procreate defines but this package does not render, is
    treated as :py:attr:`NORMAL`; see :py:meth:`from_id`.
    """

    NORMAL = 0
    MULTIPLY = 1
    SCREEN = 2
    OVERLAY = 11

    @classmethod
    def from_id(cls, value: int) -> "BlendMode":
        """Map a stored blend id to a mode, falling back to normal."""
        try:
            return cls(value)
        except ValueError:
            return cls.NORMAL
