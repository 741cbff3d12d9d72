"""
procreate-tools: Python package for reading Procreate ``.procreate`` files.

A ``.procreate`` file is a zip container holding a keyed archive that
describes the layer tree, and the layer pixels split into compressed tiles.
This package decodes the tree, reassembles each layer's image and flattens
the tree into one image.

Basic usage::

    from procreate_tools import ProcreateDocument

    # Open a document; all layer images are loaded
    document = ProcreateDocument.open('artwork.procreate')

    # Iterate through layers, topmost first
    for layer in document:
        print(layer.name)

    # Export to PNG
    document.composite().save('final.png')
    document.thumbnail().save('reference.png')

Architecture:

- :py:mod:`procreate_tools.archive`: Container and keyed archive decoding
- :py:mod:`procreate_tools.api`: Document, layer tree and tile assembly
- :py:mod:`procreate_tools.composite`: Layer rendering and blending engine
- :py:mod:`procreate_tools.compression`: Tile codec (LZO)
"""

from procreate_tools.api.document import ProcreateDocument
from procreate_tools.version import __version__

__all__ = ["ProcreateDocument", "__version__"]
