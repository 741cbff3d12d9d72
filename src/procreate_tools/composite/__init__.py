"""
Composite module for layer rendering and blending.

This subpackage flattens a layer tree into one image. Layers are drawn
bottom to top, blended with their blend mode, scaled by their opacity and,
when clipped, restricted to the alpha of the nearest unclipped layer below.

Key modules:

- :py:mod:`procreate_tools.composite.composite`: Main compositing functions
- :py:mod:`procreate_tools.composite.blend`: Blend mode implementations

Example usage::

    from procreate_tools import ProcreateDocument
    from procreate_tools.composite import composite

    document = ProcreateDocument.open('artwork.procreate')
    color, alpha = composite(document.root, document.size)

Every layer reached by the traversal must have its image loaded.
"""

from procreate_tools.composite.composite import composite, composite_pil

__all__ = [
    "composite",
    "composite_pil",
]
