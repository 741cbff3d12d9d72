"""
High-level API for working with ``.procreate`` documents.

The main entry point is
:py:class:`~procreate_tools.api.document.ProcreateDocument`, which opens a
container, decodes the layer tree and loads the layer pixels.

Key modules:

- :py:mod:`procreate_tools.api.document`: ProcreateDocument class
- :py:mod:`procreate_tools.api.layers`: Layer, Group and LayerNode
- :py:mod:`procreate_tools.api.tiling`: tile grid arithmetic and tile assembly
- :py:mod:`procreate_tools.api.numpy_io`: NumPy array conversion utilities
"""
