"""
Low-level access to a ``.procreate`` container.

- :py:mod:`procreate_tools.archive.container`: the zip container holding the
  document archive and the tile entries.
- :py:mod:`procreate_tools.archive.keyed`: typed decoding of the
  ``NSKeyedArchiver`` object graph stored in ``Document.archive``.

Nothing outside this subpackage touches the raw property-list values.
"""

from procreate_tools.archive.container import Container
from procreate_tools.archive.keyed import KeyedArchive

__all__ = ["Container", "KeyedArchive"]
