"""
Zip container reader.
"""

import logging
import os
import zipfile
import zlib
from typing import BinaryIO, List, Union

from procreate_tools.errors import ContainerError

logger = logging.getLogger(__name__)


class Container(object):
    """
    Read-only view of a ``.procreate`` zip container.

    Example::

        with Container.open('artwork.procreate') as container:
            data = container.read('Document.archive')
    """

    def __init__(self, fp: Union[BinaryIO, str, os.PathLike]):
        try:
            self._zip = zipfile.ZipFile(fp, "r")
        except (zipfile.BadZipFile, OSError) as e:
            raise ContainerError("Cannot open container: %s" % e) from e
        self._names = self._zip.namelist()

    @classmethod
    def open(cls, fp: Union[BinaryIO, str, os.PathLike]) -> "Container":
        """
        Open a container.

        :param fp: filename or file-like object.
        :return: :py:class:`Container`
        """
        return cls(fp)

    def names(self) -> List[str]:
        """Entry names in archive order."""
        return list(self._names)

    def read(self, name: str) -> bytes:
        """
        Read an entry fully.

        :raise ContainerError: when the entry is missing or unreadable.
        """
        try:
            data = self._zip.read(name)
        except KeyError as e:
            raise ContainerError("Entry not found: %r" % name, name) from e
        except (zipfile.BadZipFile, zlib.error, OSError, EOFError) as e:
            raise ContainerError("Cannot read entry %r: %s" % (name, e), name) from e
        logger.debug("Read %s (%d bytes)" % (name, len(data)))
        return data

    def close(self) -> None:
        self._zip.close()

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
