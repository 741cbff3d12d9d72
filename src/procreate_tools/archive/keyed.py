"""
Keyed archive decoder.

``Document.archive`` is an ``NSKeyedArchiver`` property list. Instead of a
nested document it stores a flat ``$objects`` table: records reference each
other through :py:class:`plistlib.UID` indices, index 0 is the ``$null``
sentinel, records name their class through a ``$class`` reference to a
``{"$classname": ...}`` entry, and arrays are wrapped in an ``NS.objects``
holder record::

    {
        "$archiver": "NSKeyedArchiver",
        "$top": {"root": UID(1)},
        "$objects": [
            "$null",
            {"$class": UID(3), "name": UID(2), "tileSize": 256, ...},
            "Untitled Artwork",
            {"$classname": "SilicaDocument", "$classes": [...]},
            ...
        ],
    }

There is no fixed schema, so values are typed one field at a time with
:py:meth:`KeyedArchive.decode`, where the target is an ordinary Python type
expression::

    archive = KeyedArchive.frombytes(data)
    root = archive.root
    tile_size = archive.decode(root, "tileSize", int)
    author = archive.decode(root, "authorName", Optional[str])
    layers = archive.decode(root, "unwrappedLayers", list[LayerNode])

Supported targets are ``bool``, ``int``, ``float``, ``str``, ``dict`` (the raw
record), ``Optional[T]``, ``list[T]``, a ``Union`` of registered record
classes (dispatched on the class tag), a registered record class, and any
other class providing a ``from_archive(archive, value, key)`` classmethod.
"""

import logging
import plistlib
from typing import Any, Optional, Union, get_args, get_origin
from xml.parsers.expat import ExpatError

from procreate_tools.errors import ArchiveError, MissingKey, TypeMismatch
from procreate_tools.registry import CLASSES

logger = logging.getLogger(__name__)

NULL = "$null"
CLASS_KEY = "$class"
CLASSNAME_KEY = "$classname"
ARRAY_KEY = "NS.objects"

_NoneType = type(None)


class KeyedArchive(object):
    """
    Typed view of a keyed archive.

    :param data: the top-level dictionary of the parsed property list.
    """

    def __init__(self, data: dict):
        if not isinstance(data, dict):
            raise ArchiveError("Expected a dictionary, got %s" % type(data).__name__)
        objects = data.get("$objects")
        top = data.get("$top")
        if not isinstance(objects, list) or not isinstance(top, dict):
            raise ArchiveError("Not a keyed archive: missing $objects or $top")
        self._objects = objects
        self._top = top

    @classmethod
    def frombytes(cls, data: bytes) -> "KeyedArchive":
        """
        Parse a binary or XML property list.

        :param data: raw bytes of the archive entry.
        :return: :py:class:`KeyedArchive`
        """
        try:
            plist = plistlib.loads(data)
        except (ValueError, IndexError, OverflowError, ExpatError) as e:
            raise ArchiveError("Invalid property list: %s" % e) from e
        return cls(plist)

    @property
    def top(self) -> dict:
        """The ``$top`` dictionary."""
        return self._top

    @property
    def root(self) -> dict:
        """The root record referenced by ``$top["root"]``."""
        return self.decode(self._top, "root", dict)

    def resolve(self, value: Any) -> Any:
        """
        Follow a UID reference. The ``$null`` sentinel resolves to `None`;
        inline values are returned unchanged.
        """
        if isinstance(value, plistlib.UID):
            index = value.data
            if not 0 <= index < len(self._objects):
                raise ArchiveError("Dangling reference to object %d" % index)
            value = self._objects[index]
        if isinstance(value, str) and value == NULL:
            return None
        return value

    def decode(self, node: Any, key: str, kind: Any) -> Any:
        """
        Decode ``node[key]`` as ``kind``.

        :param node: an archived record (a dictionary).
        :param key: field name.
        :param kind: target type expression.
        :raise MissingKey: when a required key is absent.
        :raise TypeMismatch: when the value does not have the expected shape.
        """
        if not isinstance(node, dict):
            raise TypeMismatch(key, "record", self._describe(node))
        optional, kind = _split_optional(kind)
        if key not in node:
            if optional:
                return None
            raise MissingKey(key)
        value = self.resolve(node[key])
        if value is None:
            if optional:
                return None
            raise TypeMismatch(key, _type_name(kind), "null")
        return self.decode_value(value, kind, key)

    def decode_value(self, value: Any, kind: Any, key: Optional[str] = None) -> Any:
        """
        Decode an already resolved value as ``kind``. ``key`` is only used
        for error reporting.
        """
        optional, kind = _split_optional(kind)
        if value is None:
            if optional:
                return None
            raise TypeMismatch(key, _type_name(kind), "null")

        origin = get_origin(kind)
        if origin is Union:
            return self._decode_variant(value, get_args(kind), key)
        if origin is list:
            (item_kind,) = get_args(kind)
            return [
                self.decode_value(self.resolve(item), item_kind, key)
                for item in self._unwrap_array(value, key)
            ]

        if kind is bool:
            if not isinstance(value, bool):
                raise TypeMismatch(key, "bool", self._describe(value))
            return value
        if kind is int:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeMismatch(key, "int", self._describe(value))
            return value
        if kind is float:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeMismatch(key, "float", self._describe(value))
            return float(value)
        if kind is str:
            if not isinstance(value, str):
                raise TypeMismatch(key, "str", self._describe(value))
            return value
        if kind is dict:
            if not isinstance(value, dict):
                raise TypeMismatch(key, "record", self._describe(value))
            return value

        classname = getattr(kind, "classname", None)
        if classname is not None:
            actual = self.class_name(value, key)
            if actual != classname:
                raise TypeMismatch(key, classname, actual)
            return kind.from_archive(self, value, key)
        if hasattr(kind, "from_archive"):
            return kind.from_archive(self, value, key)
        raise TypeError("Unsupported decode target: %r" % (kind,))

    def class_name(self, record: Any, key: Optional[str] = None) -> str:
        """Read the ``$classname`` a record is tagged with."""
        if not isinstance(record, dict):
            raise TypeMismatch(key, "record", self._describe(record))
        kls = self.decode(record, CLASS_KEY, dict)
        return self.decode(kls, CLASSNAME_KEY, str)

    def _decode_variant(self, value: Any, kinds: tuple, key: Optional[str]) -> Any:
        name = self.class_name(value, key)
        kls = CLASSES.get(name)
        if kls is None or kls not in kinds:
            expected = " | ".join(_type_name(k) for k in kinds)
            raise TypeMismatch(key, expected, name)
        logger.debug("Decoding %s at %r" % (name, key))
        return kls.from_archive(self, value, key)

    def _unwrap_array(self, value: Any, key: Optional[str]) -> list:
        if not isinstance(value, dict) or ARRAY_KEY not in value:
            raise TypeMismatch(key, "array", self._describe(value))
        items = self.resolve(value[ARRAY_KEY])
        if not isinstance(items, list):
            raise TypeMismatch(key, "array", self._describe(items))
        return items

    def expand(self, value: Any = None, _seen: Optional[frozenset] = None) -> Any:
        """
        Resolve every reference below ``value`` (default: the root record)
        into plain Python data, for debugging. Cyclic references are
        replaced by a placeholder string.
        """
        if value is None:
            value = self._top.get("root")
        _seen = _seen or frozenset()
        if isinstance(value, plistlib.UID):
            if value.data in _seen:
                return "<cycle %d>" % value.data
            _seen = _seen | {value.data}
        value = self.resolve(value)
        if isinstance(value, dict):
            return {k: self.expand(v, _seen) for k, v in value.items()}
        if isinstance(value, list):
            return [self.expand(v, _seen) for v in value]
        return value

    def _describe(self, value: Any) -> str:
        if isinstance(value, dict):
            if CLASS_KEY in value:
                try:
                    return "record of class %r" % self.class_name(value)
                except ArchiveError:
                    return "record with a broken class tag"
            return "record"
        return type(value).__name__


def _split_optional(kind: Any) -> tuple:
    if get_origin(kind) is Union:
        args = get_args(kind)
        if _NoneType in args:
            rest = tuple(arg for arg in args if arg is not _NoneType)
            return True, rest[0] if len(rest) == 1 else Union[rest]
    return False, kind


def _type_name(kind: Any) -> str:
    return getattr(kind, "classname", None) or getattr(kind, "__name__", repr(kind))

