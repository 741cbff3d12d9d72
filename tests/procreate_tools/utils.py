import io
import logging
import plistlib
import zipfile
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from procreate_tools.archive.keyed import KeyedArchive
from procreate_tools.compression import compress
from procreate_tools.constants import DOCUMENT_ARCHIVE

logging.basicConfig(level=logging.DEBUG)

NULL = plistlib.UID(0)

#: Keys every archived layer must carry.
LAYER_KEYS = [
    "UUID",
    "blend",
    "clipped",
    "hidden",
    "opacity",
    "sizeWidth",
    "sizeHeight",
    "version",
]

#: Keys every archived group must carry.
GROUP_KEYS = ["isHidden", "name", "children"]

#: Keys the archived document must carry.
DOCUMENT_KEYS = ["size", "tileSize", "composite", "unwrappedLayers"]


class ArchiveBuilder(object):
    """Builds the object table of a keyed archive, the way NSKeyedArchiver
    lays it out: strings and records by reference, scalars inline."""

    def __init__(self) -> None:
        self.objects: List[Any] = ["$null"]
        self._classes: Dict[str, plistlib.UID] = {}

    def add(self, value: Any) -> plistlib.UID:
        self.objects.append(value)
        return plistlib.UID(len(self.objects) - 1)

    def get(self, uid: plistlib.UID) -> Any:
        return self.objects[uid.data]

    def string(self, value: Optional[str]) -> plistlib.UID:
        return NULL if value is None else self.add(value)

    def klass(self, name: str) -> plistlib.UID:
        if name not in self._classes:
            self._classes[name] = self.add(
                {"$classname": name, "$classes": [name, "NSObject"]}
            )
        return self._classes[name]

    def record(self, classname: str, fields: Dict[str, Any]) -> plistlib.UID:
        record: Dict[str, Any] = {"$class": self.klass(classname)}
        record.update(fields)
        return self.add(record)

    def array(self, items: Iterable[plistlib.UID]) -> plistlib.UID:
        return self.record("NSArray", {"NS.objects": list(items)})

    def layer(
        self,
        uuid: str,
        width: int,
        height: int,
        blend: int = 0,
        clipped: bool = False,
        hidden: bool = False,
        opacity: float = 1.0,
        name: Optional[str] = None,
        **extra: Any,
    ) -> plistlib.UID:
        fields = {
            "UUID": self.string(uuid),
            "blend": blend,
            "clipped": clipped,
            "hidden": hidden,
            "opacity": float(opacity),
            "name": self.string(name),
            "sizeWidth": width,
            "sizeHeight": height,
            "version": 1,
        }
        fields.update(extra)
        return self.record("SilicaLayer", fields)

    def group(
        self, name: str, children: Iterable[plistlib.UID], hidden: bool = False
    ) -> plistlib.UID:
        return self.record(
            "SilicaGroup",
            {
                "isHidden": hidden,
                "name": self.string(name),
                "children": self.array(children),
            },
        )

    def document(
        self,
        width: int,
        height: int,
        tile_size: int,
        composite: plistlib.UID,
        layers: Iterable[plistlib.UID],
        **extra: Any,
    ) -> plistlib.UID:
        fields = {
            "size": self.string("{%d, %d}" % (width, height)),
            "tileSize": tile_size,
            "composite": composite,
            "unwrappedLayers": self.array(layers),
        }
        fields.update(extra)
        return self.record("SilicaDocument", fields)

    def todict(self, root: plistlib.UID) -> Dict[str, Any]:
        return {
            "$archiver": "NSKeyedArchiver",
            "$objects": self.objects,
            "$top": {"root": root},
            "$version": 100000,
        }

    def archive(self, root: plistlib.UID) -> KeyedArchive:
        return KeyedArchive(self.todict(root))

    def tobytes(self, root: plistlib.UID) -> bytes:
        return plistlib.dumps(self.todict(root), fmt=plistlib.FMT_BINARY)


class DocumentBuilder(ArchiveBuilder):
    """Builds a whole ``.procreate`` container in memory."""

    def __init__(self, width: int, height: int, tile_size: int = 8) -> None:
        super().__init__()
        self.width = width
        self.height = height
        self.tile_size = tile_size
        self.tiles: Dict[str, bytes] = {}
        self._count = 0

    def pixel_layer(
        self,
        rgba: Optional[tuple] = None,
        pixels: Optional[np.ndarray] = None,
        uuid: Optional[str] = None,
        **kwargs: Any,
    ) -> plistlib.UID:
        if uuid is None:
            uuid = "LAYER-%04d" % self._count
            self._count += 1
        if pixels is None:
            pixels = solid(self.width, self.height, rgba or (0, 0, 0, 0))
        self.tiles.update(split_tiles(uuid, pixels, self.tile_size))
        return self.layer(uuid, pixels.shape[1], pixels.shape[0], **kwargs)

    def build(
        self,
        layers: Iterable[plistlib.UID],
        composite: Optional[plistlib.UID] = None,
        **extra: Any,
    ) -> io.BytesIO:
        if composite is None:
            composite = self.pixel_layer(rgba=(9, 9, 9, 255), uuid="COMPOSITE")
        root = self.document(
            self.width, self.height, self.tile_size, composite, layers, **extra
        )
        return make_container(self.tobytes(root), self.tiles)


def solid(width: int, height: int, rgba: tuple) -> np.ndarray:
    return np.full((height, width, 4), rgba, dtype=np.uint8)


def gradient(width: int, height: int) -> np.ndarray:
    """Distinct pixels, to catch misplaced tiles."""
    y, x = np.mgrid[0:height, 0:width]
    pixels = np.stack(
        [x % 256, y % 256, (x * 7 + y * 3) % 256, np.full_like(x, 255)], axis=2
    )
    return pixels.astype(np.uint8)


def split_tiles(uuid: str, pixels: np.ndarray, tile_size: int) -> Dict[str, bytes]:
    tiles = {}
    height, width = pixels.shape[:2]
    for row in range(-(-height // tile_size)):
        for column in range(-(-width // tile_size)):
            tile = pixels[
                row * tile_size : (row + 1) * tile_size,
                column * tile_size : (column + 1) * tile_size,
            ]
            name = "%s/%d~%d.chunk" % (uuid, column, row)
            tiles[name] = compress(np.ascontiguousarray(tile).tobytes())
    return tiles


def make_container(
    archive: Optional[bytes],
    entries: Dict[str, bytes],
    fp: Any = None,
    compression: int = zipfile.ZIP_STORED,
) -> Any:
    fp = fp if fp is not None else io.BytesIO()
    with zipfile.ZipFile(fp, "w", compression) as z:
        if archive is not None:
            z.writestr(DOCUMENT_ARCHIVE, archive)
        for name, data in entries.items():
            z.writestr(name, data)
    if hasattr(fp, "seek"):
        fp.seek(0)
    return fp


def corrupt_entry(fp: io.BytesIO, name: str) -> io.BytesIO:
    """Overwrite the stored bytes of one deflated entry with garbage."""
    with zipfile.ZipFile(fp) as z:
        info = z.getinfo(name)
    start = info.header_offset + 30 + len(info.filename.encode("utf-8"))
    start += len(info.extra)
    data = bytearray(fp.getvalue())
    data[start : start + info.compress_size] = b"\xff" * info.compress_size
    fp.seek(0)
    fp.write(bytes(data))
    fp.seek(0)
    return fp
