"""Reader for Steam's binary ``appcache/appinfo.vdf`` catalog.

The file starts with a magic number and universe, followed by one record
per app. Each record carries a binary KeyValues blob with the app's
``common`` section (name, type, ...) and ``config`` section (launch options).

Supported layouts:
    0x07564427 (v27) - base layout
    0x07564428 (v28) - adds a SHA-1 of the binary blob to each record
    0x07564429 (v29) - keys are indexes into a string table at the end of the file

The decoded document looks like::

    {
        "magic": 0x07564429,
        "universe": 1,
        "entries": [
            {"appid": 570, "common": {"name": "Dota 2", ...}, "config": {...}},
            ...
        ],
    }
"""

import struct
from pathlib import Path
from typing import Optional

from ..errors import CatalogDecodeError
from ..logging_config import get_logger

logger = get_logger("appinfo")

MAGIC_V27 = 0x07564427
MAGIC_V28 = 0x07564428
MAGIC_V29 = 0x07564429
SUPPORTED_MAGICS = (MAGIC_V27, MAGIC_V28, MAGIC_V29)

# Binary KeyValues type tags
TYPE_NONE = 0x00  # nested object
TYPE_STRING = 0x01
TYPE_INT32 = 0x02
TYPE_FLOAT32 = 0x03
TYPE_POINTER = 0x04
TYPE_WIDESTRING = 0x05
TYPE_COLOR = 0x06
TYPE_UINT64 = 0x07
TYPE_END = 0x08
TYPE_INT64 = 0x0A
TYPE_END_ALT = 0x0B

# info_state, last_updated, pics_token, sha1, change_number
_RECORD_HEADER = struct.Struct("<IIQ20sI")
_BINARY_SHA_SIZE = 20
_MAX_DEPTH = 64


class _BinaryKeyValues:
    """Parser for one binary KeyValues blob."""

    def __init__(self, data: bytes, key_table: Optional[list[str]] = None):
        self.data = data
        self.pos = 0
        self.key_table = key_table

    def _read_cstring(self) -> str:
        end = self.data.find(b"\x00", self.pos)
        if end < 0:
            raise CatalogDecodeError("Unterminated string in key values")
        raw = self.data[self.pos:end]
        self.pos = end + 1
        return raw.decode("utf-8", errors="replace")

    def _read_widestring(self) -> str:
        end = self.pos
        while end + 1 < len(self.data):
            if self.data[end] == 0 and self.data[end + 1] == 0:
                break
            end += 2
        else:
            raise CatalogDecodeError("Unterminated wide string in key values")
        raw = self.data[self.pos:end]
        self.pos = end + 2
        return raw.decode("utf-16-le", errors="replace")

    def _unpack(self, fmt: str):
        try:
            value = struct.unpack_from(fmt, self.data, self.pos)[0]
        except struct.error as e:
            raise CatalogDecodeError(f"Truncated key values: {e}") from e
        self.pos += struct.calcsize(fmt)
        return value

    def _read_key(self) -> str:
        if self.key_table is None:
            return self._read_cstring()
        index = self._unpack("<I")
        if index >= len(self.key_table):
            raise CatalogDecodeError(f"Key index {index} outside string table")
        return self.key_table[index]

    def read_object(self, depth: int = 0) -> dict:
        if depth > _MAX_DEPTH:
            raise CatalogDecodeError("Key values nested too deeply")

        result = {}
        while self.pos < len(self.data):
            value_type = self.data[self.pos]
            self.pos += 1
            if value_type in (TYPE_END, TYPE_END_ALT):
                return result

            key = self._read_key()
            if value_type == TYPE_NONE:
                result[key] = self.read_object(depth + 1)
            elif value_type == TYPE_STRING:
                result[key] = self._read_cstring()
            elif value_type in (TYPE_INT32, TYPE_POINTER, TYPE_COLOR):
                result[key] = self._unpack("<i")
            elif value_type == TYPE_FLOAT32:
                result[key] = self._unpack("<f")
            elif value_type == TYPE_UINT64:
                result[key] = self._unpack("<Q")
            elif value_type == TYPE_INT64:
                result[key] = self._unpack("<q")
            elif value_type == TYPE_WIDESTRING:
                result[key] = self._read_widestring()
            else:
                raise CatalogDecodeError(f"Unknown key values type 0x{value_type:02x}")

        if depth > 0:
            raise CatalogDecodeError("Key values ended inside an object")
        return result


def _read_string_table(data: bytes, offset: int) -> list[str]:
    if offset <= 0 or offset >= len(data):
        raise CatalogDecodeError(f"String table offset {offset} outside file")
    try:
        (count,) = struct.unpack_from("<I", data, offset)
    except struct.error as e:
        raise CatalogDecodeError(f"Truncated string table: {e}") from e

    pos = offset + 4
    table = []
    for _ in range(count):
        end = data.find(b"\x00", pos)
        if end < 0:
            raise CatalogDecodeError("Unterminated string in string table")
        table.append(data[pos:end].decode("utf-8", errors="replace"))
        pos = end + 1
    return table


def decode_appinfo_bytes(data: bytes, strict: bool = False) -> dict:
    """Decode the contents of an appinfo.vdf file.

    Args:
        data: Raw file contents
        strict: If True, raise on a malformed record instead of returning
            the records decoded so far

    Returns:
        Document with ``magic``, ``universe`` and ``entries`` keys

    Raises:
        CatalogDecodeError: If the header is unreadable, or on any malformed
            record when ``strict`` is set
    """
    try:
        magic, universe = struct.unpack_from("<II", data, 0)
    except struct.error as e:
        raise CatalogDecodeError(f"appinfo.vdf header truncated: {e}") from e

    if magic not in SUPPORTED_MAGICS:
        raise CatalogDecodeError(f"Unsupported appinfo.vdf magic 0x{magic:08x}")

    pos = 8
    key_table = None
    data_end = len(data)
    if magic == MAGIC_V29:
        if len(data) < pos + 8:
            raise CatalogDecodeError("appinfo.vdf header truncated")
        (table_offset,) = struct.unpack_from("<q", data, pos)
        pos += 8
        key_table = _read_string_table(data, table_offset)
        data_end = table_offset

    header_size = _RECORD_HEADER.size
    if magic != MAGIC_V27:
        header_size += _BINARY_SHA_SIZE

    entries = []
    while pos + 4 <= data_end:
        (appid,) = struct.unpack_from("<I", data, pos)
        pos += 4
        if appid == 0:
            break

        try:
            if pos + 4 > data_end:
                raise CatalogDecodeError(f"Record for app {appid} truncated")
            (size,) = struct.unpack_from("<I", data, pos)
            pos += 4
            record_end = pos + size
            if size < header_size or record_end > data_end:
                raise CatalogDecodeError(f"Record for app {appid} has invalid size {size}")

            _state, _updated, _token, _sha, change_number = _RECORD_HEADER.unpack_from(data, pos)
            blob = data[pos + header_size:record_end]
            pos = record_end

            document = _BinaryKeyValues(blob, key_table).read_object()
        except CatalogDecodeError:
            if strict:
                raise
            logger.warning(f"Stopping appinfo decode at app {appid}: malformed record")
            break

        entry = dict(document.get("appinfo", document))
        entry["appid"] = appid
        entry["change_number"] = change_number
        entries.append(entry)

    return {"magic": magic, "universe": universe, "entries": entries}


def decode_appinfo(path: Path, strict: bool = False) -> dict:
    """Decode an appinfo.vdf file from disk.

    Args:
        path: Path to ``appcache/appinfo.vdf``
        strict: See decode_appinfo_bytes

    Returns:
        The decoded document

    Raises:
        OSError: If the file cannot be read
        CatalogDecodeError: If the content is not a supported catalog
    """
    data = Path(path).read_bytes()
    document = decode_appinfo_bytes(data, strict=strict)
    logger.debug(f"Decoded {len(document['entries'])} apps from {path}")
    return document
