"""
In-memory ZIP Container Reader.

Pure Python reader for the ZIP container used by Office Open XML packages.
It works on a complete byte buffer and only needs the standard library
(``struct`` for the record layout, ``zlib`` for raw deflate).

The reader builds the name -> entry index eagerly from the central directory
and decompresses single entries on demand.

Supported features:
- Stored (method 0) entries
- Deflate (method 8) entries
- Archive comments up to the 64 KiB maximum

Not supported:
- ZIP64 archives
- Encrypted entries
- Other compression methods (raise UnsupportedCompressionError)
"""

from __future__ import annotations

import enum
import io
import logging
import struct
import zlib
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Union

from officepreview.converters.util.zip_bomb import (
    DEFAULT_ZIP_BOMB_LIMITS,
    ZipBombLimits,
    validate_entries,
)
from officepreview.exceptions import (
    CorruptCentralDirectoryError,
    CorruptEntryError,
    CorruptLocalHeaderError,
    NotAZipError,
    UnsupportedCompressionError,
)

__all__ = [
    "BufferLike",
    "CompressionMethod",
    "ZipArchive",
    "ZipEntry",
    "as_bytes",
    "open_archive",
]

logger = logging.getLogger(__name__)

BufferLike = Union[bytes, bytearray, memoryview, io.BytesIO]

# Record signatures
EOCD_SIGNATURE = 0x06054B50
CENTRAL_DIRECTORY_SIGNATURE = 0x02014B50
LOCAL_FILE_HEADER_SIGNATURE = 0x04034B50

# Fixed record layouts (little-endian)
#   EOCD: signature, disk, cd disk, entries on disk, total entries,
#         cd size, cd offset, comment length
EOCD_STRUCT = struct.Struct("<IHHHHIIH")
#   Central directory: signature, version made by, version needed, flags,
#   method, mod time, mod date, crc32, compressed size, uncompressed size,
#   name length, extra length, comment length, disk start, internal attrs,
#   external attrs, local header offset
CENTRAL_DIRECTORY_STRUCT = struct.Struct("<IHHHHHHIIIHHHHHII")
#   Local header: signature, version needed, flags, method, mod time,
#   mod date, crc32, compressed size, uncompressed size, name length,
#   extra length
LOCAL_FILE_HEADER_STRUCT = struct.Struct("<IHHHHHIIIHH")

EOCD_SIZE = EOCD_STRUCT.size  # 22
CENTRAL_DIRECTORY_SIZE = CENTRAL_DIRECTORY_STRUCT.size  # 46
LOCAL_FILE_HEADER_SIZE = LOCAL_FILE_HEADER_STRUCT.size  # 30

# The archive comment length is a 16 bit field
MAX_COMMENT_SIZE = 0xFFFF

_EOCD_MAGIC = struct.pack("<I", EOCD_SIGNATURE)


class CompressionMethod(enum.IntEnum):
    STORED = 0
    DEFLATE = 8


@dataclass(frozen=True)
class ZipEntry:
    """Central directory record of a single archive member.

    Attributes:
        name: Entry path inside the archive (unique key of the index)
        compression_method: CompressionMethod, or the raw code if unknown
        compressed_size: Size of the payload as stored in the archive
        uncompressed_size: Size of the payload after decompression
        local_header_offset: Offset of the entry's local file header
        crc32: CRC-32 of the uncompressed payload
    """

    name: str
    compression_method: Union[CompressionMethod, int]
    compressed_size: int
    uncompressed_size: int
    local_header_offset: int
    crc32: int = 0

    @property
    def is_dir(self) -> bool:
        return self.name.endswith("/")


def _decode_name(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def as_bytes(data: BufferLike) -> bytes:
    if isinstance(data, io.BytesIO):
        return data.getvalue()
    if isinstance(data, bytes):
        return data
    return bytes(data)


def _compression_method(code: int) -> Union[CompressionMethod, int]:
    try:
        return CompressionMethod(code)
    except ValueError:
        return code


class ZipArchive:
    """
    Read-only view of a ZIP archive held in memory.

    The entry index is built once at construction and never changes, so a
    single instance can serve concurrent readers.

    Example:
        >>> archive = ZipArchive(data)
        >>> archive.has("word/document.xml")
        True
        >>> xml = archive.get_text("word/document.xml")
    """

    def __init__(
        self,
        data: BufferLike,
        *,
        limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
        source: Optional[str] = None,
    ):
        """Index the archive held in ``data``.

        Args:
            data: Complete archive bytes. Mutable buffers are copied.
            limits: ZIP-bomb limits checked against the central directory
            source: Optional label used in error messages

        Raises:
            NotAZipError: If no end-of-central-directory record is found
            CorruptCentralDirectoryError: If the central directory is invalid
            ZipBombError: If the declared sizes exceed ``limits``
        """
        self._data = as_bytes(data)
        self._source = source
        self._entries: Dict[str, ZipEntry] = self._parse_central_directory()
        validate_entries(self._entries.values(), limits=limits, source=source)

    # -------------------------------------------------------------------------
    # Central directory
    # -------------------------------------------------------------------------

    def _find_end_of_central_directory(self) -> int:
        """Return the offset of the EOCD record, scanning backwards."""
        size = len(self._data)
        if size < EOCD_SIZE:
            raise NotAZipError()

        # The record is followed only by the comment, which is at most 64 KiB
        lowest = max(0, size - EOCD_SIZE - MAX_COMMENT_SIZE)
        position = self._data.rfind(_EOCD_MAGIC, lowest, size - EOCD_SIZE + 4)
        if position < 0:
            raise NotAZipError()
        logger.debug("End of central directory found at offset %d", position)
        return position

    def _parse_central_directory(self) -> Dict[str, ZipEntry]:
        data = self._data
        eocd_offset = self._find_end_of_central_directory()
        (
            _signature,
            _disk,
            _cd_disk,
            _entries_on_disk,
            total_entries,
            cd_size,
            cd_offset,
            _comment_length,
        ) = EOCD_STRUCT.unpack_from(data, eocd_offset)

        entries: Dict[str, ZipEntry] = {}
        cursor = cd_offset
        for index in range(total_entries):
            if cursor + CENTRAL_DIRECTORY_SIZE > len(data):
                raise CorruptCentralDirectoryError(
                    f"Central directory record {index} is truncated"
                )
            fields = CENTRAL_DIRECTORY_STRUCT.unpack_from(data, cursor)
            if fields[0] != CENTRAL_DIRECTORY_SIGNATURE:
                raise CorruptCentralDirectoryError(
                    f"Invalid central directory signature at offset {cursor}"
                )

            method = fields[4]
            crc = fields[7]
            compressed_size = fields[8]
            uncompressed_size = fields[9]
            name_length = fields[10]
            extra_length = fields[11]
            comment_length = fields[12]
            local_header_offset = fields[16]

            name_offset = cursor + CENTRAL_DIRECTORY_SIZE
            if name_offset + name_length > len(data):
                raise CorruptCentralDirectoryError(
                    f"Central directory record {index} is truncated"
                )
            name = _decode_name(data[name_offset : name_offset + name_length])

            if name in entries:
                logger.warning("Duplicate ZIP entry name %r, keeping the last one", name)
            entries[name] = ZipEntry(
                name=name,
                compression_method=_compression_method(method),
                compressed_size=compressed_size,
                uncompressed_size=uncompressed_size,
                local_header_offset=local_header_offset,
                crc32=crc,
            )

            cursor = name_offset + name_length + extra_length + comment_length

        expected_end = cd_offset + cd_size
        if cursor != expected_end:
            raise CorruptCentralDirectoryError(
                f"Central directory ended at offset {cursor}, expected {expected_end}"
            )

        logger.debug("Indexed %d ZIP entries", len(entries))
        return entries

    # -------------------------------------------------------------------------
    # Entry access
    # -------------------------------------------------------------------------

    @property
    def namelist(self) -> List[str]:
        return list(self._entries)

    @property
    def entries(self) -> List[ZipEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def has(self, name: str) -> bool:
        """Exact-match lookup; no case or path separator normalization."""
        return name in self._entries

    def get_info(self, name: str) -> Optional[ZipEntry]:
        return self._entries.get(name)

    def get_entry(self, name: str) -> Optional[bytes]:
        """Return the decompressed payload of ``name``, or None if absent.

        Raises:
            CorruptLocalHeaderError: If the local header is invalid
            UnsupportedCompressionError: For methods other than stored/deflate
            CorruptEntryError: If the payload fails to decompress or verify
        """
        entry = self._entries.get(name)
        if entry is None:
            return None
        return self._read_entry_data(entry)

    def get_text(self, name: str) -> Optional[str]:
        """Return the entry decoded as UTF-8 (invalid bytes are replaced)."""
        payload = self.get_entry(name)
        if payload is None:
            return None
        return payload.decode("utf-8-sig", errors="replace")

    def _read_entry_data(self, entry: ZipEntry) -> bytes:
        data = self._data
        header_offset = entry.local_header_offset
        if header_offset + LOCAL_FILE_HEADER_SIZE > len(data):
            raise CorruptLocalHeaderError(
                f"Local file header of {entry.name!r} lies outside the archive"
            )

        fields = LOCAL_FILE_HEADER_STRUCT.unpack_from(data, header_offset)
        if fields[0] != LOCAL_FILE_HEADER_SIGNATURE:
            raise CorruptLocalHeaderError(
                f"Invalid local file header signature for {entry.name!r}"
            )

        name_length = fields[9]
        extra_length = fields[10]
        data_offset = header_offset + LOCAL_FILE_HEADER_SIZE + name_length + extra_length
        data_end = data_offset + entry.compressed_size
        if data_end > len(data):
            raise CorruptLocalHeaderError(
                f"Payload of {entry.name!r} extends past the end of the archive"
            )

        # Slicing bytes copies, so returned entries never alias the archive
        compressed = data[data_offset:data_end]

        if entry.compression_method == CompressionMethod.STORED:
            payload = compressed
        elif entry.compression_method == CompressionMethod.DEFLATE:
            payload = self._inflate(entry, compressed)
        else:
            raise UnsupportedCompressionError(int(entry.compression_method), entry.name)

        self._verify(entry, payload)
        return payload

    @staticmethod
    def _inflate(entry: ZipEntry, compressed: bytes) -> bytes:
        """Decompress raw deflate data (no zlib wrapper).

        Output is capped one byte past the declared uncompressed size, so a
        central directory that understates the size cannot make the stream
        expand without bound.
        """
        limit = entry.uncompressed_size
        decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
        try:
            payload = decompressor.decompress(compressed, limit + 1)
        except zlib.error as e:
            raise CorruptEntryError(
                f"Deflate decompression failed for {entry.name!r}: {e}", cause=e
            ) from e
        if len(payload) > limit or decompressor.unconsumed_tail:
            raise CorruptEntryError(
                f"Deflate stream of {entry.name!r} expands past its declared size "
                f"of {limit} bytes"
            )
        if not decompressor.eof:
            raise CorruptEntryError(f"Deflate stream of {entry.name!r} is truncated")
        return payload

    @staticmethod
    def _verify(entry: ZipEntry, payload: bytes) -> None:
        if len(payload) != entry.uncompressed_size:
            raise CorruptEntryError(
                f"Entry {entry.name!r} has {len(payload)} bytes, "
                f"expected {entry.uncompressed_size}"
            )
        if zlib.crc32(payload) != entry.crc32:
            raise CorruptEntryError(f"CRC-32 mismatch for {entry.name!r}")


def open_archive(
    data: BufferLike,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    source: Optional[str] = None,
) -> ZipArchive:
    """Open an in-memory archive. See ZipArchive for the raised errors."""
    return ZipArchive(data, limits=limits, source=source)
