"""Binary glTF (GLB) container codec.

Layout of a GLB file (all integers little-endian uint32):

    header:  magic 'glTF' | version | total length
    chunk:   chunk length | chunk type | payload (padded to 4 bytes)

The first chunk is always JSON, padded with spaces. Following BIN chunks
hold buffer payloads, padded with zeros. Chunks of unknown type are skipped.
"""

from __future__ import annotations

import json
import logging
import struct

from pydantic import ValidationError

from ..core.errors import FormatError
from .accessor import check_bounds
from .document import GlbDocument, GltfJson

logger = logging.getLogger(__name__)

GLB_MAGIC = 0x46546C67  # 'glTF'
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A  # 'JSON'
CHUNK_BIN = 0x004E4942  # 'BIN\0'

HEADER = struct.Struct("<III")
CHUNK_HEADER = struct.Struct("<II")


def decode(data: bytes | bytearray | memoryview) -> GlbDocument:
    """Decode a GLB byte string into a GlbDocument.

    A container with no BIN chunk decodes to a document with an empty
    chunk list.

    Args:
        data: Complete contents of one .glb file

    Returns:
        Decoded document with all references and byte ranges validated

    Raises:
        FormatError: If the header, a chunk, the JSON or a reference is invalid
    """
    data = bytes(data)

    if len(data) < HEADER.size:
        raise FormatError(f"File too small for GLB header ({len(data)} bytes)")

    magic, version, length = HEADER.unpack_from(data, 0)
    if magic != GLB_MAGIC:
        raise FormatError(f"Not a GLB file (magic 0x{magic:08X})")
    if version != GLB_VERSION:
        raise FormatError(f"Unsupported GLB version {version} (expected {GLB_VERSION})")
    if length != len(data):
        raise FormatError(f"Header declares {length} bytes but file has {len(data)}")

    chunks: list[tuple[int, bytes]] = []
    offset = HEADER.size
    while offset < length:
        if length - offset < CHUNK_HEADER.size:
            raise FormatError(f"Truncated chunk header at byte {offset}")
        chunk_length, chunk_type = CHUNK_HEADER.unpack_from(data, offset)
        offset += CHUNK_HEADER.size
        if chunk_length > length - offset:
            raise FormatError(
                f"Chunk at byte {offset - CHUNK_HEADER.size} declares {chunk_length} bytes "
                f"but only {length - offset} remain"
            )
        chunks.append((chunk_type, data[offset:offset + chunk_length]))
        offset += chunk_length

    if not chunks or chunks[0][0] != CHUNK_JSON:
        raise FormatError("First chunk must be the JSON chunk")

    gltf = _parse_json(chunks[0][1])

    binary_chunks = []
    for chunk_type, payload in chunks[1:]:
        if chunk_type == CHUNK_BIN:
            binary_chunks.append(payload)
        else:
            logger.debug(f"Ignoring chunk type 0x{chunk_type:08X} ({len(payload)} bytes)")

    document = GlbDocument(gltf=gltf, binary_chunks=binary_chunks)
    document.validate_references()
    check_bounds(document)

    logger.debug(f"Decoded {document!r} from {length} bytes")
    return document


def encode(document: GlbDocument) -> bytes:
    """Encode a GlbDocument as a GLB byte string.

    Args:
        document: Document to serialize

    Returns:
        GLB bytes with 4-byte aligned chunks and a correct total length
    """
    json_payload = json.dumps(
        document.gltf.to_json_dict(),
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")

    chunks = [(CHUNK_JSON, _pad(json_payload, b" "))]
    chunks.extend((CHUNK_BIN, _pad(payload, b"\x00")) for payload in document.binary_chunks)

    total = HEADER.size + sum(CHUNK_HEADER.size + len(payload) for _, payload in chunks)

    out = bytearray(HEADER.pack(GLB_MAGIC, GLB_VERSION, total))
    for chunk_type, payload in chunks:
        out += CHUNK_HEADER.pack(len(payload), chunk_type)
        out += payload

    logger.debug(f"Encoded {document!r} into {total} bytes")
    return bytes(out)


def _pad(payload: bytes, fill: bytes) -> bytes:
    remainder = len(payload) % 4
    if remainder:
        payload += fill * (4 - remainder)
    return payload


def _parse_json(payload: bytes) -> GltfJson:
    try:
        raw = json.loads(payload.rstrip(b"\x00").decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        raise FormatError(f"JSON chunk is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise FormatError(f"JSON chunk must be an object, got {type(raw).__name__}")

    try:
        return GltfJson.model_validate(raw)
    except ValidationError as e:
        raise FormatError(f"JSON chunk does not describe a glTF asset: {e}") from e
