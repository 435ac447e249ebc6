"""Tests for GLB decoding and encoding."""

import json
import struct

import pytest
import trimesh

from glbplace.core.errors import FormatError
from glbplace.glb.codec import CHUNK_BIN, CHUNK_JSON, GLB_MAGIC, decode, encode
from glbplace.glb.document import GlbDocument, Node
from glbplace.mesh.flatten import flatten

from conftest import GlbBuilder, pack_glb


def _chunks(data: bytes) -> list[tuple[int, int, bytes]]:
    """Split encoded GLB bytes into (length, type, payload) triples."""
    offset = 12
    chunks = []
    while offset < len(data):
        length, chunk_type = struct.unpack_from("<II", data, offset)
        offset += 8
        chunks.append((length, chunk_type, data[offset:offset + length]))
        offset += length
    return chunks


class TestDecode:
    """Test decoding valid containers."""

    def test_decode_triangle(self, triangle_glb):
        """Test decoding a single indexed triangle."""
        document = decode(triangle_glb)
        assert document.node_count == 1
        assert document.mesh_count == 1
        assert document.accessor_count == 2
        assert document.primitive_count == 1
        assert len(document.binary_chunks) == 1

    def test_decode_accepts_bytearray(self, triangle_glb):
        """Test that mutable byte buffers are accepted."""
        document = decode(bytearray(triangle_glb))
        assert document.mesh_count == 1

    def test_decode_node_properties(self, two_root_glb):
        """Test that node transforms and hierarchy are decoded."""
        document = decode(two_root_glb)
        first = document.node(1)
        assert first.name == "first"
        assert first.translation == (1.0, 2.0, 3.0)
        assert first.child_handles == [0]
        assert document.gltf.scenes[0].roots == [1, 2]

    def test_json_only_container(self):
        """Test that a container without BIN chunks yields no binary data."""
        gltf = {
            "asset": {"version": "2.0"},
            "buffers": [{"uri": "data:application/octet-stream;base64,AAAA", "byteLength": 3}],
            "bufferViews": [{"buffer": 0, "byteLength": 3}],
        }
        document = decode(pack_glb(gltf))
        assert document.binary_chunks == []
        assert document.buffer_data(0) is None

    def test_unknown_chunk_ignored(self, triangle_glb):
        """Test that chunks of unknown type are skipped."""
        extra = struct.pack("<II", 4, 0x12345678) + b"abcd"
        data = triangle_glb + extra
        data = struct.pack("<III", GLB_MAGIC, 2, len(data)) + data[12:]
        document = decode(data)
        assert len(document.binary_chunks) == 1

    def test_uri_buffers_do_not_consume_chunks(self, builder):
        """Test that only buffers without uri are bound to BIN chunks."""
        builder.add_vec3([(0, 0, 0)])
        gltf = builder.to_json()
        gltf["buffers"].insert(0, {"uri": "external.bin", "byteLength": 16})
        for view in gltf["bufferViews"]:
            view["buffer"] = 1
        document = decode(pack_glb(gltf, [bytes(builder.blob)]))
        assert document.buffer_data(0) is None
        assert document.buffer_data(1) == bytes(builder.blob)


class TestDecodeErrors:
    """Test that malformed containers raise FormatError."""

    def test_too_short(self):
        """Test input shorter than the header."""
        with pytest.raises(FormatError):
            decode(b"glTF")

    def test_bad_magic(self, triangle_glb):
        """Test wrong magic signature."""
        data = b"xxxx" + triangle_glb[4:]
        with pytest.raises(FormatError, match="magic"):
            decode(data)

    def test_bad_version(self):
        """Test unsupported container version."""
        with pytest.raises(FormatError, match="version"):
            decode(pack_glb({"asset": {"version": "2.0"}}, version=1))

    def test_length_mismatch(self, triangle_glb):
        """Test declared total length disagreeing with the actual length."""
        with pytest.raises(FormatError, match="declares"):
            decode(triangle_glb + b"\x00\x00\x00\x00")

    def test_chunk_exceeds_buffer(self):
        """Test chunk length running past the end of the data."""
        payload = b"{}  "
        body = struct.pack("<II", 100, CHUNK_JSON) + payload
        data = struct.pack("<III", GLB_MAGIC, 2, 12 + len(body)) + body
        with pytest.raises(FormatError, match="remain"):
            decode(data)

    def test_truncated_chunk_header(self):
        """Test trailing bytes too short for a chunk header."""
        data = pack_glb({"asset": {"version": "2.0"}}) + b"\x01\x00\x00\x00"
        data = struct.pack("<III", GLB_MAGIC, 2, len(data)) + data[12:]
        with pytest.raises(FormatError, match="Truncated"):
            decode(data)

    def test_no_chunks(self):
        """Test a header with no chunks at all."""
        with pytest.raises(FormatError, match="JSON chunk"):
            decode(struct.pack("<III", GLB_MAGIC, 2, 12))

    def test_first_chunk_not_json(self):
        """Test a container starting with a BIN chunk."""
        body = struct.pack("<II", 4, CHUNK_BIN) + b"\x00" * 4
        data = struct.pack("<III", GLB_MAGIC, 2, 12 + len(body)) + body
        with pytest.raises(FormatError, match="JSON chunk"):
            decode(data)

    def test_invalid_json(self):
        """Test JSON chunk that is not well-formed."""
        with pytest.raises(FormatError, match="not valid JSON"):
            decode(pack_glb(b'{"asset": '))

    def test_unclosed_deep_nesting(self):
        """Test unterminated nesting too deep for the JSON parser."""
        with pytest.raises(FormatError, match="not valid JSON"):
            decode(pack_glb(b"[" * 200000))

    def test_deeply_nested_extras(self):
        """Test well-formed JSON nested past the parser's recursion limit."""
        depth = 200000
        payload = b'{"asset": {"version": "2.0"}, "extras": ' + b"[" * depth + b"]" * depth + b"}"
        with pytest.raises(FormatError, match="not valid JSON"):
            decode(pack_glb(payload))

    def test_invalid_utf8(self):
        """Test JSON chunk with invalid UTF-8."""
        with pytest.raises(FormatError):
            decode(pack_glb(b"\xff\xfe{}"))

    def test_json_not_object(self):
        """Test JSON chunk holding an array."""
        with pytest.raises(FormatError, match="object"):
            decode(pack_glb(b"[1, 2, 3]"))

    def test_schema_violation(self, builder):
        """Test accessor without a count."""
        builder.add_vec3([(0, 0, 0)])
        gltf = builder.to_json()
        del gltf["accessors"][0]["count"]
        with pytest.raises(FormatError, match="glTF"):
            decode(pack_glb(gltf, [bytes(builder.blob)]))

    def test_format_error_is_value_error(self):
        """Test FormatError can be caught as ValueError."""
        with pytest.raises(ValueError):
            decode(b"")


class TestReferenceValidation:
    """Test that dangling references and broken hierarchies are rejected."""

    def test_dangling_attribute(self, builder):
        """Test primitive attribute pointing past the accessor list."""
        builder.add_mesh([{"attributes": {"POSITION": 7}}])
        with pytest.raises(FormatError, match="POSITION"):
            decode(builder.build())

    def test_dangling_buffer_view(self, builder):
        """Test accessor pointing at a missing buffer view."""
        builder.add_vec3([(0, 0, 0)])
        builder.gltf["accessors"][0]["bufferView"] = 3
        with pytest.raises(FormatError, match="bufferView"):
            decode(builder.build())

    def test_view_exceeds_chunk(self, builder):
        """Test buffer view running past the binary chunk."""
        builder.add_vec3([(0, 0, 0)])
        gltf = builder.to_json()
        gltf["bufferViews"][0]["byteLength"] = 64
        gltf["buffers"][0]["byteLength"] = 64
        with pytest.raises(FormatError, match="binary chunk"):
            decode(pack_glb(gltf, [bytes(builder.blob)]))

    def test_view_exceeds_declared_buffer(self, builder):
        """Test buffer view running past the buffer's byteLength."""
        builder.add_vec3([(0, 0, 0)])
        gltf = builder.to_json()
        gltf["buffers"][0]["byteLength"] = 4
        with pytest.raises(FormatError, match="declares"):
            decode(pack_glb(gltf, [bytes(builder.blob)]))

    def test_accessor_exceeds_view(self, builder):
        """Test accessor count larger than its view holds."""
        builder.add_vec3([(0, 0, 0), (1, 1, 1)])
        builder.gltf["accessors"][0]["count"] = 3
        with pytest.raises(FormatError, match="needs"):
            decode(builder.build())

    def test_unknown_component_type(self, builder):
        """Test componentType outside the glTF set."""
        builder.add_vec3([(0, 0, 0)])
        builder.gltf["accessors"][0]["componentType"] = 1234
        with pytest.raises(FormatError, match="componentType"):
            decode(builder.build())

    def test_node_with_two_parents(self, builder):
        """Test a node listed as child of two nodes."""
        leaf = builder.add_node()
        builder.add_node(children=[leaf])
        builder.add_node(children=[leaf])
        with pytest.raises(FormatError, match="parent"):
            decode(builder.build())

    def test_cycle(self, builder):
        """Test nodes that are each other's child."""
        builder.add_node(children=[1])
        builder.add_node(children=[0])
        with pytest.raises(FormatError, match="cycle"):
            decode(builder.build())

    def test_scene_root_with_parent(self, builder):
        """Test a scene root that is also a child."""
        leaf = builder.add_node()
        builder.add_node(children=[leaf])
        builder.add_scene([leaf])
        with pytest.raises(FormatError, match="root"):
            decode(builder.build())

    def test_missing_scene_root(self, builder):
        """Test a scene referencing a missing node."""
        builder.add_scene([5])
        with pytest.raises(FormatError, match="scenes"):
            decode(builder.build())


class TestEncode:
    """Test encoding and round trips."""

    def test_header_and_alignment(self, two_root_glb):
        """Test declared lengths and 4-byte alignment of every chunk."""
        data = encode(decode(two_root_glb))
        magic, version, length = struct.unpack_from("<III", data, 0)
        assert magic == GLB_MAGIC
        assert version == 2
        assert length == len(data)

        chunks = _chunks(data)
        assert [c[1] for c in chunks] == [CHUNK_JSON, CHUNK_BIN]
        for chunk_length, _, payload in chunks:
            assert chunk_length % 4 == 0
            assert len(payload) == chunk_length

    def test_padding_bytes(self, builder):
        """Test JSON is padded with spaces and BIN with zeros."""
        builder.add_indices([0, 1, 2])  # 6 bytes of binary data
        document = decode(builder.build())
        document.binary_chunks = [document.binary_chunks[0][:6]]
        document.gltf.buffers[0].byte_length = 6

        chunks = _chunks(encode(document))
        json_payload = chunks[0][2]
        assert json.loads(json_payload)  # trailing spaces are valid JSON whitespace
        assert json_payload.rstrip(b" ") == json_payload.rstrip()
        assert chunks[1][2] == document.binary_chunks[0] + b"\x00\x00"

    def test_structural_idempotence(self, two_root_glb):
        """Test decode -> encode -> decode keeps the graph sizes."""
        first = decode(two_root_glb)
        second = decode(encode(first))
        assert second.node_count == first.node_count
        assert second.mesh_count == first.mesh_count
        assert second.accessor_count == first.accessor_count
        assert second.gltf.to_json_dict() == first.gltf.to_json_dict()
        assert second.binary_chunks == first.binary_chunks

    def test_unknown_properties_preserved(self, two_root_glb):
        """Test that materials and other unmodelled keys survive encoding."""
        data = encode(decode(two_root_glb))
        gltf = json.loads(_chunks(data)[0][2])
        assert gltf["materials"] == [{"name": "paint"}]
        assert gltf["bufferViews"][0]["byteOffset"] == 0

    def test_empty_collections_omitted(self):
        """Test an empty document encodes without empty arrays."""
        data = encode(GlbDocument())
        gltf = json.loads(_chunks(data)[0][2])
        assert gltf == {"asset": {"version": "2.0"}}
        assert len(_chunks(data)) == 1

    def test_new_node_encoded(self, triangle_glb):
        """Test that nodes added to the arena are written out."""
        document = decode(triangle_glb)
        handle = document.add_node(Node(name="extra", translation=(1.0, 2.0, 3.0)))
        gltf = json.loads(_chunks(encode(document))[0][2])
        assert gltf["nodes"][handle] == {"name": "extra", "translation": [1.0, 2.0, 3.0]}

    def test_json_only_round_trip(self):
        """Test round trip of a container with no BIN chunk."""
        gltf = {"asset": {"version": "2.0"}, "scenes": [{"nodes": [0]}], "nodes": [{"name": "a"}]}
        document = decode(encode(decode(pack_glb(gltf))))
        assert document.node_count == 1
        assert document.binary_chunks == []

    def test_trimesh_export_round_trip(self):
        """Test a GLB written by trimesh decodes, re-encodes and flattens."""
        box = trimesh.creation.box(extents=(1.0, 2.0, 3.0))
        sphere = trimesh.creation.icosphere(subdivisions=2)
        scene = trimesh.Scene()
        scene.add_geometry(box, node_name="box")
        scene.add_geometry(sphere, node_name="sphere")
        data = scene.export(file_type="glb")

        first = decode(data)
        assert first.mesh_count == 2
        second = decode(encode(first))
        assert second.node_count == first.node_count
        assert second.accessor_count == first.accessor_count
        assert second.gltf.to_json_dict() == first.gltf.to_json_dict()

        geometry = flatten(second)
        assert geometry.num_vertices == 3 * (len(box.faces) + len(sphere.faces))


def test_builder_blob_is_aligned():
    """Test the test builder keeps views 4-byte aligned."""
    b = GlbBuilder()
    b.add_indices([0, 1, 2])
    b.add_vec3([(0, 0, 0)])
    assert b.gltf["bufferViews"][1]["byteOffset"] % 4 == 0
