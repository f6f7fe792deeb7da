"""Tests for the runtime layout module."""

import ast

import numpy as np
import pytest

from py2wgsl.runtime.errors import LayoutError
from py2wgsl.runtime.layout import LayoutResolver, round_up
from py2wgsl.transpiler.collector import collect_info

LAYOUT_MODULE = """
@config
class Uniforms:
    time: f32
    resolution: Vec2F32

Position = input_array(Array[f32, 2])
Radius = input_array(f32)
Direction = input_array(Vec3F32)

class Padded:
    a: f32
    b: Vec3F32
    c: f32

class Inner:
    value: u32

class Outer:
    flag: u32
    inner: Inner
    weights: Array[f32, 3]

class Transform:
    matrix: Mat3F32

class Flags:
    on: bool
"""


@pytest.fixture
def resolver() -> LayoutResolver:
    return LayoutResolver(collect_info(ast.parse(LAYOUT_MODULE)).custom_types)


class TestRoundUp:
    """Tests for the round_up function."""

    @pytest.mark.parametrize(
        "alignment,value,expected", [(4, 0, 0), (4, 1, 4), (16, 16, 16), (16, 20, 32)]
    )
    def test_round_up(self, alignment, value, expected):
        """Test rounding up to a multiple of the alignment."""
        # Act & Assert
        assert round_up(alignment, value) == expected


class TestLayout:
    """Tests for the size and alignment rules."""

    @pytest.mark.parametrize(
        "name,align,size,stride",
        [
            ("Uniforms", 8, 16, 16),
            ("Position", 4, 8, 8),
            ("Radius", 4, 4, 4),
            ("Direction", 16, 12, 16),
            ("Padded", 16, 32, 32),
            ("Outer", 4, 20, 20),
            ("Transform", 16, 48, 48),
        ],
    )
    def test_layout_of(self, resolver, name, align, size, stride):
        """Test alignment, size and stride of declared types."""
        # Act
        layout = resolver.layout_of(name)

        # Assert
        assert (layout.align, layout.size, layout.stride) == (align, size, stride)
        assert resolver.element_dtype(name).itemsize == stride

    def test_struct_offsets(self, resolver):
        """Test that struct fields are placed at their aligned offsets."""
        # Act
        dtype = resolver.layout_of("Padded").dtype

        # Assert
        assert [dtype.fields[name][1] for name in ("a", "b", "c")] == [0, 16, 28]

    def test_bool_is_not_host_shareable(self, resolver):
        """Test that bool fields cannot be placed in buffers."""
        # Act & Assert
        with pytest.raises(LayoutError, match="not host-shareable"):
            resolver.layout_of("Flags")

    def test_unknown_type(self, resolver):
        """Test the layout of an undeclared type."""
        # Act & Assert
        with pytest.raises(LayoutError, match="Unknown type 'Missing'"):
            resolver.layout_of("Missing")


class TestEncodeArray:
    """Tests for encoding runtime-sized arrays."""

    def test_fixed_array_elements(self, resolver):
        """Test that Array[f32, 2] elements are packed tightly."""
        # Act
        data = resolver.encode_array("Position", [[0.0, 1.0], (2.0, 3.0)])

        # Assert
        assert data == np.array([0.0, 1.0, 2.0, 3.0], dtype="<f4").tobytes()

    def test_vec3_padding_is_zero(self, resolver):
        """Test that vec3 elements are padded to 16 bytes with zeros."""
        # Act
        data = resolver.encode_array("Direction", [(1.0, 2.0, 3.0)])

        # Assert
        assert data == np.array([1.0, 2.0, 3.0, 0.0], dtype="<f4").tobytes()

    def test_struct_from_mapping(self, resolver):
        """Test encoding a struct given as a mapping."""
        # Act
        data = resolver.encode_array(
            "Outer", [{"flag": 7, "inner": {"value": 9}, "weights": [1.0, 2.0, 3.0]}]
        )

        # Assert
        expected = (
            np.array([7, 9], dtype="<u4").tobytes()
            + np.array([1.0, 2.0, 3.0], dtype="<f4").tobytes()
        )
        assert data == expected

    def test_empty(self, resolver):
        """Test encoding an empty array."""
        # Act & Assert
        assert resolver.encode_array("Radius", []) == b""

    @pytest.mark.parametrize(
        "name,value,message",
        [
            ("Position", [1.0], "Expected 2 elements"),
            ("Direction", (1.0, 2.0), "Expected 3 components"),
            ("Outer", {"flag": 1}, "Missing field 'inner'"),
            ("Radius", "wide", "Cannot encode"),
        ],
    )
    def test_invalid_values(self, resolver, name, value, message):
        """Test values that do not match their type."""
        # Act & Assert
        with pytest.raises(LayoutError, match=message):
            resolver.encode_array(name, [value])


class TestDecodeArray:
    """Tests for decoding runtime-sized arrays."""

    def test_round_trip_struct(self, resolver):
        """Test decoding a nested struct into plain values."""
        # Arrange
        value = {"flag": 1, "inner": {"value": 2}, "weights": [0.5, 1.5, 2.5]}
        data = resolver.encode_array("Outer", [value])

        # Act
        decoded = resolver.decode_array("Outer", data)

        # Assert
        assert decoded == [value]

    def test_matrix_columns(self, resolver):
        """Test that matrices decode as tuples of columns."""
        # Arrange
        columns = [(1.0, 0.0, 0.0), (0.0, 2.0, 0.0), (0.0, 0.0, 3.0)]
        data = resolver.encode_array("Transform", [{"matrix": columns}])

        # Act
        decoded = resolver.decode_array("Transform", data)

        # Assert
        assert len(data) == 48
        assert decoded[0]["matrix"] == tuple(columns)

    def test_count_limits_elements(self, resolver):
        """Test that only the counted elements are decoded."""
        # Arrange
        data = resolver.encode_array("Radius", [0.5, 1.5, 2.5, 3.5])

        # Act
        decoded = resolver.decode_array("Radius", data, count=2)
        clamped = resolver.decode_array("Radius", data, count=10)

        # Assert
        assert decoded == [0.5, 1.5]
        assert clamped == [0.5, 1.5, 2.5, 3.5]

    def test_partial_element_rejected(self, resolver):
        """Test a buffer that ends mid-element."""
        # Act & Assert
        with pytest.raises(LayoutError, match="not a whole number"):
            resolver.decode_array("Position", b"\x00" * 12)


class TestUniform:
    """Tests for encoding and decoding uniforms."""

    def test_padded_to_16_bytes(self, resolver):
        """Test that uniform data is a multiple of 16 bytes."""
        # Act
        data = resolver.encode_uniform("Radius", 2.0)

        # Assert
        assert len(data) == 16
        assert data[:4] == np.array([2.0], dtype="<f4").tobytes()
        assert data[4:] == bytes(12)

    def test_round_trip(self, resolver):
        """Test decoding an encoded uniform struct."""
        # Arrange
        value = {"time": 1.5, "resolution": (800.0, 600.0)}

        # Act
        decoded = resolver.decode_uniform(
            "Uniforms", resolver.encode_uniform("Uniforms", value)
        )

        # Assert
        assert decoded == value
