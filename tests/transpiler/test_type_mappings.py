"""Tests for the transpiler type_mappings module."""

import ast

import pytest

from py2wgsl.transpiler.errors import TranspilerError
from py2wgsl.transpiler.type_mappings import (
    TypeKind,
    annotation_name,
    resolve_annotation,
    WgslType,
    resolve_type_name,
)


def annotation(code: str) -> ast.expr:
    return ast.parse(code, mode="eval").body


class TestResolveAnnotation:
    """Tests for the resolve_annotation function."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("f32", "f32"),
            ("float", "f32"),
            ("int", "i32"),
            ("u32", "u32"),
            ("bool", "bool"),
            ("Vec2F32", "vec2<f32>"),
            ("Vec4U32", "vec4<u32>"),
            ("Vec3Bool", "vec3<bool>"),
            ("Mat4F32", "mat4x4<f32>"),
            ("Mat2x3F32", "mat2x3<f32>"),
            ("IterationPosition", "vec3<u32>"),
            ("Array[f32, 4]", "array<f32, 4>"),
            ("Array[Vec2F32, 3]", "array<vec2<f32>, 3>"),
            ("Array[Array[u32, 2], 2]", "array<array<u32, 2>, 2>"),
            ("Atomic[u32]", "atomic<u32>"),
            ("'Vec3F32'", "vec3<f32>"),
        ],
    )
    def test_builtin_types(self, code, expected):
        """Test resolving scalar, vector, matrix, array and atomic types."""
        # Act
        result = resolve_annotation(annotation(code), set())

        # Assert
        assert str(result) == expected

    def test_custom_type(self):
        """Test resolving a type declared in the module."""
        # Act
        result = resolve_annotation(annotation("Array[Particle, 8]"), {"Particle"})

        # Assert
        assert result.kind == TypeKind.ARRAY
        assert result.element is not None
        assert result.element.kind == TypeKind.CUSTOM
        assert str(result) == "array<Particle, 8>"

    @pytest.mark.parametrize(
        "code,message",
        [
            ("Particle", "Unknown type"),
            ("Array[f32]", "exactly"),
            ("Array[f32, 0]", "positive integer"),
            ("Array[f32, n]", "positive integer"),
            ("Atomic[f32]", "u32 or i32"),
            ("list[f32]", "Unsupported generic type"),
            ("typing.Any", "Unsupported annotation type"),
        ],
    )
    def test_invalid(self, code, message):
        """Test annotations that do not describe a WGSL type."""
        # Act & Assert
        with pytest.raises(TranspilerError, match=message):
            resolve_annotation(annotation(code), set())

    def test_missing(self):
        """Test a missing annotation."""
        # Act & Assert
        with pytest.raises(TranspilerError, match="Missing type annotation"):
            resolve_annotation(None, set())


class TestResolveTypeName:
    """Tests for the resolve_type_name function."""

    def test_not_a_type(self):
        """Test that ordinary names resolve to None."""
        # Act & Assert
        assert resolve_type_name("length", set()) is None
        assert resolve_type_name("Vec5F32", set()) is None


class TestWgslType:
    """Tests for the WgslType dataclass."""

    def test_element_type(self):
        """Test reading the element of an array type."""
        # Arrange
        element = WgslType(TypeKind.SCALAR, "f32")
        array = WgslType(TypeKind.ARRAY, "f32", size=2, element=element)

        # Act & Assert
        assert array.element_type == element

    def test_missing_element_type(self):
        """Test that a type without an element reports it."""
        # Arrange
        vector = WgslType(TypeKind.VECTOR, "f32", size=3)

        # Act & Assert
        with pytest.raises(TranspilerError, match="has no element type"):
            _ = vector.element_type


class TestAnnotationName:
    """Tests for the annotation_name function."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("TypeAlias", "TypeAlias"),
            ("typing.TypeAlias", "TypeAlias"),
            ("'IterationPosition'", "IterationPosition"),
            ("Array[f32, 2]", None),
        ],
    )
    def test_annotation_name(self, code, expected):
        """Test extracting the bare name of an annotation."""
        # Act & Assert
        assert annotation_name(annotation(code)) == expected
