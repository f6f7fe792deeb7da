"""
Mapping of Python type annotations to WGSL types.

Annotations are resolved from their AST form, so a shader module never has to be
imported to be transpiled.
"""

import ast
import re
from dataclasses import dataclass
from enum import Enum, auto

from py2wgsl.transpiler.errors import TranspilerError


class TypeKind(Enum):
    """Structural kind of a WGSL type."""

    SCALAR = auto()
    VECTOR = auto()
    MATRIX = auto()
    ARRAY = auto()
    ATOMIC = auto()
    CUSTOM = auto()


@dataclass(frozen=True)
class WgslType:
    """A resolved WGSL type.

    Attributes:
        kind: Structural kind of the type
        name: Scalar name (``f32``) for scalars and component types, or the
            declared name for custom types
        size: Component count of a vector, column count of a matrix, or
            element count of a fixed-size array
        rows: Row count of a matrix
        element: Element type of an array or atomic
    """

    kind: TypeKind
    name: str
    size: int = 0
    rows: int = 0
    element: "WgslType | None" = None

    def __str__(self) -> str:
        if self.kind == TypeKind.VECTOR:
            return f"vec{self.size}<{self.name}>"
        if self.kind == TypeKind.MATRIX:
            return f"mat{self.size}x{self.rows}<{self.name}>"
        if self.kind == TypeKind.ARRAY:
            return f"array<{self.element}, {self.size}>"
        if self.kind == TypeKind.ATOMIC:
            return f"atomic<{self.element}>"
        return self.name

    @property
    def element_type(self) -> "WgslType":
        """Element type of an array or atomic.

        Raises:
            TranspilerError: If the type has no element type
        """
        if self.element is None:
            raise TranspilerError(f"Type '{self}' has no element type")
        return self.element


SCALAR_TYPES: dict[str, str] = {
    "f32": "f32",
    "f16": "f16",
    "i32": "i32",
    "u32": "u32",
    "bool": "bool",
    "float": "f32",
    "int": "i32",
}

_COMPONENT_SUFFIXES: dict[str, str] = {
    "F32": "f32",
    "F16": "f16",
    "I32": "i32",
    "U32": "u32",
    "Bool": "bool",
}

_VECTOR_NAME = re.compile(r"^Vec([234])(F32|F16|I32|U32|Bool)$")
_MATRIX_NAME = re.compile(r"^Mat([234])(?:x([234]))?(F32|F16)$")

ITERATION_POSITION = "IterationPosition"
ITERATION_POSITION_TYPE = WgslType(TypeKind.VECTOR, "u32", size=3)


def scalar(name: str) -> WgslType:
    return WgslType(TypeKind.SCALAR, SCALAR_TYPES[name])


def resolve_type_name(name: str, known_types: set[str]) -> WgslType | None:
    """Resolve a bare type name to a WGSL type.

    Args:
        name: Name used in the annotation
        known_types: Names of types declared in the shader module

    Returns:
        The resolved type, or None if the name is not a type
    """
    if name in SCALAR_TYPES:
        return scalar(name)
    if name == ITERATION_POSITION:
        return ITERATION_POSITION_TYPE
    vector_match = _VECTOR_NAME.match(name)
    if vector_match:
        size, suffix = vector_match.groups()
        return WgslType(TypeKind.VECTOR, _COMPONENT_SUFFIXES[suffix], size=int(size))
    matrix_match = _MATRIX_NAME.match(name)
    if matrix_match:
        columns, rows, suffix = matrix_match.groups()
        return WgslType(
            TypeKind.MATRIX,
            _COMPONENT_SUFFIXES[suffix],
            size=int(columns),
            rows=int(rows or columns),
        )
    if name in known_types:
        return WgslType(TypeKind.CUSTOM, name)
    return None


def _resolve_subscript(node: ast.Subscript, known_types: set[str]) -> WgslType:
    """Resolve ``Array[T, N]`` and ``Atomic[T]`` annotations."""
    if not isinstance(node.value, ast.Name):
        raise TranspilerError("Unsupported generic type annotation", node)

    generic = node.value.id
    args = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]

    if generic == "Array":
        if len(args) != 2:
            raise TranspilerError("Array annotations take exactly [type, length]", node)
        length = args[1]
        if not (
            isinstance(length, ast.Constant)
            and isinstance(length.value, int)
            and not isinstance(length.value, bool)
            and length.value > 0
        ):
            raise TranspilerError("Array length must be a positive integer", node)
        element = resolve_annotation(args[0], known_types)
        return WgslType(TypeKind.ARRAY, "array", size=length.value, element=element)

    if generic == "Atomic":
        if len(args) != 1:
            raise TranspilerError("Atomic annotations take exactly one type", node)
        element = resolve_annotation(args[0], known_types)
        if element.name not in ("u32", "i32") or element.kind != TypeKind.SCALAR:
            raise TranspilerError("Atomic types must wrap u32 or i32", node)
        return WgslType(TypeKind.ATOMIC, "atomic", element=element)

    raise TranspilerError(f"Unsupported generic type: {generic}", node)


def resolve_annotation(annotation: ast.AST | None, known_types: set[str]) -> WgslType:
    """Resolve a type annotation AST node to a WGSL type.

    Args:
        annotation: Annotation node (name, string constant or subscript)
        known_types: Names of types declared in the shader module

    Returns:
        The resolved WGSL type

    Raises:
        TranspilerError: If the annotation is missing or not a supported type
    """
    if annotation is None:
        raise TranspilerError("Missing type annotation")

    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        try:
            parsed = ast.parse(annotation.value, mode="eval").body
        except SyntaxError as e:
            raise TranspilerError(
                f"Invalid string annotation: {annotation.value!r}", annotation
            ) from e
        return resolve_annotation(parsed, known_types)

    if isinstance(annotation, ast.Name):
        resolved = resolve_type_name(annotation.id, known_types)
        if resolved is None:
            raise TranspilerError(f"Unknown type: {annotation.id}", annotation)
        return resolved

    if isinstance(annotation, ast.Subscript):
        return _resolve_subscript(annotation, known_types)

    raise TranspilerError(
        f"Unsupported annotation type: {type(annotation).__name__}", annotation
    )


def annotation_name(annotation: ast.AST | None) -> str | None:
    """Return the bare name of a simple annotation, if it has one."""
    if isinstance(annotation, ast.Name):
        return annotation.id
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        return annotation.value
    if isinstance(annotation, ast.Attribute):
        return annotation.attr
    return None
