"""Names used when writing shader modules.

A shader module is ordinary Python that imports its types and markers from
here, so it can be imported, type checked and unit tested on the host:

    from typing import TypeAlias

    from py2wgsl.dsl import Array, IterationPosition, Output, VecInput
    from py2wgsl.dsl import f32, input_array, output_vec, u32

    Position: TypeAlias = input_array(Array[f32, 2])

    @output_vec
    class Hit:
        index: u32

    def main(iter_pos: IterationPosition):
        if iter_pos.x < VecInput.vec_len(Position):
            Output.push(Hit, Hit(index=iter_pos.x))

The transpiler only reads the source text; nothing here runs on the GPU.
"""

import dataclasses
import inspect
import types
from typing import Any, TypeAlias, TypeVar

import numpy as np

T = TypeVar("T")

# Scalars
f32 = float
f16 = float
i32 = int
u32 = int


def _mark(role: str, target: T) -> T:
    if (
        inspect.isclass(target)
        and not isinstance(target, types.GenericAlias)
        and inspect.get_annotations(target)
    ):
        if not dataclasses.is_dataclass(target):
            target = dataclasses.dataclass(target)
        target._wgsl_role = role  # type: ignore[attr-defined]
    return target


def config(target: T) -> T:
    """Mark a struct or alias as a uniform."""
    return _mark("config", target)


def input_array(target: T) -> T:
    """Mark a struct or alias as the element of a read-only input array."""
    return _mark("input_array", target)


def output_array(target: T) -> T:
    """Mark a struct or alias as the element of a fixed-length output array."""
    return _mark("output_array", target)


def output_vec(target: T) -> T:
    """Mark a struct or alias as the element of an appendable output array."""
    return _mark("output_vec", target)


class _Vector:
    """Host-side vector value backed by a numpy array."""

    size = 0
    dtype: Any = np.float32
    _components = "xyzw"

    def __init__(self, *values: Any):
        if len(values) == 1 and self.size > 1:
            values = values * self.size
        if len(values) != self.size:
            raise TypeError(
                f"{type(self).__name__} takes {self.size} components, got {len(values)}"
            )
        self.data = np.array(values, dtype=self.dtype)

    def __getattr__(self, name: str) -> Any:
        components = self._components[: self.size]
        if 0 < len(name) <= 4 and all(c in components for c in name):
            indices = [self._components.index(c) for c in name]
            if len(indices) == 1:
                return self.data[indices[0]]
            return _VECTORS[(len(indices), np.dtype(self.dtype).name)](
                *self.data[indices]
            )
        raise AttributeError(name)

    def __getitem__(self, index: int) -> Any:
        return self.data[index]

    def __len__(self) -> int:
        return self.size

    def _binary(self, other: Any, op: Any) -> "_Vector":
        other_data = other.data if isinstance(other, _Vector) else other
        return type(self)(*op(self.data, other_data))

    def __add__(self, other: Any) -> "_Vector":
        return self._binary(other, np.add)

    def __sub__(self, other: Any) -> "_Vector":
        return self._binary(other, np.subtract)

    def __mul__(self, other: Any) -> "_Vector":
        return self._binary(other, np.multiply)

    def __truediv__(self, other: Any) -> "_Vector":
        return self._binary(other, np.divide)

    def __rmul__(self, other: Any) -> "_Vector":
        return self.__mul__(other)

    def __neg__(self) -> "_Vector":
        return type(self)(*(-self.data))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Vector) and np.array_equal(self.data, other.data)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.data.tobytes()))

    def __repr__(self) -> str:
        values = ", ".join(str(v) for v in self.data.tolist())
        return f"{type(self).__name__}({values})"


_DTYPES = {
    "F32": np.float32,
    "F16": np.float16,
    "I32": np.int32,
    "U32": np.uint32,
    "Bool": np.bool_,
}
_VECTORS: dict[tuple[int, str], type[_Vector]] = {}


def _vector_type(size: int, suffix: str) -> type[_Vector]:
    cls = type(
        f"Vec{size}{suffix}", (_Vector,), {"size": size, "dtype": _DTYPES[suffix]}
    )
    _VECTORS[(size, np.dtype(_DTYPES[suffix]).name)] = cls
    return cls


Vec2F32 = _vector_type(2, "F32")
Vec3F32 = _vector_type(3, "F32")
Vec4F32 = _vector_type(4, "F32")
Vec2F16 = _vector_type(2, "F16")
Vec3F16 = _vector_type(3, "F16")
Vec4F16 = _vector_type(4, "F16")
Vec2I32 = _vector_type(2, "I32")
Vec3I32 = _vector_type(3, "I32")
Vec4I32 = _vector_type(4, "I32")
Vec2U32 = _vector_type(2, "U32")
Vec3U32 = _vector_type(3, "U32")
Vec4U32 = _vector_type(4, "U32")
Vec2Bool = _vector_type(2, "Bool")
Vec3Bool = _vector_type(3, "Bool")
Vec4Bool = _vector_type(4, "Bool")

IterationPosition: TypeAlias = Vec3U32


class _Matrix:
    """Host-side column-major matrix value."""

    columns = 0
    rows = 0
    dtype: Any = np.float32

    def __init__(self, *values: Any):
        flat = np.array(values, dtype=self.dtype).reshape(-1)
        if flat.size != self.columns * self.rows:
            raise TypeError(
                f"{type(self).__name__} takes {self.columns * self.rows} values"
            )
        self.data = flat.reshape(self.columns, self.rows)

    def __getitem__(self, column: int) -> np.ndarray:
        return self.data[column]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data.reshape(-1).tolist()})"


def _matrix_type(
    name: str, columns: int, rows: int, suffix: str = "F32"
) -> type[_Matrix]:
    attrs = {"columns": columns, "rows": rows, "dtype": _DTYPES[suffix]}
    return type(f"{name}{suffix}", (_Matrix,), attrs)


Mat2F32 = _matrix_type("Mat2", 2, 2)
Mat3F32 = _matrix_type("Mat3", 3, 3)
Mat4F32 = _matrix_type("Mat4", 4, 4)
Mat2x3F32 = _matrix_type("Mat2x3", 2, 3)
Mat2x4F32 = _matrix_type("Mat2x4", 2, 4)
Mat3x2F32 = _matrix_type("Mat3x2", 3, 2)
Mat3x4F32 = _matrix_type("Mat3x4", 3, 4)
Mat4x2F32 = _matrix_type("Mat4x2", 4, 2)
Mat4x3F32 = _matrix_type("Mat4x3", 4, 3)
Mat2F16 = _matrix_type("Mat2", 2, 2, "F16")
Mat3F16 = _matrix_type("Mat3", 3, 3, "F16")
Mat4F16 = _matrix_type("Mat4", 4, 4, "F16")
Mat2x3F16 = _matrix_type("Mat2x3", 2, 3, "F16")
Mat2x4F16 = _matrix_type("Mat2x4", 2, 4, "F16")
Mat3x2F16 = _matrix_type("Mat3x2", 3, 2, "F16")
Mat3x4F16 = _matrix_type("Mat3x4", 3, 4, "F16")
Mat4x2F16 = _matrix_type("Mat4x2", 4, 2, "F16")
Mat4x3F16 = _matrix_type("Mat4x3", 4, 3, "F16")


class Array:
    """Fixed-size array annotation, ``Array[f32, 2]``."""

    def __class_getitem__(cls, params: Any) -> Any:
        element, _length = params
        return list[element]  # type: ignore[valid-type]


class Atomic:
    """Atomic annotation, ``Atomic[u32]``."""

    def __class_getitem__(cls, element: Any) -> Any:
        return element


def _shader_only(name: str) -> NotImplementedError:
    return NotImplementedError(f"{name} is only available in compiled shaders")


class VecInput:
    """Reads from input arrays."""

    @staticmethod
    def vec_len(item_type: Any) -> int:
        raise _shader_only("VecInput.vec_len")

    @staticmethod
    def vec_val(item_type: type[T], index: int) -> T:
        raise _shader_only("VecInput.vec_val")


class ConfigInput:
    """Reads uniforms."""

    @staticmethod
    def get(item_type: type[T]) -> T:
        raise _shader_only("ConfigInput.get")


class Output:
    """Writes to output arrays and output vecs."""

    @staticmethod
    def len(item_type: Any) -> int:
        raise _shader_only("Output.len")

    @staticmethod
    def max_len(item_type: Any) -> int:
        raise _shader_only("Output.max_len")

    @staticmethod
    def push(item_type: type[T], value: T) -> None:
        raise _shader_only("Output.push")

    @staticmethod
    def set(item_type: type[T], index: int, value: T) -> None:
        raise _shader_only("Output.set")


__all__ = [
    "Array",
    "Atomic",
    "ConfigInput",
    "IterationPosition",
    "Mat2F16",
    "Mat2F32",
    "Mat2x3F16",
    "Mat2x3F32",
    "Mat2x4F16",
    "Mat2x4F32",
    "Mat3F16",
    "Mat3F32",
    "Mat3x2F16",
    "Mat3x2F32",
    "Mat3x4F16",
    "Mat3x4F32",
    "Mat4F16",
    "Mat4F32",
    "Mat4x2F16",
    "Mat4x2F32",
    "Mat4x3F16",
    "Mat4x3F32",
    "Output",
    "TypeAlias",
    "Vec2Bool",
    "Vec2F16",
    "Vec2F32",
    "Vec2I32",
    "Vec2U32",
    "Vec3Bool",
    "Vec3F16",
    "Vec3F32",
    "Vec3I32",
    "Vec3U32",
    "Vec4Bool",
    "Vec4F16",
    "Vec4F32",
    "Vec4I32",
    "Vec4U32",
    "VecInput",
    "config",
    "f16",
    "f32",
    "i32",
    "input_array",
    "output_array",
    "output_vec",
    "u32",
]
