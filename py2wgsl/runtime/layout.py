"""
Host-shareable memory layout of WGSL types.

Buffers are encoded and decoded through numpy structured dtypes whose field
offsets and item sizes follow the WGSL alignment and size rules, so host bytes
can be copied into storage and uniform buffers unchanged.

Host values map to WGSL types as follows:

- scalars: ``int``, ``float`` or ``bool``
- vectors: any sequence of components, decoded as a ``tuple``
- matrices: a sequence of columns, decoded as a ``tuple`` of ``tuple``
- fixed-size arrays: any sequence, decoded as a ``list``
- structs: an object with the struct's fields as attributes or a mapping,
  decoded as an instance of the struct's host class
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from loguru import logger

from py2wgsl.runtime.errors import LayoutError
from py2wgsl.transpiler.models import AliasDefinition, CustomType, StructDefinition
from py2wgsl.transpiler.type_mappings import TypeKind, WgslType

UNIFORM_ALIGNMENT = 16

_SCALARS: dict[str, tuple[str, int]] = {
    "f32": ("<f4", 4),
    "i32": ("<i4", 4),
    "u32": ("<u4", 4),
    "f16": ("<f2", 2),
}


def round_up(alignment: int, value: int) -> int:
    return -(-value // alignment) * alignment


@dataclass(frozen=True)
class TypeLayout:
    """Alignment, size and numpy dtype of one WGSL type.

    Attributes:
        align: Required alignment in bytes
        size: Size in bytes, excluding trailing array padding
        dtype: numpy dtype with the same byte layout
    """

    align: int
    size: int
    dtype: np.dtype

    @property
    def stride(self) -> int:
        """Distance between consecutive elements of an array of this type."""
        return round_up(self.align, self.size)


def _wrap(dtype: np.dtype, itemsize: int) -> np.dtype:
    """Pad a dtype to ``itemsize`` bytes inside a single ``value`` field."""
    return np.dtype({"names": ["value"], "formats": [dtype], "itemsize": itemsize})


class LayoutResolver:
    """Computes layouts for the custom types of one shader module.

    Args:
        custom_types: Declared custom types in declaration order
        host_types: Host classes used when decoding structs, by type name
    """

    def __init__(
        self,
        custom_types: Sequence[CustomType],
        host_types: Mapping[str, Callable[..., Any]] | None = None,
    ):
        self._custom_types = {c.name: c for c in custom_types}
        self._host_types = dict(host_types or {})
        self._cache: dict[WgslType, TypeLayout] = {}

    def custom_type(self, name: str) -> CustomType:
        try:
            return self._custom_types[name]
        except KeyError:
            raise LayoutError(f"Unknown type '{name}'") from None

    def layout(self, wgsl_type: WgslType) -> TypeLayout:
        """Compute the layout of a WGSL type.

        Raises:
            LayoutError: If the type is not host-shareable
        """
        cached = self._cache.get(wgsl_type)
        if cached is None:
            cached = self._compute(wgsl_type)
            self._cache[wgsl_type] = cached
        return cached

    def layout_of(self, name: str) -> TypeLayout:
        """Compute the layout of a custom type by name."""
        return self.layout(WgslType(TypeKind.CUSTOM, name))

    def _compute(self, wgsl_type: WgslType) -> TypeLayout:
        kind = wgsl_type.kind
        if kind == TypeKind.SCALAR:
            if wgsl_type.name not in _SCALARS:
                raise LayoutError(f"Type '{wgsl_type}' is not host-shareable")
            code, size = _SCALARS[wgsl_type.name]
            return TypeLayout(align=size, size=size, dtype=np.dtype(code))

        if kind == TypeKind.ATOMIC:
            return self.layout(wgsl_type.element_type)

        if kind == TypeKind.VECTOR:
            component = self.layout(WgslType(TypeKind.SCALAR, wgsl_type.name))
            count = wgsl_type.size
            return TypeLayout(
                align=component.size * (2 if count == 2 else 4),
                size=component.size * count,
                dtype=np.dtype((component.dtype, (count,))),
            )

        if kind == TypeKind.MATRIX:
            column = self.layout(
                WgslType(TypeKind.VECTOR, wgsl_type.name, size=wgsl_type.rows)
            )
            return TypeLayout(
                align=column.align,
                size=column.stride * wgsl_type.size,
                dtype=np.dtype((_wrap(column.dtype, column.stride), (wgsl_type.size,))),
            )

        if kind == TypeKind.ARRAY:
            element = self.layout(wgsl_type.element_type)
            return TypeLayout(
                align=element.align,
                size=element.stride * wgsl_type.size,
                dtype=np.dtype(
                    (_wrap(element.dtype, element.stride), (wgsl_type.size,))
                ),
            )

        definition = self.custom_type(wgsl_type.name).definition
        if isinstance(definition, AliasDefinition):
            return self.layout(definition.target)
        return self._struct_layout(definition)

    def _struct_layout(self, struct_def: StructDefinition) -> TypeLayout:
        names, formats, offsets = [], [], []
        offset = 0
        align = 1
        for field in struct_def.fields:
            field_layout = self.layout(field.wgsl_type)
            offset = round_up(field_layout.align, offset)
            names.append(field.name)
            formats.append(field_layout.dtype)
            offsets.append(offset)
            offset += field_layout.size
            align = max(align, field_layout.align)
        size = round_up(align, offset)
        logger.debug(f"Layout of {struct_def.name}: align {align}, size {size}")
        dtype = np.dtype(
            {"names": names, "formats": formats, "offsets": offsets, "itemsize": size}
        )
        return TypeLayout(align=align, size=size, dtype=dtype)

    def element_dtype(self, name: str) -> np.dtype:
        """dtype of one element of a runtime-sized ``array<name>`` buffer."""
        type_layout = self.layout_of(name)
        return _wrap(type_layout.dtype, type_layout.stride)

    def to_numpy(self, wgsl_type: WgslType, value: Any) -> Any:
        """Convert a host value into a form numpy can assign to its dtype.

        Raises:
            LayoutError: If the value does not match the type's shape
        """
        kind = wgsl_type.kind
        try:
            if kind in (TypeKind.SCALAR, TypeKind.ATOMIC):
                return value
            if kind == TypeKind.VECTOR:
                components = tuple(value)
                if len(components) != wgsl_type.size:
                    raise LayoutError(
                        f"Expected {wgsl_type.size} components for {wgsl_type}, "
                        f"got {len(components)}"
                    )
                return components
            if kind == TypeKind.MATRIX:
                column_type = WgslType(
                    TypeKind.VECTOR, wgsl_type.name, size=wgsl_type.rows
                )
                columns = list(value)
                if len(columns) != wgsl_type.size:
                    raise LayoutError(
                        f"Expected {wgsl_type.size} columns for {wgsl_type}"
                    )
                return [(self.to_numpy(column_type, c),) for c in columns]
            if kind == TypeKind.ARRAY:
                items = list(value)
                if len(items) != wgsl_type.size:
                    raise LayoutError(
                        f"Expected {wgsl_type.size} elements for {wgsl_type}, "
                        f"got {len(items)}"
                    )
                element_type = wgsl_type.element_type
                return [(self.to_numpy(element_type, item),) for item in items]
        except TypeError as e:
            raise LayoutError(f"Cannot encode {value!r} as {wgsl_type}") from e

        definition = self.custom_type(wgsl_type.name).definition
        if isinstance(definition, AliasDefinition):
            return self.to_numpy(definition.target, value)
        return tuple(
            self.to_numpy(field.wgsl_type, _field_value(value, field.name))
            for field in definition.fields
        )

    def from_numpy(self, wgsl_type: WgslType, data: Any) -> Any:
        """Convert numpy data of a type's dtype back into a host value."""
        kind = wgsl_type.kind
        if kind in (TypeKind.SCALAR, TypeKind.ATOMIC):
            return data.item()
        if kind == TypeKind.VECTOR:
            return tuple(np.asarray(data).tolist())
        if kind == TypeKind.MATRIX:
            return tuple(tuple(column["value"].tolist()) for column in data)
        if kind == TypeKind.ARRAY:
            element_type = wgsl_type.element_type
            return [self.from_numpy(element_type, item["value"]) for item in data]

        definition = self.custom_type(wgsl_type.name).definition
        if isinstance(definition, AliasDefinition):
            return self.from_numpy(definition.target, data)
        values = {
            field.name: self.from_numpy(field.wgsl_type, data[field.name])
            for field in definition.fields
        }
        host_type = self._host_types.get(definition.name)
        return host_type(**values) if host_type else values

    def encode_array(self, name: str, values: Sequence[Any]) -> bytes:
        """Encode values as the bytes of a runtime-sized ``array<name>``.

        Padding bytes are zero.
        """
        wgsl_type = WgslType(TypeKind.CUSTOM, name)
        array = np.zeros(len(values), dtype=self.element_dtype(name))
        for index, value in enumerate(values):
            try:
                array[index] = (self.to_numpy(wgsl_type, value),)
            except (TypeError, ValueError) as e:
                raise LayoutError(
                    f"Cannot encode element {index} of type '{name}': {e}"
                ) from e
        return array.tobytes()

    def decode_array(
        self, name: str, data: bytes, count: int | None = None
    ) -> list[Any]:
        """Decode the bytes of a runtime-sized ``array<name>``.

        Args:
            name: Element type name
            data: Buffer contents
            count: Number of valid elements, or None to decode the whole buffer

        Returns:
            Decoded host values in buffer order

        Raises:
            LayoutError: If the buffer size is not a multiple of the stride
        """
        dtype = self.element_dtype(name)
        if len(data) % dtype.itemsize:
            raise LayoutError(
                f"Buffer of {len(data)} bytes is not a whole number of "
                f"'{name}' elements ({dtype.itemsize} bytes each)"
            )
        array = np.frombuffer(data, dtype=dtype)
        if count is not None:
            array = array[: min(count, len(array))]
        wgsl_type = WgslType(TypeKind.CUSTOM, name)
        return [self.from_numpy(wgsl_type, row["value"]) for row in array]

    def encode_uniform(self, name: str, value: Any) -> bytes:
        """Encode a uniform value, padded to a 16 byte multiple."""
        data = self.encode_array(name, [value])
        padded = round_up(UNIFORM_ALIGNMENT, len(data))
        return data + bytes(padded - len(data))

    def decode_uniform(self, name: str, data: bytes) -> Any:
        item_size = self.element_dtype(name).itemsize
        return self.decode_array(name, data[:item_size])[0]


def _field_value(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        if name not in value:
            raise LayoutError(f"Missing field '{name}'")
        return value[name]
    if not hasattr(value, name):
        raise LayoutError(f"Missing field '{name}' on {type(value).__name__}")
    return getattr(value, name)
