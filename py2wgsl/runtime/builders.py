"""
Host side builders generated from a compiled shader module.

``create_builders`` produces, for one module, a config builder, an input
builder, a builder for output capacities and an output reader. Each has one
``set_<snake_case>`` method (or attribute, for the reader) per buffer-backed
type, so host code spells buffer names exactly as the shader does:

    builders = compiled.create_builders()
    config = builders.ConfigBuilder().set_uniforms(
        builders.Uniforms(time=0.0, resolution=(800.0, 600.0))
    ).finish()
    inputs = (
        builders.InputBuilder()
        .set_position([[0.0, 0.0], [1.0, 1.0]])
        .set_radius([0.5, 0.5])
        .finish()
    )
    lengths = builders.MaxOutputLengthsBuilder().set_collision_result(100).finish()
"""

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from typing import Any, ClassVar, Self

from loguru import logger

from py2wgsl.runtime.errors import BuilderError, MissingOutputError
from py2wgsl.runtime.layout import LayoutResolver
from py2wgsl.runtime.type_erased import (
    MaxOutputLengths,
    TypeErasedArrayInputData,
    TypeErasedArrayOutputData,
    TypeErasedConfigInputData,
)
from py2wgsl.transpiler.models import (
    CustomType,
    ModuleRecord,
    StructDefinition,
)
from py2wgsl.transpiler.naming import TypeIdentity
from py2wgsl.transpiler.type_mappings import TypeKind, WgslType

_HOST_SCALARS: dict[str, type] = {
    "f32": float,
    "f16": float,
    "i32": int,
    "u32": int,
    "bool": bool,
}


def _host_annotation(wgsl_type: WgslType) -> Any:
    if wgsl_type.kind == TypeKind.SCALAR:
        return _HOST_SCALARS[wgsl_type.name]
    if wgsl_type.kind in (TypeKind.VECTOR, TypeKind.MATRIX):
        return tuple
    if wgsl_type.kind == TypeKind.ARRAY:
        return list
    if wgsl_type.kind == TypeKind.ATOMIC:
        return _host_annotation(wgsl_type.element_type)
    return wgsl_type.name


def create_host_types(custom_types: Iterable[CustomType]) -> dict[str, type]:
    """Create one host dataclass per declared struct.

    Args:
        custom_types: Declared custom types

    Returns:
        Host classes by struct name
    """
    host_types: dict[str, type] = {}
    for custom_type in custom_types:
        definition = custom_type.definition
        if not isinstance(definition, StructDefinition):
            continue
        host_types[custom_type.name] = dataclasses.make_dataclass(
            custom_type.name,
            [(f.name, _host_annotation(f.wgsl_type)) for f in definition.fields],
        )
    return host_types


class _Builder:
    """Collects one value per type name until ``finish()`` consumes it."""

    _identities: ClassVar[tuple[TypeIdentity, ...]] = ()
    _resolver: ClassVar[LayoutResolver]

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._finished = False

    def _store(self, type_name: str, value: Any) -> Self:
        if self._finished:
            raise BuilderError(f"{type(self).__name__} was already finished")
        self._values[type_name] = value
        return self

    def _consume(self, require_all: bool) -> dict[str, Any]:
        if self._finished:
            raise BuilderError(f"{type(self).__name__} was already finished")
        if require_all:
            missing = [i.name for i in self._identities if i.name not in self._values]
            if missing:
                logger.error(f"{type(self).__name__} is missing {', '.join(missing)}")
                raise BuilderError(
                    f"{type(self).__name__} is missing values for: "
                    f"{', '.join(missing)}"
                )
        self._finished = True
        values, self._values = self._values, {}
        return values


class ConfigBuilderBase(_Builder):
    """Base class of generated config builders."""

    def finish(self, require_all: bool = False) -> TypeErasedConfigInputData:
        """Encode every uniform that was set.

        Args:
            require_all: Fail if any declared uniform was never set

        Raises:
            BuilderError: If the builder was already finished or values are missing
            LayoutError: If a value does not match its type
        """
        values = self._consume(require_all)
        return TypeErasedConfigInputData(
            {
                name: self._resolver.encode_uniform(name, value)
                for name, value in values.items()
            }
        )


class InputBuilderBase(_Builder):
    """Base class of generated input array builders."""

    def finish(self, require_all: bool = False) -> TypeErasedArrayInputData:
        """Encode every input array that was set.

        Args:
            require_all: Fail if any declared input array was never set

        Raises:
            BuilderError: If the builder was already finished or values are missing
            LayoutError: If a value does not match its type
        """
        values = self._consume(require_all)
        return TypeErasedArrayInputData(
            bytes_per_type={
                name: self._resolver.encode_array(name, items)
                for name, items in values.items()
            },
            lengths_per_type={name: len(items) for name, items in values.items()},
        )


class MaxOutputLengthsBuilderBase(_Builder):
    """Base class of generated output capacity builders."""

    def _store(self, type_name: str, value: Any) -> Self:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise BuilderError(
                f"Maximum output length of '{type_name}' must be a non-negative "
                f"integer, got {value!r}"
            )
        return super()._store(type_name, value)

    def finish(self, require_all: bool = False) -> MaxOutputLengths:
        """Collect the capacities that were set.

        Raises:
            BuilderError: If the builder was already finished or values are missing
        """
        return MaxOutputLengths(self._consume(require_all))


class OutputReaderBase:
    """Base class of generated output readers.

    Decodes every output type present in the type-erased data into a list of
    host values, available as an attribute named after the type in snake
    case. Types that were not read back are None.
    """

    _identities: ClassVar[tuple[TypeIdentity, ...]] = ()
    _resolver: ClassVar[LayoutResolver]

    def __init__(self, output: TypeErasedArrayOutputData):
        self._by_name: dict[str, list[Any] | None] = {}
        for identity in self._identities:
            data = output.get_map().get(identity.name)
            decoded = None
            if data is not None:
                decoded = self._resolver.decode_array(
                    identity.name, data, output.get_count(identity.name)
                )
            self._by_name[identity.name] = decoded
            setattr(self, identity.snake_case, decoded)

    def get(self, name: str) -> list[Any]:
        """Decoded values of one output type.

        Args:
            name: Declared type name or its snake case form

        Raises:
            MissingOutputError: If the type has no output data
        """
        for identity in self._identities:
            if name in (identity.name, identity.snake_case):
                decoded = self._by_name[identity.name]
                if decoded is None:
                    raise MissingOutputError(f"Output '{identity.name}' was not read")
                return decoded
        raise MissingOutputError(f"Unknown output type '{name}'")


def _setter(identity: TypeIdentity, role: str) -> Callable[[Any, Any], Any]:
    def setter(self: _Builder, value: Any) -> _Builder:
        return self._store(identity.name, value)

    setter.__name__ = f"set_{identity.snake_case}"
    setter.__qualname__ = setter.__name__
    setter.__doc__ = f"Set the {role} of type {identity.name}."
    return setter


def _generate_class(
    name: str,
    base: type,
    identities: Sequence[TypeIdentity],
    resolver: LayoutResolver,
    role: str | None,
) -> type:
    namespace: dict[str, Any] = {
        "_identities": tuple(identities),
        "_resolver": resolver,
        "__module__": __name__,
    }
    if role is not None:
        for identity in identities:
            namespace[f"set_{identity.snake_case}"] = _setter(identity, role)
    logger.debug(f"Generated {name} for {[i.name for i in identities]}")
    return type(name, (base,), namespace)


class GeneratedBuilders:
    """Builder classes and host types of one compiled shader module.

    Exposes ``ConfigBuilder``, ``InputBuilder``, ``MaxOutputLengthsBuilder``,
    ``OutputReader`` and one host dataclass per declared struct, each as an
    attribute.
    """

    def __init__(self, members: dict[str, Any], resolver: LayoutResolver):
        self._members = members
        self.resolver = resolver

    def __getattr__(self, name: str) -> Any:
        try:
            return self.__dict__["_members"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._members))


def create_builders(
    record: ModuleRecord, custom_types: Sequence[CustomType]
) -> GeneratedBuilders:
    """Generate the host side builders of a compiled module.

    Args:
        record: Compiled module record
        custom_types: Declared custom types in declaration order

    Returns:
        The generated builder classes and host types
    """
    host_types = create_host_types(custom_types)
    resolver = LayoutResolver(custom_types, host_types)

    uniforms = [section.identity for section in record.uniforms]
    inputs = [section.item_type.identity for section in record.input_arrays]
    outputs = [section.item_type.identity for section in record.output_arrays]

    members: dict[str, Any] = dict(host_types)
    members["ConfigBuilder"] = _generate_class(
        "ConfigBuilder", ConfigBuilderBase, uniforms, resolver, "uniform"
    )
    members["InputBuilder"] = _generate_class(
        "InputBuilder", InputBuilderBase, inputs, resolver, "input array"
    )
    members["MaxOutputLengthsBuilder"] = _generate_class(
        "MaxOutputLengthsBuilder",
        MaxOutputLengthsBuilderBase,
        outputs,
        resolver,
        "maximum output length",
    )
    members["OutputReader"] = _generate_class(
        "OutputReader", OutputReaderBase, outputs, resolver, None
    )
    return GeneratedBuilders(members, resolver)


__all__ = [
    "ConfigBuilderBase",
    "GeneratedBuilders",
    "InputBuilderBase",
    "MaxOutputLengthsBuilderBase",
    "OutputReaderBase",
    "create_builders",
    "create_host_types",
]
