"""
Data models and structures for the WGSL shader transpiler.

This module contains the dataclass definitions used throughout the transpiler
to represent declarations, their roles, and the compiled module record.
"""

import ast
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any

from py2wgsl.transpiler.naming import TypeIdentity
from py2wgsl.transpiler.type_mappings import WgslType


class TypeRole(Enum):
    """Role of a declared type, selected by its marker."""

    HELPER_TYPE = auto()
    UNIFORM = auto()
    INPUT_ARRAY = auto()
    OUTPUT_ARRAY = auto()
    OUTPUT_VEC = auto()

    @property
    def is_output(self) -> bool:
        return self in (TypeRole.OUTPUT_ARRAY, TypeRole.OUTPUT_VEC)


@dataclass(frozen=True)
class CompileOptions:
    """Options controlling how a shader module is compiled.

    Attributes:
        workgroup_size: Compute workgroup size emitted on the entry point
        bind_group: Index of the single bind group all buffers live in
        first_binding: Binding number given to the first buffer
        main_function: Name of the compute entry point function
    """

    workgroup_size: tuple[int, int, int] = (64, 1, 1)
    bind_group: int = 0
    first_binding: int = 1
    main_function: str = "main"


@dataclass(frozen=True)
class GeneratedCode:
    """Source text of a declaration together with its WGSL translation."""

    source: str
    wgsl: str


@dataclass(frozen=True)
class StructField:
    """Field definition in a WGSL struct.

    Attributes:
        name: Field name
        wgsl_type: WGSL type of the field
        default_value: Optional default value as WGSL code
    """

    name: str
    wgsl_type: WgslType
    default_value: str | None = None


@dataclass(frozen=True)
class StructDefinition:
    """Representation of a WGSL struct definition."""

    name: str
    fields: tuple[StructField, ...]


@dataclass(frozen=True)
class AliasDefinition:
    """Representation of a WGSL type alias."""

    name: str
    target: WgslType


@dataclass(frozen=True)
class CustomType:
    """A struct or alias declared in the shader module and its role.

    Attributes:
        identity: Declared name and all derived names
        role: Role selected by the declaration's marker
        definition: Struct fields or alias target
        source: Source text of the declaration
    """

    identity: TypeIdentity
    role: TypeRole
    definition: StructDefinition | AliasDefinition
    source: str

    @property
    def name(self) -> str:
        return self.identity.name


@dataclass(frozen=True)
class ConstDefinition:
    """A module level constant.

    Attributes:
        name: Constant name
        wgsl_type: Declared type, or None when WGSL should infer it
        value: AST of the assigned value
        source: Source text of the declaration
    """

    name: str
    wgsl_type: WgslType | None
    value: ast.expr
    source: str


@dataclass
class FunctionInfo:
    """Information about a function to be transpiled to WGSL.

    Attributes:
        name: Function name
        return_type: Return type or None for functions without a result
        params: Parameter names and types in declaration order
        node: AST node for the function
    """

    name: str
    return_type: WgslType | None
    params: list[tuple[str, WgslType]]
    node: ast.FunctionDef


@dataclass
class FunctionScope:
    """Local names visible while generating one block of a function body.

    Attributes:
        declared: Names already declared in this block or an enclosing one
        mutable: Names the function mutates, declared with ``var``
        params: Parameter names, which WGSL treats as immutable
        iteration_param: Name of the entry point's iteration position parameter
        returns_value: Whether the function declares a return type
        unsigned: Declared names known to hold a u32
    """

    declared: set[str] = field(default_factory=set)
    mutable: frozenset[str] = frozenset()
    params: frozenset[str] = frozenset()
    iteration_param: str | None = None
    returns_value: bool = False
    unsigned: set[str] = field(default_factory=set)

    def child(self) -> "FunctionScope":
        """Create the scope of a nested block."""
        return FunctionScope(
            declared=set(self.declared),
            mutable=self.mutable,
            params=self.params,
            iteration_param=self.iteration_param,
            returns_value=self.returns_value,
            unsigned=set(self.unsigned),
        )


@dataclass
class CollectedInfo:
    """Information collected from a shader module.

    Attributes:
        consts: Module constants in declaration order
        custom_types: Declared structs and aliases in declaration order
        functions: Helper functions in declaration order
        main_function: The compute entry point, if declared
    """

    consts: list[ConstDefinition] = field(default_factory=list)
    custom_types: list[CustomType] = field(default_factory=list)
    functions: dict[str, FunctionInfo] = field(default_factory=dict)
    main_function: FunctionInfo | None = None

    def get_type(self, name: str) -> CustomType | None:
        for custom_type in self.custom_types:
            if custom_type.name == name:
                return custom_type
        return None

    def get_struct(self, name: str) -> StructDefinition | None:
        custom_type = self.get_type(name)
        if custom_type and isinstance(custom_type.definition, StructDefinition):
            return custom_type.definition
        return None

    def of_role(self, *roles: TypeRole) -> list[CustomType]:
        return [c for c in self.custom_types if c.role in roles]

    @property
    def type_names(self) -> set[str]:
        return {c.name for c in self.custom_types}

    @property
    def const_names(self) -> set[str]:
        return {c.name for c in self.consts}


@dataclass(frozen=True)
class ConstSection:
    name: str
    code: GeneratedCode


@dataclass(frozen=True)
class TypeSection:
    identity: TypeIdentity
    code: GeneratedCode

    @property
    def name(self) -> str:
        return self.identity.name


@dataclass(frozen=True)
class InputArraySection:
    item_type: TypeSection


@dataclass(frozen=True)
class OutputArraySection:
    """An output array and, for output vecs, its atomic counter."""

    item_type: TypeSection
    atomic_counter_name: str | None = None

    @property
    def include_count(self) -> bool:
        return self.atomic_counter_name is not None


@dataclass(frozen=True)
class FunctionSection:
    name: str
    code: GeneratedCode


@dataclass(frozen=True)
class ModuleRecord:
    """The compiled shader module.

    Every category keeps declaration order. ``binding_numbers`` maps each
    buffer variable name to its binding slot and is read-only.
    """

    static_consts: tuple[ConstSection, ...] = ()
    helper_types: tuple[TypeSection, ...] = ()
    uniforms: tuple[TypeSection, ...] = ()
    input_arrays: tuple[InputArraySection, ...] = ()
    output_arrays: tuple[OutputArraySection, ...] = ()
    helper_functions: tuple[FunctionSection, ...] = ()
    main_function: FunctionSection | None = None
    binding_numbers: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert the record into plain JSON-serialisable data."""

        def code(generated: GeneratedCode) -> dict[str, str]:
            return {"source": generated.source, "wgsl": generated.wgsl}

        def type_section(section: TypeSection) -> dict[str, Any]:
            return {"name": section.name, "code": code(section.code)}

        return {
            "static_consts": [
                {"name": c.name, "code": code(c.code)} for c in self.static_consts
            ],
            "helper_types": [type_section(t) for t in self.helper_types],
            "uniforms": [type_section(t) for t in self.uniforms],
            "input_arrays": [
                {"item_type": type_section(a.item_type)} for a in self.input_arrays
            ],
            "output_arrays": [
                {
                    "item_type": type_section(a.item_type),
                    "atomic_counter_name": a.atomic_counter_name,
                    "include_count": a.include_count,
                }
                for a in self.output_arrays
            ],
            "helper_functions": [
                {"name": f.name, "code": code(f.code)} for f in self.helper_functions
            ],
            "main_function": (
                {"name": self.main_function.name, "code": code(self.main_function.code)}
                if self.main_function
                else None
            ),
            "binding_numbers": dict(self.binding_numbers),
        }
