"""
Module assembly and shader rendering.

This module merges the generated pieces of a shader module into a
ModuleRecord and serialises the record into the final WGSL text.
"""

from collections.abc import Mapping
from types import MappingProxyType

from loguru import logger

from py2wgsl.transpiler.code_generator import (
    generate_const,
    generate_function,
    generate_main,
    generate_type,
)
from py2wgsl.transpiler.models import (
    CollectedInfo,
    CompileOptions,
    ConstSection,
    FunctionSection,
    InputArraySection,
    ModuleRecord,
    OutputArraySection,
    TypeRole,
    TypeSection,
)


def assemble_module(
    collected: CollectedInfo, binding_numbers: Mapping[str, int]
) -> ModuleRecord:
    """Build the ModuleRecord of a collected shader module.

    Args:
        collected: Collected shader module information
        binding_numbers: Buffer variable name to binding slot

    Returns:
        The compiled module record, every category in declaration order

    Raises:
        TranspilerError: If any declaration fails to translate
    """
    static_consts = tuple(
        ConstSection(name=const.name, code=generate_const(const, collected))
        for const in collected.consts
    )

    sections: dict[str, TypeSection] = {}
    for custom_type in collected.custom_types:
        sections[custom_type.name] = TypeSection(
            identity=custom_type.identity, code=generate_type(custom_type)
        )
        logger.debug(f"Generated type {custom_type.name}")

    def of_role(*roles: TypeRole) -> list[TypeSection]:
        return [sections[c.name] for c in collected.of_role(*roles)]

    output_arrays = tuple(
        OutputArraySection(
            item_type=sections[c.name],
            atomic_counter_name=(
                c.identity.counter_name if c.role == TypeRole.OUTPUT_VEC else None
            ),
        )
        for c in collected.of_role(TypeRole.OUTPUT_ARRAY, TypeRole.OUTPUT_VEC)
    )

    helper_functions = tuple(
        FunctionSection(name=name, code=generate_function(func_info, collected))
        for name, func_info in collected.functions.items()
    )

    main_function = None
    if collected.main_function is not None:
        main_function = FunctionSection(
            name=collected.main_function.name,
            code=generate_main(collected.main_function, collected),
        )

    return ModuleRecord(
        static_consts=static_consts,
        helper_types=tuple(of_role(TypeRole.HELPER_TYPE)),
        uniforms=tuple(of_role(TypeRole.UNIFORM)),
        input_arrays=tuple(
            InputArraySection(item_type=section)
            for section in of_role(TypeRole.INPUT_ARRAY)
        ),
        output_arrays=output_arrays,
        helper_functions=helper_functions,
        main_function=main_function,
        binding_numbers=MappingProxyType(dict(binding_numbers)),
    )


def _binding(record: ModuleRecord, options: CompileOptions, name: str) -> str:
    return f"@group({options.bind_group}) @binding({record.binding_numbers[name]})"


def render_shader(record: ModuleRecord, options: CompileOptions | None = None) -> str:
    """Render a module record as WGSL source.

    Categories appear in a fixed order: consts, helper types, uniforms, input
    arrays, output arrays with their counters, helper functions and finally the
    entry point. The same record always renders to the same text.

    Args:
        record: Compiled module record
        options: Compile options for the bind group and workgroup size

    Returns:
        WGSL source text ending in a newline
    """
    options = options or CompileOptions()
    blocks: list[str] = []

    blocks.extend(const.code.wgsl for const in record.static_consts)
    blocks.extend(helper.code.wgsl for helper in record.helper_types)

    for uniform in record.uniforms:
        identity = uniform.identity
        blocks.append(uniform.code.wgsl)
        blocks.append(
            f"{_binding(record, options, identity.uniform_name)} "
            f"var<uniform> {identity.uniform_name}: {identity.name};"
        )

    for input_array in record.input_arrays:
        identity = input_array.item_type.identity
        blocks.append(input_array.item_type.code.wgsl)
        blocks.append(
            f"override {identity.input_array_length}: u32;\n"
            f"{_binding(record, options, identity.input_array_name)} "
            f"var<storage, read> {identity.input_array_name}: array<{identity.name}>;"
        )

    for output_array in record.output_arrays:
        identity = output_array.item_type.identity
        lines = [
            f"override {identity.output_array_length}: u32;",
            f"{_binding(record, options, identity.output_array_name)} "
            f"var<storage, read_write> {identity.output_array_name}: "
            f"array<{identity.name}>;",
        ]
        if output_array.atomic_counter_name is not None:
            counter = output_array.atomic_counter_name
            lines.append(
                f"{_binding(record, options, counter)} "
                f"var<storage, read_write> {counter}: atomic<u32>;"
            )
        blocks.append(output_array.item_type.code.wgsl)
        blocks.append("\n".join(lines))

    blocks.extend(function.code.wgsl for function in record.helper_functions)

    if record.main_function is not None:
        x, y, z = options.workgroup_size
        blocks.append(
            f"@compute @workgroup_size({x}, {y}, {z})\n"
            f"{record.main_function.code.wgsl}"
        )

    return "\n\n".join(blocks) + "\n"
