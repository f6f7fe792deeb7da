"""
WGSL code generation for module level declarations.

This module turns each collected constant, custom type and function into its
WGSL text. Placement of the pieces in the final shader is left to the
assembler.
"""

import ast

from loguru import logger

from py2wgsl.transpiler.ast_utils import find_mutated_names
from py2wgsl.transpiler.code_gen_expr import generate_expr
from py2wgsl.transpiler.code_gen_stmt import generate_body
from py2wgsl.transpiler.models import (
    AliasDefinition,
    CollectedInfo,
    ConstDefinition,
    CustomType,
    FunctionInfo,
    FunctionScope,
    GeneratedCode,
    StructDefinition,
)
from py2wgsl.transpiler.type_mappings import ITERATION_POSITION_TYPE


def generate_const(const: ConstDefinition, collected: CollectedInfo) -> GeneratedCode:
    """Generate a module level ``const`` declaration.

    Args:
        const: Collected constant
        collected: Collected shader module information

    Returns:
        Source and WGSL text of the constant
    """
    value = generate_expr(const.value, FunctionScope(), 0, collected)
    type_str = f": {const.wgsl_type}" if const.wgsl_type is not None else ""
    return GeneratedCode(
        source=const.source, wgsl=f"const {const.name}{type_str} = {value};"
    )


def _generate_struct(struct_def: StructDefinition) -> str:
    lines = [f"struct {struct_def.name} {{"]
    for field in struct_def.fields:
        lines.append(f"    {field.name}: {field.wgsl_type},")
    lines.append("}")
    return "\n".join(lines)


def _generate_alias(alias_def: AliasDefinition) -> str:
    return f"alias {alias_def.name} = {alias_def.target};"


def generate_type(custom_type: CustomType) -> GeneratedCode:
    """Generate the WGSL struct or alias definition of a custom type."""
    definition = custom_type.definition
    if isinstance(definition, StructDefinition):
        wgsl = _generate_struct(definition)
    else:
        wgsl = _generate_alias(definition)
    return GeneratedCode(source=custom_type.source, wgsl=wgsl)


def _format_function(header: str, body_lines: list[str]) -> str:
    lines = [f"{header} {{"]
    lines.extend(f"    {line}" for line in body_lines)
    lines.append("}")
    return "\n".join(lines)


def generate_function(
    func_info: FunctionInfo, collected: CollectedInfo
) -> GeneratedCode:
    """Generate a helper function definition.

    Args:
        func_info: Collected helper function
        collected: Collected shader module information

    Returns:
        Source and WGSL text of the function

    Raises:
        TranspilerError: If the body uses unsupported constructs
    """
    node = func_info.node
    param_names = [name for name, _ in func_info.params]
    scope = FunctionScope(
        declared=set(param_names),
        mutable=find_mutated_names(node),
        params=frozenset(param_names),
        returns_value=func_info.return_type is not None,
        unsigned={name for name, t in func_info.params if str(t) == "u32"},
    )
    logger.debug(f"Generating function {func_info.name}, mutable: {sorted(scope.mutable)}")

    param_str = ", ".join(f"{name}: {wgsl_type}" for name, wgsl_type in func_info.params)
    header = f"fn {func_info.name}({param_str})"
    if func_info.return_type is not None:
        header += f" -> {func_info.return_type}"

    body_lines = generate_body(node.body, scope, collected)
    return GeneratedCode(
        source=ast.unparse(node), wgsl=_format_function(header, body_lines)
    )


def generate_main(main_info: FunctionInfo, collected: CollectedInfo) -> GeneratedCode:
    """Generate the compute entry point.

    The single parameter receives the global invocation id. The
    ``@compute @workgroup_size`` attribute is added when the shader is rendered.

    Args:
        main_info: Collected entry point
        collected: Collected shader module information

    Returns:
        Source and WGSL text of the entry point
    """
    node = main_info.node
    iteration_param = node.args.args[0].arg
    scope = FunctionScope(
        declared={iteration_param},
        mutable=find_mutated_names(node),
        params=frozenset({iteration_param}),
        iteration_param=iteration_param,
    )
    logger.debug(f"Generating entry point {main_info.name}")

    header = (
        f"fn {main_info.name}(@builtin(global_invocation_id) "
        f"{iteration_param}: {ITERATION_POSITION_TYPE})"
    )
    body_lines = generate_body(node.body, scope, collected)
    return GeneratedCode(
        source=ast.unparse(node), wgsl=_format_function(header, body_lines)
    )
