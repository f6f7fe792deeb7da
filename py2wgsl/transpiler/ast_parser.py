"""
AST parsing utilities for the WGSL shader transpiler.

This module provides functions for turning a shader module (source text, file
path or imported module) into a Python AST.
"""

import ast
import inspect
import textwrap
from pathlib import Path
from types import ModuleType

from loguru import logger

from py2wgsl.transpiler.errors import TranspilerError
from py2wgsl.transpiler.type_mappings import resolve_type_name

ShaderInput = str | Path | ModuleType


def generate_simple_expr(node: ast.AST) -> str:
    """Generate WGSL code for simple expressions used in struct field defaults.

    Args:
        node: AST node for a simple expression

    Returns:
        String representation of the expression in WGSL

    Raises:
        TranspilerError: If the expression is not supported as a default
    """
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool):
            return "true" if node.value else "false"
        elif isinstance(node.value, int | float):
            return str(node.value)
    elif isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub):
        return f"-{generate_simple_expr(node.operand)}"
    elif isinstance(node, ast.Call) and isinstance(node.func, ast.Name):
        resolved = resolve_type_name(node.func.id, set())
        if resolved is not None:
            args = [generate_simple_expr(arg) for arg in node.args]
            return f"{resolved}({', '.join(args)})"
    raise TranspilerError("Unsupported expression in default value", node)


def read_shader_source(shader_input: ShaderInput) -> tuple[str, str | None]:
    """Read the source text of a shader module.

    Args:
        shader_input: Source code, a path to a ``.py`` file, or a module object

    Returns:
        Tuple of (source text, file path if known)

    Raises:
        TranspilerError: If the source cannot be read
    """
    if isinstance(shader_input, ModuleType):
        try:
            return inspect.getsource(shader_input), inspect.getsourcefile(shader_input)
        except (OSError, TypeError) as e:
            raise TranspilerError(
                f"Failed to get source for {shader_input.__name__}: {e}"
            ) from e
    if isinstance(shader_input, Path):
        try:
            return shader_input.read_text(), str(shader_input)
        except OSError as e:
            raise TranspilerError(f"Failed to read {shader_input}: {e}") from e
    if isinstance(shader_input, str):
        return shader_input, None
    raise TranspilerError("Shader input must be source code, a path or a module")


def parse_shader_code(shader_input: ShaderInput) -> ast.Module:
    """Parse the shader module into an AST.

    Args:
        shader_input: Source code, a path to a ``.py`` file, or a module object

    Returns:
        AST of the parsed module

    Raises:
        TranspilerError: If the module is empty or not valid Python
    """
    logger.debug("Parsing shader input")
    source, _ = read_shader_source(shader_input)
    shader_code = textwrap.dedent(source)
    if not shader_code.strip():
        raise TranspilerError("Empty shader code provided")
    try:
        tree = ast.parse(shader_code)
    except SyntaxError as e:
        raise TranspilerError(f"Invalid Python syntax: {e}") from e
    logger.debug("Parsing complete")
    return tree
