"""
Compilation of shader modules to WGSL.

This module provides the top-level interface of the transpiler: parse a shader
module, classify its declarations, translate them and allocate buffer
bindings.
"""

import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from py2wgsl.transpiler.assembler import assemble_module, render_shader
from py2wgsl.transpiler.ast_parser import (
    ShaderInput,
    parse_shader_code,
    read_shader_source,
)
from py2wgsl.transpiler.bindings import allocate_bindings
from py2wgsl.transpiler.collector import collect_info, validate_identities
from py2wgsl.transpiler.errors import TranspilerError
from py2wgsl.transpiler.models import CompileOptions, CustomType, ModuleRecord

if TYPE_CHECKING:
    from py2wgsl.runtime.builders import GeneratedBuilders


@dataclass(frozen=True)
class CompiledModule:
    """Result of compiling one shader module.

    Attributes:
        record: Structured module record including the binding table
        wgsl: Rendered WGSL source
        custom_types: Declared custom types in declaration order
        options: Options the module was compiled with
    """

    record: ModuleRecord
    wgsl: str
    custom_types: tuple[CustomType, ...]
    options: CompileOptions

    def create_builders(self) -> "GeneratedBuilders":
        """Generate the host side builder classes of this module."""
        from py2wgsl.runtime.builders import create_builders

        return create_builders(self.record, self.custom_types)


@contextmanager
def _current_file(file_path: str | None) -> Iterator[None]:
    """Report errors against ``file_path`` while compiling."""
    if file_path is None or os.environ.get("PY2WGSL_CURRENT_FILE"):
        yield
        return
    os.environ["PY2WGSL_CURRENT_FILE"] = file_path
    try:
        yield
    finally:
        del os.environ["PY2WGSL_CURRENT_FILE"]


def transpile(
    shader_input: ShaderInput, options: CompileOptions | None = None
) -> CompiledModule:
    """Compile a shader module to WGSL.

    Args:
        shader_input: Source code, a path to a ``.py`` file, or a module object
        options: Compile options, defaults to ``CompileOptions()``

    Returns:
        The compiled module

    Raises:
        TranspilerError: If the module falls outside the supported subset

    Examples:
        compiled = transpile(Path("collision.py"))
        print(compiled.wgsl)
        print(dict(compiled.record.binding_numbers))
    """
    options = options or CompileOptions()
    _, file_path = read_shader_source(shader_input)

    with _current_file(file_path):
        logger.debug(f"Transpiling {file_path or 'source string'} with {options}")
        tree = parse_shader_code(shader_input)

        collected = collect_info(tree, options)
        validate_identities(collected)

        if collected.main_function is None:
            raise TranspilerError(
                f"Main function '{options.main_function}' not found"
            )

        binding_numbers = allocate_bindings(
            collected.custom_types, options.first_binding
        )
        record = assemble_module(collected, binding_numbers)
        wgsl = render_shader(record, options)

    logger.debug(f"Transpiled module with {len(binding_numbers)} bindings")
    return CompiledModule(
        record=record,
        wgsl=wgsl,
        custom_types=tuple(collected.custom_types),
        options=options,
    )


__all__ = [
    "CompileOptions",
    "CompiledModule",
    "ModuleRecord",
    "TranspilerError",
    "transpile",
]
