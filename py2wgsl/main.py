"""Command line interface for py2wgsl.

This module provides a command-line interface for compiling Python shader
modules to WGSL compute shaders and inspecting their buffer bindings.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

import typer
from loguru import logger

from py2wgsl.transpiler import CompiledModule, CompileOptions, transpile
from py2wgsl.transpiler.errors import TranspilerError

F = TypeVar("F", bound=Callable[..., Any])


def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="py2wgsl",
    help=(
        "Compile Python shader modules into WGSL compute shaders. "
        "Commands: compile, bindings."
    ),
    add_completion=False,
)


def _parse_workgroup_size(value: str) -> tuple[int, int, int]:
    """Parse an ``X,Y,Z`` workgroup size.

    Raises:
        typer.BadParameter: If the value is not three positive integers
    """
    parts = [part.strip() for part in value.split(",")]
    try:
        sizes = [int(part) for part in parts]
    except ValueError as e:
        raise typer.BadParameter(f"Invalid workgroup size: {value}") from e
    if len(sizes) != 3 or any(size <= 0 for size in sizes):
        raise typer.BadParameter(
            f"Workgroup size must be three positive integers, got {value}"
        )
    return sizes[0], sizes[1], sizes[2]


def _compile_file(shader_file: Path, options: CompileOptions) -> CompiledModule:
    """Compile a shader file, exiting with status 1 on failure."""
    if not shader_file.is_file():
        logger.error(f"Shader file not found: {shader_file}")
        raise typer.Exit(1)
    try:
        compiled = transpile(shader_file, options)
    except TranspilerError as e:
        logger.error(f"Transpilation error: {e}")
        raise typer.Exit(1) from e
    logger.info(
        f"Compiled {shader_file} with {len(compiled.record.binding_numbers)} bindings"
    )
    return compiled


@typed_command(app.command("compile"))
def compile_shader(
    shader_file: Path = typer.Argument(..., help="Python file containing the shader"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write WGSL to this file instead of stdout"
    ),
    metadata: Path | None = typer.Option(
        None, "--metadata", help="Write the module record as JSON to this file"
    ),
    workgroup_size: str = typer.Option(
        "64,1,1", "--workgroup-size", help="Compute workgroup size as X,Y,Z"
    ),
    main_function: str = typer.Option(
        "main", "--main", "-m", help="Name of the compute entry point"
    ),
    first_binding: int = typer.Option(
        1, "--first-binding", help="Binding number of the first buffer"
    ),
) -> None:
    """Compile a shader module to WGSL.

    Example: py2wgsl compile examples/collision.py -o collision.wgsl
    """
    options = CompileOptions(
        workgroup_size=_parse_workgroup_size(workgroup_size),
        first_binding=first_binding,
        main_function=main_function,
    )
    compiled = _compile_file(shader_file, options)

    if output is None:
        typer.echo(compiled.wgsl, nl=False)
    else:
        output.write_text(compiled.wgsl)
        logger.info(f"WGSL saved to {output}")

    if metadata is not None:
        metadata.write_text(json.dumps(compiled.record.to_dict(), indent=2) + "\n")
        logger.info(f"Module record saved to {metadata}")


@typed_command(app.command("bindings"))
def show_bindings(
    shader_file: Path = typer.Argument(..., help="Python file containing the shader"),
    main_function: str = typer.Option(
        "main", "--main", "-m", help="Name of the compute entry point"
    ),
) -> None:
    """Print the binding number of every buffer of a shader module."""
    compiled = _compile_file(shader_file, CompileOptions(main_function=main_function))
    for name, binding in compiled.record.binding_numbers.items():
        typer.echo(f"{binding}: {name}")


if __name__ == "__main__":
    app()
