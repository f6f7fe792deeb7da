from py2wgsl.transpiler import CompiledModule, CompileOptions, transpile
from py2wgsl.transpiler.errors import TranspilerError

__version__ = "0.1.0"


__all__ = [
    "CompileOptions",
    "CompiledModule",
    "TranspilerError",
    "transpile",
]
