"""Host side glue for moving typed data between Python and compiled shaders."""

from py2wgsl.runtime.bind_group import (
    BindingEntry,
    TaskBuffers,
    collect_binding_entries,
    create_bind_group,
)
from py2wgsl.runtime.builders import GeneratedBuilders, create_builders
from py2wgsl.runtime.errors import (
    BuilderError,
    LayoutError,
    MemoryBudgetError,
    MissingBufferError,
    MissingOutputError,
    RuntimeGlueError,
)
from py2wgsl.runtime.memory import max_output_bytes, verify_enough_memory
from py2wgsl.runtime.type_erased import (
    MaxOutputLengths,
    TypeErasedArrayInputData,
    TypeErasedArrayOutputData,
    TypeErasedConfigInputData,
)

__all__ = [
    "BindingEntry",
    "BuilderError",
    "GeneratedBuilders",
    "LayoutError",
    "MaxOutputLengths",
    "MemoryBudgetError",
    "MissingBufferError",
    "MissingOutputError",
    "RuntimeGlueError",
    "TaskBuffers",
    "TypeErasedArrayInputData",
    "TypeErasedArrayOutputData",
    "TypeErasedConfigInputData",
    "collect_binding_entries",
    "create_bind_group",
    "create_builders",
    "max_output_bytes",
    "verify_enough_memory",
]
