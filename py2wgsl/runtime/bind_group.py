"""
Bind group assembly for compiled tasks.

Buffers are supplied per category, in the order the module declares its
types. Their binding slots come from the module's binding table, matching the
``@binding`` attributes of the generated shader:

    @group(0) @binding(1) var<uniform> uniforms: Uniforms;
    @group(0) @binding(2) var<storage, read> position_input_array: array<Position>;
    @group(0) @binding(4) var<storage, read_write> hit_output_array: array<Hit>;
    @group(0) @binding(5) var<storage, read_write> hit_counter: atomic<u32>;

A single bind group holds every buffer of a task.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from loguru import logger

from py2wgsl.runtime.errors import MissingBufferError
from py2wgsl.transpiler.models import ModuleRecord


@dataclass
class TaskBuffers:
    """Device buffers of one task, each list in declaration order.

    Attributes:
        config: One buffer per uniform
        input: One buffer per input array
        output: One buffer per output array
        count: One counter buffer per output array, None for fixed-length ones
    """

    config: Sequence[Any] = field(default_factory=list)
    input: Sequence[Any] = field(default_factory=list)
    output: Sequence[Any] = field(default_factory=list)
    count: Sequence[Any | None] = field(default_factory=list)


class BindingEntry(NamedTuple):
    binding: int
    buffer: Any


def _buffer_at(buffers: Sequence[Any], index: int) -> Any | None:
    return buffers[index] if index < len(buffers) else None


def _missing(task_name: str, kind: str, index: int) -> MissingBufferError:
    message = f"{kind} buffer has not been set for task {task_name}, index {index}"
    logger.error(message)
    return MissingBufferError(message, task_name=task_name, index=index)


def collect_binding_entries(
    task_name: str, record: ModuleRecord, buffers: TaskBuffers
) -> list[BindingEntry]:
    """Pair every buffer of a task with its binding slot.

    Args:
        task_name: Name of the task, used in error messages
        record: Compiled module record holding the binding table
        buffers: The task's device buffers

    Returns:
        Binding entries for uniforms, input arrays, output arrays and counters

    Raises:
        MissingBufferError: If a buffer required by the module was not supplied
    """
    logger.debug(f"Collecting binding entries for task {task_name}")
    bindings = record.binding_numbers
    entries: list[BindingEntry] = []

    for i, uniform in enumerate(record.uniforms):
        buffer = _buffer_at(buffers.config, i)
        if buffer is None:
            raise _missing(task_name, "Config", i)
        entries.append(BindingEntry(bindings[uniform.identity.uniform_name], buffer))

    for i, input_array in enumerate(record.input_arrays):
        buffer = _buffer_at(buffers.input, i)
        if buffer is None:
            raise _missing(task_name, "Input", i)
        name = input_array.item_type.identity.input_array_name
        entries.append(BindingEntry(bindings[name], buffer))

    for i, output_array in enumerate(record.output_arrays):
        buffer = _buffer_at(buffers.output, i)
        if buffer is None:
            raise _missing(task_name, "Output", i)
        name = output_array.item_type.identity.output_array_name
        entries.append(BindingEntry(bindings[name], buffer))
        counter = output_array.atomic_counter_name
        if counter is not None:
            count_buffer = _buffer_at(buffers.count, i)
            if count_buffer is None:
                raise _missing(task_name, "Output count", i)
            entries.append(BindingEntry(bindings[counter], count_buffer))

    return entries


def create_bind_group(
    device: Any,
    task_name: str,
    layout: Any,
    record: ModuleRecord,
    buffers: TaskBuffers,
) -> Any:
    """Create the bind group of a task on a wgpu device.

    Args:
        device: Device exposing ``create_bind_group(label=, layout=, entries=)``
        task_name: Name of the task, used as the bind group label
        layout: Bind group layout matching the module
        record: Compiled module record holding the binding table
        buffers: The task's device buffers

    Returns:
        Whatever the device returns for the new bind group

    Raises:
        MissingBufferError: If a buffer required by the module was not supplied
    """
    entries = collect_binding_entries(task_name, record, buffers)
    return device.create_bind_group(
        label=task_name,
        layout=layout,
        entries=[
            {"binding": entry.binding, "resource": {"buffer": entry.buffer}}
            for entry in entries
        ],
    )
