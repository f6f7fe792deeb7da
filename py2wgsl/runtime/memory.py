"""Preflight check that every task's output fits in memory."""

from collections.abc import Mapping, Sequence

from loguru import logger

from py2wgsl.runtime.errors import MemoryBudgetError
from py2wgsl.runtime.layout import LayoutResolver
from py2wgsl.runtime.type_erased import MaxOutputLengths
from py2wgsl.transpiler.models import CustomType, ModuleRecord

COUNTER_BYTES = 4
# Share of the available memory outputs may occupy, as a fraction
MEMORY_BUDGET = (9, 10)

_BYTES_PER_GB = 1024**3


def max_output_bytes(
    record: ModuleRecord,
    custom_types: Sequence[CustomType],
    max_lengths: MaxOutputLengths,
) -> int:
    """Largest number of bytes a task of this module can write.

    Args:
        record: Compiled module record
        custom_types: Declared custom types of the module
        max_lengths: Capacity of every output array

    Returns:
        Size of all output arrays at capacity plus their counters

    Raises:
        BuilderError: If an output array has no capacity set
    """
    resolver = LayoutResolver(custom_types)
    total = 0
    for output_array in record.output_arrays:
        name = output_array.item_type.name
        stride = resolver.element_dtype(name).itemsize
        total += stride * max_lengths.get_by_name(name)
        if output_array.include_count:
            total += COUNTER_BYTES
    return total


def verify_enough_memory(tasks: Mapping[str, int], available_bytes: int) -> None:
    """Fail if all tasks together may produce more output than memory allows.

    Outputs may use up to 90% of the available memory; exactly 90% passes.

    Args:
        tasks: Maximum output bytes by task name
        available_bytes: Total memory available for outputs

    Raises:
        MemoryBudgetError: If the summed maximum output exceeds the budget
    """
    total_bytes = sum(tasks.values())
    numerator, denominator = MEMORY_BUDGET
    logger.debug(
        f"Maximum output of {len(tasks)} task(s): {total_bytes} bytes, "
        f"available: {available_bytes} bytes"
    )
    if total_bytes * denominator > available_bytes * numerator:
        logger.error(
            "Not enough memory to store all gpu compute task outputs. "
            f"Available memory: {available_bytes / _BYTES_PER_GB} GB, "
            f"Max Output size: {total_bytes / _BYTES_PER_GB} GB"
        )
        raise MemoryBudgetError(
            "Not enough memory to store all gpu compute task outputs",
            required_bytes=total_bytes,
            available_bytes=available_bytes,
        )
