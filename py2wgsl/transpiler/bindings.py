"""
Binding slot allocation for buffer-backed types.

Every uniform, input array, output array and output counter lives in one bind
group. Slots are numbered consecutively in a fixed order, so the shader text
and the host side bind group always agree.
"""

from collections.abc import Mapping, Sequence
from types import MappingProxyType

from loguru import logger

from py2wgsl.transpiler.models import CustomType, TypeRole


def binding_variables(custom_types: Sequence[CustomType]) -> list[str]:
    """List the buffer variable names in binding order.

    Order is uniforms, then input arrays, then output arrays, each in
    declaration order. An output vec's counter directly follows its array.

    Args:
        custom_types: Declared custom types in declaration order

    Returns:
        Buffer variable names in binding order
    """
    names: list[str] = []
    for custom_type in custom_types:
        if custom_type.role == TypeRole.UNIFORM:
            names.append(custom_type.identity.uniform_name)
    for custom_type in custom_types:
        if custom_type.role == TypeRole.INPUT_ARRAY:
            names.append(custom_type.identity.input_array_name)
    for custom_type in custom_types:
        if custom_type.role.is_output:
            names.append(custom_type.identity.output_array_name)
            if custom_type.role == TypeRole.OUTPUT_VEC:
                names.append(custom_type.identity.counter_name)
    return names


def allocate_bindings(
    custom_types: Sequence[CustomType], first_binding: int = 1
) -> Mapping[str, int]:
    """Assign a binding slot to every buffer variable.

    Args:
        custom_types: Declared custom types in declaration order
        first_binding: Slot given to the first buffer

    Returns:
        Read-only mapping of buffer variable name to slot
    """
    bindings: dict[str, int] = {}
    for offset, name in enumerate(binding_variables(custom_types)):
        bindings[name] = first_binding + offset
        logger.debug(f"Binding {bindings[name]}: {name}")
    return MappingProxyType(bindings)
