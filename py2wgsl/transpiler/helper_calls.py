"""
Resolution of the special buffer helper calls.

Shader code reaches its buffers through calls such as
``VecInput.vec_val(Position, i)`` or ``Output.push(CollisionResult, value)``.
This module checks the referenced type's role and rewrites each call into the
buffer variables and length constants derived from the type's name.
"""

import ast
from dataclasses import dataclass

from py2wgsl.transpiler.errors import TranspilerError
from py2wgsl.transpiler.models import CollectedInfo, CustomType, TypeRole


@dataclass(frozen=True)
class HelperForm:
    """Signature of one helper call.

    Attributes:
        roles: Roles the referenced type may have
        arg_count: Number of arguments after the type argument
        statement: Whether the call may only appear as a statement
    """

    roles: frozenset[TypeRole]
    arg_count: int
    statement: bool = False


HELPER_FORMS: dict[tuple[str, str], HelperForm] = {
    ("VecInput", "vec_len"): HelperForm(frozenset({TypeRole.INPUT_ARRAY}), 0),
    ("VecInput", "vec_val"): HelperForm(frozenset({TypeRole.INPUT_ARRAY}), 1),
    ("ConfigInput", "get"): HelperForm(frozenset({TypeRole.UNIFORM}), 0),
    ("Output", "len"): HelperForm(frozenset({TypeRole.OUTPUT_VEC}), 0),
    ("Output", "max_len"): HelperForm(
        frozenset({TypeRole.OUTPUT_ARRAY, TypeRole.OUTPUT_VEC}), 0
    ),
    ("Output", "push"): HelperForm(frozenset({TypeRole.OUTPUT_VEC}), 1, True),
    ("Output", "set"): HelperForm(frozenset({TypeRole.OUTPUT_ARRAY}), 2, True),
}

HELPER_NAMESPACES = frozenset(namespace for namespace, _ in HELPER_FORMS)


def is_helper_call(node: ast.AST) -> bool:
    """Check whether a node is a call on one of the helper namespaces."""
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and isinstance(node.func.value, ast.Name)
        and node.func.value.id in HELPER_NAMESPACES
    )


def helper_key(node: ast.Call) -> tuple[str, str]:
    """Namespace and method name of a helper call.

    Raises:
        TranspilerError: If the call is not of the form ``Namespace.method(...)``
    """
    func = node.func
    if not isinstance(func, ast.Attribute) or not isinstance(func.value, ast.Name):
        raise TranspilerError(
            "Helper calls must have the form Namespace.method()", node
        )
    return func.value.id, func.attr


def helper_form(node: ast.Call) -> HelperForm:
    """Look up the signature of a helper call.

    Raises:
        TranspilerError: If the helper does not exist or is called with the
            wrong number of arguments
    """
    namespace, method = helper_key(node)
    form = HELPER_FORMS.get((namespace, method))
    if form is None:
        raise TranspilerError(f"Unknown helper call: {namespace}.{method}", node)
    if node.keywords or len(node.args) != form.arg_count + 1:
        raise TranspilerError(
            f"{namespace}.{method} takes a type and {form.arg_count} positional "
            "argument(s)",
            node,
        )
    return form


def helper_value_args(node: ast.Call) -> list[ast.expr]:
    """Arguments of a helper call after the type argument."""
    return list(node.args[1:])


def resolve_helper_type(node: ast.Call, collected: CollectedInfo) -> CustomType:
    """Find the custom type referenced by a helper call and check its role.

    Args:
        node: Helper call node
        collected: Collected shader module information

    Returns:
        The referenced custom type

    Raises:
        TranspilerError: If the type is unknown or lacks the required role
    """
    namespace, method = helper_key(node)
    form = helper_form(node)
    type_arg = node.args[0]
    if not isinstance(type_arg, ast.Name):
        raise TranspilerError(
            f"{namespace}.{method} must reference a type by name", node
        )
    custom_type = collected.get_type(type_arg.id)
    if custom_type is None:
        raise TranspilerError(
            f"{namespace}.{method} references unknown type '{type_arg.id}'", node
        )
    if custom_type.role not in form.roles:
        allowed = " or ".join(sorted(role.name for role in form.roles))
        raise TranspilerError(
            f"{namespace}.{method} requires a type marked {allowed}, but "
            f"'{custom_type.name}' is {custom_type.role.name}",
            node,
        )
    return custom_type


def generate_helper_value(
    node: ast.Call, args: list[str], collected: CollectedInfo
) -> str:
    """Generate WGSL code for a helper call used as a value.

    Args:
        node: Helper call node
        args: Generated WGSL code of the arguments after the type argument
        collected: Collected shader module information

    Returns:
        WGSL expression replacing the call

    Raises:
        TranspilerError: If the call is a statement-only helper or invalid
    """
    namespace, method = helper_key(node)
    if helper_form(node).statement:
        raise TranspilerError(
            f"{namespace}.{method} can only be used as a statement", node
        )
    identity = resolve_helper_type(node, collected).identity

    if (namespace, method) == ("VecInput", "vec_len"):
        return identity.input_array_length
    if (namespace, method) == ("VecInput", "vec_val"):
        return f"{identity.input_array_name}[{args[0]}]"
    if (namespace, method) == ("ConfigInput", "get"):
        return identity.uniform_name
    if (namespace, method) == ("Output", "len"):
        return identity.counter_name
    return identity.output_array_length


def generate_helper_statement(
    node: ast.Call, args: list[str], collected: CollectedInfo
) -> list[str]:
    """Generate WGSL code for a helper call used as a statement.

    ``Output.push`` becomes a block that reserves a slot with ``atomicAdd`` and
    writes only when the slot is within the output length, so pushes past the
    capacity are dropped.

    Args:
        node: Helper call node
        args: Generated WGSL code of the arguments after the type argument
        collected: Collected shader module information

    Returns:
        WGSL lines, indented relative to the enclosing block

    Raises:
        TranspilerError: If the call is invalid
    """
    namespace, method = helper_key(node)
    form = helper_form(node)
    if not form.statement:
        raise TranspilerError(
            f"Result of {namespace}.{method} must be used as a value", node
        )
    identity = resolve_helper_type(node, collected).identity

    if method == "push":
        index = identity.output_array_index
        return [
            "{",
            f"    let {index} = atomicAdd(&{identity.counter_name}, 1u);",
            f"    if ({index} < {identity.output_array_length}) {{",
            f"        {identity.output_array_name}[{index}] = {args[0]};",
            "    }",
            "}",
        ]
    return [f"{identity.output_array_name}[{args[0]}] = {args[1]};"]
