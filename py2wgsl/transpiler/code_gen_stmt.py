"""
WGSL code generation for statements.

This module contains functions for generating WGSL code from Python AST
statements, including declarations, assignments, loops, conditionals, return
statements and the statement-only buffer helper calls.
"""

import ast
from typing import cast

from py2wgsl.transpiler.ast_utils import base_name, is_docstring
from py2wgsl.transpiler.code_gen_expr import generate_expr
from py2wgsl.transpiler.constants import BINARY_OPERATORS
from py2wgsl.transpiler.errors import TranspilerError
from py2wgsl.transpiler.helper_calls import (
    generate_helper_statement,
    helper_key,
    helper_value_args,
    is_helper_call,
)
from py2wgsl.transpiler.models import CollectedInfo, FunctionScope
from py2wgsl.transpiler.type_mappings import resolve_annotation


def _check_assignable(target: ast.expr, scope: FunctionScope) -> None:
    """Reject writes to the iteration position and to parameters.

    Raises:
        TranspilerError: If the target is rooted in a read-only name
    """
    name = base_name(target)
    if name is None:
        raise TranspilerError(
            f"Unsupported assignment target: {type(target).__name__}", target
        )
    if name == scope.iteration_param:
        raise TranspilerError(
            f"Cannot assign to the iteration position '{name}'", target
        )
    if name in scope.params:
        raise TranspilerError(f"Cannot assign to parameter '{name}'", target)


def _declaration_keyword(name: str, scope: FunctionScope) -> str:
    return "var" if name in scope.mutable else "let"


_UNSIGNED_HELPERS = {
    ("VecInput", "vec_len"),
    ("Output", "len"),
    ("Output", "max_len"),
}


def _is_unsigned(
    node: ast.expr, scope: FunctionScope, collected: CollectedInfo
) -> bool:
    """Check whether an expression is known to produce a u32.

    Buffer lengths, ``u32()`` casts, components of the iteration position, u32
    constants and u32 locals qualify, as does arithmetic involving any of them.
    """
    if isinstance(node, ast.Name):
        if node.id in scope.declared:
            return node.id in scope.unsigned
        return any(
            const.name == node.id and str(const.wgsl_type) == "u32"
            for const in collected.consts
        )
    if isinstance(node, ast.Attribute):
        return (
            isinstance(node.value, ast.Name)
            and node.value.id == scope.iteration_param
        )
    if isinstance(node, ast.Call):
        if is_helper_call(node):
            return helper_key(node) in _UNSIGNED_HELPERS
        return isinstance(node.func, ast.Name) and node.func.id == "u32"
    if isinstance(node, ast.BinOp):
        return _is_unsigned(node.left, scope, collected) or _is_unsigned(
            node.right, scope, collected
        )
    if isinstance(node, ast.IfExp):
        return _is_unsigned(node.body, scope, collected) or _is_unsigned(
            node.orelse, scope, collected
        )
    return False


def generate_assignment(
    node: ast.Assign,
    scope: FunctionScope,
    indent: str,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for an assignment statement.

    The first assignment of a name declares it, with ``var`` when the function
    mutates it later and ``let`` otherwise.

    Args:
        node: AST assignment node
        scope: Local names of the enclosing block
        indent: Indentation string
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the assignment

    Raises:
        TranspilerError: If the assignment target is not supported or if there are
            multiple targets
    """
    if len(node.targets) != 1:
        raise TranspilerError("Multiple assignment targets not supported", node)
    target = node.targets[0]
    if isinstance(target, ast.Tuple | ast.List):
        raise TranspilerError("Tuple unpacking is not supported", node)
    _check_assignable(target, scope)

    value_str = generate_expr(node.value, scope, 0, collected)

    if isinstance(target, ast.Name):
        target_name = target.id
        if target_name not in scope.declared:
            if _is_unsigned(node.value, scope, collected):
                scope.unsigned.add(target_name)
            scope.declared.add(target_name)
            keyword = _declaration_keyword(target_name, scope)
            return f"{indent}{keyword} {target_name} = {value_str};"
        return f"{indent}{target_name} = {value_str};"

    target_str = generate_expr(target, scope, 0, collected)
    return f"{indent}{target_str} = {value_str};"


def generate_annotated_assignment(
    stmt: ast.AnnAssign,
    scope: FunctionScope,
    indent: str,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for an annotated assignment.

    Args:
        stmt: AST annotated assignment node
        scope: Local names of the enclosing block
        indent: Indentation string
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the declaration

    Raises:
        TranspilerError: If the target is not a fresh local name
    """
    if not isinstance(stmt.target, ast.Name):
        raise TranspilerError(
            f"Unsupported annotated assignment target: {type(stmt.target).__name__}",
            stmt,
        )
    _check_assignable(stmt.target, scope)
    target = stmt.target.id
    if target in scope.declared:
        raise TranspilerError(f"Variable '{target}' is already declared", stmt)

    wgsl_type = resolve_annotation(stmt.annotation, collected.type_names)

    expr = None
    if stmt.value is not None:
        expr = generate_expr(stmt.value, scope, 0, collected)
    scope.declared.add(target)
    if str(wgsl_type) == "u32":
        scope.unsigned.add(target)

    if expr is None:
        # WGSL zero-initialises an uninitialised var
        return f"{indent}var {target}: {wgsl_type};"
    keyword = _declaration_keyword(target, scope)
    return f"{indent}{keyword} {target}: {wgsl_type} = {expr};"


def generate_augmented_assignment(
    stmt: ast.AugAssign,
    scope: FunctionScope,
    indent: str,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for an augmented assignment (e.g., +=, -=).

    Args:
        stmt: AST augmented assignment node
        scope: Local names of the enclosing block
        indent: Indentation string
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the augmented assignment

    Raises:
        TranspilerError: If the operator is not supported
    """
    _check_assignable(stmt.target, scope)
    name = base_name(stmt.target)
    if name not in scope.declared:
        raise TranspilerError(f"Variable '{name}' used before assignment", stmt)

    op = BINARY_OPERATORS.get(type(stmt.op))
    if not op:
        raise TranspilerError(
            f"Unsupported augmented operator: {type(stmt.op).__name__}", stmt
        )

    target = generate_expr(stmt.target, scope, 0, collected)
    value = generate_expr(stmt.value, scope, 0, collected)
    return f"{indent}{target} {op}= {value};"


def _is_negative_literal(node: ast.expr) -> bool:
    return (
        isinstance(node, ast.UnaryOp)
        and isinstance(node.op, ast.USub)
        and isinstance(node.operand, ast.Constant)
    )


def _range_operand(
    node: ast.expr, scope: FunctionScope, collected: CollectedInfo, unsigned: bool
) -> str:
    if unsigned and isinstance(node, ast.Constant) and type(node.value) is int:
        return f"{node.value}u"
    return generate_expr(node, scope, 0, collected)


def _parse_range_arguments(
    args: list[ast.expr],
    scope: FunctionScope,
    collected: CollectedInfo,
    unsigned: bool = False,
) -> tuple[str, str, str]:
    """Parse the arguments to a range() call.

    For an unsigned loop, integer literals get a ``u`` suffix and a negative
    literal step is returned as its magnitude.

    Args:
        args: List of AST nodes representing range arguments
        scope: Local names of the enclosing block
        collected: Collected shader module information
        unsigned: Whether the loop variable is a u32

    Returns:
        Tuple of (start, end, step) values as strings

    Raises:
        TranspilerError: If the range has an invalid number of arguments
    """
    if unsigned and len(args) == 3 and _is_negative_literal(args[2]):
        args = [args[0], args[1], cast(ast.UnaryOp, args[2]).operand]
    generated = [_range_operand(arg, scope, collected, unsigned) for arg in args]
    zero, one = ("0u", "1u") if unsigned else ("0", "1")
    if len(generated) == 1:
        return zero, generated[0], one
    elif len(generated) == 2:
        return generated[0], generated[1], one
    elif len(generated) == 3:
        return generated[0], generated[1], generated[2]
    raise TranspilerError("Range function must have 1 to 3 arguments")


def _is_range_call(node: ast.AST) -> bool:
    """Check if a node is a call to the range() function."""
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == "range"
    )


def generate_for_loop(
    stmt: ast.For, scope: FunctionScope, indent: str, collected: CollectedInfo
) -> list[str]:
    """Generate WGSL code for a range-based for loop.

    The loop variable is a u32 when the start or end bound is known to be one,
    such as a buffer length or an iteration position component. Otherwise it
    is left to WGSL to infer, which makes it an i32.

    Args:
        stmt: AST for loop node
        scope: Local names of the enclosing block
        indent: Indentation string
        collected: Collected shader module information

    Returns:
        List of generated WGSL code lines for the for loop

    Raises:
        TranspilerError: If the loop does not iterate over range()
    """
    if not _is_range_call(stmt.iter):
        raise TranspilerError("Only range-based for loops are supported", stmt)
    if stmt.orelse:
        raise TranspilerError("for ... else is not supported", stmt)
    if not isinstance(stmt.target, ast.Name):
        raise TranspilerError("For loop target must be a variable name", stmt)
    _check_assignable(stmt.target, scope)

    range_call = cast(ast.Call, stmt.iter)
    if range_call.keywords:
        raise TranspilerError("range() does not take keyword arguments", stmt)
    target = stmt.target.id
    args = range_call.args
    unsigned = any(_is_unsigned(arg, scope, collected) for arg in args[:2])
    start, end, step = _parse_range_arguments(args, scope, collected, unsigned)
    descending = len(args) == 3 and _is_negative_literal(args[2])
    comparison = ">" if descending else "<"
    declaration = f"var {target}: u32" if unsigned else f"var {target}"
    increment = f"{target} += {step}"
    if unsigned and descending:
        increment = f"{target} -= {step}"

    body_scope = scope.child()
    body_scope.declared.add(target)
    if unsigned:
        body_scope.unsigned.add(target)

    code = [
        f"{indent}for ({declaration} = {start}; {target} {comparison} {end}; "
        f"{increment}) {{"
    ]
    for line in generate_body(stmt.body, body_scope, collected):
        code.append(f"{indent}    {line}")
    code.append(f"{indent}}}")
    return code


def generate_while_loop(
    stmt: ast.While,
    scope: FunctionScope,
    indent: str,
    collected: CollectedInfo,
) -> list[str]:
    """Generate WGSL code for a while loop."""
    if stmt.orelse:
        raise TranspilerError("while ... else is not supported", stmt)

    condition = generate_expr(stmt.test, scope, 0, collected)
    body_code = generate_body(stmt.body, scope.child(), collected)

    code = [f"{indent}while ({condition}) {{"]
    code.extend(f"{indent}    {line}" for line in body_code)
    code.append(f"{indent}}}")
    return code


def generate_if_statement(
    stmt: ast.If, scope: FunctionScope, indent: str, collected: CollectedInfo
) -> list[str]:
    """Generate WGSL code for an if statement.

    An ``elif`` chain is emitted as ``} else if (...) {`` rather than as nested
    blocks.

    Args:
        stmt: AST if statement node
        scope: Local names of the enclosing block
        indent: Indentation string
        collected: Collected shader module information

    Returns:
        List of generated WGSL code lines for the if statement
    """
    code = []

    condition = generate_expr(stmt.test, scope, 0, collected)
    body_code = generate_body(stmt.body, scope.child(), collected)
    code.append(f"{indent}if ({condition}) {{")
    code.extend(f"{indent}    {line}" for line in body_code)

    orelse = stmt.orelse
    while len(orelse) == 1 and isinstance(orelse[0], ast.If):
        elif_stmt = orelse[0]
        condition = generate_expr(elif_stmt.test, scope, 0, collected)
        body_code = generate_body(elif_stmt.body, scope.child(), collected)
        code.append(f"{indent}}} else if ({condition}) {{")
        code.extend(f"{indent}    {line}" for line in body_code)
        orelse = elif_stmt.orelse

    if orelse:
        else_code = generate_body(orelse, scope.child(), collected)
        code.append(f"{indent}}} else {{")
        code.extend(f"{indent}    {line}" for line in else_code)

    code.append(f"{indent}}}")
    return code


def generate_return_statement(
    stmt: ast.Return,
    scope: FunctionScope,
    indent: str,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for a return statement.

    Raises:
        TranspilerError: If the value does not match the function's signature
    """
    if stmt.value is None:
        if scope.returns_value:
            raise TranspilerError("Missing return value", stmt)
        return f"{indent}return;"
    if not scope.returns_value:
        raise TranspilerError(
            "Cannot return a value from a function without a return type", stmt
        )
    expr = generate_expr(stmt.value, scope, 0, collected)
    return f"{indent}return {expr};"


def generate_expression_statement(
    stmt: ast.Expr,
    scope: FunctionScope,
    indent: str,
    collected: CollectedInfo,
) -> list[str]:
    """Generate WGSL code for a call used as a statement.

    Args:
        stmt: AST expression statement node
        scope: Local names of the enclosing block
        indent: Indentation string
        collected: Collected shader module information

    Returns:
        List of generated WGSL code lines

    Raises:
        TranspilerError: If the expression is not a call
    """
    if not isinstance(stmt.value, ast.Call):
        raise TranspilerError("Only calls can be used as statements", stmt)

    call = stmt.value
    if is_helper_call(call):
        args = [generate_expr(arg, scope, 0, collected) for arg in helper_value_args(call)]
        lines = generate_helper_statement(call, args, collected)
        return [f"{indent}{line}" for line in lines]

    return [f"{indent}{generate_expr(call, scope, 0, collected)};"]


def generate_body(
    body: list[ast.stmt], scope: FunctionScope, collected: CollectedInfo
) -> list[str]:
    """Generate WGSL code for a function body or nested block.

    Args:
        body: List of AST nodes representing statements in the block
        scope: Local names of the block, updated with its declarations
        collected: Collected shader module information

    Returns:
        List of generated WGSL code lines for the block

    Raises:
        TranspilerError: If unsupported statements are encountered
    """
    code: list[str] = []
    indent = ""

    for stmt in body:
        if isinstance(stmt, ast.Assign):
            code.append(generate_assignment(stmt, scope, indent, collected))
        elif isinstance(stmt, ast.AnnAssign):
            code.append(generate_annotated_assignment(stmt, scope, indent, collected))
        elif isinstance(stmt, ast.AugAssign):
            code.append(generate_augmented_assignment(stmt, scope, indent, collected))
        elif isinstance(stmt, ast.For):
            code.extend(generate_for_loop(stmt, scope, indent, collected))
        elif isinstance(stmt, ast.While):
            code.extend(generate_while_loop(stmt, scope, indent, collected))
        elif isinstance(stmt, ast.If):
            code.extend(generate_if_statement(stmt, scope, indent, collected))
        elif isinstance(stmt, ast.Return):
            code.append(generate_return_statement(stmt, scope, indent, collected))
        elif isinstance(stmt, ast.Break):
            code.append(f"{indent}break;")
        elif isinstance(stmt, ast.Continue):
            code.append(f"{indent}continue;")
        elif isinstance(stmt, ast.Pass) or is_docstring(stmt):
            continue
        elif isinstance(stmt, ast.Expr):
            code.extend(generate_expression_statement(stmt, scope, indent, collected))
        else:
            raise TranspilerError(f"Unsupported statement: {type(stmt).__name__}", stmt)

    return code
