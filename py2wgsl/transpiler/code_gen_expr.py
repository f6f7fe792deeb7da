"""
WGSL code generation for expressions.

This module contains functions for generating WGSL code from Python AST
expressions, including names, constants, operators, struct constructors,
casts, vector constructors and the buffer helper calls.
"""

import ast

from py2wgsl.transpiler.constants import (
    BINARY_OPERATORS,
    BOOL_OPERATORS,
    BUILTIN_FUNCTIONS,
    CAST_FUNCTIONS,
    COMPARE_OPERATORS,
    OPERATOR_PRECEDENCE,
    UNARY_OPERATORS,
)
from py2wgsl.transpiler.errors import TranspilerError
from py2wgsl.transpiler.helper_calls import (
    generate_helper_value,
    helper_value_args,
    is_helper_call,
)
from py2wgsl.transpiler.models import CollectedInfo, FunctionScope
from py2wgsl.transpiler.type_mappings import TypeKind, resolve_type_name

_BITWISE_OPERATORS = {"&", "|", "^", "<<", ">>"}
_LOGICAL_PRECEDENCES = {OPERATOR_PRECEDENCE["||"], OPERATOR_PRECEDENCE["&&"]}


def generate_name_expr(
    node: ast.Name, scope: FunctionScope, collected: CollectedInfo
) -> str:
    """Generate WGSL code for a name expression (variable).

    A name must be a local declared in the current block or an enclosing one,
    or a module constant. Locals declared inside a branch or loop body are not
    visible after it, matching WGSL block scoping.

    Args:
        node: AST name node
        scope: Local names of the enclosing block
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the name expression

    Raises:
        TranspilerError: If the name is not declared
    """
    if node.id not in scope.declared and node.id not in collected.const_names:
        raise TranspilerError(f"Undefined name '{node.id}'", node)
    return node.id


def generate_constant_expr(node: ast.Constant) -> str:
    """Generate WGSL code for a constant expression (literal).

    Args:
        node: AST constant node

    Returns:
        Generated WGSL code for the constant expression

    Raises:
        TranspilerError: If the constant type is not supported
    """
    if isinstance(node.value, bool):
        return "true" if node.value else "false"
    elif isinstance(node.value, int):
        return str(node.value)
    elif isinstance(node.value, float):
        if node.value != node.value or node.value in (float("inf"), float("-inf")):
            raise TranspilerError("Non-finite float literals are not supported", node)
        return repr(node.value)
    raise TranspilerError(
        f"Unsupported constant type: {type(node.value).__name__}", node
    )


def generate_binary_op_expr(
    node: ast.BinOp,
    scope: FunctionScope,
    parent_precedence: int,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for a binary operation expression.

    ``a ** b`` has no WGSL operator and becomes ``pow(a, b)``. Bitwise and
    shift operators are parenthesised whenever they are nested, since WGSL does
    not let them mix with other operators.

    Args:
        node: AST binary operation node
        scope: Local names of the enclosing block
        parent_precedence: Precedence level of the parent operation
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the binary operation expression

    Raises:
        TranspilerError: If the operation is not supported
    """
    if isinstance(node.op, ast.Pow):
        left = generate_expr(node.left, scope, 0, collected)
        right = generate_expr(node.right, scope, 0, collected)
        return f"pow({left}, {right})"

    op = BINARY_OPERATORS.get(type(node.op))
    if not op:
        raise TranspilerError(f"Unsupported binary op: {type(node.op).__name__}", node)

    precedence = OPERATOR_PRECEDENCE[op]
    if op in _BITWISE_OPERATORS:
        left = generate_expr(node.left, scope, OPERATOR_PRECEDENCE["unary"], collected)
        right = generate_expr(
            node.right, scope, OPERATOR_PRECEDENCE["unary"], collected
        )
        expr = f"{left} {op} {right}"
        return f"({expr})" if parent_precedence > 0 else expr

    left = generate_expr(node.left, scope, precedence, collected)
    # Right operands of equal precedence keep their grouping: a - (b - c)
    right = generate_expr(node.right, scope, precedence + 1, collected)

    expr = f"{left} {op} {right}"
    return f"({expr})" if precedence < parent_precedence else expr


def generate_compare_expr(
    node: ast.Compare,
    scope: FunctionScope,
    parent_precedence: int,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for a comparison expression.

    Args:
        node: AST comparison node
        scope: Local names of the enclosing block
        parent_precedence: Precedence level of the parent operation
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the comparison expression

    Raises:
        TranspilerError: If the comparison operation is not supported
    """
    if len(node.ops) == 1 and len(node.comparators) == 1:
        op = COMPARE_OPERATORS.get(type(node.ops[0]))
        if not op:
            raise TranspilerError(
                f"Unsupported comparison op: {type(node.ops[0]).__name__}", node
            )

        precedence = OPERATOR_PRECEDENCE[op]
        left = generate_expr(node.left, scope, precedence, collected)
        right = generate_expr(node.comparators[0], scope, precedence, collected)

        expr = f"{left} {op} {right}"
        return f"({expr})" if precedence <= parent_precedence else expr
    raise TranspilerError("Chained comparisons are not supported", node)


def generate_bool_op_expr(
    node: ast.BoolOp,
    scope: FunctionScope,
    parent_precedence: int,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for a boolean operation expression.

    WGSL rejects ``a && b || c`` without parentheses, so a boolean operation
    nested in a different boolean operation is always parenthesised.

    Args:
        node: AST boolean operation node
        scope: Local names of the enclosing block
        parent_precedence: Precedence level of the parent operation
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the boolean operation expression

    Raises:
        TranspilerError: If the boolean operation is not supported
    """
    op = BOOL_OPERATORS.get(type(node.op))
    if not op:
        raise TranspilerError(f"Unsupported boolean op: {type(node.op).__name__}", node)

    precedence = OPERATOR_PRECEDENCE[op]
    values = [generate_expr(val, scope, precedence, collected) for val in node.values]

    expr = f" {op} ".join(values)
    needs_parens = precedence < parent_precedence or (
        parent_precedence in _LOGICAL_PRECEDENCES and parent_precedence != precedence
    )
    return f"({expr})" if needs_parens else expr


def generate_unary_op_expr(
    node: ast.UnaryOp,
    scope: FunctionScope,
    parent_precedence: int,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for a unary operation expression.

    Args:
        node: AST unary operation node
        scope: Local names of the enclosing block
        parent_precedence: Precedence level of the parent operation
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the unary operation expression

    Raises:
        TranspilerError: If the unary operation is not supported
    """
    op = UNARY_OPERATORS.get(type(node.op))
    if not op:
        raise TranspilerError(f"Unsupported unary op: {type(node.op).__name__}", node)

    precedence = OPERATOR_PRECEDENCE["unary"]
    operand = generate_expr(node.operand, scope, precedence, collected)
    if operand.startswith(op):
        # "--x" would lex as a decrement
        operand = f"({operand})"

    expr = f"{op}{operand}"
    return f"({expr})" if precedence < parent_precedence else expr


def generate_attribute_expr(
    node: ast.Attribute, scope: FunctionScope, collected: CollectedInfo
) -> str:
    """Generate WGSL code for an attribute access expression."""
    value = generate_expr(node.value, scope, OPERATOR_PRECEDENCE["member"], collected)
    return f"{value}.{node.attr}"


def generate_subscript_expr(
    node: ast.Subscript, scope: FunctionScope, collected: CollectedInfo
) -> str:
    """Generate WGSL code for an indexing expression.

    Raises:
        TranspilerError: If the subscript is a slice
    """
    if isinstance(node.slice, ast.Slice):
        raise TranspilerError("Slices are not supported", node)
    value = generate_expr(node.value, scope, OPERATOR_PRECEDENCE["member"], collected)
    index = generate_expr(node.slice, scope, 0, collected)
    return f"{value}[{index}]"


def generate_if_expr(
    node: ast.IfExp, scope: FunctionScope, collected: CollectedInfo
) -> str:
    """Generate WGSL code for a conditional expression.

    WGSL has no ternary operator; ``a if cond else b`` becomes
    ``select(b, a, cond)``.
    """
    condition = generate_expr(node.test, scope, 0, collected)
    true_expr = generate_expr(node.body, scope, 0, collected)
    false_expr = generate_expr(node.orelse, scope, 0, collected)
    return f"select({false_expr}, {true_expr}, {condition})"


def generate_struct_constructor(
    struct_name: str,
    node: ast.Call,
    scope: FunctionScope,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for a struct constructor.

    Keyword arguments are reordered into the struct's declaration order, since
    WGSL only has positional constructors. Fields left out fall back to their
    declared default.

    Args:
        struct_name: Name of the struct being constructed
        node: AST call node representing the constructor
        scope: Local names of the enclosing block
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the struct constructor

    Raises:
        TranspilerError: If the struct initialization is invalid
    """
    struct_def = collected.get_struct(struct_name)
    if struct_def is None:
        raise TranspilerError(f"'{struct_name}' is not a struct", node)
    field_map = {f.name: i for i, f in enumerate(struct_def.fields)}

    if node.keywords:
        if node.args:
            raise TranspilerError(
                f"Struct '{struct_name}' cannot mix positional and keyword fields",
                node,
            )
        values: list[str | None] = [None] * len(struct_def.fields)

        for kw in node.keywords:
            if kw.arg not in field_map:
                raise TranspilerError(
                    f"Unknown field '{kw.arg}' in struct '{struct_name}'", node
                )
            values[field_map[kw.arg]] = generate_expr(kw.value, scope, 0, collected)

        missing_fields = [
            field.name
            for i, field in enumerate(struct_def.fields)
            if values[i] is None and field.default_value is None
        ]
        if missing_fields:
            raise TranspilerError(
                f"Missing required fields in struct {struct_name}: "
                f"{', '.join(missing_fields)}",
                node,
            )

        args = [
            value if value is not None else field.default_value
            for value, field in zip(values, struct_def.fields, strict=True)
        ]
        return f"{struct_name}({', '.join(str(a) for a in args)})"

    elif node.args:
        if len(node.args) != len(struct_def.fields):
            raise TranspilerError(
                f"Wrong number of arguments for struct {struct_name}: "
                f"expected {len(struct_def.fields)}, got {len(node.args)}",
                node,
            )
        args = [generate_expr(arg, scope, 0, collected) for arg in node.args]
        return f"{struct_name}({', '.join(args)})"

    raise TranspilerError(
        f"Struct '{struct_name}' initialization requires arguments", node
    )


def _positional_args(
    func_name: str, node: ast.Call, scope: FunctionScope, collected: CollectedInfo
) -> list[str]:
    if node.keywords:
        raise TranspilerError(
            f"Keyword arguments are not supported in calls to '{func_name}'", node
        )
    return [generate_expr(arg, scope, 0, collected) for arg in node.args]


def generate_call_expr(
    node: ast.Call, scope: FunctionScope, collected: CollectedInfo
) -> str:
    """Generate WGSL code for a function call expression.

    Args:
        node: AST call node
        scope: Local names of the enclosing block
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the function call expression

    Raises:
        TranspilerError: If the function is unknown or the call is invalid
    """
    if is_helper_call(node):
        args = [generate_expr(arg, scope, 0, collected) for arg in helper_value_args(node)]
        return generate_helper_value(node, args, collected)

    if not isinstance(node.func, ast.Name):
        raise TranspilerError(
            f"Unsupported call target: {ast.unparse(node.func)}", node
        )
    func_name = node.func.id

    if func_name in collected.functions:
        func_info = collected.functions[func_name]
        args = _positional_args(func_name, node, scope, collected)
        if len(args) != len(func_info.params):
            raise TranspilerError(
                f"Function '{func_name}' expects {len(func_info.params)} "
                f"argument(s), got {len(args)}",
                node,
            )
        return f"{func_name}({', '.join(args)})"

    if collected.get_struct(func_name) is not None:
        return generate_struct_constructor(func_name, node, scope, collected)

    if collected.get_type(func_name) is not None:
        args = _positional_args(func_name, node, scope, collected)
        return f"{func_name}({', '.join(args)})"

    if func_name in CAST_FUNCTIONS:
        args = _positional_args(func_name, node, scope, collected)
        if len(args) != 1:
            raise TranspilerError(f"Cast '{func_name}' takes one argument", node)
        return f"{CAST_FUNCTIONS[func_name]}({args[0]})"

    constructed = resolve_type_name(func_name, set())
    if constructed is not None and constructed.kind in (
        TypeKind.VECTOR,
        TypeKind.MATRIX,
    ):
        args = _positional_args(func_name, node, scope, collected)
        return f"{constructed}({', '.join(args)})"

    if func_name in BUILTIN_FUNCTIONS:
        args = _positional_args(func_name, node, scope, collected)
        return f"{func_name}({', '.join(args)})"

    if collected.main_function and func_name == collected.main_function.name:
        raise TranspilerError("The entry point cannot be called", node)

    raise TranspilerError(f"Unknown function call: {func_name}", node)


class ExpressionCodeGenerator(ast.NodeVisitor):
    """Visitor class for generating WGSL code from AST expressions."""

    def __init__(
        self,
        scope: FunctionScope,
        parent_precedence: int,
        collected: CollectedInfo,
    ):
        """Initialize the expression code generator.

        Args:
            scope: Local names of the enclosing block
            parent_precedence: Precedence level of the parent operation
            collected: Collected shader module information
        """
        self.scope = scope
        self.parent_precedence = parent_precedence
        self.collected = collected
        self._result = ""

    @property
    def result(self) -> str:
        return self._result

    def generic_visit(self, node: ast.AST) -> None:
        """Handler for unsupported node types.

        Raises:
            TranspilerError: Always raised for unsupported nodes
        """
        raise TranspilerError(f"Unsupported expression: {type(node).__name__}", node)

    def visit_Name(self, node: ast.Name) -> None:  # noqa: N802
        self._result = generate_name_expr(node, self.scope, self.collected)

    def visit_Constant(self, node: ast.Constant) -> None:  # noqa: N802
        self._result = generate_constant_expr(node)

    def visit_BinOp(self, node: ast.BinOp) -> None:  # noqa: N802
        self._result = generate_binary_op_expr(
            node, self.scope, self.parent_precedence, self.collected
        )

    def visit_Compare(self, node: ast.Compare) -> None:  # noqa: N802
        self._result = generate_compare_expr(
            node, self.scope, self.parent_precedence, self.collected
        )

    def visit_BoolOp(self, node: ast.BoolOp) -> None:  # noqa: N802
        self._result = generate_bool_op_expr(
            node, self.scope, self.parent_precedence, self.collected
        )

    def visit_UnaryOp(self, node: ast.UnaryOp) -> None:  # noqa: N802
        self._result = generate_unary_op_expr(
            node, self.scope, self.parent_precedence, self.collected
        )

    def visit_Call(self, node: ast.Call) -> None:  # noqa: N802
        self._result = generate_call_expr(node, self.scope, self.collected)

    def visit_Attribute(self, node: ast.Attribute) -> None:  # noqa: N802
        self._result = generate_attribute_expr(node, self.scope, self.collected)

    def visit_Subscript(self, node: ast.Subscript) -> None:  # noqa: N802
        self._result = generate_subscript_expr(node, self.scope, self.collected)

    def visit_IfExp(self, node: ast.IfExp) -> None:  # noqa: N802
        self._result = generate_if_expr(node, self.scope, self.collected)


def generate_expr(
    node: ast.AST,
    scope: FunctionScope,
    parent_precedence: int,
    collected: CollectedInfo,
) -> str:
    """Generate WGSL code for an expression.

    Args:
        node: AST node representing an expression
        scope: Local names of the enclosing block
        parent_precedence: Precedence level of the parent operation
        collected: Collected shader module information

    Returns:
        Generated WGSL code for the expression

    Raises:
        TranspilerError: If unsupported expressions are encountered
    """
    generator = ExpressionCodeGenerator(scope, parent_precedence, collected)
    generator.visit(node)
    return generator.result
