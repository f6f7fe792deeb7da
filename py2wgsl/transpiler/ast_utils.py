"""AST analysis utilities for the transpiler."""

import ast


def is_docstring(stmt: ast.stmt) -> bool:
    """Check whether a statement is a bare string literal."""
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def base_name(node: ast.expr) -> str | None:
    """Find the variable at the root of an attribute or subscript chain.

    ``a.b[0].c`` yields ``a``; anything not rooted in a name yields None.
    """
    while isinstance(node, ast.Attribute | ast.Subscript):
        node = node.value
    return node.id if isinstance(node, ast.Name) else None


def _walk_statements(body: list[ast.stmt]):
    """Yield every statement of a body, descending into nested blocks only."""
    for stmt in body:
        yield stmt
        for field in ("body", "orelse"):
            nested = getattr(stmt, field, None)
            if isinstance(nested, list):
                yield from _walk_statements(nested)


def find_mutated_names(func: ast.FunctionDef) -> frozenset[str]:
    """Find the local names a function mutates after declaring them.

    A name counts as mutated when it is assigned more than once, is the
    target of an augmented assignment, has one of its elements or fields
    assigned, or is a ``for`` loop variable.

    Args:
        func: Function definition to analyse

    Returns:
        Names that must be declared with ``var``
    """
    assignments: dict[str, int] = {}
    mutated: set[str] = set()

    for stmt in _walk_statements(func.body):
        if isinstance(stmt, ast.Assign):
            targets = stmt.targets
        elif isinstance(stmt, ast.AnnAssign):
            targets = [stmt.target]
        elif isinstance(stmt, ast.AugAssign):
            name = base_name(stmt.target)
            if name:
                mutated.add(name)
            continue
        elif isinstance(stmt, ast.For):
            if isinstance(stmt.target, ast.Name):
                mutated.add(stmt.target.id)
            continue
        else:
            continue

        for target in targets:
            if isinstance(target, ast.Name):
                assignments[target.id] = assignments.get(target.id, 0) + 1
            else:
                name = base_name(target)
                if name:
                    mutated.add(name)

    mutated.update(name for name, count in assignments.items() if count > 1)
    return frozenset(mutated)
