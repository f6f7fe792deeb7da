"""
AST collector and type classifier for the WGSL shader transpiler.

This module walks the top level of a shader module, collects constants,
custom types and functions, and assigns every custom type exactly one role
based on its marker.
"""

import ast

from loguru import logger

from py2wgsl.transpiler.ast_parser import generate_simple_expr
from py2wgsl.transpiler.errors import TranspilerError
from py2wgsl.transpiler.models import (
    AliasDefinition,
    CollectedInfo,
    CompileOptions,
    ConstDefinition,
    CustomType,
    FunctionInfo,
    StructDefinition,
    StructField,
    TypeRole,
)
from py2wgsl.transpiler.naming import TypeIdentity
from py2wgsl.transpiler.type_mappings import annotation_name, resolve_annotation

MARKERS: dict[str, TypeRole] = {
    "config": TypeRole.UNIFORM,
    "input_array": TypeRole.INPUT_ARRAY,
    "output_array": TypeRole.OUTPUT_ARRAY,
    "output_vec": TypeRole.OUTPUT_VEC,
}

_IGNORED_DECORATORS = {"dataclass"}
_TYPE_ALIAS = "TypeAlias"


def _marker_name(node: ast.AST) -> str | None:
    """Return the marker name referenced by a decorator or wrapper call."""
    if isinstance(node, ast.Name):
        return node.id if node.id in MARKERS else None
    if isinstance(node, ast.Attribute):
        return node.attr if node.attr in MARKERS else None
    return None


def classify(markers: list[str], node: ast.AST) -> TypeRole:
    """Select the role of a declaration from its markers.

    Args:
        markers: Marker names found on the declaration
        node: Declaration node, used for error reporting

    Returns:
        The role of the declaration, HELPER_TYPE when unmarked

    Raises:
        TranspilerError: If more than one marker is present
    """
    if not markers:
        return TypeRole.HELPER_TYPE
    if len(markers) > 1:
        raise TranspilerError(
            f"Conflicting markers {', '.join(markers)}: a declaration may carry "
            "at most one marker",
            node,
        )
    return MARKERS[markers[0]]


def _unwrap_alias_value(value: ast.expr) -> tuple[list[str], ast.expr]:
    """Strip marker calls wrapped around an alias target.

    ``input_array(output_vec(T))`` yields ``(["input_array", "output_vec"], T)``.
    """
    markers: list[str] = []
    while isinstance(value, ast.Call) and _marker_name(value.func):
        if len(value.args) != 1 or value.keywords:
            raise TranspilerError("Markers take exactly one type argument", value)
        markers.append(_marker_name(value.func))  # type: ignore[arg-type]
        value = value.args[0]
    return markers, value


def _declared_type_names(tree: ast.Module) -> set[str]:
    """Find every struct and alias name declared at the top level."""
    names: set[str] = set()
    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            names.add(node.name)
        elif isinstance(node, ast.AnnAssign | ast.Assign):
            target, value, annotation = _assignment_parts(node)
            if target and _is_alias(value, annotation):
                names.add(target)
    return names


def _assignment_parts(
    node: ast.AnnAssign | ast.Assign,
) -> tuple[str | None, ast.expr | None, ast.expr | None]:
    if isinstance(node, ast.AnnAssign):
        target = node.target.id if isinstance(node.target, ast.Name) else None
        return target, node.value, node.annotation
    if len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
        return node.targets[0].id, node.value, None
    return None, node.value, None


def _is_alias(value: ast.expr | None, annotation: ast.expr | None) -> bool:
    if annotation_name(annotation) == _TYPE_ALIAS:
        return True
    return (
        isinstance(value, ast.Call) and _marker_name(value.func) is not None
    )


def _collect_struct(node: ast.ClassDef, known_types: set[str]) -> CustomType:
    markers: list[str] = []
    for decorator in node.decorator_list:
        marker = _marker_name(decorator)
        if marker:
            markers.append(marker)
        elif annotation_name(decorator) not in _IGNORED_DECORATORS:
            logger.debug(f"Ignoring decorator on struct {node.name}")
    role = classify(markers, node)

    if node.bases or node.keywords:
        raise TranspilerError(f"Struct '{node.name}' cannot inherit", node)

    fields: list[StructField] = []
    for stmt in node.body:
        if (
            isinstance(stmt, ast.Expr)
            and isinstance(stmt.value, ast.Constant)
            and isinstance(stmt.value.value, str)
        ):
            continue
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            if stmt.target.id in (f.name for f in fields):
                raise TranspilerError(
                    f"Duplicate field '{stmt.target.id}' in struct '{node.name}'", stmt
                )
            fields.append(
                StructField(
                    name=stmt.target.id,
                    wgsl_type=resolve_annotation(stmt.annotation, known_types),
                    default_value=(
                        generate_simple_expr(stmt.value) if stmt.value else None
                    ),
                )
            )
        elif isinstance(stmt, ast.Assign):
            raise TranspilerError(
                f"Missing type annotation for struct field in '{node.name}'", stmt
            )
        else:
            raise TranspilerError(
                f"Struct '{node.name}' may only contain annotated fields", stmt
            )
    if not fields:
        raise TranspilerError(f"Struct '{node.name}' has no fields", node)

    return CustomType(
        identity=TypeIdentity.from_name(node.name),
        role=role,
        definition=StructDefinition(name=node.name, fields=tuple(fields)),
        source=ast.unparse(node),
    )


def _collect_alias(
    name: str, node: ast.AnnAssign | ast.Assign, value: ast.expr, known: set[str]
) -> CustomType:
    markers, target = _unwrap_alias_value(value)
    return CustomType(
        identity=TypeIdentity.from_name(name),
        role=classify(markers, node),
        definition=AliasDefinition(name=name, target=resolve_annotation(target, known)),
        source=ast.unparse(node),
    )


def _collect_function(node: ast.FunctionDef, known_types: set[str]) -> FunctionInfo:
    args = node.args
    if args.vararg or args.kwarg or args.kwonlyargs or args.posonlyargs:
        raise TranspilerError(
            f"Function '{node.name}' may only take plain positional parameters", node
        )
    if args.defaults:
        raise TranspilerError(
            f"Function '{node.name}' parameters cannot have defaults", node
        )
    params = []
    for arg in args.args:
        if arg.annotation is None:
            raise TranspilerError(
                f"Parameter '{arg.arg}' of '{node.name}' lacks a type annotation", arg
            )
        params.append((arg.arg, resolve_annotation(arg.annotation, known_types)))

    return_type = None
    if node.returns is not None and not (
        isinstance(node.returns, ast.Constant) and node.returns.value is None
    ):
        return_type = resolve_annotation(node.returns, known_types)

    return FunctionInfo(
        name=node.name, return_type=return_type, params=params, node=node
    )


def _collect_main(node: ast.FunctionDef) -> FunctionInfo:
    args = node.args
    if (
        len(args.args) != 1
        or args.vararg
        or args.kwarg
        or args.kwonlyargs
        or args.posonlyargs
    ):
        raise TranspilerError(
            f"Entry point '{node.name}' must take exactly one iteration position "
            "parameter",
            node,
        )
    param = args.args[0]
    name = annotation_name(param.annotation)
    if param.annotation is not None and name != "IterationPosition":
        raise TranspilerError(
            f"Entry point parameter '{param.arg}' must be an IterationPosition", param
        )
    if node.returns is not None and not (
        isinstance(node.returns, ast.Constant) and node.returns.value is None
    ):
        raise TranspilerError(f"Entry point '{node.name}' cannot return a value", node)
    return FunctionInfo(name=node.name, return_type=None, params=[], node=node)


def collect_info(
    tree: ast.Module, options: CompileOptions | None = None
) -> CollectedInfo:
    """Collect constants, custom types and functions from a shader module.

    Args:
        tree: AST of the shader module
        options: Compile options, used for the entry point name

    Returns:
        CollectedInfo with every declaration in source order

    Raises:
        TranspilerError: If the module contains unsupported top-level statements
    """
    options = options or CompileOptions()
    collected = CollectedInfo()
    known_types = _declared_type_names(tree)

    for index, node in enumerate(tree.body):
        if isinstance(node, ast.Import | ast.ImportFrom):
            continue
        if (
            index == 0
            and isinstance(node, ast.Expr)
            and isinstance(node.value, ast.Constant)
            and isinstance(node.value.value, str)
        ):
            continue

        if isinstance(node, ast.ClassDef):
            custom_type = _collect_struct(node, known_types)
            collected.custom_types.append(custom_type)
            logger.debug(
                f"Collected struct: {custom_type.name}, role: {custom_type.role.name}"
            )
        elif isinstance(node, ast.FunctionDef):
            if node.name in collected.functions or (
                collected.main_function and node.name == collected.main_function.name
            ):
                raise TranspilerError(f"Duplicate function '{node.name}'", node)
            if node.name == options.main_function:
                collected.main_function = _collect_main(node)
                logger.debug(f"Collected entry point: {node.name}")
            else:
                func_info = _collect_function(node, known_types)
                collected.functions[node.name] = func_info
                logger.debug(
                    f"Collected function: {node.name}, "
                    f"return_type: {func_info.return_type}, "
                    f"params: {[str(t) for _, t in func_info.params]}"
                )
        elif isinstance(node, ast.AnnAssign | ast.Assign):
            target, value, annotation = _assignment_parts(node)
            if target is None or value is None:
                raise TranspilerError(
                    "Module level assignments must bind one name to a value", node
                )
            if _is_alias(value, annotation):
                custom_type = _collect_alias(target, node, value, known_types)
                collected.custom_types.append(custom_type)
                logger.debug(
                    f"Collected alias: {custom_type.name}, "
                    f"role: {custom_type.role.name}"
                )
            else:
                const = ConstDefinition(
                    name=target,
                    wgsl_type=(
                        resolve_annotation(annotation, known_types)
                        if annotation is not None
                        else None
                    ),
                    value=value,
                    source=ast.unparse(node),
                )
                collected.consts.append(const)
                logger.debug(f"Collected const: {target}, type: {const.wgsl_type}")
        elif isinstance(node, ast.AsyncFunctionDef):
            raise TranspilerError("Async functions are not supported", node)
        else:
            raise TranspilerError(
                f"Unsupported top-level statement: {type(node).__name__}", node
            )

    return collected


def validate_identities(collected: CollectedInfo) -> None:
    """Reject distinct types whose derived names collide.

    Args:
        collected: Collected shader module information

    Raises:
        TranspilerError: If two types share a lowercase or snake_case form
    """
    seen_lower: dict[str, str] = {}
    seen_snake: dict[str, str] = {}
    for custom_type in collected.custom_types:
        identity = custom_type.identity
        for seen, derived in (
            (seen_lower, identity.lower),
            (seen_snake, identity.snake_case),
        ):
            other = seen.get(derived)
            if other is not None:
                raise TranspilerError(
                    f"Types '{other}' and '{identity.name}' both derive the name "
                    f"'{derived}'"
                )
            seen[derived] = identity.name
