"""
Constants and predefined values for the WGSL shader transpiler.

This module contains the WGSL built-in functions callable from a shader module,
the Python operator mappings and the operator precedence table.
"""

import ast

# Built-in WGSL functions that may be called directly from shader code
BUILTIN_FUNCTIONS: frozenset[str] = frozenset(
    {
        # Trigonometric functions
        "sin",
        "cos",
        "tan",
        "asin",
        "acos",
        "atan",
        "atan2",
        "sinh",
        "cosh",
        "tanh",
        "radians",
        "degrees",
        # Mathematical functions
        "abs",
        "ceil",
        "clamp",
        "exp",
        "exp2",
        "floor",
        "fract",
        "log",
        "log2",
        "max",
        "min",
        "mix",
        "pow",
        "round",
        "saturate",
        "sign",
        "smoothstep",
        "sqrt",
        "inverseSqrt",
        "step",
        "trunc",
        "fma",
        # Vector functions
        "cross",
        "distance",
        "dot",
        "length",
        "normalize",
        "reflect",
        "refract",
        "faceForward",
        # Matrix functions
        "determinant",
        "transpose",
        # Logical functions
        "all",
        "any",
        "select",
        # Bit manipulation
        "countOneBits",
        "reverseBits",
        # Atomics
        "atomicLoad",
        "atomicStore",
        "atomicAdd",
        "atomicSub",
        "atomicMax",
        "atomicMin",
        "atomicAnd",
        "atomicOr",
        "atomicXor",
        "atomicExchange",
        # Synchronization
        "storageBarrier",
        "workgroupBarrier",
        # Array functions
        "arrayLength",
    }
)

# Python conversion functions mapped to WGSL scalar casts
CAST_FUNCTIONS: dict[str, str] = {
    "float": "f32",
    "int": "i32",
    "bool": "bool",
    "f32": "f32",
    "f16": "f16",
    "i32": "i32",
    "u32": "u32",
}

BINARY_OPERATORS: dict[type[ast.operator], str] = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.Mod: "%",
    ast.BitAnd: "&",
    ast.BitOr: "|",
    ast.BitXor: "^",
    ast.LShift: "<<",
    ast.RShift: ">>",
}

COMPARE_OPERATORS: dict[type[ast.cmpop], str] = {
    ast.Lt: "<",
    ast.Gt: ">",
    ast.LtE: "<=",
    ast.GtE: ">=",
    ast.Eq: "==",
    ast.NotEq: "!=",
}

BOOL_OPERATORS: dict[type[ast.boolop], str] = {ast.And: "&&", ast.Or: "||"}

UNARY_OPERATORS: dict[type[ast.unaryop], str] = {
    ast.USub: "-",
    ast.Not: "!",
    ast.Invert: "~",
}

# Operator precedence for generating correct expressions
OPERATOR_PRECEDENCE: dict[str, int] = {
    # Logical operators
    "||": 2,
    "&&": 3,
    # Bitwise operators always get parenthesised when nested
    "|": 4,
    "^": 4,
    "&": 4,
    # Equality operators
    "==": 5,
    "!=": 5,
    # Relational operators
    "<": 6,
    ">": 6,
    "<=": 6,
    ">=": 6,
    # Shift operators
    "<<": 7,
    ">>": 7,
    # Additive operators
    "+": 8,
    "-": 8,
    # Multiplicative operators
    "*": 9,
    "/": 9,
    "%": 9,
    # Unary operators
    "unary": 10,
    # Function calls and member access
    "call": 11,
    "member": 12,
}
