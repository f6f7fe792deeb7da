"""
Exceptions and error handling for the WGSL shader transpiler.

This module defines the exception raised whenever a shader module falls outside
the supported Python subset or violates a role rule.
"""

import os
from typing import Any


def _line_offset() -> int:
    """Read the line offset applied to AST line numbers from the environment."""
    raw = os.environ.get("PY2WGSL_LINE_OFFSET")
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        return 0


class TranspilerError(Exception):
    """Exception raised for errors during shader module transpilation.

    This is the only exception raised by the compile-time pipeline. When the
    offending AST node is known, the message is suffixed with the file name and
    line number of the shader source.

    Examples:
        >>> raise TranspilerError("Unknown function: my_func")
        TranspilerError: Unknown function: my_func
    """

    def __init__(self, message: str, node: Any | None = None):
        """Initialize the exception with a message and optional AST node.

        Args:
            message: The error message
            node: Optional AST node where the error occurred
        """
        self.message = message
        self.node = node
        self.file_path = os.environ.get("PY2WGSL_CURRENT_FILE")
        self.lineno: int | None = None

        if node is not None and getattr(node, "lineno", None) is not None:
            self.lineno = node.lineno + _line_offset()

        location_info = ""
        if self.file_path:
            location_info = f" in {os.path.basename(self.file_path)}"
        if self.lineno:
            location_info += f" at line {self.lineno}"

        super().__init__(f"{message}{location_info}")

