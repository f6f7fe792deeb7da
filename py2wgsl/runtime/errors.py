"""
Exceptions raised by the host side runtime glue.

Every error derives from RuntimeGlueError so callers can tell runtime failures
apart from compile time TranspilerErrors.
"""


class RuntimeGlueError(Exception):
    """Base class for errors raised while moving data to and from the GPU."""


class BuilderError(RuntimeGlueError):
    """A builder was used after ``finish()`` or finished with values missing."""


class MissingOutputError(RuntimeGlueError, KeyError):
    """An output type was requested but never read back from the device."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class LayoutError(RuntimeGlueError):
    """A value does not fit the host-shareable layout of its WGSL type."""


class MissingBufferError(RuntimeGlueError):
    """A binding has no buffer when a bind group is assembled.

    Attributes:
        task_name: Name of the task being bound
        index: Position of the missing buffer within its category
    """

    def __init__(self, message: str, task_name: str, index: int):
        super().__init__(message)
        self.task_name = task_name
        self.index = index


class MemoryBudgetError(RuntimeGlueError):
    """The registered tasks may produce more output than memory allows.

    Attributes:
        required_bytes: Summed maximum output size of all tasks
        available_bytes: Memory available to hold the outputs
    """

    def __init__(self, message: str, required_bytes: int, available_bytes: int):
        super().__init__(message)
        self.required_bytes = required_bytes
        self.available_bytes = available_bytes
