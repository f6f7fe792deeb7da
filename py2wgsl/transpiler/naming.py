"""
Identifier naming for custom shader types.

Every buffer variable, length constant and builder method that refers to a
custom type is derived from the type's declared name here, so the generated
shader and the generated host builders always agree on spelling.
"""

import re
from dataclasses import dataclass

_SNAKE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert a PascalCase identifier to snake_case.

    Args:
        name: Identifier to convert

    Returns:
        The snake_case form, e.g. ``CollisionResult`` -> ``collision_result``
    """
    return _SNAKE_BOUNDARY.sub("_", name).lower()


@dataclass(frozen=True)
class TypeIdentity:
    """A declared type name together with all of its derived forms.

    Attributes:
        name: Name as declared in the shader module
        snake_case: Builder method and reader attribute suffix
        upper: Prefix of the length constants (``COLLISIONRESULT``)
        lower: Uniform variable name and buffer prefix (``collisionresult``)
    """

    name: str
    snake_case: str
    upper: str
    lower: str

    @classmethod
    def from_name(cls, name: str) -> "TypeIdentity":
        return cls(
            name=name,
            snake_case=to_snake_case(name),
            upper=name.upper(),
            lower=name.lower(),
        )

    @property
    def uniform_name(self) -> str:
        return self.lower

    @property
    def input_array_name(self) -> str:
        return f"{self.lower}_input_array"

    @property
    def input_array_length(self) -> str:
        return f"{self.upper}_INPUT_ARRAY_LENGTH"

    @property
    def output_array_name(self) -> str:
        return f"{self.lower}_output_array"

    @property
    def output_array_length(self) -> str:
        return f"{self.upper}_OUTPUT_ARRAY_LENGTH"

    @property
    def output_array_index(self) -> str:
        return f"{self.lower}_output_array_index"

    @property
    def counter_name(self) -> str:
        return f"{self.lower}_counter"

    def __str__(self) -> str:
        return self.name
