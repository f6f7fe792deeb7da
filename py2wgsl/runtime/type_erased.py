"""
Type-erased containers passed between builders, tasks and readers.

The containers are keyed by the declared type name, so the bytes produced for
one task can be handed to any code that knows the name without knowing the
host class.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from loguru import logger

from py2wgsl.runtime.errors import BuilderError, MissingOutputError


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class TypeErasedConfigInputData:
    """Encoded uniform values by type name."""

    bytes_per_type: Mapping[str, bytes] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bytes_per_type", _frozen(self.bytes_per_type))

    def get_map(self) -> Mapping[str, bytes]:
        return self.bytes_per_type


@dataclass(frozen=True)
class TypeErasedArrayInputData:
    """Encoded input arrays and their element counts by type name."""

    bytes_per_type: Mapping[str, bytes] = field(default_factory=dict)
    lengths_per_type: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bytes_per_type", _frozen(self.bytes_per_type))
        object.__setattr__(self, "lengths_per_type", _frozen(self.lengths_per_type))

    def get_map(self) -> Mapping[str, bytes]:
        return self.bytes_per_type

    def get_length(self, type_name: str) -> int | None:
        """Element count of an input array, or None if it was never set."""
        return self.lengths_per_type.get(type_name)


@dataclass(frozen=True)
class TypeErasedArrayOutputData:
    """Output buffer contents read back from the device.

    Attributes:
        bytes_per_type: Raw contents of each output array
        counts_per_type: Counter values of output vecs, limiting how many
            elements of the array are valid
    """

    bytes_per_type: Mapping[str, bytes] = field(default_factory=dict)
    counts_per_type: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bytes_per_type", _frozen(self.bytes_per_type))
        object.__setattr__(self, "counts_per_type", _frozen(self.counts_per_type))

    def get_map(self) -> Mapping[str, bytes]:
        return self.bytes_per_type

    def get_count(self, type_name: str) -> int | None:
        return self.counts_per_type.get(type_name)

    def get_bytes(self, type_name: str) -> bytes:
        """Raw bytes of one output type.

        Raises:
            MissingOutputError: If the output was never read back
        """
        try:
            return self.bytes_per_type[type_name]
        except KeyError:
            raise MissingOutputError(f"No output data for '{type_name}'") from None


@dataclass(frozen=True)
class MaxOutputLengths:
    """Capacity of every output array, by type name."""

    length_per_type: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "length_per_type", _frozen(self.length_per_type))

    def get_map(self) -> Mapping[str, int]:
        return self.length_per_type

    def get_by_name(self, type_name: str) -> int:
        """Capacity of one output type.

        Raises:
            BuilderError: If no capacity was set for the type
        """
        if type_name not in self.length_per_type:
            logger.error(f"No maximum output length set for '{type_name}'")
            raise BuilderError(f"No maximum output length set for '{type_name}'")
        return self.length_per_type[type_name]
