"""Tests for the runtime builders module."""

import dataclasses

import numpy as np
import pytest

from py2wgsl import transpile
from py2wgsl.runtime.errors import BuilderError, LayoutError, MissingOutputError
from py2wgsl.runtime.type_erased import (
    MaxOutputLengths,
    TypeErasedArrayInputData,
    TypeErasedArrayOutputData,
    TypeErasedConfigInputData,
)

MIRROR_MODULE = """
@config
class Params:
    offset: Vec2F32

@input_array
class MyPosition:
    x: f32
    y: f32

@output_vec
class MyPositionOut:
    x: f32
    y: f32

@output_array
class Total:
    value: f32

def main(iter_pos: IterationPosition):
    i = iter_pos.x
    if i >= VecInput.vec_len(MyPosition):
        return
    p = VecInput.vec_val(MyPosition, i)
    offset = ConfigInput.get(Params).offset
    Output.push(MyPositionOut, MyPositionOut(x=p.x + offset.x, y=p.y + offset.y))
"""


@pytest.fixture
def builders():
    return transpile(MIRROR_MODULE).create_builders()


class TestGeneratedBuilders:
    """Tests for the generated builder classes."""

    def test_members(self, builders):
        """Test the builders and host types generated for a module."""
        # Assert
        assert builders.ConfigBuilder.__name__ == "ConfigBuilder"
        for name in ("Params", "MyPosition", "MyPositionOut", "Total"):
            assert dataclasses.is_dataclass(getattr(builders, name))
        assert "InputBuilder" in dir(builders)

    def test_unknown_member(self, builders):
        """Test that unknown members raise AttributeError."""
        # Act & Assert
        with pytest.raises(AttributeError):
            _ = builders.NotABuilder

    def test_setters_follow_snake_case(self, builders):
        """Test that setter names use the snake case type name."""
        # Assert
        assert hasattr(builders.ConfigBuilder, "set_params")
        assert hasattr(builders.InputBuilder, "set_my_position")
        assert hasattr(builders.MaxOutputLengthsBuilder, "set_my_position_out")
        assert hasattr(builders.MaxOutputLengthsBuilder, "set_total")
        assert not hasattr(builders.InputBuilder, "set_params")


class TestConfigBuilder:
    """Tests for the generated config builder."""

    def test_finish(self, builders):
        """Test encoding a uniform."""
        # Arrange
        builder = builders.ConfigBuilder().set_params(
            builders.Params(offset=(1.0, 2.0))
        )

        # Act
        data = builder.finish()

        # Assert
        assert isinstance(data, TypeErasedConfigInputData)
        assert data.get_map()["Params"] == (
            np.array([1.0, 2.0, 0.0, 0.0], dtype="<f4").tobytes()
        )

    def test_finish_twice(self, builders):
        """Test that a finished builder cannot be reused."""
        # Arrange
        builder = builders.ConfigBuilder()
        builder.finish()

        # Act & Assert
        with pytest.raises(BuilderError, match="already finished"):
            builder.finish()
        with pytest.raises(BuilderError, match="already finished"):
            builder.set_params(builders.Params(offset=(0.0, 0.0)))

    def test_require_all(self, builders):
        """Test that require_all reports unset uniforms."""
        # Act & Assert
        with pytest.raises(BuilderError, match="missing values for: Params"):
            builders.ConfigBuilder().finish(require_all=True)


class TestInputBuilder:
    """Tests for the generated input builder."""

    def test_finish(self, builders):
        """Test encoding an input array and recording its length."""
        # Arrange
        positions = [builders.MyPosition(x=1.0, y=2.0), {"x": 3.0, "y": 4.0}]

        # Act
        data = builders.InputBuilder().set_my_position(positions).finish()

        # Assert
        assert isinstance(data, TypeErasedArrayInputData)
        assert data.get_length("MyPosition") == 2
        assert data.get_map()["MyPosition"] == (
            np.array([1.0, 2.0, 3.0, 4.0], dtype="<f4").tobytes()
        )

    def test_unset_input(self, builders):
        """Test that unset inputs are absent."""
        # Act
        data = builders.InputBuilder().finish()

        # Assert
        assert data.get_length("MyPosition") is None
        assert dict(data.get_map()) == {}

    def test_invalid_value(self, builders):
        """Test that values of the wrong shape are rejected on finish."""
        # Arrange
        builder = builders.InputBuilder().set_my_position([{"x": 1.0}])

        # Act & Assert
        with pytest.raises(LayoutError, match="Missing field 'y'"):
            builder.finish()


class TestMaxOutputLengthsBuilder:
    """Tests for the generated output capacity builder."""

    def test_finish(self, builders):
        """Test collecting output capacities."""
        # Act
        lengths = (
            builders.MaxOutputLengthsBuilder()
            .set_my_position_out(100)
            .set_total(8)
            .finish(require_all=True)
        )

        # Assert
        assert isinstance(lengths, MaxOutputLengths)
        assert lengths.get_by_name("MyPositionOut") == 100
        assert dict(lengths.get_map()) == {"MyPositionOut": 100, "Total": 8}

    @pytest.mark.parametrize("value", [-1, 1.5, True, "10"])
    def test_invalid_length(self, builders, value):
        """Test that capacities must be non-negative integers."""
        # Act & Assert
        with pytest.raises(BuilderError, match="non-negative integer"):
            builders.MaxOutputLengthsBuilder().set_total(value)

    def test_missing_length(self, builders):
        """Test reading a capacity that was never set."""
        # Arrange
        lengths = builders.MaxOutputLengthsBuilder().set_total(1).finish()

        # Act & Assert
        with pytest.raises(BuilderError, match="MyPositionOut"):
            lengths.get_by_name("MyPositionOut")


class TestOutputReader:
    """Tests for the generated output reader."""

    def test_round_trip(self, builders):
        """Test reading output vec elements back into host types."""
        # Arrange
        source = [builders.MyPosition(x=1.0, y=2.0), builders.MyPosition(x=3.0, y=4.0)]
        input_data = builders.InputBuilder().set_my_position(source).finish()
        # The shader writes MyPositionOut with the same layout as MyPosition
        output = TypeErasedArrayOutputData(
            bytes_per_type={"MyPositionOut": input_data.get_map()["MyPosition"]},
            counts_per_type={"MyPositionOut": 2},
        )

        # Act
        reader = builders.OutputReader(output)

        # Assert
        assert reader.my_position_out == [
            builders.MyPositionOut(x=1.0, y=2.0),
            builders.MyPositionOut(x=3.0, y=4.0),
        ]
        assert reader.get("MyPositionOut") is reader.my_position_out
        assert reader.get("my_position_out") is reader.my_position_out

    def test_counter_limits_elements(self, builders):
        """Test that only counted output vec elements are read."""
        # Arrange
        data = np.array([1.0, 2.0, 3.0, 4.0], dtype="<f4").tobytes()
        output = TypeErasedArrayOutputData(
            bytes_per_type={"MyPositionOut": data},
            counts_per_type={"MyPositionOut": 1},
        )

        # Act
        reader = builders.OutputReader(output)

        # Assert
        assert reader.my_position_out == [builders.MyPositionOut(x=1.0, y=2.0)]

    def test_missing_output(self, builders):
        """Test outputs that were not read back."""
        # Arrange
        reader = builders.OutputReader(TypeErasedArrayOutputData())

        # Act & Assert
        assert reader.total is None
        with pytest.raises(MissingOutputError, match="was not read"):
            reader.get("Total")
        with pytest.raises(MissingOutputError, match="Unknown output type"):
            reader.get("Params")


class TestTypeErasedData:
    """Tests for the type-erased containers."""

    def test_maps_are_read_only(self):
        """Test that containers cannot be modified after creation."""
        # Arrange
        data = TypeErasedArrayOutputData(bytes_per_type={"Hit": b"\x00" * 4})

        # Act & Assert
        with pytest.raises(TypeError):
            data.get_map()["Hit"] = b""  # type: ignore[index]

    def test_get_bytes(self):
        """Test reading raw output bytes."""
        # Arrange
        data = TypeErasedArrayOutputData(bytes_per_type={"Hit": b"\x01\x00\x00\x00"})

        # Act & Assert
        assert data.get_bytes("Hit") == b"\x01\x00\x00\x00"
        assert data.get_count("Hit") is None
        with pytest.raises(MissingOutputError, match="No output data for 'Miss'"):
            data.get_bytes("Miss")
        with pytest.raises(KeyError):
            data.get_bytes("Miss")
