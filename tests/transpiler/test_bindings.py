"""Tests for the transpiler bindings module."""

import ast

import pytest

from py2wgsl.transpiler.bindings import allocate_bindings, binding_variables
from py2wgsl.transpiler.collector import collect_info

INTERLEAVED_MODULE = """
@output_vec
class Event:
    id: u32

A = input_array(f32)

@config
class Frame:
    time: f32

@output_array
class Grid:
    value: f32

B = input_array(u32)

@config
class Camera:
    zoom: f32

@output_vec
class Log:
    code: u32

class Helper:
    value: f32
"""


@pytest.fixture
def custom_types():
    return collect_info(ast.parse(INTERLEAVED_MODULE)).custom_types


class TestBindingVariables:
    """Tests for the binding_variables function."""

    def test_category_order(self, custom_types):
        """Test that categories are ordered regardless of declaration order."""
        # Act
        names = binding_variables(custom_types)

        # Assert
        assert names == [
            "frame",
            "camera",
            "a_input_array",
            "b_input_array",
            "event_output_array",
            "event_counter",
            "grid_output_array",
            "log_output_array",
            "log_counter",
        ]

    def test_helper_types_have_no_binding(self, custom_types):
        """Test that helper types never get a slot."""
        # Act
        names = binding_variables(custom_types)

        # Assert
        assert not any(name.startswith("helper") for name in names)


class TestAllocateBindings:
    """Tests for the allocate_bindings function."""

    def test_gapless_from_one(self, custom_types):
        """Test that slots start at one and have no gaps."""
        # Act
        bindings = allocate_bindings(custom_types)

        # Assert
        assert sorted(bindings.values()) == list(range(1, 10))
        assert bindings["frame"] == 1
        assert bindings["event_output_array"] == 5
        assert bindings["event_counter"] == 6
        assert bindings["log_counter"] == 9

    def test_first_binding(self, custom_types):
        """Test starting the slots at another number."""
        # Act
        bindings = allocate_bindings(custom_types, first_binding=0)

        # Assert
        assert bindings["frame"] == 0
        assert max(bindings.values()) == 8

    def test_read_only(self, custom_types):
        """Test that the binding table cannot be modified."""
        # Arrange
        bindings = allocate_bindings(custom_types)

        # Act & Assert
        with pytest.raises(TypeError):
            bindings["frame"] = 42  # type: ignore[index]

    def test_empty_module(self):
        """Test a module without buffers."""
        # Act
        bindings = allocate_bindings([])

        # Assert
        assert dict(bindings) == {}
