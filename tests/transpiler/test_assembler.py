"""Tests for the transpiler assembler and code_generator modules."""

import ast
import json

import pytest

from py2wgsl.transpiler.assembler import assemble_module, render_shader
from py2wgsl.transpiler.bindings import allocate_bindings
from py2wgsl.transpiler.code_generator import (
    generate_const,
    generate_function,
    generate_main,
    generate_type,
)
from py2wgsl.transpiler.collector import collect_info
from py2wgsl.transpiler.models import CompileOptions, ModuleRecord


@pytest.fixture
def record(collected_info) -> ModuleRecord:
    return assemble_module(
        collected_info, allocate_bindings(collected_info.custom_types)
    )


class TestCodeGenerator:
    """Tests for the declaration generators."""

    def test_const(self, collected_info):
        """Test a typed module constant."""
        # Act
        code = generate_const(collected_info.consts[0], collected_info)

        # Assert
        assert code.wgsl == "const LIMIT: u32 = 16;"
        assert code.source == "LIMIT: u32 = 16"

    def test_struct(self, collected_info):
        """Test a struct definition."""
        # Act
        code = generate_type(collected_info.get_type("Hit"))

        # Assert
        assert code.wgsl == "struct Hit {\n    index: u32,\n    score: f32,\n}"

    def test_alias(self, collected_info):
        """Test an alias definition."""
        # Act
        code = generate_type(collected_info.get_type("Position"))

        # Assert
        assert code.wgsl == "alias Position = vec2<f32>;"

    def test_function(self, collected_info):
        """Test a helper function with parameters and a result."""
        # Act
        code = generate_function(collected_info.functions["scale"], collected_info)

        # Assert
        assert code.wgsl == (
            "fn scale(value: f32, factor: f32) -> f32 {\n"
            "    return value * factor;\n"
            "}"
        )

    def test_function_without_result(self):
        """Test a helper function without a return type."""
        # Arrange
        collected = collect_info(
            ast.parse("def touch(i: u32):\n    storageBarrier()\n")
        )

        # Act
        code = generate_function(collected.functions["touch"], collected)

        # Assert
        assert code.wgsl == "fn touch(i: u32) {\n    storageBarrier();\n}"

    def test_main(self, collected_info):
        """Test the entry point signature."""
        # Act
        code = generate_main(collected_info.main_function, collected_info)

        # Assert
        assert code.wgsl == (
            "fn main(@builtin(global_invocation_id) iter_pos: vec3<u32>) {\n"
            "    return;\n"
            "}"
        )


class TestAssembleModule:
    """Tests for the assemble_module function."""

    def test_categories(self, record):
        """Test that every declaration lands in its category."""
        # Assert
        assert [c.name for c in record.static_consts] == ["LIMIT"]
        assert [t.name for t in record.helper_types] == ["Pair"]
        assert [t.name for t in record.uniforms] == ["Settings"]
        assert [a.item_type.name for a in record.input_arrays] == ["Position"]
        assert [a.item_type.name for a in record.output_arrays] == ["Hit", "Slot"]
        assert [f.name for f in record.helper_functions] == ["scale"]
        assert record.main_function is not None

    def test_output_counters(self, record):
        """Test that only output vecs carry a counter."""
        # Act
        hit, slot = record.output_arrays

        # Assert
        assert hit.atomic_counter_name == "hit_counter"
        assert hit.include_count
        assert slot.atomic_counter_name is None
        assert not slot.include_count

    def test_binding_map(self, record):
        """Test that the record carries the binding table."""
        # Assert
        assert dict(record.binding_numbers) == {
            "settings": 1,
            "position_input_array": 2,
            "hit_output_array": 3,
            "hit_counter": 4,
            "slot_output_array": 5,
        }

    def test_to_dict_is_json_serialisable(self, record):
        """Test converting the record to plain data."""
        # Act
        data = json.loads(json.dumps(record.to_dict()))

        # Assert
        assert data["binding_numbers"]["hit_counter"] == 4
        assert data["output_arrays"][0]["atomic_counter_name"] == "hit_counter"
        assert data["output_arrays"][1]["atomic_counter_name"] is None
        assert [a["include_count"] for a in data["output_arrays"]] == [True, False]
        assert data["main_function"]["name"] == "main"
        assert data["static_consts"][0]["code"]["wgsl"] == "const LIMIT: u32 = 16;"


class TestRenderShader:
    """Tests for the render_shader function."""

    def test_block_order(self, record):
        """Test the fixed order of the rendered categories."""
        # Act
        wgsl = render_shader(record)

        # Assert
        markers = [
            "const LIMIT",
            "struct Pair",
            "struct Settings",
            "var<uniform> settings: Settings;",
            "alias Position",
            "override POSITION_INPUT_ARRAY_LENGTH: u32;",
            "struct Hit",
            "override HIT_OUTPUT_ARRAY_LENGTH: u32;",
            "var<storage, read_write> hit_counter: atomic<u32>;",
            "struct Slot",
            "override SLOT_OUTPUT_ARRAY_LENGTH: u32;",
            "fn scale",
            "@compute @workgroup_size(64, 1, 1)\nfn main",
        ]
        positions = [wgsl.index(marker) for marker in markers]
        assert positions == sorted(positions)
        assert wgsl.endswith("}\n")

    def test_output_array_without_counter(self, record):
        """Test that fixed-length outputs have no counter binding."""
        # Act
        wgsl = render_shader(record)

        # Assert
        assert (
            "override SLOT_OUTPUT_ARRAY_LENGTH: u32;\n"
            "@group(0) @binding(5) var<storage, read_write> slot_output_array: "
            "array<Slot>;\n\n"
        ) in wgsl
        assert "slot_counter" not in wgsl

    def test_options(self, record):
        """Test the workgroup size and bind group options."""
        # Arrange
        options = CompileOptions(workgroup_size=(8, 8, 1), bind_group=2)

        # Act
        wgsl = render_shader(record, options)

        # Assert
        assert "@compute @workgroup_size(8, 8, 1)" in wgsl
        assert "@group(2) @binding(1) var<uniform> settings: Settings;" in wgsl

    def test_deterministic(self, collected_info):
        """Test that identical input renders identical text."""
        # Act
        first = render_shader(
            assemble_module(collected_info, allocate_bindings(collected_info.custom_types))
        )
        second = render_shader(
            assemble_module(collected_info, allocate_bindings(collected_info.custom_types))
        )

        # Assert
        assert first == second
