"""Gold file based tests for shader transpilation.

Gold files are organized by theme in tests/data/gold/:
    - collision.yaml: Pairwise collision test with an output vec
    - control_flow.yaml: Loops, conditionals, uniforms and output arrays
    - helper_types.yaml: Helper structs, constants and vector constructors

Test case format:
    - name: test_name
      main_function: main  # optional, default: main
      workgroup_size: [64, 1, 1]  # optional
      python: |
        def main(iter_pos: IterationPosition):
            ...
      bindings:  # optional, expected binding table
        uniforms: 1
      expected: |
        @compute @workgroup_size(64, 1, 1)
        ...

Regenerate the expected outputs with:
    python tests/test_gold.py

The expected outputs are also compiled by wgpu when a WebGPU adapter is
available, see the gpu marker.
"""

import difflib
from pathlib import Path

import pytest
import yaml

from py2wgsl import CompiledModule, CompileOptions, transpile

GOLD_DIR = Path(__file__).parent / "data" / "gold"


def load_gold_file(filepath: Path) -> list[dict]:
    """Load test cases from a gold file."""
    with open(filepath) as f:
        return yaml.safe_load(f) or []


def load_all_gold_cases() -> list[tuple[str, dict, Path]]:
    """Load all test cases from all gold files."""
    cases = []
    for gold_file in sorted(GOLD_DIR.glob("*.yaml")):
        for case in load_gold_file(gold_file):
            cases.append((case["name"], case, gold_file))
    return cases


def transpile_case(case: dict) -> CompiledModule:
    """Transpile a test case with its options."""
    options = CompileOptions(
        workgroup_size=tuple(case.get("workgroup_size", (64, 1, 1))),
        main_function=case.get("main_function", "main"),
    )
    return transpile(case["python"], options)


def get_test_params() -> list[tuple[str, dict, Path]]:
    """Get test parameters for pytest parametrization."""
    return load_all_gold_cases()


def get_test_ids() -> list[str]:
    """Get test IDs for pytest parametrization."""
    return [name for name, _, _ in load_all_gold_cases()]


@pytest.mark.gold
class TestGoldShaders:
    """Test shader transpilation against gold outputs."""

    @pytest.mark.parametrize(
        "name,case,gold_file", get_test_params(), ids=get_test_ids()
    )
    def test_shader(self, name, case, gold_file):
        """Test that transpiled output matches expected gold output."""
        actual = transpile_case(case).wgsl.rstrip("\n")
        expected = case["expected"].rstrip("\n")

        if actual != expected:
            diff = difflib.unified_diff(
                expected.splitlines(keepends=True),
                actual.splitlines(keepends=True),
                fromfile="expected",
                tofile="actual",
            )
            diff_str = "".join(diff)
            pytest.fail(
                f"Output mismatch for '{name}' in {gold_file.name}:\n{diff_str}"
            )

    @pytest.mark.parametrize(
        "name,case,gold_file", get_test_params(), ids=get_test_ids()
    )
    def test_bindings(self, name, case, gold_file):
        """Test that the binding table matches the gold bindings."""
        if "bindings" not in case:
            pytest.skip(f"No bindings recorded for '{name}'")

        actual = dict(transpile_case(case).record.binding_numbers)

        assert actual == case["bindings"], f"Binding mismatch in {gold_file.name}"


@pytest.fixture(scope="module")
def wgpu_device():
    """Default WebGPU device, skipping when no adapter is available."""
    wgpu_utils = pytest.importorskip("wgpu.utils")
    try:
        return wgpu_utils.get_default_device()
    except Exception as e:
        pytest.skip(f"No WebGPU adapter available: {e}")


@pytest.mark.gpu
class TestGoldShadersCompile:
    """Test that the gold outputs are valid WGSL."""

    @pytest.mark.parametrize(
        "name,case,gold_file", get_test_params(), ids=get_test_ids()
    )
    def test_expected_is_valid_wgsl(self, wgpu_device, name, case, gold_file):
        """Test that the expected shader compiles into a shader module."""
        # Act
        shader_module = wgpu_device.create_shader_module(
            label=name, code=case["expected"]
        )

        # Assert
        assert shader_module is not None, f"{name} in {gold_file.name}"


def generate_gold_outputs() -> None:
    """Rewrite the expected outputs of every gold file."""

    class LiteralStr(str):
        pass

    def literal_str_representer(dumper, data):
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")

    yaml.add_representer(LiteralStr, literal_str_representer)

    for gold_file in sorted(GOLD_DIR.glob("*.yaml")):
        cases = load_gold_file(gold_file)
        for case in cases:
            compiled = transpile_case(case)
            case["python"] = LiteralStr(case["python"])
            case["bindings"] = dict(compiled.record.binding_numbers)
            case["expected"] = LiteralStr(compiled.wgsl)
            print(f"{gold_file.name}: {case['name']}")

        with open(gold_file, "w") as f:
            yaml.dump(
                cases,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=1000,
            )


if __name__ == "__main__":
    generate_gold_outputs()
