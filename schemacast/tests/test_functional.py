"""
Functional tests for generated module source.

Each case in test_data/functional/*_tests.json compiles a schema and checks
the generated code for expected (and unexpected) patterns.
"""

from __future__ import annotations

import ast
import json
from pathlib import Path

import pytest

from schemacast.pipeline import CodeGeneratorConfig, compile_file

FUNCTIONAL_DIR = Path(__file__).parent / "test_data" / "functional"


def load_all_test_cases():
    """Load all test cases from all JSON files in test_data/functional."""
    test_cases = []
    for json_file in sorted(FUNCTIONAL_DIR.glob("*_tests.json")):
        with open(json_file) as f:
            data = json.load(f)

        for test_case in data:
            test_case["_source_file"] = json_file.name
            test_cases.append(test_case)

    return test_cases


def _generate_code(schema, config_dict, write_schema):
    """Compile the schema as test_schema.json and return its root module."""
    path = write_schema(schema)
    config = CodeGeneratorConfig.from_dict(config_dict or {})
    modules = compile_file(path, config)
    return modules["generated.test_schema"]


@pytest.mark.parametrize("test_case", load_all_test_cases(), ids=lambda tc: tc["name"])
def test_functional_generation(test_case, write_schema):
    """Unified test for all JSON test cases using a single pattern."""
    generated_code = _generate_code(test_case["schema"], test_case.get("config"), write_schema)

    # Always valid Python
    ast.parse(generated_code)

    for pattern in test_case.get("expected_contains", []):
        assert pattern in generated_code, f"Expected pattern {pattern!r} not found in output:\n{generated_code}"

    for pattern in test_case.get("expected_not_contains", []):
        assert pattern not in generated_code, f"Unexpected pattern {pattern!r} found in output:\n{generated_code}"


if __name__ == "__main__":
    pytest.main([__file__])
