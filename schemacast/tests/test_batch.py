"""
Tests for the batch driver: discovery, planning, failure isolation and output layout.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from schemacast.errors import CodeWriteError, SchemaIOError
from schemacast.pipeline import AtomicWriter, BatchGenerator, CodeGeneratorConfig, generate_all

SCHEMAS_DIR = Path(__file__).parent / "test_data" / "schemas"

OBJECT = {"type": "object", "properties": {"id": {"type": "string"}}}


def write(directory, name, schema):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(schema if isinstance(schema, str) else json.dumps(schema), encoding="utf-8")
    return path


def snapshot(directory):
    return {p.relative_to(directory).as_posix(): p.read_bytes() for p in sorted(directory.rglob("*")) if p.is_file()}


@pytest.fixture
def schema_dir(tmp_path):
    directory = tmp_path / "schemas"
    directory.mkdir()
    return directory


class TestBatch:
    def test_whole_tree(self, tmp_path):
        report = generate_all(SCHEMAS_DIR, tmp_path / "out", "models")

        assert report.ok
        assert "models.product" in report.generated
        assert "models.order" in report.generated
        assert "models.order.line" in report.generated
        assert "models.common.types.address" in report.generated
        assert report.summary_lines()[-1].startswith(f"{len(report.generated)} module(s) generated, 1 root(s) skipped")

    def test_definitions_only_file(self, tmp_path):
        report = generate_all(SCHEMAS_DIR, tmp_path / "out", "models")

        assert [(s.path, s.definitions) for s in report.skipped] == [("common/types.json", 1)]
        assert "models.common.types" not in report.generated
        assert (tmp_path / "out" / "common" / "types" / "address.py").is_file()
        assert not (tmp_path / "out" / "common" / "types.py").exists()

    def test_dry_run_with_malformed_file(self, schema_dir, tmp_path):
        write(schema_dir, "good.json", OBJECT)
        write(schema_dir, "bad.json", '{"type": "object", ')
        write(schema_dir, "nested/also_good.json", OBJECT)
        output_dir = tmp_path / "out"

        report = generate_all(schema_dir, output_dir, "models", dry_run=True)

        assert not report.ok
        assert [(f.path, f.category) for f in report.failed] == [("bad.json", "parse")]
        assert report.generated == ["models.good", "models.nested.also_good"]
        assert report.written == []
        assert not output_dir.exists()
        assert report.summary_lines()[0].startswith("FAILED bad.json: parse: invalid JSON")
        assert report.summary_lines()[-1].startswith("[dry run] 2 module(s) generated")

    def test_failure_does_not_stop_the_batch(self, schema_dir, tmp_path):
        write(schema_dir, "a.json", {"properties": {"x": {"$ref": "#/$defs/Missing"}}})
        write(schema_dir, "b.json", OBJECT)

        report = generate_all(schema_dir, tmp_path / "out", "models")

        assert [(f.path, f.category) for f in report.failed] == [("a.json", "unresolved_reference")]
        assert report.generated == ["models.b"]
        assert (tmp_path / "out" / "b.py").is_file()
        assert not (tmp_path / "out" / "a.py").exists()

    def test_failing_definition_fails_the_whole_file(self, schema_dir, tmp_path):
        write(
            schema_dir,
            "mixed.json",
            {
                "properties": {"id": {"type": "string"}},
                "$defs": {"Broken": {"properties": {"x": {"$ref": "nowhere.json"}}}},
            },
        )

        report = generate_all(schema_dir, tmp_path / "out", "models")

        assert [(f.path, f.category) for f in report.failed] == [("mixed.json", "io")]
        assert report.generated == []
        assert not (tmp_path / "out" / "mixed.py").exists()

    def test_cycle_through_property_fails_the_file(self, schema_dir, tmp_path):
        node = {"oneOf": [{"type": "string"}, {"type": "array", "items": {"type": "string"}}, {"$ref": "#/properties/node"}]}
        write(schema_dir, "chain.json", {"properties": {"node": node}})
        write(schema_dir, "other.json", OBJECT)

        report = generate_all(schema_dir, tmp_path / "out", "models")

        assert [(f.path, f.category) for f in report.failed] == [("chain.json", "cyclic_reference")]
        assert report.generated == ["models.other"]
        assert not (tmp_path / "out" / "chain.py").exists()

    def test_write_failure_leaves_no_module_of_the_file(self, schema_dir, tmp_path):
        write(
            schema_dir,
            "mixed.json",
            {
                "properties": {"id": {"type": "string"}},
                "$defs": {"Part": {"properties": {"kind": {"enum": ["a", "b"]}}}},
            },
        )
        write(schema_dir, "other.json", OBJECT)
        output_dir = tmp_path / "out"

        def reject_part(content, path=""):
            if path.endswith("part.py"):
                raise CodeWriteError("generated Python code is not valid", path)

        batch = BatchGenerator(schema_dir, output_dir, "models")
        batch.writer = AtomicWriter(validate_python=reject_part)
        report = batch.run()

        assert [(f.path, f.category) for f in report.failed] == [("mixed.json", "write")]
        assert report.generated == ["models.other"]
        assert [p.name for p in report.written] == ["other.py"]
        assert not (output_dir / "mixed").exists()

    def test_idempotent(self, tmp_path):
        output_dir = tmp_path / "out"

        generate_all(SCHEMAS_DIR, output_dir, "models")
        first = snapshot(output_dir)
        generate_all(SCHEMAS_DIR, output_dir, "models")

        assert snapshot(output_dir) == first

    def test_output_is_cleared(self, schema_dir, tmp_path):
        write(schema_dir, "a.json", OBJECT)
        output_dir = tmp_path / "out"
        write(output_dir, "stale.py", "STALE = True\n")

        generate_all(schema_dir, output_dir, "models")

        assert not (output_dir / "stale.py").exists()
        assert (output_dir / "a.py").is_file()

    def test_refuses_to_clear_schema_directory(self, schema_dir):
        write(schema_dir, "a.json", OBJECT)

        with pytest.raises(SchemaIOError):
            generate_all(schema_dir, schema_dir.parent, "models")
        assert (schema_dir / "a.json").is_file()

    def test_missing_schema_directory(self, tmp_path):
        with pytest.raises(SchemaIOError):
            generate_all(tmp_path / "nope", tmp_path / "out", "models")


class TestLayout:
    def test_package_init_files(self, tmp_path):
        output_dir = tmp_path / "out"
        generate_all(SCHEMAS_DIR, output_dir, "models")

        assert (output_dir / "__init__.py").is_file()
        assert (output_dir / "common" / "__init__.py").is_file()
        assert (output_dir / "common" / "types" / "__init__.py").is_file()
        assert (output_dir / "discount" / "__init__.py").is_file()
        assert (output_dir / "discount" / "create_req.py").is_file()

    def test_module_that_is_also_a_package(self, tmp_path):
        output_dir = tmp_path / "out"
        generate_all(SCHEMAS_DIR, output_dir, "models")

        # order.json has a Line definition: models.order is a package
        assert "FIELDS" in (output_dir / "order" / "__init__.py").read_text()
        assert (output_dir / "order" / "line.py").is_file()
        assert not (output_dir / "order.py").exists()

    def test_identifiers(self, schema_dir, tmp_path):
        write(schema_dir, "2024-01/Shipping-Rate.json", OBJECT)
        write(schema_dir, "import/class.json", OBJECT)

        report = generate_all(schema_dir, tmp_path / "out", "models", dry_run=True)
        assert report.generated == ["models.v2024_01.shipping_rate", "models.import_.class_"]

    def test_module_collision(self, schema_dir, tmp_path):
        write(schema_dir, "a.b.json", OBJECT)
        write(schema_dir, "a/b.json", OBJECT)

        report = generate_all(schema_dir, tmp_path / "out", "models")

        assert report.generated == ["models.a.b"]
        assert [(f.path, f.category) for f in report.failed] == [("a/b.json", "module_collision")]

    def test_excluded_directories(self, schema_dir, tmp_path):
        write(schema_dir, "a.json", OBJECT)
        write(schema_dir, "node_modules/pkg/b.json", OBJECT)
        write(schema_dir, "vendored/c.json", OBJECT)

        config = CodeGeneratorConfig(excluded_dirs=["node_modules", "vendored"])
        batch = BatchGenerator(schema_dir, tmp_path / "out", "models", dry_run=True, config=config)

        assert [p.name for p in batch.discover()] == ["a.json"]

    def test_caller_config_is_not_modified(self, schema_dir, tmp_path):
        write(schema_dir, "a.json", OBJECT)
        config = CodeGeneratorConfig()

        generate_all(schema_dir, tmp_path / "out", "models", dry_run=True, config=config)

        assert config.module_prefix == "generated"
        assert config.schema_root == ""

    def test_non_atomic_writes(self, tmp_path):
        output_dir = tmp_path / "out"
        shutil.copytree(SCHEMAS_DIR, tmp_path / "schemas")
        config = CodeGeneratorConfig.from_dict({"output": {"atomic_write": False, "validate_before_write": False}})

        report = generate_all(tmp_path / "schemas", output_dir, "models", config=config)

        assert report.ok
        assert (output_dir / "product.py").is_file()


if __name__ == "__main__":
    pytest.main([__file__])
