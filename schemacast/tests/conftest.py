import importlib
import json
import sys
import uuid
from pathlib import Path

import pytest

from schemacast.pipeline import CodeGeneratorConfig, generate_all

TEST_DATA = Path(__file__).parent / "test_data"
SCHEMAS_DIR = TEST_DATA / "schemas"


class GeneratedPackage:
    """A generated package importable from a temporary directory"""

    def __init__(self, prefix, output_dir, report):
        self.prefix = prefix
        self.output_dir = output_dir
        self.report = report

    def module_name(self, name):
        return f"{self.prefix}.{name}"

    def load(self, name):
        return importlib.import_module(self.module_name(name))


@pytest.fixture
def import_root(tmp_path):
    """tmp_path on sys.path; modules imported from it are forgotten afterwards"""
    root = str(tmp_path)
    sys.path.insert(0, root)
    before = set(sys.modules)
    yield tmp_path
    sys.path.remove(root)
    for name in set(sys.modules) - before:
        module_file = getattr(sys.modules[name], "__file__", None) or ""
        if module_file.startswith(root):
            del sys.modules[name]
    importlib.invalidate_caches()


@pytest.fixture
def generate_package(import_root):
    """Factory: generate a schema directory into a uniquely named package"""

    def _generate(schema_dir=SCHEMAS_DIR, config=None):
        prefix = f"gen_{uuid.uuid4().hex[:8]}"
        output_dir = import_root / prefix
        report = generate_all(schema_dir, output_dir, prefix, config=config or CodeGeneratorConfig())
        importlib.invalidate_caches()
        return GeneratedPackage(prefix, output_dir, report)

    return _generate


@pytest.fixture
def generated(generate_package):
    """The test_data/schemas tree, generated and importable"""
    package = generate_package()
    assert package.report.ok, package.report.summary_lines()
    return package


@pytest.fixture
def write_schema(tmp_path):
    """Write a schema dict to tmp_path and return its path"""

    def _write(schema, name="test_schema.json", directory=None):
        path = (directory or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
        return path

    return _write
