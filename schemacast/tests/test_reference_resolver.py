"""
Tests for $ref resolution: inlining, module markers and cycle breaking.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from schemacast.errors import CyclicReferenceError, SchemaIOError, SchemaParseError, UnresolvedReferenceError
from schemacast.pipeline import CodeGeneratorConfig
from schemacast.pipeline.analyzer import ModuleRegistry, ReferenceResolver
from schemacast.pipeline.schema_ast.loader import SchemaLoader, normalize_path
from schemacast.pipeline.schema_ast.nodes import Cardinality, RefMarker, ResolvedSchema

RESOLVER_DIR = Path(__file__).parent / "test_data" / "resolver"


def resolve_file(path, registry=None, module_name=None, config=None):
    document = SchemaLoader().load(path)
    resolver = ReferenceResolver(registry=registry, config=config)
    return resolver.resolve(document.root, document.path, module_name=module_name)


class TestInlining:
    def test_local_ref_is_inlined_with_sibling_keywords(self):
        resolved = resolve_file(RESOLVER_DIR / "siblings.json")
        amount = resolved.properties["amount"]

        assert isinstance(amount, ResolvedSchema)
        assert amount.get("type") == "integer"
        assert amount.get("minimum") == 0
        # Sibling description wins over the target's
        assert amount.get("description") == "Total"
        assert amount.ref == "#/$defs/Money"

    def test_escaped_pointer_segment(self):
        resolved = resolve_file(RESOLVER_DIR / "siblings.json")
        assert resolved.properties["escaped"].get("type") == "boolean"

    def test_unregistered_items_target_is_inlined(self):
        resolved = resolve_file(RESOLVER_DIR / "siblings.json")
        items = resolved.properties["refunds"].items

        assert isinstance(items, ResolvedSchema)
        assert items.properties["amount"].get("type") == "integer"

    def test_definition_resolved_against_root_schema(self):
        document = SchemaLoader().load(RESOLVER_DIR / "siblings.json")
        refund = document.root.lookup("/$defs/Refund")

        resolved = ReferenceResolver().resolve(refund, document.path, root_schema=document.root)
        assert resolved.properties["amount"].get("type") == "integer"

    def test_definition_without_root_schema_cannot_see_siblings(self):
        document = SchemaLoader().load(RESOLVER_DIR / "siblings.json")
        refund = document.root.lookup("/$defs/Refund")

        with pytest.raises(UnresolvedReferenceError):
            ReferenceResolver().resolve(refund, document.path)

    def test_absolute_path_resolves_against_schema_root(self, tmp_path, write_schema):
        write_schema({"type": "string", "format": "uuid"}, "types/identifier.json")
        path = write_schema(
            {"type": "object", "properties": {"id": {"$ref": "/types/identifier.json"}}},
            "nested/deeper/item.json",
        )

        resolved = resolve_file(path, config=CodeGeneratorConfig(schema_root=str(tmp_path)))
        assert resolved.properties["id"].get("format") == "uuid"

    def test_relative_file_with_fragment(self, write_schema):
        write_schema({"$defs": {"Flag": {"type": "boolean"}}}, "shared.json")
        path = write_schema({"properties": {"on": {"$ref": "shared.json#/$defs/Flag"}}}, "switch.json")

        resolved = resolve_file(path)
        assert resolved.properties["on"].get("type") == "boolean"


class TestModuleMarkers:
    def test_registered_target_becomes_marker(self):
        path = normalize_path(RESOLVER_DIR / "siblings.json")
        registry = ModuleRegistry()
        registry.register(path, "/$defs/Money", "generated.siblings.money")

        resolved = resolve_file(RESOLVER_DIR / "siblings.json", registry=registry)
        amount = resolved.properties["amount"]

        assert isinstance(amount, RefMarker)
        assert amount.module == "generated.siblings.money"
        assert amount.cardinality == Cardinality.ONE
        assert amount.get("description") == "Total"
        assert amount.name == "Money"

    def test_marker_in_items_context_is_many(self):
        path = normalize_path(RESOLVER_DIR / "siblings.json")
        registry = ModuleRegistry()
        registry.register(path, "/$defs/Refund", "generated.siblings.refund")

        resolved = resolve_file(RESOLVER_DIR / "siblings.json", registry=registry)
        items = resolved.properties["refunds"].items

        assert isinstance(items, RefMarker)
        assert items.cardinality == Cardinality.MANY

    def test_allof_member_is_inlined_even_when_registered(self, write_schema):
        path = write_schema(
            {
                "allOf": [{"$ref": "#/$defs/Base"}],
                "$defs": {"Base": {"properties": {"id": {"type": "string"}}}},
            }
        )
        registry = ModuleRegistry()
        registry.register(normalize_path(path), "/$defs/Base", "generated.test_schema.base")

        resolved = resolve_file(path, registry=registry)
        assert isinstance(resolved.all_of[0], ResolvedSchema)
        assert "id" in resolved.all_of[0].properties


class TestCycles:
    def test_mutual_cycle_terminates_with_marker(self):
        resolved = resolve_file(RESOLVER_DIR / "a.json", module_name="generated.a")
        b = resolved.properties["b"]

        assert isinstance(b, ResolvedSchema)
        back = b.properties["a"]
        assert isinstance(back, RefMarker)
        assert back.module == "generated.a"

    def test_cycle_to_top_level_uses_module_name(self):
        resolved = resolve_file(RESOLVER_DIR / "a.json", module_name="models.a")
        assert resolved.properties["b"].properties["a"].module == "models.a"

    def test_self_cycle_through_registered_definition(self):
        document = SchemaLoader().load(RESOLVER_DIR / "linked_list.json")
        registry = ModuleRegistry()
        registry.register(document.path, "/$defs/Node", "generated.linked_list.node")

        resolved = resolve_file(RESOLVER_DIR / "linked_list.json", registry=registry)
        assert resolved.properties["head"].module == "generated.linked_list.node"

        node = document.root.lookup("/$defs/Node")
        resolved = ReferenceResolver(registry=registry).resolve(
            node, document.path, root_schema=document.root, module_name="generated.linked_list.node"
        )
        assert resolved.properties["value"].get("type") == "integer"
        assert isinstance(resolved.properties["next"], RefMarker)
        assert resolved.properties["next"].module == "generated.linked_list.node"

    def test_cycle_through_unregistered_definition_fails(self):
        with pytest.raises(CyclicReferenceError) as excinfo:
            resolve_file(RESOLVER_DIR / "linked_list.json")
        assert "linked_list.json#/$defs/Node" in excinfo.value.cycle_path

    def test_cycle_through_property_subschema_fails(self, write_schema):
        # The subschema is not generated as a module, so no reference can stand in for it
        path = write_schema(
            {
                "properties": {
                    "node": {
                        "oneOf": [
                            {"type": "string"},
                            {"type": "array", "items": {"type": "string"}},
                            {"$ref": "#/properties/node"},
                        ]
                    }
                }
            },
            "chain.json",
        )
        with pytest.raises(CyclicReferenceError):
            resolve_file(path, module_name="generated.chain")

    def test_mutual_cycle_without_module_name_fails(self):
        with pytest.raises(CyclicReferenceError):
            resolve_file(RESOLVER_DIR / "a.json")

    def test_self_cycle_of_root(self, write_schema):
        path = write_schema(
            {"type": "object", "properties": {"children": {"type": "array", "items": {"$ref": "#"}}}},
            "tree.json",
        )
        resolved = resolve_file(path, module_name="generated.tree")
        items = resolved.properties["children"].items

        assert isinstance(items, RefMarker)
        assert items.module == "generated.tree"
        assert items.cardinality == Cardinality.MANY

    def test_cycle_without_generatable_shape_fails(self):
        with pytest.raises(CyclicReferenceError) as excinfo:
            resolve_file(RESOLVER_DIR / "self_loop.json")
        assert "Loop" in excinfo.value.cycle_path
        assert excinfo.value.category == "cyclic_reference"


class TestFailures:
    def test_unknown_pointer(self):
        with pytest.raises(UnresolvedReferenceError) as excinfo:
            resolve_file(RESOLVER_DIR / "missing.json")
        assert excinfo.value.pointer == "#/$defs/Nope"

    def test_url_reference_is_not_fetched(self):
        with pytest.raises(UnresolvedReferenceError):
            resolve_file(RESOLVER_DIR / "remote.json")

    def test_missing_file(self):
        with pytest.raises(SchemaIOError):
            resolve_file(RESOLVER_DIR / "bad_file_ref.json")

    def test_malformed_referenced_file(self, tmp_path, write_schema):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        path = write_schema({"properties": {"x": {"$ref": "broken.json"}}})

        with pytest.raises(SchemaParseError):
            resolve_file(path)


if __name__ == "__main__":
    pytest.main([__file__])
