"""
Type mapper.

Converts a resolved schema node into a TypeDescriptor. The dispatch order
matters: the first rule that matches wins.
"""

from __future__ import annotations

from ..schema_ast.nodes import Cardinality, RefMarker, Resolved, ResolvedSchema, freeze, thaw
from .composition import CompositionAnalyzer
from .ir_nodes import CONSTRAINT_KEYWORDS, FieldDescriptor, TypeDescriptor, TypeKind

# String formats with a dedicated runtime type
RUNTIME_FORMATS = {
    "date-time": "datetime",
    "date": "date",
    "time": "time",
    "uuid": "uuid",
    "ipv4": "ipv4",
    "ipv6": "ipv6",
}

PRIMITIVE_TYPES = {
    "string": "string",
    "integer": "integer",
    "number": "float",
    "boolean": "boolean",
    "object": "map",
    "array": "sequence",
}

SCALAR_PRIMITIVES = ("string", "integer", "float", "boolean")


class TypeMapper:
    """Maps resolved schema nodes to type descriptors."""

    def __init__(self, analyzer: CompositionAnalyzer | None = None):
        self.analyzer = analyzer or CompositionAnalyzer()

    def map_type(self, node: Resolved, embedded: bool = False) -> TypeDescriptor:
        """
        Map a resolved node to a type descriptor.

        Args:
            node: Resolved schema or RefMarker
            embedded: True when mapping the fields of an embedded object;
                objects found there are not expanded any further

        Returns:
            The descriptor, carrying constraints and default as metadata
        """
        if isinstance(node, RefMarker):
            descriptor = TypeDescriptor(kind=TypeKind.REF, module=node.module, cardinality=node.cardinality)
            if "default" in node.annotations:
                descriptor.default_value = thaw(node.get("default"))
                descriptor.has_default = True
            return descriptor

        node = self.analyzer.flatten(node)
        descriptor = self._dispatch(node, embedded)
        return self._annotate(descriptor, node)

    def _dispatch(self, node: ResolvedSchema, embedded: bool) -> TypeDescriptor:
        group = self.analyzer.classify(node)
        if group is not None:
            return TypeDescriptor(kind=TypeKind.UNION, group=group)

        # A listed null, or "null" among the types, makes the value set nullable
        null_type = isinstance(node.get("type"), tuple) and "null" in node.get("type")

        if "const" in node:
            value = thaw(node.get("const"))
            return TypeDescriptor(kind=TypeKind.CONST, value=value, is_nullable=null_type or value is None)

        if "enum" in node:
            values = node.get("enum")
            values = list(thaw(values)) if isinstance(values, tuple) else []
            return TypeDescriptor(kind=TypeKind.ENUM, values=values, is_nullable=null_type or None in values)

        type_value = node.get("type")

        if type_value == "array":
            return self._map_array(node)

        if isinstance(type_value, tuple):
            return self._map_type_list(node, type_value, embedded)

        if node.properties and type_value in (None, "object"):
            if embedded:
                return TypeDescriptor(kind=TypeKind.MAP, primitive="map")
            return TypeDescriptor(kind=TypeKind.EMBEDDED_OBJECT, fields=self.map_fields(node, embedded=True))

        if type_value == "object":
            descriptor = TypeDescriptor(kind=TypeKind.MAP, primitive="map")
            additional = node.additional_properties
            if isinstance(additional, (ResolvedSchema, RefMarker)):
                descriptor.inner = self.map_type(additional, embedded=True)
            return descriptor

        if type_value == "string" and isinstance(node.get("format"), str):
            fmt = node.get("format")
            if fmt in RUNTIME_FORMATS:
                return TypeDescriptor(kind=TypeKind.FORMATTED, format=RUNTIME_FORMATS[fmt])
            # Unknown formats degrade to plain strings, format kept as metadata
            return TypeDescriptor(kind=TypeKind.PRIMITIVE, primitive="string", format=fmt)

        if type_value is None:
            return TypeDescriptor(kind=TypeKind.MAP, primitive="map")

        primitive = PRIMITIVE_TYPES.get(type_value)
        if primitive is None:
            return TypeDescriptor(kind=TypeKind.ANY)
        if primitive == "map":
            return TypeDescriptor(kind=TypeKind.MAP, primitive="map")
        return TypeDescriptor(kind=TypeKind.PRIMITIVE, primitive=primitive)

    def _map_array(self, node: ResolvedSchema) -> TypeDescriptor:
        items = node.items
        if isinstance(items, RefMarker):
            return TypeDescriptor(kind=TypeKind.REF, module=items.module, cardinality=Cardinality.MANY)
        if items is None:
            return TypeDescriptor(kind=TypeKind.ARRAY)

        inner = self.map_type(items, embedded=True)
        if inner.kind in (TypeKind.ENUM, TypeKind.CONST, TypeKind.FORMATTED) or (
            inner.kind == TypeKind.PRIMITIVE and inner.primitive in SCALAR_PRIMITIVES
        ):
            return TypeDescriptor(kind=TypeKind.ARRAY_OF, inner=inner)
        return TypeDescriptor(kind=TypeKind.ARRAY)

    def _map_type_list(self, node: ResolvedSchema, types: tuple, embedded: bool) -> TypeDescriptor:
        non_null = [t for t in types if t != "null"]
        nullable = len(non_null) < len(types)
        if len(non_null) != 1:
            # Several real types: nothing narrower than "anything" fits
            return TypeDescriptor(kind=TypeKind.ANY, is_nullable=nullable)

        keywords = dict(node.keywords)
        keywords["type"] = non_null[0]
        descriptor = self._dispatch(node.replace(keywords=freeze(keywords)), embedded)
        descriptor.is_nullable = descriptor.is_nullable or nullable
        return descriptor

    @staticmethod
    def _annotate(descriptor: TypeDescriptor, node: ResolvedSchema) -> TypeDescriptor:
        descriptor.constraints = {k: thaw(node.get(k)) for k in CONSTRAINT_KEYWORDS if k in node}
        if "default" in node:
            descriptor.default_value = thaw(node.get("default"))
            descriptor.has_default = True
        return descriptor

    def map_fields(self, node: ResolvedSchema, embedded: bool = False) -> list[FieldDescriptor]:
        """
        Map the properties of an object node to fields, sorted by name.

        Args:
            node: A flattened object node
            embedded: Passed through to map_type for every property

        Returns:
            Field descriptors in name order
        """
        required = set(node.required)
        fields = []
        for name in sorted(node.properties or {}):
            prop = node.properties[name]
            type_ref = self.map_type(prop, embedded=embedded)
            description = prop.get("description")
            fields.append(
                FieldDescriptor(
                    name=name,
                    type_ref=type_ref,
                    description=description if isinstance(description, str) else None,
                    is_required=name in required,
                    default_value=type_ref.default_value,
                    has_default=type_ref.has_default,
                )
            )
        return fields

