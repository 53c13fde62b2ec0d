"""
Python code generation backend.

Generates validating Python modules from resolved schemas. A generated
module is data only (field list, required list, dispatch table) and leans on
the runtime package for casting and validation.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from typing import Any

from ...utils import to_constant_name
from ..analyzer.composition import CompositionAnalyzer
from ..analyzer.ir_nodes import (
    EnumDeclaration,
    FieldDescriptor,
    GeneratedModule,
    TypeDescriptor,
    TypeKind,
    VariantKind,
)
from ..analyzer.type_mapper import TypeMapper
from ..config import CodeGeneratorConfig
from ..schema_ast.nodes import Cardinality, ResolvedSchema
from .base import CodeBackend

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = {
    "string": "String",
    "integer": "Integer",
    "float": "Float",
    "boolean": "Boolean",
    "map": "Map",
    "sequence": "Sequence",
}

FORMAT_TYPES = {
    "datetime": "DateTime",
    "date": "Date",
    "time": "Time",
    "uuid": "UUID",
    "ipv4": "IPv4",
    "ipv6": "IPv6",
}

# JSON Schema constraint keyword -> runtime keyword argument
CONSTRAINT_ARGUMENTS = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
    "multipleOf": "multiple_of",
}


class PythonBackend(CodeBackend):
    """Python code generation backend."""

    TEMPLATE_LANG = "python"
    FILE_EXTENSION = "py"

    def __init__(self, config: CodeGeneratorConfig | None = None, mapper: TypeMapper | None = None):
        super().__init__(config or CodeGeneratorConfig())
        self.analyzer = CompositionAnalyzer()
        self.mapper = mapper or TypeMapper(self.analyzer)
        self.type_names: set[str] = set()

    def build_module(
        self,
        resolved: ResolvedSchema,
        module_name: str,
        constraints: bool | None = None,
        source_label: str = "",
    ) -> GeneratedModule:
        """Analyze a resolved schema into a GeneratedModule."""
        node = self.analyzer.flatten(resolved)
        module = GeneratedModule(
            name=module_name,
            doc=self._doc_text(node, module_name, source_label),
            generation_comment=self.generation_comment(),
            enforce_constraints=self.config.enforce_constraints if constraints is None else constraints,
        )

        group = self.analyzer.classify(node)
        if group is not None:
            module.group = group
            return module

        module.fields = self.mapper.map_fields(node)
        declared = {f.name for f in module.fields}
        module.required = [name for name in node.required if name in declared]
        for name in node.required:
            if name not in declared:
                logger.debug("%s: required field %r has no declared property", module_name, name)

        for f in module.fields:
            values = self._enum_values(f.type_ref)
            if values is not None:
                module.enums.append(EnumDeclaration(name=f"{to_constant_name(f.name)}_VALUES", field_name=f.name, values=values))
        return module

    @staticmethod
    def _enum_values(type_ref: TypeDescriptor) -> list[Any] | None:
        if type_ref.kind == TypeKind.ENUM:
            return list(type_ref.values)
        if type_ref.kind == TypeKind.CONST:
            return [type_ref.value]
        return None

    @staticmethod
    def _doc_text(node: ResolvedSchema, module_name: str, source_label: str) -> str:
        parts = []
        title = node.get("title")
        description = node.get("description")
        parts.append(title if isinstance(title, str) and title.strip() else module_name.rsplit(".", 1)[-1])
        if isinstance(description, str) and description.strip():
            parts.append(description.strip())
        if source_label:
            parts.append(f"Generated from: {source_label}")
        return "\n\n".join(p.strip() for p in parts)

    def emit(self, module: GeneratedModule) -> str:
        """Render a GeneratedModule to Python source."""
        self.type_names = set()
        runtime = self.config.runtime_module

        if module.is_union:
            context = self._prepare_union_context(module)
            template = self.union_template
        else:
            context = self._prepare_object_context(module)
            template = self.object_template

        context.update(
            generation_comment=module.generation_comment,
            doc=module.doc,
            runtime=runtime,
            type_names=sorted(self.type_names),
        )
        return template.render(context)

    def _prepare_object_context(self, module: GeneratedModule) -> dict[str, Any]:
        enum_names = {e.field_name: e.name for e in module.enums}
        fields = [self._field_expression(f, module.enforce_constraints, enum_names.get(f.name)) for f in module.fields]
        return {
            "enums": [{"name": e.name, "literal": self.format_tuple(e.values)} for e in module.enums],
            "fields": fields,
            "required": self.format_tuple(module.required),
        }

    def _prepare_union_context(self, module: GeneratedModule) -> dict[str, Any]:
        group = module.group
        identifiers: list[str] = []
        inline: list[tuple[str, str]] = []

        for index, variant in enumerate(group.variants, start=1):
            if variant.kind == VariantKind.REF:
                identifiers.append(variant.module)
                continue
            name = f"variant_{index}"
            identifiers.append(name)
            inline.append((name, self._inline_variant(variant.node, module.enforce_constraints)))

        dispatch = []
        if group.is_discriminated:
            dispatch = [(self.format_literal(v.tag), self.format_literal(ident)) for v, ident in zip(group.variants, identifiers)]

        helpers = ["cast_discriminated" if group.is_discriminated else "cast_sequential"]
        if inline:
            helpers.append("InlineVariant")
        if any("Field(" in expr for _, expr in inline):
            helpers.append("Field")

        return {
            "helpers": sorted(helpers),
            "kind": group.kind,
            "variants": [self.format_literal(i) for i in identifiers],
            "inline": [(self.format_literal(name), expr) for name, expr in inline],
            "discriminator": self.format_literal(group.discriminator) if group.is_discriminated else None,
            "dispatch": dispatch,
        }

    def _inline_variant(self, node: ResolvedSchema, constraints: bool) -> str:
        if node.properties or node.get("type") == "object":
            fields = self.mapper.map_fields(node, embedded=True)
            declared = {f.name for f in fields}
            required = [name for name in node.required if name in declared]
            field_exprs = [self._field_expression(f, constraints) for f in fields]
            return f"InlineVariant(fields={self._format_sequence(field_exprs)}, required={self.format_tuple(required)})"
        type_expr = self.translate_type(self.mapper.map_type(node, embedded=True), constraints)
        return f"InlineVariant(type={type_expr})"

    def _field_expression(self, f: FieldDescriptor, constraints: bool, values_name: str | None = None) -> str:
        args = [self.format_literal(f.name), self.translate_type(f.type_ref, constraints, values_name)]
        if f.description:
            args.append(f"description={self.format_literal(f.description)}")
        if f.has_default:
            args.append(f"default={self.format_literal(f.default_value)}")
        return f"Field({', '.join(args)})"

    def translate_type(self, type_ref: TypeDescriptor, constraints: bool = False, values_name: str | None = None) -> str:
        """Translate a type descriptor into a runtime type constructor expression."""
        name, args = self._translate_type_inner(type_ref, constraints, values_name)
        self.type_names.add(name)

        if type_ref.is_nullable and name != "Any":
            args.append("nullable=True")
        if constraints:
            for keyword, value in type_ref.constraints.items():
                args.append(f"{CONSTRAINT_ARGUMENTS[keyword]}={self.format_literal(value)}")
        return f"{name}({', '.join(args)})"

    def _translate_type_inner(self, type_ref: TypeDescriptor, constraints: bool, values_name: str | None) -> tuple[str, list[str]]:
        """Inner type translation without nullable and constraint handling."""
        kind = type_ref.kind

        if kind == TypeKind.REF:
            args = [self.format_literal(type_ref.module)]
            if type_ref.cardinality == Cardinality.MANY:
                args.append("many=True")
            return "Ref", args

        if kind == TypeKind.UNION:
            return "Union", self._union_arguments(type_ref, constraints)

        if kind in (TypeKind.ENUM, TypeKind.CONST):
            values = values_name or self.format_tuple(self._enum_values(type_ref))
            return "Enum", [values]

        if kind == TypeKind.ARRAY_OF:
            return "ArrayOf", [self.translate_type(type_ref.inner, constraints)]

        if kind == TypeKind.ARRAY:
            return "Sequence", []

        if kind == TypeKind.EMBEDDED_OBJECT:
            # Ad hoc nested objects are not validated beyond being objects
            return "Map", []

        if kind == TypeKind.MAP:
            if type_ref.inner is not None:
                return "Map", [f"values={self.translate_type(type_ref.inner, constraints)}"]
            return "Map", []

        if kind == TypeKind.FORMATTED:
            return FORMAT_TYPES[type_ref.format], []

        if kind == TypeKind.PRIMITIVE:
            name = PRIMITIVE_TYPES.get(type_ref.primitive, "Any")
            if name == "String" and type_ref.format:
                return name, [f"format={self.format_literal(type_ref.format)}"]
            return name, []

        return "Any", []

    def _union_arguments(self, type_ref: TypeDescriptor, constraints: bool) -> list[str]:
        group = type_ref.group
        args = []
        for variant in group.variants:
            if variant.kind == VariantKind.REF:
                self.type_names.add("Ref")
                args.append(f"Ref({self.format_literal(variant.module)})")
            else:
                args.append(self.translate_type(self.mapper.map_type(variant.node, embedded=True), constraints))
        if group.is_discriminated:
            args.append(f"discriminator={self.format_literal(group.discriminator)}")
            args.append(f"tags={self.format_tuple([v.tag for v in group.variants])}")
        return args

    def format_literal(self, value: Any) -> str:
        """Format a decoded JSON value as a Python literal."""
        if value is None:
            return "None"
        if isinstance(value, bool):
            return "True" if value else "False"
        if isinstance(value, int):
            return repr(value)
        if isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                return f'float("{value}")'
            return repr(value)
        if isinstance(value, str):
            return json.dumps(value, ensure_ascii=False)
        if isinstance(value, Mapping):
            items = ", ".join(f"{self.format_literal(k)}: {self.format_literal(v)}" for k, v in value.items())
            return "{" + items + "}"
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(self.format_literal(v) for v in value) + "]"
        raise TypeError(f"cannot format {type(value).__name__} as a literal")

    def format_tuple(self, values: list[Any]) -> str:
        return self._format_sequence([self.format_literal(v) for v in values])

    @staticmethod
    def _format_sequence(items: list[str]) -> str:
        if not items:
            return "()"
        if len(items) == 1:
            return f"({items[0]},)"
        return f"({', '.join(items)})"

    def format_docstring(self, text: str) -> str:
        """Format text as a module docstring."""
        text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
        if text.endswith('"'):
            text = text[:-1] + '\\"'
        if "\n" in text:
            return f'"""\n{text}\n"""'
        return f'"""{text}"""'
