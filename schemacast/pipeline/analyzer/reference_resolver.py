"""
Reference resolver for $ref resolution.

Turns a SchemaNode tree into a ResolvedSchema tree. Every $ref is either
spliced in (inlined) or, when its target is generated as a module of its
own, replaced by a RefMarker naming that module.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from ...errors import CyclicReferenceError, UnresolvedReferenceError
from ..config import CodeGeneratorConfig
from ..schema_ast.loader import SchemaLoader, normalize_path
from ..schema_ast.nodes import (
    STRUCTURAL_KEYWORDS,
    Cardinality,
    RefMarker,
    Resolved,
    ResolvedSchema,
    SchemaDocument,
    SchemaNode,
    freeze,
    normalize_pointer,
)
from .name_resolver import ModuleNamer, ModuleRegistry

logger = logging.getLogger(__name__)


@dataclass
class ResolverContext:
    """State of a single top-level resolve call."""

    loader: SchemaLoader
    root_schema: SchemaNode
    top_key: tuple[str, str] = ("", "")
    module_name: str | None = None

    # (file, pointer) pairs currently being inlined
    in_progress: set[tuple[str, str]] = field(default_factory=set)

    # The same pairs in visiting order, for error messages
    stack: list[str] = field(default_factory=list)


class ReferenceResolver:
    """Resolves $ref to inlined subtrees or module markers."""

    def __init__(
        self,
        registry: ModuleRegistry | None = None,
        config: CodeGeneratorConfig | None = None,
        namer: ModuleNamer | None = None,
        documents: Mapping[str, SchemaDocument] | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            registry: Shapes generated as their own modules; refs to them become RefMarkers
            config: Generator configuration (schema root, module prefix)
            namer: Naming scheme of the run; its schema_dir is the fallback root of "/..." refs
            documents: Already-loaded documents shared read-only with every resolve call
        """
        self.registry = registry or ModuleRegistry()
        self.config = config or CodeGeneratorConfig()
        self.namer = namer
        self.documents = documents or {}

    def resolve(
        self,
        schema: SchemaNode,
        source_path: str,
        root_schema: SchemaNode | None = None,
        module_name: str | None = None,
    ) -> ResolvedSchema:
        """
        Resolve every $ref under schema.

        Args:
            schema: The node to resolve (a document root or a $defs entry)
            source_path: File the node was loaded from; relative refs resolve against it
            root_schema: Document root local "#/..." pointers resolve against
            module_name: Module the node is generated as, used to break self-references

        Returns:
            The resolved tree

        Raises:
            SchemaIOError: If a referenced file cannot be read
            SchemaParseError: If a referenced file is not valid JSON
            UnresolvedReferenceError: If a pointer matches nothing
            CyclicReferenceError: If a cycle cannot be broken with a module reference
        """
        path = normalize_path(source_path) if source_path else ""
        schema = self._relocate(schema, path)
        root = self._relocate(root_schema, path) if root_schema is not None else schema

        ctx = ResolverContext(
            loader=SchemaLoader(preloaded=self.documents),
            root_schema=root,
            top_key=(path, normalize_pointer(schema.pointer)),
            module_name=module_name,
        )
        ctx.in_progress.add(ctx.top_key)
        ctx.stack.append(self._describe(ctx.top_key))

        resolved = self._resolve_node(schema, ctx, root)
        assert isinstance(resolved, ResolvedSchema)
        return resolved

    @staticmethod
    def _relocate(node: SchemaNode, path: str) -> SchemaNode:
        if node.source_path == path:
            return node
        return dataclasses.replace(node, source_path=path)

    @staticmethod
    def _describe(key: tuple[str, str]) -> str:
        return f"{Path(key[0]).name}#{key[1]}"

    def _resolve_node(
        self,
        node: SchemaNode,
        ctx: ResolverContext,
        doc_root: SchemaNode,
        in_items: bool = False,
        force_inline: bool = False,
    ) -> Resolved:
        """Resolve one node; doc_root is what local pointers resolve against."""
        if "$ref" in node:
            return self._resolve_ref(node, ctx, doc_root, in_items, force_inline)

        keywords = {k: v for k, v in node.keywords.items() if k not in STRUCTURAL_KEYWORDS}
        result = ResolvedSchema(
            keywords=freeze(keywords),
            source_path=node.source_path,
            pointer=node.pointer,
        )

        properties = node.get("properties")
        if isinstance(properties, Mapping):
            resolved_props = {}
            for name, value in properties.items():
                if isinstance(value, Mapping):
                    resolved_props[name] = self._resolve_node(node.child("properties", name), ctx, doc_root)
                else:
                    # Boolean schemas accept anything
                    resolved_props[name] = ResolvedSchema(source_path=node.source_path)
            result = result.replace(properties=resolved_props)

        items = node.get("items")
        if isinstance(items, Mapping):
            result = result.replace(items=self._resolve_node(node.child("items"), ctx, doc_root, in_items=True))

        additional = node.get("additionalProperties")
        if isinstance(additional, bool):
            result = result.replace(additional_properties=additional)
        elif isinstance(additional, Mapping):
            result = result.replace(
                additional_properties=self._resolve_node(node.child("additionalProperties"), ctx, doc_root)
            )

        for keyword, attr in (("oneOf", "one_of"), ("anyOf", "any_of"), ("allOf", "all_of")):
            members = node.get(keyword)
            if not isinstance(members, tuple):
                continue
            resolved_members = tuple(
                self._resolve_node(node.child(keyword, str(i)), ctx, doc_root, force_inline=keyword == "allOf")
                for i, member in enumerate(members)
                if isinstance(member, Mapping)
            )
            result = result.replace(**{attr: resolved_members})

        return result

    def _locate(self, ref: str, node: SchemaNode, ctx: ResolverContext, doc_root: SchemaNode) -> SchemaNode:
        """Find the node a $ref points at."""
        if ref.startswith("#"):
            target = doc_root.lookup(ref[1:])
            if target is None:
                raise UnresolvedReferenceError(ref, node.source_path)
            return target

        parsed = urlparse(ref)
        if parsed.scheme and len(parsed.scheme) > 1:
            raise UnresolvedReferenceError(ref, node.source_path)

        file_part, _, fragment = ref.partition("#")
        if file_part.startswith("/"):
            base = Path(self.config.schema_root) if self.config.schema_root else self._schema_dir(node)
            target_path = base / file_part.lstrip("/")
        else:
            target_path = Path(node.source_path).parent / file_part

        document = ctx.loader.load(target_path)
        target = document.root.lookup(fragment)
        if target is None:
            raise UnresolvedReferenceError(ref, node.source_path)
        return target

    def _schema_dir(self, node: SchemaNode) -> Path:
        if self.namer is not None:
            return self.namer.schema_dir
        return Path(node.source_path).parent

    def _resolve_ref(
        self,
        node: SchemaNode,
        ctx: ResolverContext,
        doc_root: SchemaNode,
        in_items: bool,
        force_inline: bool,
    ) -> Resolved:
        ref = node.get("$ref")
        if not isinstance(ref, str):
            raise UnresolvedReferenceError(repr(ref), node.source_path)

        target = self._locate(ref, node, ctx, doc_root)
        key = (target.source_path, normalize_pointer(target.pointer))
        siblings = {k: v for k, v in node.keywords.items() if k != "$ref"}
        cardinality = Cardinality.MANY if in_items else Cardinality.ONE

        registered = self.registry.lookup(*key)
        if registered and not force_inline:
            return RefMarker(module=registered, cardinality=cardinality, ref=ref, annotations=freeze(siblings))

        if key in ctx.in_progress:
            module = self._cycle_module(key, ctx, registered)
            if module is None:
                raise CyclicReferenceError(" -> ".join([*ctx.stack, self._describe(key)]), node.source_path)
            logger.debug("Breaking reference cycle at %s with module %s", self._describe(key), module)
            return RefMarker(module=module, cardinality=cardinality, ref=ref, annotations=freeze(siblings))

        if target.source_path == doc_root.source_path:
            target_root = doc_root
        elif target.source_path == ctx.root_schema.source_path:
            target_root = ctx.root_schema
        else:
            target_root = ctx.loader.load(target.source_path).root

        # Sibling keywords of the $ref win over the target's
        merged = {**target.keywords, **siblings}
        spliced = SchemaNode(keywords=freeze(merged), source_path=target.source_path, pointer=target.pointer)

        ctx.in_progress.add(key)
        ctx.stack.append(self._describe(key))
        try:
            resolved = self._resolve_node(spliced, ctx, target_root, in_items, force_inline)
        finally:
            ctx.stack.pop()
            ctx.in_progress.discard(key)

        if isinstance(resolved, ResolvedSchema):
            return resolved.replace(ref=resolved.ref or ref)
        return resolved

    @staticmethod
    def _cycle_module(key: tuple[str, str], ctx: ResolverContext, registered: str | None) -> str | None:
        """Module that stands in for a shape currently being inlined, when one is generated."""
        if registered:
            return registered
        if key == ctx.top_key and ctx.module_name:
            return ctx.module_name
        # Any other shape has no module of its own
        return None

