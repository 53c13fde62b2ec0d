"""
Composition analyzer.

Merges allOf away and classifies oneOf/anyOf members into variants.
Discriminator inference is best-effort: it relies on either a shared const
field across variants or on sibling module naming (MessageError,
MessageWarning -> type "error" / "warning"). When neither applies the union
falls back to trying each variant in declared order.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from typing import Any

from ...utils import longest_common_prefix
from ..schema_ast.nodes import RefMarker, Resolved, ResolvedSchema, freeze
from .ir_nodes import CompositionGroup, Strategy, VariantDescriptor, VariantKind

logger = logging.getLogger(__name__)

# Minimum length of a shared module name prefix for tag inference
MIN_PREFIX_LENGTH = 3

DEFAULT_DISCRIMINATOR = "type"


def const_fields(node: ResolvedSchema) -> dict[str, Any]:
    """Properties of node that pin a const value, by property name."""
    result: dict[str, Any] = {}
    for name, prop in (node.properties or {}).items():
        if isinstance(prop, ResolvedSchema) and "const" in prop:
            result[name] = prop.get("const")
    return result


def _distinct(tags: list[Any]) -> bool:
    if not all(isinstance(tag, Hashable) for tag in tags):
        return False
    # True == 1 for set membership; keep type in the identity
    return len({(type(tag), tag) for tag in tags}) == len(tags)


class CompositionAnalyzer:
    """Flattens allOf and classifies oneOf / anyOf."""

    def flatten(self, node: ResolvedSchema) -> ResolvedSchema:
        """
        Merge allOf members into node.

        Member properties merge with later members overriding earlier ones,
        required lists are unioned in first-seen order, and the node's own
        keywords win over anything a member contributes.
        """
        if not node.all_of:
            return node

        properties: dict[str, Resolved] = {}
        required: list[str] = []
        keywords: dict[str, Any] = {}
        inherited: dict[str, Any] = {}

        for member in node.all_of:
            if isinstance(member, RefMarker):
                logger.warning("allOf member %s could not be inlined and is ignored", member.ref)
                continue
            member = self.flatten(member)
            properties.update(member.properties or {})
            required.extend(r for r in member.required if r not in required)
            keywords.update({k: v for k, v in member.keywords.items() if k != "required"})
            for attr in ("items", "additional_properties", "one_of", "any_of"):
                value = getattr(member, attr)
                if value is not None:
                    inherited[attr] = value

        properties.update(node.properties or {})
        required.extend(r for r in node.required if r not in required)
        keywords.update({k: v for k, v in node.keywords.items() if k != "required"})
        if required:
            keywords["required"] = tuple(required)
        if properties and "type" not in keywords:
            keywords["type"] = "object"

        changes = {attr: value for attr, value in inherited.items() if getattr(node, attr) is None}
        return node.replace(
            keywords=freeze(keywords),
            properties=properties or None,
            all_of=None,
            **changes,
        )

    def classify(self, node: ResolvedSchema) -> CompositionGroup | None:
        """
        Classify the oneOf/anyOf of node.

        Args:
            node: A resolved schema, allOf already flattened or not

        Returns:
            The composition group, or None when node is not a union
        """
        node = self.flatten(node)
        composition = node.composition
        if composition is None:
            return None

        kind, members = composition
        group = CompositionGroup(kind=kind, variants=[self._variant(m, node) for m in members])
        self._infer_discriminator(group, node)
        return group

    def _variant(self, member: Resolved, parent: ResolvedSchema) -> VariantDescriptor:
        if isinstance(member, RefMarker):
            return VariantDescriptor(kind=VariantKind.REF, node=member, module=member.module)

        member = self._inherit(self.flatten(member), parent)
        if "const" in member:
            return VariantDescriptor(kind=VariantKind.CONST, node=member, tag=member.get("const"))
        if const_fields(member):
            return VariantDescriptor(kind=VariantKind.DISCRIMINATED, node=member)
        return VariantDescriptor(kind=VariantKind.INLINE, node=member)

    @staticmethod
    def _inherit(member: ResolvedSchema, parent: ResolvedSchema) -> ResolvedSchema:
        """Give an object variant the properties declared next to the oneOf."""
        if not parent.properties or "const" in member or member.get("type") not in (None, "object"):
            return member

        properties = {**parent.properties, **(member.properties or {})}
        required = list(parent.required)
        required.extend(r for r in member.required if r not in required)
        keywords = dict(member.keywords)
        keywords["required"] = tuple(required)
        keywords.setdefault("type", "object")
        return member.replace(keywords=freeze(keywords), properties=properties)

    def _infer_discriminator(self, group: CompositionGroup, parent: ResolvedSchema) -> None:
        variants = group.variants

        if variants and all(v.kind == VariantKind.DISCRIMINATED for v in variants):
            candidates = [const_fields(v.node) for v in variants]
            shared = set(candidates[0]).intersection(*candidates[1:])
            ordered = sorted(shared, key=lambda name: (name != DEFAULT_DISCRIMINATOR, name))
            for name in ordered:
                tags = [c[name] for c in candidates]
                if _distinct(tags):
                    self._apply(group, name, tags)
                    return

        if len(variants) >= 2 and all(v.kind == VariantKind.REF for v in variants):
            names = [v.node.name for v in variants]
            prefix = longest_common_prefix(names)
            if len(prefix) >= MIN_PREFIX_LENGTH:
                tags = [name[len(prefix) :].lower() for name in names]
                if all(tags) and _distinct(tags):
                    self._apply(group, DEFAULT_DISCRIMINATOR, tags)
                    return

        group.strategy = Strategy.SEQUENTIAL
        group.discriminator = None
        if len(variants) > 1:
            logger.warning(
                "%s#%s: no discriminator could be inferred for %s; variants will be tried in declared order",
                parent.source_path,
                parent.pointer,
                group.kind,
            )

    @staticmethod
    def _apply(group: CompositionGroup, field_name: str, tags: list[Any]) -> None:
        group.strategy = Strategy.DISCRIMINATED
        group.discriminator = field_name
        for variant, tag in zip(group.variants, tags):
            variant.discriminator_field = field_name
            variant.tag = tag


def classify(node: ResolvedSchema) -> CompositionGroup | None:
    return CompositionAnalyzer().classify(node)


def flatten(node: ResolvedSchema) -> ResolvedSchema:
    return CompositionAnalyzer().flatten(node)


__all__ = ["CompositionAnalyzer", "classify", "flatten", "const_fields"]
