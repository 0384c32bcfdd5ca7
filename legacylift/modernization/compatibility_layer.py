#!/usr/bin/env python3
# CUI // SP-CTI
"""Compatibility Layer Generator — field-mapping adapters with exact inverses.

A layer is a list of FieldMapping entries (source field -> target field ->
transformation). ``"direct"`` copies the value; any other name refers to a
registered Transformation whose reverse function undoes its forward
function, so reverse(forward(record)) == record whenever every optional
field is present.

Absent fields: a nullable mapping substitutes its default, a required one
raises ValueError.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, NamedTuple, Union

from legacylift.compat.datetime_utils import utc_now_iso
from legacylift.schemas.artifacts import CompatibilityLayer, FieldMapping

logger = logging.getLogger("legacylift.modernization.compatibility_layer")

CUI_BANNER = "CUI // SP-CTI"

MappingInput = Union[FieldMapping, Mapping[str, Any]]


class Transformation(NamedTuple):
    name: str
    forward: Callable[[Any], Any]
    reverse: Callable[[Any], Any]
    description: str


def _epoch_to_iso(value):
    return datetime.fromtimestamp(int(value), tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _iso_to_epoch(value):
    return int(datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ")
               .replace(tzinfo=timezone.utc).timestamp())


def _split_csv(value):
    return value.split(",") if value else []


def _join_csv(value):
    return ",".join(value)


def _pair(forward_name, reverse_name, forward, reverse, description):
    return [
        Transformation(forward_name, forward, reverse, description),
        Transformation(reverse_name, reverse, forward, f"Inverse of {forward_name}"),
    ]


TRANSFORMATIONS: Dict[str, Transformation] = {
    t.name: t for t in (
        [Transformation("direct", lambda v: v, lambda v: v, "Copy the value unchanged")]
        + _pair("cents_to_dollars", "dollars_to_cents",
                lambda v: v / 100, lambda v: int(round(v * 100)),
                "Integer cents to decimal currency units")
        + _pair("epoch_to_iso", "iso_to_epoch", _epoch_to_iso, _iso_to_epoch,
                "Unix seconds to ISO-8601 UTC timestamp")
        + _pair("int_to_bool", "bool_to_int", bool, int,
                "0/1 flag to boolean")
        + _pair("yn_to_bool", "bool_to_yn",
                lambda v: v.upper() == "Y", lambda v: "Y" if v else "N",
                "'Y'/'N' flag to boolean")
        + _pair("int_to_string", "string_to_int", str, int,
                "Integer to decimal string")
        + _pair("json_decode", "json_encode",
                json.loads, lambda v: json.dumps(v, sort_keys=True, separators=(",", ":")),
                "JSON text column to structured value")
        + _pair("split_csv", "join_csv", _split_csv, _join_csv,
                "Comma-separated string to list")
    )
}


def _transformation(name: str) -> Transformation:
    try:
        return TRANSFORMATIONS[name]
    except KeyError:
        raise ValueError(
            f"Unknown transformation '{name}'; registered: {', '.join(sorted(TRANSFORMATIONS))}"
        ) from None


def _coerce_mapping(mapping: MappingInput) -> FieldMapping:
    if isinstance(mapping, FieldMapping):
        return mapping
    if not mapping.get("source_field") or not mapping.get("target_field"):
        raise ValueError(f"Field mapping needs source_field and target_field: {dict(mapping)!r}")
    return FieldMapping(
        source_field=str(mapping["source_field"]),
        target_field=str(mapping["target_field"]),
        transformation=str(mapping.get("transformation", "direct")),
        nullable=bool(mapping.get("nullable", False)),
        default=mapping.get("default"),
    )


def build_compatibility_layer(name: str, mappings: Iterable[MappingInput]) -> CompatibilityLayer:
    """Validate mappings and describe the forward and reverse transforms.

    Raises:
        ValueError: Unknown transformation name, or a source or target
            field mapped twice (the reverse would be ambiguous).
    """
    field_mappings = [_coerce_mapping(m) for m in mappings]
    for attr in ("source_field", "target_field"):
        seen = set()
        for m in field_mappings:
            value = getattr(m, attr)
            if value in seen:
                raise ValueError(f"{attr} '{value}' is mapped more than once")
            seen.add(value)

    forward_lines, reverse_lines = [], []
    for m in field_mappings:
        transform = _transformation(m.transformation)
        optional = " [nullable]" if m.nullable else ""
        forward_lines.append(f"{m.source_field} -> {m.target_field} ({transform.name}){optional}")
        inverse = "direct" if transform.name == "direct" else f"inverse of {transform.name}"
        reverse_lines.append(f"{m.target_field} -> {m.source_field} ({inverse}){optional}")

    logger.info("Built compatibility layer '%s' with %d mappings", name, len(field_mappings))
    return CompatibilityLayer(
        name=name,
        mappings=tuple(field_mappings),
        forward_transform=tuple(forward_lines),
        reverse_transform=tuple(reverse_lines),
        generated_at=utc_now_iso(),
    )


def _translate(layer: CompatibilityLayer, record: Mapping[str, Any], forward: bool) -> Dict[str, Any]:
    result = {}
    for m in layer.mappings:
        src, dst = (m.source_field, m.target_field) if forward else (m.target_field, m.source_field)
        if src not in record:
            if m.nullable:
                result[dst] = m.default
                continue
            raise ValueError(f"Layer '{layer.name}': required field '{src}' is missing")
        value = record[src]
        if value is None:
            result[dst] = None
            continue
        transform = _transformation(m.transformation)
        result[dst] = transform.forward(value) if forward else transform.reverse(value)
    return result


def forward(layer: CompatibilityLayer, record: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate a legacy record into the modern shape."""
    return _translate(layer, record, forward=True)


def reverse(layer: CompatibilityLayer, record: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate a modern record back into the legacy shape."""
    return _translate(layer, record, forward=False)


def _to_pascal_case(name):
    parts = name.replace("-", "_").replace(" ", "_").split("_")
    return "".join(p.capitalize() for p in parts if p) or "Compatibility"


def render_adapter_source(layer: CompatibilityLayer) -> str:
    """Render a Python adapter class implementing the layer."""
    class_name = f"{_to_pascal_case(layer.name)}Adapter"
    lines = [
        f"# {CUI_BANNER}",
        f'"""Compatibility adapter for {layer.name}.',
        "",
        f"Generated by legacylift at {layer.generated_at or utc_now_iso()}.",
        '"""',
        "",
        "from legacylift.modernization.compatibility_layer import TRANSFORMATIONS",
        "",
        "",
        f"class {class_name}:",
        f'    """Translate {layer.name} records between legacy and modern shapes."""',
        "",
        "    def to_modern(self, legacy):",
        "        modern = {}",
    ]
    for m in layer.mappings:
        lines.extend(_render_assignment("legacy", "modern", m.source_field, m.target_field,
                                        m, "forward"))
    lines.append("        return modern")
    lines.append("")
    lines.append("    def to_legacy(self, modern):")
    lines.append("        legacy = {}")
    for m in layer.mappings:
        lines.extend(_render_assignment("modern", "legacy", m.target_field, m.source_field,
                                        m, "reverse"))
    lines.append("        return legacy")
    lines.append("")
    lines.append(f"# {CUI_BANNER}")
    return "\n".join(lines) + "\n"


def _render_assignment(src_var, dst_var, src, dst, mapping, direction):
    if mapping.transformation == "direct":
        expr = f"{src_var}[{src!r}]"
    else:
        expr = f"TRANSFORMATIONS[{mapping.transformation!r}].{direction}({src_var}[{src!r}])"
    indent = "        "
    if mapping.nullable:
        return [
            f"{indent}if {src!r} not in {src_var}:",
            f"{indent}    {dst_var}[{dst!r}] = {mapping.default!r}",
            f"{indent}elif {src_var}[{src!r}] is None:",
            f"{indent}    {dst_var}[{dst!r}] = None",
            f"{indent}else:",
            f"{indent}    {dst_var}[{dst!r}] = {expr}",
        ]
    if mapping.transformation == "direct":
        return [f"{indent}{dst_var}[{dst!r}] = {expr}"]
    return [
        f"{indent}if {src_var}[{src!r}] is None:",
        f"{indent}    {dst_var}[{dst!r}] = None",
        f"{indent}else:",
        f"{indent}    {dst_var}[{dst!r}] = {expr}",
    ]
