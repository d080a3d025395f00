# src/reporank/tasks/ranking/schema_builder.py
"""
Schema builder for model tool requests.

Turns the model-derived criteria into a schema tree the model client attaches
as its tool input schema, so the reply comes back as typed fields.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from reporank.core.errors import ConfigurationError

from .criteria_registry import CriterionKind, CriterionSpec

logger = logging.getLogger(__name__)

DEPRECATED_FIELD = "isDeprecated"
SERVICES_FIELD = "serviceNames"


@dataclass(frozen=True)
class SchemaNode:
    """Base node of the schema tree."""
    description: Optional[str] = None

    node_type = ""

    def to_json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.node_type}
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass(frozen=True)
class StringSchema(SchemaNode):
    node_type = "string"


@dataclass(frozen=True)
class BooleanSchema(SchemaNode):
    node_type = "boolean"


@dataclass(frozen=True)
class IntegerSchema(SchemaNode):
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    node_type = "integer"

    def to_json_schema(self) -> Dict[str, Any]:
        schema = super().to_json_schema()
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema


@dataclass(frozen=True)
class ArraySchema(SchemaNode):
    items: SchemaNode = field(default_factory=StringSchema)

    node_type = "array"

    def to_json_schema(self) -> Dict[str, Any]:
        schema = super().to_json_schema()
        schema["items"] = self.items.to_json_schema()
        return schema


@dataclass(frozen=True)
class ObjectSchema(SchemaNode):
    properties: Tuple[Tuple[str, SchemaNode], ...] = ()
    required: Tuple[str, ...] = ()

    node_type = "object"

    @property
    def property_names(self) -> List[str]:
        return [name for name, _ in self.properties]

    def get_property(self, name: str) -> Optional[SchemaNode]:
        for prop_name, node in self.properties:
            if prop_name == name:
                return node
        return None

    def to_json_schema(self) -> Dict[str, Any]:
        schema = super().to_json_schema()
        schema["properties"] = {name: node.to_json_schema() for name, node in self.properties}
        schema["required"] = list(self.required)
        return schema


def _node_for_spec(spec: CriterionSpec) -> SchemaNode:
    if spec.kind is CriterionKind.BOOLEAN:
        return BooleanSchema(description=spec.description)
    if spec.kind is CriterionKind.INTEGER:
        return IntegerSchema(
            description=spec.description,
            minimum=spec.minimum,
            maximum=spec.maximum
        )
    return StringSchema(description=spec.description)


def build_schema(specs: Iterable[CriterionSpec]) -> ObjectSchema:
    """
    Build the tool input schema for the model-derived criteria.

    The deprecated flag and the mentioned-services list are always present.
    Every property is required.

    Args:
        specs: Model-derived criteria

    Returns:
        ObjectSchema describing the expected answer

    Raises:
        ConfigurationError: If a criterion reuses one of the fixed field names
    """
    properties: List[Tuple[str, SchemaNode]] = [
        (DEPRECATED_FIELD, BooleanSchema(
            description="Indicates if this repository mentions being deprecated."
        )),
        (SERVICES_FIELD, ArraySchema(
            description="An array of AWS services mentioned in the README.",
            items=StringSchema()
        )),
    ]

    spec_names = []
    for spec in specs:
        if spec.name in (DEPRECATED_FIELD, SERVICES_FIELD):
            raise ConfigurationError(f"Criterion name '{spec.name}' is reserved")
        properties.append((spec.name, _node_for_spec(spec)))
        spec_names.append(spec.name)

    required = tuple(spec_names + [DEPRECATED_FIELD, SERVICES_FIELD])

    logger.debug(f"Built tool schema with {len(properties)} properties")
    return ObjectSchema(properties=tuple(properties), required=required)
