"""Layer descriptor, feature collection and alert schemas."""

from typing import Any

from pydantic import BaseModel, Field

from etl_base.types import DataFlowType
from etl_base.validation import (
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    RecordSchema,
    StringSchema,
    UnionSchema,
    UnknownSchema,
)


# ------------------------------------------------------------------
# Wire schemas (decoded with the SchemaValidator)
# ------------------------------------------------------------------

_FLOW_PROPERTIES = {
    "created": StringSchema(),
    "updated": StringSchema(),
    "ephemeral": RecordSchema(values=StringSchema(), default={}),
    "environment": RecordSchema(values=UnknownSchema(), default={}),
    "schema": UnknownSchema(default={}),
}
_FLOW_DEFAULTED = frozenset({"ephemeral", "environment", "schema"})

INCOMING_SCHEMA = ObjectSchema(
    properties={
        **_FLOW_PROPERTIES,
        "enabled_styles": BooleanSchema(),
        "styles": UnknownSchema(default={}),
        "stale": NumberSchema(integer=True),
        "data": UnionSchema(options=(NumberSchema(), NullSchema()), default=None),
        "cron": StringSchema(),
        "webhooks": BooleanSchema(),
        "config": ObjectSchema(
            properties={
                "timezone": ObjectSchema(properties={"timezone": StringSchema()}),
            },
            optional=frozenset({"timezone"}),
            default={},
        ),
    },
    optional=_FLOW_DEFAULTED | {"styles", "data", "config"},
)

OUTGOING_SCHEMA = ObjectSchema(properties=dict(_FLOW_PROPERTIES), optional=_FLOW_DEFAULTED)

LAYER_SCHEMA = ObjectSchema(
    properties={
        "id": NumberSchema(integer=True),
        "name": StringSchema(),
        "created": StringSchema(),
        "updated": StringSchema(),
        "description": StringSchema(),
        "enabled": BooleanSchema(),
        "logging": BooleanSchema(),
        "task": StringSchema(),
        "memory": NumberSchema(),
        "timeout": NumberSchema(),
        "connection": NumberSchema(integer=True),
        "incoming": INCOMING_SCHEMA,
        "outgoing": OUTGOING_SCHEMA,
    },
    optional=frozenset({"incoming", "outgoing"}),
)

FEATURE_SCHEMA = ObjectSchema(
    properties={
        "id": UnionSchema(options=(StringSchema(), NumberSchema())),
        "type": EnumSchema(values=("Feature",)),
        "geometry": UnknownSchema(),
        "properties": ObjectSchema(
            properties={"metadata": RecordSchema(values=UnknownSchema())},
            optional=frozenset({"metadata"}),
        ),
    },
    optional=frozenset({"type"}),
)

FEATURE_COLLECTION_SCHEMA = ObjectSchema(
    properties={
        "type": EnumSchema(values=("FeatureCollection",)),
        "features": ArraySchema(items=FEATURE_SCHEMA),
    },
)


# ------------------------------------------------------------------
# Typed models
# ------------------------------------------------------------------

class TimezoneConfig(BaseModel):
    """Timezone applied to date-time output fields."""

    timezone: str = Field(..., description="IANA zone name or 'No TimeZone'")


class IncomingOptions(BaseModel):
    """Post-processing options of the incoming flow."""

    timezone: TimezoneConfig | None = Field(default=None, description="Optional timezone rewrite")


class FlowConfig(BaseModel):
    """Settings shared by both data flows of a layer."""

    model_config = {"populate_by_name": True}

    created: str = Field(..., description="Creation timestamp")
    updated: str = Field(..., description="Last update timestamp")
    ephemeral: dict[str, str] = Field(default_factory=dict, description="Transient key/value state")
    environment: dict[str, Any] = Field(default_factory=dict, description="User-defined environment")
    output_schema: Any = Field(default_factory=dict, alias="schema", description="Schema of output properties")


class IncomingConfig(FlowConfig):
    enabled_styles: bool = Field(..., description="Whether styles are applied")
    styles: Any = Field(default_factory=dict, description="Style overrides")
    stale: int = Field(..., description="Stale threshold")
    data: float | None = Field(default=None, description="Linked data sync")
    cron: str = Field(..., description="Schedule expression")
    webhooks: bool = Field(..., description="Whether webhooks are enabled")
    config: IncomingOptions = Field(default_factory=IncomingOptions, description="Post-processing options")


class OutgoingConfig(FlowConfig):
    pass


class Layer(BaseModel):
    """Server-side layer record describing one task instance."""

    id: int = Field(..., description="Layer identifier")
    name: str = Field(..., description="Layer name")
    created: str = Field(..., description="Creation timestamp")
    updated: str = Field(..., description="Last update timestamp")
    description: str = Field(..., description="Layer description")
    enabled: bool = Field(..., description="Whether the layer is enabled")
    logging: bool = Field(..., description="Whether logging is enabled")
    task: str = Field(..., description="Task type tag")
    memory: float = Field(..., description="Memory allocation")
    timeout: float = Field(..., description="Execution timeout")
    connection: int = Field(..., description="Owning connection identifier")
    incoming: IncomingConfig | None = Field(default=None, description="Incoming flow settings")
    outgoing: OutgoingConfig | None = Field(default=None, description="Outgoing flow settings")

    def flow(self, flow: DataFlowType) -> FlowConfig | None:
        return self.incoming if DataFlowType(flow) is DataFlowType.INCOMING else self.outgoing


class AlertPayload(BaseModel):
    """Operational alert posted to the layer alert endpoint."""

    icon: str | None = Field(default=None, description="Alert icon")
    priority: str | None = Field(default=None, description="Alert priority")
    title: str = Field(..., description="Alert title")
    description: str | None = Field(default=None, description="Alert body")
