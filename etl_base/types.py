"""Shared enums for task events, flows and schema kinds."""

from enum import Enum


class EventType(str, Enum):
    CAPABILITIES = "capabilities"
    SCHEMA_INPUT = "schema:input"
    SCHEMA_OUTPUT = "schema:output"
    CONTROL = "control"
    UPDATE = "update"


class DataFlowType(str, Enum):
    """Direction of data relative to the layer."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


class SchemaType(str, Enum):
    INPUT = "Input"
    OUTPUT = "Output"
