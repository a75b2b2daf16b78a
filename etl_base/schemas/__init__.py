"""Pydantic models and wire schemas exchanged with the ETL server."""

from etl_base.schemas.layer import (
    FEATURE_COLLECTION_SCHEMA,
    LAYER_SCHEMA,
    AlertPayload,
    FlowConfig,
    IncomingConfig,
    Layer,
    OutgoingConfig,
)

__all__ = [
    "FEATURE_COLLECTION_SCHEMA",
    "LAYER_SCHEMA",
    "AlertPayload",
    "FlowConfig",
    "IncomingConfig",
    "Layer",
    "OutgoingConfig",
]
