"""Base library for ETL tasks that submit feature collections to a layer."""

from etl_base.config import Settings, get_settings, load_settings
from etl_base.errors import (
    ConfigurationError,
    SubmissionError,
    TaskError,
    TransportError,
    ValidationError,
)
from etl_base.schemas.layer import AlertPayload, Layer
from etl_base.task import BaseTask, Task, TaskRuntime, handle_event
from etl_base.types import DataFlowType, EventType, SchemaType

__all__ = [
    "AlertPayload",
    "BaseTask",
    "ConfigurationError",
    "DataFlowType",
    "EventType",
    "Layer",
    "SchemaType",
    "Settings",
    "SubmissionError",
    "Task",
    "TaskError",
    "TaskRuntime",
    "TransportError",
    "ValidationError",
    "get_settings",
    "handle_event",
    "load_settings",
]
