"""Task capability interface and the runtime that serves it."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any, Protocol

import httpx

from etl_base.clients.transport import TransportClient
from etl_base.config import Settings, get_settings
from etl_base.errors import ConfigurationError
from etl_base.schemas.layer import FEATURE_COLLECTION_SCHEMA, AlertPayload, Layer
from etl_base.services.alerts import AlertDispatcher
from etl_base.services.gateway import ConfigurationGateway
from etl_base.services.submission import SubmissionEncoder, SubmissionResult
from etl_base.services.timezone import localize_layer_features
from etl_base.types import DataFlowType, EventType, SchemaType
from etl_base.validation import BooleanSchema, ObjectSchema, Schema, SchemaValidator, parse_schema

logger = logging.getLogger(__name__)

DEFAULT_INPUT_SCHEMA = ObjectSchema(
    properties={
        "DEBUG": BooleanSchema(default=False, description="Print results in logs"),
    }
)


class Task(Protocol):
    """Capabilities a connector implements to run inside a TaskRuntime."""

    name: str

    async def schema(
        self,
        schema_type: SchemaType = SchemaType.INPUT,
        flow: DataFlowType = DataFlowType.INCOMING,
    ) -> Schema | Mapping[str, Any]:
        ...

    async def control(self, runtime: TaskRuntime) -> None:
        ...

    async def update(self, runtime: TaskRuntime) -> None:
        ...


class BaseTask:
    """Default capabilities; connectors override what they need.

    The incoming input schema only declares a ``DEBUG`` flag and output
    schemas are empty, which leaves mapping and styling to the server.
    """

    name = "default"

    async def schema(
        self,
        schema_type: SchemaType = SchemaType.INPUT,
        flow: DataFlowType = DataFlowType.INCOMING,
    ) -> Schema | Mapping[str, Any]:
        if SchemaType(schema_type) is SchemaType.INPUT and DataFlowType(flow) is DataFlowType.INCOMING:
            return DEFAULT_INPUT_SCHEMA
        return ObjectSchema()

    async def control(self, runtime: TaskRuntime) -> None:
        return None

    async def update(self, runtime: TaskRuntime) -> None:
        return None


class TaskRuntime:
    """Wires transport, configuration, validation, submission and alerts for one task."""

    def __init__(
        self,
        task: Task,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.task = task
        self.settings = settings or get_settings()
        self.validator = SchemaValidator()
        self.transport = TransportClient(self.settings, http_client=http_client, validator=self.validator)
        self.gateway = ConfigurationGateway(
            settings=self.settings,
            transport=self.transport,
            task_name=task.name,
            validator=self.validator,
        )
        self.encoder = SubmissionEncoder(settings=self.settings, transport=self.transport)
        self.alerts = AlertDispatcher(settings=self.settings, transport=self.transport, gateway=self.gateway)

    @property
    def layer(self) -> Layer | None:
        return self.gateway.cached_layer

    async def fetch_layer(self) -> Layer:
        return await self.gateway.fetch_layer()

    def invalidate_layer(self) -> None:
        self.gateway.invalidate()

    async def fetch_environment(self, flow: DataFlowType = DataFlowType.INCOMING) -> dict[str, Any]:
        return await self.gateway.fetch_environment(flow)

    async def env(
        self,
        schema: Schema | Mapping[str, Any],
        flow: DataFlowType = DataFlowType.INCOMING,
    ) -> Any:
        return await self.gateway.env(schema, flow)

    async def set_ephemeral(
        self,
        values: Mapping[str, str],
        flow: DataFlowType = DataFlowType.INCOMING,
    ) -> None:
        await self.gateway.set_ephemeral(values, flow)

    def type(self, schema: Schema | Mapping[str, Any], body: Any) -> Any:
        """Strictly type an arbitrary object at runtime without normalizing it."""
        return self.validator.check(schema, body)

    async def alert(self, alert: AlertPayload | dict[str, Any]) -> Any:
        return await self.alerts.send(alert)

    async def submit(self, feature_collection: dict[str, Any]) -> SubmissionResult:
        """Submit a FeatureCollection, possibly in several chunks.

        Date-time metadata named by the incoming output schema is rewritten in
        place when the layer configures a timezone.
        """
        self.validator.check(FEATURE_COLLECTION_SCHEMA, feature_collection)
        layer = await self.fetch_layer()
        features = feature_collection["features"]
        localize_layer_features(layer, features)
        return await self.encoder.submit(features)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> TaskRuntime:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


async def schema_payload(task: Task, schema_type: SchemaType) -> dict[str, Any]:
    """JSON-schema rendering of the task's incoming-flow schema."""
    return parse_schema(await task.schema(schema_type, DataFlowType.INCOMING)).to_json()


async def handle_event(runtime: TaskRuntime, event: Mapping[str, Any] | None = None) -> Any:
    """Dispatch a runtime event to the task; an event without a type runs ``control``."""
    raw_type = (event or {}).get("type") or EventType.CONTROL.value
    try:
        event_type = EventType(raw_type)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown event type: {raw_type}", code="EVENT_UNKNOWN") from exc

    if event_type is EventType.SCHEMA_INPUT:
        return await schema_payload(runtime.task, SchemaType.INPUT)
    if event_type is EventType.SCHEMA_OUTPUT:
        return await schema_payload(runtime.task, SchemaType.OUTPUT)
    if event_type is EventType.CAPABILITIES:
        raise ConfigurationError("Capability descriptors are not served by this runtime", code="EVENT_UNSUPPORTED")
    if event_type is EventType.UPDATE:
        await runtime.task.update(runtime)
        return None

    logger.info("Running task control", extra={"task": runtime.task.name})
    await runtime.task.control(runtime)
    return None
