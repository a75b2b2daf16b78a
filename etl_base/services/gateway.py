"""Remote layer configuration access for a single task."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Mapping
from typing import Any

import pydantic

from etl_base.clients.transport import TransportClient
from etl_base.config import Settings
from etl_base.errors import ConfigurationError, ValidationError
from etl_base.observability import log_task_event
from etl_base.schemas.layer import LAYER_SCHEMA, FlowConfig, Layer
from etl_base.types import DataFlowType
from etl_base.validation import RecordSchema, Schema, SchemaValidator, StringSchema

logger = logging.getLogger(__name__)

EPHEMERAL_SCHEMA = RecordSchema(values=StringSchema())


class ConfigurationGateway:
    """Fetches, caches and decodes the layer descriptor of one task.

    The first ``fetch_layer`` call starts a single shared request; callers
    arriving while it is in flight await the same result. A failed fetch is
    not cached, so the next call issues a new request.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        transport: TransportClient,
        task_name: str,
        validator: SchemaValidator | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._task_name = task_name
        self._validator = validator or SchemaValidator()
        self._layer: Layer | None = None
        self._pending: asyncio.Future[Layer] | None = None
        self._generation = 0

    @property
    def cached_layer(self) -> Layer | None:
        return self._layer

    def invalidate(self) -> None:
        """Drop the cached descriptor so the next access refetches it."""
        self._layer = None
        self._pending = None
        self._generation += 1

    async def fetch_layer(self) -> Layer:
        if self._layer is not None:
            return self._layer
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load_layer(self._generation))
        pending = self._pending
        return await asyncio.shield(pending)

    async def fetch_environment(self, flow: DataFlowType = DataFlowType.INCOMING) -> dict[str, Any]:
        config = await self._flow_config(flow)
        return copy.deepcopy(config.environment)

    async def env(
        self,
        schema: Schema | Mapping[str, Any],
        flow: DataFlowType = DataFlowType.INCOMING,
    ) -> Any:
        """Validate the flow environment against a task-defined schema."""
        environment = await self.fetch_environment(flow)
        return self._validator.validate(schema, environment)

    async def set_ephemeral(
        self,
        values: Mapping[str, str],
        flow: DataFlowType = DataFlowType.INCOMING,
    ) -> None:
        """Replace the ephemeral map of ``flow``; existing keys not in ``values`` are removed."""
        replacement = self._validator.check(EPHEMERAL_SCHEMA, dict(values))
        layer = await self.fetch_layer()
        flow = DataFlowType(flow)
        path = f"/api/connection/{layer.connection}/layer/{layer.id}/{flow.value}/ephemeral"
        log_task_event(
            logger,
            level=logging.INFO,
            message="Replacing ephemeral values",
            settings=self._settings,
            component="configuration_gateway",
            operation="set_ephemeral",
            resource_type="layer",
            resource_id=str(layer.id),
            flow=flow.value,
            keyCount=len(replacement),
        )
        await self._transport.request(path, method="PUT", body=replacement)

        config = layer.flow(flow)
        if config is not None:
            config.ephemeral = dict(replacement)

    async def _flow_config(self, flow: DataFlowType) -> FlowConfig:
        layer = await self.fetch_layer()
        config = layer.flow(flow)
        if config is None:
            raise ConfigurationError(
                f"Layer {layer.id} flow not configured: {DataFlowType(flow).value}",
                code="FLOW_NOT_CONFIGURED",
            )
        return config

    async def _load_layer(self, generation: int) -> Layer:
        try:
            layer = await self._request_layer()
            # An invalidate() during the request discards this result
            if generation == self._generation:
                self._layer = layer
            return layer
        finally:
            if generation == self._generation:
                self._pending = None

    async def _request_layer(self) -> Layer:
        path = f"/api/layer/{self._settings.layer_id}"
        log_task_event(
            logger,
            level=logging.INFO,
            message="Fetching layer",
            settings=self._settings,
            component="configuration_gateway",
            operation="fetch_layer",
            resource_type="layer",
            resource_id=str(self._settings.layer_id),
        )
        body = await self._transport.fetch_json(path, schema=LAYER_SCHEMA)
        try:
            layer = Layer.model_validate(body)
        except pydantic.ValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

        # Guard against running a task against a layer of another type
        if not layer.task.startswith(self._task_name):
            raise ConfigurationError(
                f"Remote layer is not of type: {self._task_name}",
                code="LAYER_TASK_MISMATCH",
                details={"layerId": layer.id, "task": layer.task},
            )
        return layer
