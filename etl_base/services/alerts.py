"""Operational alerts posted to the layer alert endpoint."""

from __future__ import annotations

import logging
from typing import Any

import pydantic

from etl_base.clients.transport import TransportClient
from etl_base.config import Settings
from etl_base.errors import ValidationError
from etl_base.observability import log_task_event
from etl_base.schemas.layer import AlertPayload
from etl_base.services.gateway import ConfigurationGateway

logger = logging.getLogger(__name__)


class AlertDispatcher:
    def __init__(
        self,
        *,
        settings: Settings,
        transport: TransportClient,
        gateway: ConfigurationGateway,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._gateway = gateway

    async def send(self, alert: AlertPayload | dict[str, Any]) -> Any:
        """Post an alert; a rejected alert raises TransportError."""
        if isinstance(alert, AlertPayload):
            payload = alert
        else:
            try:
                payload = AlertPayload.model_validate(alert)
            except pydantic.ValidationError as exc:
                raise ValidationError.from_pydantic(exc) from exc
        layer = await self._gateway.fetch_layer()
        log_task_event(
            logger,
            level=logging.INFO,
            message="Generating alert",
            settings=self._settings,
            component="alert_dispatcher",
            operation="send",
            resource_type="layer",
            resource_id=str(layer.id),
            title=payload.title,
        )
        return await self._transport.fetch_json(
            f"/api/connection/{layer.connection}/layer/{layer.id}/alert",
            method="POST",
            body=payload.model_dump(exclude_none=True),
        )
