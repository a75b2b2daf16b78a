"""Structured logging helpers for task runtime components."""

from __future__ import annotations

import logging

from etl_base.config import Settings


def task_log_fields(
    *,
    settings: Settings,
    component: str,
    operation: str,
    resource_type: str | None = None,
    resource_id: str | None = None,
    status_code: int | None = None,
    **details: object,
) -> dict[str, object]:
    fields: dict[str, object] = {
        "layerId": settings.layer_id,
        "component": component,
        "operation": operation,
    }
    if resource_type is not None:
        fields["resourceType"] = resource_type
    if resource_id is not None:
        fields["resourceId"] = resource_id
    if status_code is not None:
        fields["statusCode"] = status_code
    for key, value in details.items():
        if value is None:
            continue
        fields[key] = value
    return fields


def log_task_event(
    logger: logging.Logger,
    *,
    level: int,
    message: str,
    settings: Settings,
    component: str,
    operation: str,
    resource_type: str | None = None,
    resource_id: str | None = None,
    status_code: int | None = None,
    **details: object,
) -> None:
    logger.log(
        level,
        message,
        extra=task_log_fields(
            settings=settings,
            component=component,
            operation=operation,
            resource_type=resource_type,
            resource_id=resource_id,
            status_code=status_code,
            **details,
        ),
    )
