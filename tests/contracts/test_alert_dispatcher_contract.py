"""Contract tests for alerts posted to the layer alert endpoint."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from etl_base.errors import TransportError, ValidationError
from etl_base.schemas import AlertPayload
from etl_base.task import BaseTask, TaskRuntime
from tests.contracts.layer_fixtures import CONNECTION_ID, LAYER_ID, FakeEtlServer, make_settings

ALERT_PATH = f"/api/connection/{CONNECTION_ID}/layer/{LAYER_ID}/alert"


class MyTask(BaseTask):
    name = "my-task"


def test_alert_is_posted_to_the_layer_connection() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        async with server.client() as client:
            runtime = TaskRuntime(MyTask(), make_settings(), http_client=client)
            response = await runtime.alert(
                AlertPayload(title="Source unreachable", description="Timed out after 30s", priority="high")
            )

        posts = server.requests_to("POST", ALERT_PATH)
        assert len(posts) == 1
        assert json.loads(posts[0].content) == {
            "title": "Source unreachable",
            "description": "Timed out after 30s",
            "priority": "high",
        }
        assert response["id"] == 1

    asyncio.run(_run())


def test_alert_accepts_a_plain_mapping() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        async with server.client() as client:
            runtime = TaskRuntime(MyTask(), make_settings(), http_client=client)
            await runtime.alert({"title": "Quota low", "icon": "alert-triangle"})

        posts = server.requests_to("POST", ALERT_PATH)
        assert json.loads(posts[0].content) == {"title": "Quota low", "icon": "alert-triangle"}

    asyncio.run(_run())


def test_alert_without_title_is_rejected_before_posting() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        async with server.client() as client:
            runtime = TaskRuntime(MyTask(), make_settings(), http_client=client)
            with pytest.raises(ValidationError) as exc_info:
                await runtime.alert({"description": "No title"})

        assert exc_info.value.path == "$.title"
        assert server.requests == []

    asyncio.run(_run())


def test_rejected_alert_raises_transport_error() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        server.route(
            "POST",
            ALERT_PATH,
            lambda request: httpx.Response(500, json={"status": 500, "message": "Alert store offline"}),
        )
        async with server.client() as client:
            runtime = TaskRuntime(MyTask(), make_settings(), http_client=client)
            with pytest.raises(TransportError) as exc_info:
                await runtime.alert({"title": "Feed down"})

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Alert store offline"

    asyncio.run(_run())
