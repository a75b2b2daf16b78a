"""Event dispatch and local CLI behavior of the task runtime."""

from __future__ import annotations

import asyncio
import json

import pytest
from typer.testing import CliRunner

from etl_base.cli import build_cli
from etl_base.errors import ConfigurationError, ValidationError
from etl_base.task import BaseTask, TaskRuntime, handle_event
from etl_base.types import DataFlowType, SchemaType
from etl_base.validation import ObjectSchema, StringSchema
from tests.contracts.layer_fixtures import LAYER_ID, FakeEtlServer, make_feature, make_settings


class RecordingTask(BaseTask):
    name = "my-task"

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def control(self, runtime: TaskRuntime) -> None:
        self.calls.append("control")
        await runtime.submit({"type": "FeatureCollection", "features": [make_feature("a"), make_feature("b")]})

    async def update(self, runtime: TaskRuntime) -> None:
        self.calls.append("update")


class OutputTask(BaseTask):
    name = "output-task"

    async def schema(self, schema_type=SchemaType.INPUT, flow=DataFlowType.INCOMING):
        if schema_type is SchemaType.OUTPUT:
            return ObjectSchema(properties={"callsign": StringSchema()}, optional=frozenset({"callsign"}))
        return await super().schema(schema_type, flow)


def test_default_input_schema_declares_debug_flag() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        async with server.client() as client:
            runtime = TaskRuntime(BaseTask(), make_settings(), http_client=client)
            payload = await handle_event(runtime, {"type": "schema:input"})

        assert payload == {
            "type": "object",
            "properties": {
                "DEBUG": {"type": "boolean", "description": "Print results in logs", "default": False},
            },
            "required": ["DEBUG"],
        }
        assert server.requests == []

    asyncio.run(_run())


def test_output_schema_event_renders_task_schema() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        async with server.client() as client:
            runtime = TaskRuntime(OutputTask(), make_settings(), http_client=client)
            output = await handle_event(runtime, {"type": "schema:output"})
            default_output = await handle_event(
                TaskRuntime(BaseTask(), make_settings(), http_client=client), {"type": "schema:output"}
            )

        assert output == {"type": "object", "properties": {"callsign": {"type": "string"}}}
        assert default_output == {"type": "object", "properties": {}}

    asyncio.run(_run())


def test_event_without_type_runs_control() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        task = RecordingTask()
        async with server.client() as client:
            runtime = TaskRuntime(task, make_settings(), http_client=client)
            await handle_event(runtime)

        assert task.calls == ["control"]
        posts = server.requests_to("POST", f"/api/layer/{LAYER_ID}/cot")
        assert len(posts) == 1
        assert json.loads(posts[0].content)["uids"] == ["a", "b"]

    asyncio.run(_run())


def test_update_event_dispatches_to_update() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        task = RecordingTask()
        async with server.client() as client:
            runtime = TaskRuntime(task, make_settings(), http_client=client)
            await handle_event(runtime, {"type": "update"})

        assert task.calls == ["update"]
        assert server.requests == []

    asyncio.run(_run())


@pytest.mark.parametrize(("event_type", "code"), [("capabilities", "EVENT_UNSUPPORTED"), ("reboot", "EVENT_UNKNOWN")])
def test_unsupported_events_are_rejected(event_type: str, code: str) -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        async with server.client() as client:
            runtime = TaskRuntime(RecordingTask(), make_settings(), http_client=client)
            with pytest.raises(ConfigurationError) as exc_info:
                await handle_event(runtime, {"type": event_type})

        assert exc_info.value.code == code

    asyncio.run(_run())


def test_submit_rejects_malformed_collection_before_any_request() -> None:
    async def _run() -> None:
        server = FakeEtlServer()
        async with server.client() as client:
            runtime = TaskRuntime(RecordingTask(), make_settings(), http_client=client)
            with pytest.raises(ValidationError) as exc_info:
                await runtime.submit({"type": "FeatureCollection", "features": [{"geometry": None, "properties": {}}]})

        assert exc_info.value.path == "$.features[0].id"
        assert server.requests == []

    asyncio.run(_run())


def test_type_checks_without_normalizing() -> None:
    schema = ObjectSchema(properties={"name": StringSchema()})
    runtime = TaskRuntime(BaseTask(), make_settings())
    body = {"name": "ok", "extra": 1}

    assert runtime.type(schema, body) == {"name": "ok", "extra": 1}
    with pytest.raises(ValidationError):
        runtime.type(schema, {"name": 5})
    asyncio.run(runtime.aclose())


def test_cli_prints_input_schema() -> None:
    result = CliRunner().invoke(build_cli(BaseTask), ["schema", "input"])

    assert result.exit_code == 0
    assert json.loads(result.output)["properties"]["DEBUG"]["type"] == "boolean"


def test_cli_control_reports_configuration_errors(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in ("ETL_API", "ETL_LAYER", "ETL_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(build_cli(BaseTask), ["control"])

    assert result.exit_code == 1
    assert "SETTINGS_INVALID" in result.output
