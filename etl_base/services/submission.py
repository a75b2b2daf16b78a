"""Byte-budgeted chunked submission of feature collections."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from etl_base.clients.transport import TransportClient
from etl_base.config import Settings
from etl_base.errors import SubmissionError, TransportError
from etl_base.observability import log_task_event

logger = logging.getLogger(__name__)

SUFFIX = b"]}"


def encode_json(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def envelope_prefix(uids: bytes) -> bytes:
    return b'{"type":"FeatureCollection","uids":' + uids + b',"features":['


@dataclass(frozen=True)
class Chunk:
    index: int
    body: bytes
    feature_count: int


@dataclass
class SubmissionResult:
    features: int
    chunks: int = 0
    bytes_sent: int = 0
    responses: list[Any] = field(default_factory=list)


class SubmissionEncoder:
    """Splits an ordered feature list into FeatureCollection bodies under a byte budget.

    Every body repeats the ``uids`` of the whole submission so the server can
    correlate chunks. Features are taken from the tail of the list, so within
    one chunk they appear in reverse of their input order. A feature that
    alone exceeds the budget still goes out, alone, in its own chunk. An empty
    list produces a single chunk with no features.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        transport: TransportClient,
        budget_bytes: int | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._budget = budget_bytes if budget_bytes is not None else settings.submit_budget_bytes

    @property
    def budget_bytes(self) -> int:
        return self._budget

    def encode(self, features: Sequence[Mapping[str, Any]]) -> Iterator[Chunk]:
        remaining = list(features)
        prefix = envelope_prefix(encode_json([feature.get("id") for feature in remaining]))
        empty_size = len(prefix) + len(SUFFIX)

        parts = [prefix]
        size = empty_size
        count = 0
        index = 0
        while remaining:
            encoded = encode_json(remaining.pop())
            separator = b"," if count else b""
            if count and size + len(separator) + len(encoded) > self._budget:
                parts.append(SUFFIX)
                yield Chunk(index=index, body=b"".join(parts), feature_count=count)
                index += 1
                parts = [prefix]
                size = empty_size
                count = 0
                separator = b""
            parts.append(separator + encoded)
            size += len(separator) + len(encoded)
            count += 1

        parts.append(SUFFIX)
        yield Chunk(index=index, body=b"".join(parts), feature_count=count)

    async def submit(self, features: Sequence[Mapping[str, Any]]) -> SubmissionResult:
        """POST every chunk in order, stopping at the first rejected one.

        Chunks accepted before a failure stay delivered; the raised
        SubmissionError reports how many went through.
        """
        path = f"/api/layer/{self._settings.layer_id}/cot"
        result = SubmissionResult(features=len(features))
        log_task_event(
            logger,
            level=logging.INFO,
            message=f"Posting {len(features)} features",
            settings=self._settings,
            component="submission_encoder",
            operation="submit",
            resource_type="layer",
            resource_id=str(self._settings.layer_id),
            featureCount=len(features),
            budgetBytes=self._budget,
        )
        if self._settings.debug:
            for feature in features:
                logger.debug(encode_json(feature).decode("utf-8"))

        for chunk in self.encode(features):
            log_task_event(
                logger,
                level=logging.INFO,
                message=f"Posting chunk {chunk.index}",
                settings=self._settings,
                component="submission_encoder",
                operation="post_chunk",
                resource_type="layer",
                resource_id=str(self._settings.layer_id),
                chunkIndex=chunk.index,
                featureCount=chunk.feature_count,
                byteSize=len(chunk.body),
            )
            try:
                response = await self._transport.request(
                    path,
                    method="POST",
                    headers={"Content-Type": "application/json"},
                    body=chunk.body,
                )
            except TransportError as exc:
                raise SubmissionError(
                    f"Failed to post chunk {chunk.index} to ETL: {exc.message}",
                    chunk_index=chunk.index,
                    delivered_chunks=result.chunks,
                    status_code=exc.status_code,
                ) from exc

            result.chunks += 1
            result.bytes_sent += len(chunk.body)
            try:
                result.responses.append(response.json())
            except ValueError:
                result.responses.append(response.text)
        return result
