from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, model_validator

from fetchpool.application import get_dispatch_service
from fetchpool.core.errors import QueueClosedError, ReplyTimeoutError
from fetchpool.domain import CompletionStatus, TargetDescriptor, TargetKind

router = APIRouter(prefix="/targets", tags=["targets"])


class TargetPayload(BaseModel):
    kind: Literal["directory", "file"]
    destination: str = Field(min_length=1)
    source: str | None = None

    @model_validator(mode="after")
    def _require_source_for_files(self) -> "TargetPayload":
        if self.kind == "file" and not self.source:
            raise ValueError("file targets require a source URL")
        return self

    def to_descriptor(self) -> TargetDescriptor:
        source = self.source if self.kind == "file" else None
        return TargetDescriptor(kind=TargetKind(self.kind), destination=self.destination, source=source)


class TargetBatch(BaseModel):
    items: list[TargetPayload] = Field(min_length=1)


def _render(payload: TargetPayload, status: CompletionStatus) -> dict:
    return {"kind": payload.kind, "destination": payload.destination, "status": status.value}


@router.post("")
async def submit_target(payload: TargetPayload) -> dict:
    """Materialize one target and report its completion status."""
    service = get_dispatch_service()
    try:
        status = await service.submit(payload.to_descriptor())
    except ReplyTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except QueueClosedError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _render(payload, status)


@router.post("/batch")
async def submit_batch(batch: TargetBatch) -> dict:
    service = get_dispatch_service()
    try:
        statuses = await service.submit_many(item.to_descriptor() for item in batch.items)
    except ReplyTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except QueueClosedError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"items": [_render(item, status) for item, status in zip(batch.items, statuses)]}
