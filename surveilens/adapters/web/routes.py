"""HTTP routes: detection intake, workflow CRUD, execution status."""

import asyncio
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from surveilens.config import __version__
from surveilens.domain.errors import GraphError
from surveilens.domain.models import Workflow
from surveilens.ports.inbound import DetectionBatch
from surveilens.runtime import get_runtime

router = APIRouter()


# Request/Response models
class DetectionEventModel(BaseModel):
    type: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    description: str = ""
    timestamp: Optional[float] = None
    objects: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SceneSummaryModel(BaseModel):
    description: str = ""
    people_count: int = 0
    activities: List[str] = Field(default_factory=list)
    objects: List[str] = Field(default_factory=list)
    detected_events: List[str] = Field(default_factory=list)


class DetectionBatchRequest(BaseModel):
    events: List[DetectionEventModel] = Field(default_factory=list)
    scene: Optional[SceneSummaryModel] = None


class DetectionBatchResponse(BaseModel):
    accepted: int
    queued: bool
    executions: List[Dict[str, Any]] = Field(default_factory=list)


class WorkflowRequest(BaseModel):
    name: str = ""
    enabled: bool = True
    nodes: List[Dict[str, Any]] = Field(default_factory=list)
    edges: List[Dict[str, Any]] = Field(default_factory=list)


class StatusResponse(BaseModel):
    version: str
    consuming: bool
    workflows: int
    events_buffered: int
    live_executions: int
    cooldowns: Dict[str, float]
    senders: List[str]
    oracle: Optional[Dict[str, Any]] = None


@router.post("/events", response_model=DetectionBatchResponse)
async def post_events(req: DetectionBatchRequest):
    """Detection batch from the perception pipeline."""
    batch = DetectionBatch.from_dict(req.model_dump())
    runtime = get_runtime()
    try:
        queued = runtime.enqueue(batch)
    except asyncio.QueueFull:
        raise HTTPException(status_code=503, detail="Event queue full, retry later")
    if queued:
        return DetectionBatchResponse(accepted=len(batch.events), queued=True)
    # No background consumer (e.g. embedded use): process inline
    records = await runtime.process(batch)
    return DetectionBatchResponse(
        accepted=len(batch.events),
        queued=False,
        executions=[r.snapshot().to_dict() for r in records],
    )


@router.get("/workflows")
async def list_workflows():
    runtime = get_runtime()
    return {
        "workflows": [
            {
                "id": wf.id,
                "name": wf.name,
                "enabled": wf.enabled,
                "blocks": len(wf.graph.blocks),
                "triggers": [t.id for t in wf.graph.triggers()],
            }
            for wf in runtime.workflows.values()
        ]
    }


@router.get("/workflows/{workflow_id}")
async def get_workflow(workflow_id: str):
    workflow = get_runtime().workflows.get(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail=f"Workflow {workflow_id} not found")
    return workflow.to_dict()


@router.put("/workflows/{workflow_id}")
async def put_workflow(workflow_id: str, req: WorkflowRequest):
    try:
        workflow = Workflow.from_dict({**req.model_dump(), "id": workflow_id})
    except GraphError as e:
        raise HTTPException(status_code=422, detail=str(e))
    try:
        get_runtime().put_workflow(workflow)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return workflow.to_dict()


@router.delete("/workflows/{workflow_id}")
async def delete_workflow(workflow_id: str):
    try:
        removed = get_runtime().delete_workflow(workflow_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not removed:
        raise HTTPException(status_code=404, detail=f"Workflow {workflow_id} not found")
    return {"deleted": workflow_id}


@router.get("/executions")
async def list_executions():
    runtime = get_runtime()
    return {
        "live": [s.to_dict() for s in runtime.coordinator.live()],
        "recent": [s.to_dict() for s in runtime.executions.finished()],
    }


@router.post("/debug/clear-cooldown")
async def clear_cooldown():
    """Forget every trigger's last-fire time."""
    get_runtime().governor.reset()
    return {"cleared": True}


@router.get("/status", response_model=StatusResponse)
async def status():
    runtime = get_runtime()
    usage = getattr(runtime.oracle, "usage_tracker", None)
    return StatusResponse(
        version=__version__,
        consuming=runtime.is_consuming,
        workflows=len(runtime.workflows),
        events_buffered=len(runtime.history),
        live_executions=len(runtime.coordinator.live()),
        cooldowns={
            trigger_id: runtime.governor.remaining(trigger_id)
            for trigger_id in runtime.governor.snapshot()
        },
        senders=runtime.dispatcher.subtypes,
        oracle=usage.get_status() if usage is not None else None,
    )
