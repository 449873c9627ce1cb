"""Simulation endpoints: run (server-sent events), cancel, result and status."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from ...data.project_repository import project_path
from ...errors import ProjectNotFoundError
from ...persistence.filesystem import FileStorage
from ...schemas.simulation import CancelResponse, SimulationStatus
from ...services.runner import stream_simulation
from ...services.sessions import registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/simulations", tags=["simulations"])


def _resolve_project(storage: FileStorage, project_name: str) -> str:
    try:
        return project_path(project_name, root=storage.root).name
    except ProjectNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/{project_name}/run")
def run(project_name: str) -> StreamingResponse:
    """Run a project's simulation, streaming progress as server-sent events."""
    storage = FileStorage()
    name = _resolve_project(storage, project_name)
    return StreamingResponse(
        stream_simulation(name, registry, storage=storage),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.post("/cancel/{session_id}", response_model=CancelResponse, status_code=status.HTTP_200_OK)
def cancel(session_id: str) -> CancelResponse:
    if not registry.cancel(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Simulation session not found")
    logger.info(f"Cancelling simulation session: {session_id}")
    return CancelResponse(success=True, message="Cancellation requested")


@router.get("/{project_name}/result", status_code=status.HTTP_200_OK)
def result(project_name: str) -> dict:
    storage = FileStorage()
    name = _resolve_project(storage, project_name)
    try:
        return storage.load_result(name)
    except ProjectNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        logger.exception(f"Failed to read simulation result for '{name}': {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read simulation result",
        ) from exc


@router.get("/{project_name}/status", response_model=SimulationStatus, status_code=status.HTTP_200_OK)
def result_status(project_name: str) -> SimulationStatus:
    storage = FileStorage()
    name = _resolve_project(storage, project_name)
    return SimulationStatus(**storage.result_status(name))
