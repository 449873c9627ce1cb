"""Run a project's simulation end to end and stream its progress."""

from __future__ import annotations

import json
import logging
import queue
import threading
from typing import Callable, Iterator

from ..config import settings
from ..data.project_repository import load_project
from ..persistence.filesystem import FileStorage
from ..schemas.simulation import RunSummary
from .providers import get_isochrone_provider, get_route_provider
from .providers.base import IsochroneProvider, RouteProvider
from .sessions import SessionRegistry, SimulationSession
from .simulation import ProgressUpdate, SimulationEngine, build_result

logger = logging.getLogger(__name__)

TERMINAL_MESSAGES = {"completed", "cancelled", "error"}

Emit = Callable[[dict], None]


def run_simulation(
    session: SimulationSession,
    emit: Emit,
    *,
    storage: FileStorage | None = None,
    isochrone_provider: IsochroneProvider | None = None,
    route_provider: RouteProvider | None = None,
) -> None:
    """Load, run and persist one project. Always ends with a terminal message."""

    storage = storage or FileStorage()
    project_name = session.project_name

    # providers created here are closed here; injected ones belong to the caller
    owned: list[IsochroneProvider | RouteProvider] = []

    def _progress(update: ProgressUpdate) -> None:
        emit({"type": "progress", **update.to_dict()})

    try:
        emit({"type": "progress", "status": "initializing", "message": "Initializing simulation..."})
        project = load_project(project_name, root=storage.root)
        if isochrone_provider is None:
            isochrone_provider = get_isochrone_provider()
            owned.append(isochrone_provider)
        if route_provider is None:
            route_provider = get_route_provider()
            owned.append(route_provider)
        engine = SimulationEngine.from_project(
            project,
            isochrone_provider=isochrone_provider,
            route_provider=route_provider,
            progress_interval=settings.progress_interval_seconds,
            log_interval=settings.log_interval_seconds,
            snapshot_interval=settings.snapshot_interval_seconds,
        )
        if session.cancelled:
            emit({"type": "cancelled", "message": "Simulation cancelled by user"})
            return

        emit({"type": "progress", "status": "running", "message": "Running simulation..."})
        summary = engine.run(progress=_progress, is_cancelled=lambda: session.cancelled)
        if summary is None:
            emit({"type": "cancelled", "message": "Simulation cancelled by user"})
            return

        emit({"type": "progress", "status": "generating", "message": "Generating result file..."})
        result_path = storage.save_result(project.name, build_result(engine))
        logger.info(f"Simulation result saved to {result_path}")
        emit(
            {
                "type": "completed",
                "success": True,
                "project_name": project.name,
                "result_file": str(result_path),
                "summary": RunSummary(
                    duration=summary.total_duration_seconds,
                    vehicles=summary.vehicle_count,
                    demands=summary.demand_count,
                    completed=summary.completed_demands,
                    rejected=summary.rejected_demands,
                    errored=summary.errored_demands,
                    completion_rate=f"{summary.completion_rate * 100:.1f}%",
                    utilization=f"{summary.vehicle_utilization_rate * 100:.1f}%",
                ).model_dump(),
            }
        )
    except Exception as exc:
        logger.exception(f"Simulation failed for project '{project_name}': {exc}")
        emit({"type": "error", "success": False, "error": str(exc)})
    finally:
        for provider in owned:
            provider.close()


def format_sse(message: dict) -> str:
    return f"data: {json.dumps(message, ensure_ascii=False)}\n\n"


def stream_simulation(
    project_name: str,
    registry: SessionRegistry,
    **kwargs,
) -> Iterator[str]:
    """Server-sent-event stream of a simulation running in a worker thread."""

    session = registry.create(project_name)
    messages: queue.Queue[dict] = queue.Queue()
    worker = threading.Thread(
        target=run_simulation,
        args=(session, messages.put),
        kwargs=kwargs,
        name=f"simulation-{session.session_id}",
        daemon=True,
    )
    logger.info(f"Starting simulation for project '{project_name}' (session {session.session_id})")
    try:
        yield format_sse({"type": "started", "session_id": session.session_id, "project_name": project_name})
        worker.start()
        while True:
            message = messages.get()
            yield format_sse(message)
            if message["type"] in TERMINAL_MESSAGES:
                break
        worker.join()
    finally:
        # client disconnects close the generator early
        session.cancel()
        registry.remove(session.session_id)
