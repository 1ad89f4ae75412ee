"""
Operator trigger endpoints — one per stage, plus an index and a status view.

Each trigger runs its stage synchronously and answers in plain text:
200 with a completion message, 500 with the caught error, or 404 when no
stage is registered under that number.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse

from invoice_reverser.api.deps import ServicesFactory, get_services, get_services_factory
from invoice_reverser.core.constants import ARTIFACT_DIRS, CHECKPOINT_FILES, StageNumber
from invoice_reverser.core.logging import get_logger
from invoice_reverser.pipeline.engine import StageRunner
from invoice_reverser.pipeline.errors import StageNotFound
from invoice_reverser.pipeline.registry import StageRegistry
from invoice_reverser.pipeline.services import StageServices

logger = get_logger(__name__)

router = APIRouter(tags=["Stages"])


# ─── Index ────────────────────────────────────────────────
@router.get("/", response_class=HTMLResponse)
async def index() -> str:
    """Links to every stage trigger."""
    links = "".join(
        f'<li><a href="/run-step{s["stage"]}">Run Step {s["stage"]}: {s["description"]}</a></li>'
        for s in StageRegistry().describe()
    )
    return f"<h2>TIMS Invoice Reverser API</h2><ul>{links}</ul>"


# ─── Trigger ──────────────────────────────────────────────
@router.get("/run-step{number}", response_class=PlainTextResponse)
async def run_step(number: int, services_factory: ServicesFactory = Depends(get_services_factory)):
    """Run one stage to completion and report the outcome."""
    try:
        runner = StageRunner(services_factory())
        await runner.run(number)
    except StageNotFound:
        return PlainTextResponse(f"Step {number} not implemented.", status_code=404)
    except Exception as exc:
        logger.error("Stage trigger failed", stage=number, error=str(exc))
        return PlainTextResponse(f"Error in Step {number}: {exc}", status_code=500)

    completion = runner.registry.registry[number].completion
    return PlainTextResponse(f"Step {number} complete: {completion}")


# ─── Status ───────────────────────────────────────────────
@router.get("/stages/status")
async def stage_status(services: StageServices = Depends(get_services)):
    """Per-stage artifact and checkpoint counts."""
    data = []
    for stage in StageNumber:
        entry = {
            "stage": int(stage),
            "artifact_dir": ARTIFACT_DIRS[stage],
            "succeeded": len(services.artifacts.success_keys(stage)),
            "errors": len(services.artifacts.error_keys(stage)),
            "checkpointed": None,
        }
        if stage in CHECKPOINT_FILES:
            entry["checkpointed"] = len(services.checkpoints(stage))
        data.append(entry)
    return {"data": data}
