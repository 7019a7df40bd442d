"""Manual triggers for the periodic scheduler jobs (admins/managers only)."""
from fastapi import APIRouter, Depends, HTTPException

from ..auth import require_manager
from ..deps import get_scheduler_context
from ..models import User
from ..scheduler import JOBS, SchedulerContext
from ..schemas import SchedulerRunResponse

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get("/jobs")
def list_jobs(current_user: User = Depends(require_manager)):
    return {"jobs": sorted(JOBS)}


@router.post("/run/{job}", response_model=SchedulerRunResponse)
def run_job(
    job: str,
    current_user: User = Depends(require_manager),
    ctx: SchedulerContext = Depends(get_scheduler_context),
):
    runner = JOBS.get(job)
    if runner is None:
        raise HTTPException(status_code=404, detail=f"Unknown job: {job}")
    return SchedulerRunResponse(job=job, result=runner(ctx, None))
