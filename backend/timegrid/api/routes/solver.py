from fastapi import APIRouter, Depends, HTTPException, Query, status

from timegrid.api.deps import get_job_manager
from timegrid.schemas.timetable import Solution, Timetable
from timegrid.schemas.upload import SolveAccepted, SolveJobOut
from timegrid.services.solve_jobs import SolveJobManager
from timegrid.services.solver_client import TERMINAL_SOLVER_STATUS

router = APIRouter()


def _require_job_id(job_id: str | None) -> str:
    if not job_id or not job_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="jobId query parameter is required")
    return job_id.strip()


@router.post("/solve", response_model=SolveAccepted, status_code=status.HTTP_202_ACCEPTED)
async def solve(payload: Timetable, jobs: SolveJobManager = Depends(get_job_manager)) -> SolveAccepted:
    job = await jobs.start(payload)
    return SolveAccepted(jobId=job.job_id)


@router.get("/solve/jobs/{job_id}", response_model=SolveJobOut)
def get_solve_job(job_id: str, jobs: SolveJobManager = Depends(get_job_manager)) -> SolveJobOut:
    job = jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Solve job not found")
    return job.to_schema()


@router.delete("/solve/jobs/{job_id}", response_model=SolveJobOut)
async def cancel_solve_job(job_id: str, jobs: SolveJobManager = Depends(get_job_manager)) -> SolveJobOut:
    job = await jobs.cancel(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Solve job not found")
    return job.to_schema()


@router.get("/solution", response_model=Solution)
async def get_solution(
    job_id: str | None = Query(default=None, alias="jobId"),
    jobs: SolveJobManager = Depends(get_job_manager),
) -> Solution:
    job_id = _require_job_id(job_id)
    job = jobs.get(job_id)
    if job is not None and job.mode == "greedy":
        return job.solution or Solution()
    return await jobs.client.fetch_solution(job_id)


@router.get("/solution/status")
async def get_solution_status(
    job_id: str | None = Query(default=None, alias="jobId"),
    jobs: SolveJobManager = Depends(get_job_manager),
) -> dict:
    job_id = _require_job_id(job_id)
    job = jobs.get(job_id)
    if job is not None and job.mode == "greedy":
        return {"solverStatus": TERMINAL_SOLVER_STATUS}
    return await jobs.client.status(job_id)
