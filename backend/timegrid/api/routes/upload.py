import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from timegrid.api.deps import get_job_manager, get_repository
from timegrid.core.config import get_settings
from timegrid.db.repository import ScheduleRepository
from timegrid.schemas.upload import UploadResponse
from timegrid.services.solve_jobs import SolveJobManager
from timegrid.services.upload import process_upload

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_workbook(
    file: UploadFile = File(...),
    repository: ScheduleRepository = Depends(get_repository),
    jobs: SolveJobManager = Depends(get_job_manager),
) -> UploadResponse:
    filename = (file.filename or "").lower()
    if filename and not filename.endswith((".xlsx", ".xlsm")):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only .xlsx workbooks are supported")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    max_bytes = get_settings().max_upload_size_bytes
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Uploaded file exceeds {max_bytes} bytes",
        )

    logger.info("UPLOAD START | filename=%s | bytes=%s", file.filename, len(content))
    result = await process_upload(content, repository, jobs)
    return result.to_response()


@router.post("/clear")
def clear_all(repository: ScheduleRepository = Depends(get_repository)) -> dict:
    repository.clear_all()
    logger.info("DATA CLEARED")
    return {"message": "All data cleared"}
