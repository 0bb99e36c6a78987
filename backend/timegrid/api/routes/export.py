from fastapi import APIRouter, Depends
from fastapi.responses import Response

from timegrid.api.deps import get_repository
from timegrid.db.repository import ScheduleRepository
from timegrid.services.schedule_view import EXPORT_FILENAME, export_schedule_csv

router = APIRouter()


@router.get("/export/schedule")
def export_schedule(repository: ScheduleRepository = Depends(get_repository)) -> Response:
    return Response(
        content=export_schedule_csv(repository),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )
