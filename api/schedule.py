from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from api.deps import get_schedule_store
from core.views import ScheduleViews, build_views
from docs.schedule.upload import schedule_upload_description
from docs.schedule.views import schedule_views_description
from exceptions.custom_errors import CUSTOM_ERRORS, NoValidRowsError, status_code_for
from schemas.schedule.entry import (
    MonthCellModel,
    ScheduleMeta,
    ScheduleSnapshot,
    ScheduleViewsResponse,
    UploadResponse,
)
from store.schedule_store import ScheduleStore
from utils.constants import FILTER_ALL
from utils.loader import ingest, summarize_row_errors
from utils.logger import get_logger

logger = get_logger("api")

router = APIRouter(prefix="/schedule", tags=["Schedule"])


def _http_error(e: Exception) -> HTTPException:
    detail = str(e)
    if isinstance(e, NoValidRowsError) and e.row_errors:
        detail += "\n\n" + summarize_row_errors(e.row_errors)
    return HTTPException(status_code=status_code_for(e), detail=detail)


# upload a spreadsheet
@router.post(
    "/upload",
    response_model=UploadResponse,
    description=schedule_upload_description,
    summary="Upload Schedule",
)
async def upload_schedule(
    file: UploadFile = File(...),
    store: ScheduleStore = Depends(get_schedule_store),
):
    data = await file.read()
    logger.info("Upload %r (%d bytes)", file.filename, len(data))
    try:
        result = ingest(data, file.filename)
        meta = store.replace_all(result.entries)
    except tuple(CUSTOM_ERRORS) as e:
        raise _http_error(e)

    return UploadResponse(count=meta.count, warnings=result.warnings, updatedAt=meta.updatedAt)


@router.get("", response_model=ScheduleSnapshot, summary="Get Schedule")
def get_schedule(store: ScheduleStore = Depends(get_schedule_store)):
    try:
        return ScheduleSnapshot(entries=store.entries(), meta=store.meta())
    except tuple(CUSTOM_ERRORS) as e:
        raise _http_error(e)


@router.get("/meta", response_model=ScheduleMeta, summary="Schedule Metadata")
def get_schedule_meta(store: ScheduleStore = Depends(get_schedule_store)):
    try:
        return store.meta()
    except tuple(CUSTOM_ERRORS) as e:
        raise _http_error(e)


@router.delete("", response_model=ScheduleMeta, summary="Clear Schedule")
def clear_schedule(store: ScheduleStore = Depends(get_schedule_store)):
    try:
        return store.clear()
    except tuple(CUSTOM_ERRORS) as e:
        raise _http_error(e)


def views_to_response(views: ScheduleViews) -> ScheduleViewsResponse:
    return ScheduleViewsResponse(
        people=views.people,
        testTypes=views.test_types,
        selectedPerson=views.selected_person,
        testFilter=views.test_filter,
        weekDates=views.week_dates,
        teamWeek=views.team_week,
        personWeek=views.person_week,
        month=views.month,
        monthGrid=[
            MonthCellModel(
                date=c.date,
                day=c.day,
                isCurrentMonth=c.is_current_month,
                isToday=c.is_today,
            )
            for c in views.month_grid
        ],
        personTasksByDate=views.person_tasks_by_date,
        personList=views.person_list,
    )


@router.get(
    "/views",
    response_model=ScheduleViewsResponse,
    description=schedule_views_description,
    summary="Schedule Views",
)
def get_schedule_views(
    person: str = Query(""),
    test_filter: str = Query(FILTER_ALL, alias="filter"),
    week: Optional[date] = Query(None),
    month: Optional[str] = Query(None),
    store: ScheduleStore = Depends(get_schedule_store),
):
    try:
        entries = store.entries()
    except tuple(CUSTOM_ERRORS) as e:
        raise _http_error(e)

    try:
        views = build_views(
            entries,
            selected_person=person,
            test_filter=test_filter,
            week_anchor=week,
            month=month,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return views_to_response(views)
