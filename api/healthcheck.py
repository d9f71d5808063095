from fastapi import APIRouter, Depends
from api.deps import get_schedule_store
from exceptions.custom_errors import StoreError
from store.schedule_store import ScheduleStore

router = APIRouter(prefix="/health", tags=["Health Check"])


@router.get("/check", summary="Health Check")
def healthcheck(store: ScheduleStore = Depends(get_schedule_store)):
    try:
        count = store.meta().count
    except StoreError as e:
        return {"status": "degraded", "store": str(e)}
    return {"status": "ok", "rows": count}
