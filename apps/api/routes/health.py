from fastapi import APIRouter

from ..db import db_ok
from ..settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    if settings.STORAGE_BACKEND == "memory":
        return {"ok": True, "storage": "memory"}
    ok_db = db_ok()
    return {"ok": ok_db, "storage": "postgres", "db": ok_db}
