import os
import shutil
import logging
from typing import List, Optional

import requests
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, PlainTextResponse, StreamingResponse

from app.api.auth import require_admin
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.schemas.schedule import (
    PlacementResponse,
    ScheduledItem,
    ScheduleRequest,
    UploadUrlRequest,
    UploadUrlResponse,
)
from app.services.scheduler_service import SchedulerService, parse_instant
from app.services.snapshot_store import SnapshotStore
from app.services.storage_service import StorageService

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

# Upstream headers worth relaying to the player when proxying media
PASSTHROUGH_HEADERS = ("content-type", "content-length", "content-range", "accept-ranges", "etag", "last-modified")

# Process-wide channel schedule (single writer, see Timeline)
_scheduler: Optional[SchedulerService] = None

def get_scheduler() -> SchedulerService:
    global _scheduler
    if _scheduler is None:
        store = SnapshotStore() if settings.PERSIST_SCHEDULE else None
        _scheduler = SchedulerService(store=store)
    return _scheduler

def get_storage() -> StorageService:
    return StorageService()

def require_start(start_time):
    """Rejects an unusable start time before anything is written to storage."""
    try:
        parse_instant(start_time)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

async def place_item(scheduler: SchedulerService, title, media_ref, start_time, duration) -> ScheduledItem:
    """Runs a placement off the event loop; client-input failures become 400s."""
    try:
        return await run_in_threadpool(scheduler.propose, title, media_ref, start_time, duration)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

async def place_stored_item(scheduler: SchedulerService, storage: StorageService, key: str, title, media_ref, start_time, duration) -> ScheduledItem:
    """Places an item whose media is already in storage, removing the object if placement is refused."""
    try:
        return await place_item(scheduler, title, media_ref, start_time, duration)
    except HTTPException:
        try:
            await run_in_threadpool(storage.delete_file, key)
        except Exception as e:
            logger.error(f"Failed to remove rejected upload {key}: {e}")
        raise

@router.post("/upload-url", response_model=UploadUrlResponse)
async def create_upload_url(
    payload: UploadUrlRequest,
    _: str = Depends(require_admin),
    scheduler: SchedulerService = Depends(get_scheduler),
    storage: StorageService = Depends(get_storage),
):
    """
    Reserves a storage key for a new video and schedules it.
    The client uploads the file to `upload_url`; the item plays from the media URL.
    Only available with Supabase storage; local deployments upload through /upload.
    """
    if not payload.file_name or not payload.content_type or not payload.start_time:
        raise HTTPException(status_code=400, detail="Missing parameters")
    if not storage.supports_signed_uploads:
        raise HTTPException(status_code=400, detail="Direct upload URLs need Supabase storage; use /upload instead")
    require_start(payload.start_time)

    key = storage.build_object_key(payload.file_name)
    try:
        target = storage.create_upload_url(key, payload.content_type)
    except Exception:
        logger.exception(f"Failed to generate upload URL for {payload.file_name}")
        raise HTTPException(status_code=500, detail="Failed to generate upload URL")

    video = await place_stored_item(
        scheduler,
        storage,
        key,
        payload.title or payload.file_name,
        target["media_url"],
        payload.start_time,
        payload.duration,
    )
    return {
        "upload_url": target["upload_url"],
        "key": key,
        "video": video,
        "schedule": scheduler.schedule(),
    }

@router.post("/upload", response_model=PlacementResponse)
async def upload_video(
    file: UploadFile = File(...),
    start_time: str = Form(...),
    title: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    _: str = Depends(require_admin),
    scheduler: SchedulerService = Depends(get_scheduler),
    storage: StorageService = Depends(get_storage),
):
    """
    Uploads a video through the server to storage, then schedules it.
    """
    require_start(start_time)

    key = storage.build_object_key(file.filename)
    temp_dir = os.path.join(settings.DATA_DIR, "temp_uploads")
    os.makedirs(temp_dir, exist_ok=True)
    temp_path = os.path.join(temp_dir, key)

    try:
        # 1. Save to Temp
        with open(temp_path, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)

        # 2. Upload to Storage (Cloud or Local)
        media_url = await run_in_threadpool(storage.upload_file, temp_path, key)
    except Exception as e:
        logger.error(f"Error uploading {file.filename}: {e}")
        raise HTTPException(status_code=500, detail="Failed to upload video")
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)

    # 3. Schedule
    video = await place_stored_item(scheduler, storage, key, title or file.filename, media_url, start_time, duration)
    return {"video": video, "schedule": scheduler.schedule()}

@router.post("/schedule", response_model=PlacementResponse)
async def schedule_item(
    payload: ScheduleRequest,
    _: str = Depends(require_admin),
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """
    Schedules already-stored media. Overlapping requests are pushed to the next free gap.
    """
    video = await place_item(scheduler, payload.title, payload.media_ref, payload.start_time, payload.duration)
    return {"video": video, "schedule": scheduler.schedule()}

@router.get("/now")
async def now_playing(scheduler: SchedulerService = Depends(get_scheduler)):
    """
    Metadata of the item on air right now, or an empty object.
    """
    current = scheduler.current()
    return current if current is not None else {}

@router.get("/schedule", response_model=List[ScheduledItem])
async def get_schedule(scheduler: SchedulerService = Depends(get_scheduler)):
    return scheduler.schedule()

@router.get("/video/current")
async def stream_current_video(
    request: Request,
    scheduler: SchedulerService = Depends(get_scheduler),
    storage: StorageService = Depends(get_storage),
):
    """
    Streams the on-air video. Remote media is proxied so Range requests work.
    """
    current = scheduler.current()
    if current is None:
        return PlainTextResponse("No live video right now.", status_code=404)

    if not storage.is_remote(current.media_ref):
        if not os.path.exists(current.media_ref):
            logger.error(f"Local media missing for item {current.id}: {current.media_ref}")
            return PlainTextResponse("Media not found", status_code=404)
        return FileResponse(current.media_ref)

    try:
        upstream = await run_in_threadpool(storage.open_stream, current.media_ref, request.headers.get("range"))
    except requests.RequestException as e:
        logger.error(f"Error streaming video: {e}")
        return PlainTextResponse("Error streaming video", status_code=500)

    headers = {name: upstream.headers[name] for name in PASSTHROUGH_HEADERS if name in upstream.headers}

    def relay():
        try:
            yield from upstream.iter_content(chunk_size=settings.STREAM_CHUNK_SIZE)
        finally:
            upstream.close()

    return StreamingResponse(relay(), status_code=upstream.status_code, headers=headers)
