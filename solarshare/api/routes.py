"""REST API routes for SolarShare."""

import asyncio
import logging
import os
import time
from datetime import datetime, timezone

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from solarshare.presence.models import (
    ClearResponse,
    HeartbeatRequest,
    HeartbeatResponse,
    ParticipantListResponse,
)
from solarshare.transfer.models import UploadReceipt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# These will be injected by main.py at startup
_registry = None
_file_store = None


def init_routes(registry, file_store) -> None:
    """Inject service dependencies into the routes module."""
    global _registry, _file_store
    _registry = registry
    _file_store = file_store


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


# --- Presence ---

@router.post("/transfer")
async def register_participant(body: HeartbeatRequest, request: Request):
    """Register a participant or refresh its heartbeat."""
    address = body.ip_address or (request.client.host if request.client else None)
    result = await _registry.register_or_heartbeat(body.user_id, body.user_name, address)

    verb = "registered" if result.is_new_participant else "updated"
    return HeartbeatResponse(
        message=f"User {body.user_name} {verb}",
        user_id=body.user_id,
        is_new_user=result.is_new_participant,
        active_users=result.live_count,
    ).model_dump(by_alias=True)


@router.get("/transfer")
async def list_participants():
    """Return live participants ordered by id."""
    participants = await _registry.list_live()
    logger.debug(f"Active participants: {len(participants)}")
    return ParticipantListResponse(
        users=[p.to_view() for p in participants],
        total_users=len(participants),
        timestamp=int(time.time() * 1000),
    ).model_dump(by_alias=True)


@router.delete("/transfer")
async def clear_participants():
    """Drop every participant. Meant for testing and debugging."""
    count = await _registry.clear_all()
    return ClearResponse(message=f"Cleared {count} users", cleared=count).model_dump()


# --- Uploads ---

@router.post("/transfer/upload")
async def upload_file(
    file: UploadFile | None = File(None),
    target_user_id: str | None = Form(None, alias="targetUserId"),
    sender_user_id: str | None = Form(None, alias="senderUserId"),
):
    """Store one file in the sender's bucket."""
    if file is None or not file.filename or not target_user_id or not sender_user_id:
        return error_response(400, "Missing file, targetUserId, or senderUserId")

    try:
        target_id = int(target_user_id)
        sender_id = int(sender_user_id)
    except ValueError:
        await file.close()
        return error_response(400, "targetUserId and senderUserId must be integers")

    try:
        file_path = await asyncio.to_thread(
            _file_store.save, sender_id, file.filename, file.file
        )
        file_size = os.path.getsize(file_path)
    except Exception as e:
        logger.error(f"Upload error for {file.filename}: {e}", exc_info=True)
        return error_response(500, "Failed to upload file")
    finally:
        await file.close()

    logger.info(
        f"File received: {file.filename} from User {sender_id} to User {target_id}"
    )
    return UploadReceipt(
        message=f"File {file.filename} received successfully",
        file_path=file_path,
        file_name=file.filename,
        file_size=file_size,
        timestamp=datetime.now(timezone.utc).isoformat(),
    ).model_dump(by_alias=True)
