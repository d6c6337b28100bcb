from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from config import config
from constants import Roles, UploadKinds
from exceptions import ValidationError
from models.user import Actor, UserModel
from routes.deps import get_current_user, require_role, get_storage
from services.storage import BlobStorage, LocalBlobStorage
from logging_config import get_logger

router = APIRouter(tags=["Uploads"])
logger = get_logger("uploads")

async def _store(file: UploadFile, kind: str, storage: BlobStorage, actor: Actor) -> dict:
    # Size is checked again on the bytes read
    if file.size is not None and file.size > config.MAX_UPLOAD_MB * 1024 * 1024:
        raise ValidationError(f"File size too large. Maximum {config.MAX_UPLOAD_MB}MB", field="file")
    data = await file.read()
    result = await run_in_threadpool(storage.upload, data, kind, file.filename)
    logger.info(
        f"Upload stored ({kind})",
        extra={"data": {"public_id": result.public_id, "actor_id": actor.id}}
    )
    return {"url": result.url, "public_id": result.public_id, "message": "File uploaded successfully"}

@router.post("/api/upload/receipt")
async def upload_receipt(
    file: UploadFile = File(...),
    actor: Actor = Depends(require_role(Roles.STAFF)),
    storage: LocalBlobStorage = Depends(get_storage),
):
    return await _store(file, UploadKinds.RECEIPT, storage, actor)

@router.post("/api/upload/invoice")
async def upload_invoice(
    file: UploadFile = File(...),
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    storage: LocalBlobStorage = Depends(get_storage),
):
    return await _store(file, UploadKinds.INVOICE, storage, actor)

@router.post("/api/upload/payment-proof")
async def upload_payment_proof(
    file: UploadFile = File(...),
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    storage: LocalBlobStorage = Depends(get_storage),
):
    return await _store(file, UploadKinds.PAYMENT_PROOF, storage, actor)

@router.get("/api/uploads/{kind}/{filename}")
async def get_upload(
    kind: str,
    filename: str,
    current_user: UserModel = Depends(get_current_user),
    storage: LocalBlobStorage = Depends(get_storage),
):
    return FileResponse(storage.resolve(f"{kind}/{filename}"))
