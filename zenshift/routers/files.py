from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, Request, UploadFile

from zenshift.core.errors import ValidationError
from zenshift.services.file_service import FileService
from zenshift.services.session_service import require_user

router = APIRouter(prefix="/files", tags=["files"], dependencies=[Depends(require_user)])


def _service(request: Request) -> FileService:
    return request.app.state.file_service


@router.post("/upload")
async def upload(request: Request, file: UploadFile = File(...)):
    stored = _service(request).save(file.filename, await file.read())
    return {
        "success": True,
        "message": "File uploaded successfully",
        "fileName": stored.file_name,
        "url": stored.url,
    }


@router.post("/upload-multiple")
async def upload_multiple(request: Request, files: List[UploadFile] = File(...)):
    if not files:
        raise ValidationError("No files uploaded")
    service = _service(request)
    stored = service.save_many([(item.filename, await item.read()) for item in files])
    return {
        "success": True,
        "message": f"{len(stored)} files uploaded successfully",
        "fileName": [item.file_name for item in stored],
        "urls": [item.url for item in stored],
    }
