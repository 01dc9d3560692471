"""Lesson file controller: upload, status polling and listing."""

from __future__ import annotations

import logging
import time
from pathlib import Path, PurePath
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from app.config.dependencies import get_upload_repository, get_worker_pool, upload_dir
from app.controllers.dependencies import RoleUserDep
from app.models.upload import UploadRecord, UploadStatus
from app.models.user import User as UserModel
from app.models.user import UserRole
from app.pipelines.lesson import (
    PipelineJob,
    PipelineWorkerPool,
    QueueFullError,
    classify_file,
    discard_local_file,
)
from app.services.upload_repository import UploadRepository
from app.views import UploadAcceptedResponse, UploadRecordResponse, UploadStatusResponse

router = APIRouter(prefix="/files", tags=["files"])

logger = logging.getLogger(__name__)

RepositoryDep = Annotated[UploadRepository, Depends(get_upload_repository)]
WorkerPoolDep = Annotated[PipelineWorkerPool, Depends(get_worker_pool)]
UploadDirDep = Annotated[Path, Depends(upload_dir)]

_FILE_UPLOAD = File(...)

STATUS_MESSAGES = {
    UploadStatus.PROCESSING: "File is still processing",
    UploadStatus.COMPLETED: "File processing completed",
    UploadStatus.FAILED: "File processing failed",
}


def _local_filename(original_name: str) -> str:
    # Drop any client-supplied directories before prefixing the timestamp.
    return f"{int(time.time() * 1000)}-{PurePath(original_name).name}"


async def _get_visible_record(
    record_id: UUID,
    repository: UploadRepository,
    user: UserModel,
) -> UploadRecord:
    record = await repository.get(record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    if record.owner_id != user.id and user.role is not UserRole.TEACHER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return record


@router.post(
    "/upload",
    response_model=UploadAcceptedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    current_user: RoleUserDep,
    repository: RepositoryDep,
    worker_pool: WorkerPoolDep,
    target_dir: UploadDirDep,
    file: UploadFile = _FILE_UPLOAD,
) -> UploadAcceptedResponse:
    """Store the upload locally, create its record and queue background processing."""

    data = await file.read()
    await file.close()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File missing",
        )

    original_name = PurePath(file.filename or "uploaded-file").name
    local_name = _local_filename(original_name)
    local_path = target_dir / local_name
    await run_in_threadpool(local_path.write_bytes, data)

    category = classify_file(local_name)
    try:
        record = await repository.create(
            owner_id=current_user.id,
            original_name=original_name,
            category=category.value,
            source_link=f"/uploads/{local_name}",
        )
    except Exception:
        discard_local_file(local_path)
        raise
    logger.info(
        "Upload accepted record=%s user=%s category=%s size=%d",
        record.id,
        current_user.id,
        category.value,
        len(data),
    )

    job = PipelineJob(
        record_id=record.id,
        local_path=local_path,
        original_name=original_name,
        category=category,
        owner_id=current_user.id,
    )
    try:
        worker_pool.submit(job)
    except QueueFullError:
        logger.warning("Pipeline queue full; rejecting record=%s", record.id)
        discard_local_file(local_path)
        await repository.finish(record.id, UploadStatus.FAILED)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Processing queue is full, please retry later",
        ) from None

    return UploadAcceptedResponse(file=UploadRecordResponse.model_validate(record))


@router.get("/{record_id}/status", response_model=UploadStatusResponse)
async def get_upload_status(
    record_id: UUID,
    current_user: RoleUserDep,
    repository: RepositoryDep,
) -> UploadStatusResponse:
    record = await _get_visible_record(record_id, repository, current_user)
    return UploadStatusResponse(status=record.status, message=STATUS_MESSAGES[record.status])


@router.get("", response_model=list[UploadRecordResponse])
async def list_files(
    current_user: RoleUserDep,
    repository: RepositoryDep,
) -> list[UploadRecordResponse]:
    records = await repository.list_for_owner(current_user.id)
    return [UploadRecordResponse.model_validate(record) for record in records]


@router.get("/{record_id}", response_model=UploadRecordResponse)
async def get_file(
    record_id: UUID,
    current_user: RoleUserDep,
    repository: RepositoryDep,
) -> UploadRecordResponse:
    record = await _get_visible_record(record_id, repository, current_user)
    return UploadRecordResponse.model_validate(record)
