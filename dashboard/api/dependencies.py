"""
dashboard/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

from dashboard.domain.records import FileRole
from dashboard.domain.sources import FileSource, UploadBatch
from dashboard.services.file_classifier import DELIMITED_EXTENSIONS, SPREADSHEET_EXTENSIONS, extension_of

PRIMARY_EXTENSIONS = frozenset({"xlsx", "xls", "xlsm", "csv"})
AUXILIARY_EXTENSIONS = SPREADSHEET_EXTENSIONS | DELIMITED_EXTENSIONS


class UploadFileSource(FileSource):
    """
    File source backed by a multipart upload.
    """

    def __init__(self, upload: UploadFile) -> None:
        self.upload = upload
        self.name = (upload.filename or "").strip()

    @property
    def byte_size(self) -> int | None:
        return getattr(self.upload, "size", None)

    async def read_bytes(self) -> bytes:
        await self.upload.seek(0)
        return await self.upload.read()


def _validate_extension(upload: UploadFile, allowed: frozenset[str], label: str) -> None:
    filename = (upload.filename or "").strip()
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} upload has no file name.",
        )
    if extension_of(filename) not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} file '{filename}' must be one of: {', '.join(sorted(allowed))}.",
        )


def get_upload_batch(
    files: list[UploadFile] = File(..., description="Primary billing files, in processing order."),
    cross_reference: UploadFile | None = File(default=None, description="Optional ID -> name/region file."),
    partner_report: UploadFile | None = File(default=None, description="Optional trading partner report."),
    map_configuration: UploadFile | None = File(default=None, description="Optional map configuration file."),
) -> UploadBatch:
    """
    Validate uploaded files by extension and group them into a batch.
    """

    for upload in files:
        _validate_extension(upload, PRIMARY_EXTENSIONS, "Primary")

    auxiliary: dict[str, FileSource] = {}
    for role, upload in (
        (FileRole.CROSS_REFERENCE, cross_reference),
        (FileRole.PARTNER_REPORT, partner_report),
        (FileRole.MAP_CONFIGURATION, map_configuration),
    ):
        if upload is None:
            continue
        _validate_extension(upload, AUXILIARY_EXTENSIONS, role.replace("_", " ").capitalize())
        auxiliary[role] = UploadFileSource(upload)

    return UploadBatch(primary=[UploadFileSource(upload) for upload in files], auxiliary=auxiliary)


async def close_upload_batch(batch: UploadBatch) -> None:
    for source in [*batch.primary, *batch.auxiliary.values()]:
        if isinstance(source, UploadFileSource):
            await source.upload.close()
