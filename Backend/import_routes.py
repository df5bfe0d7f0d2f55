"""
Bulk member registration routes (admin only).

Endpoints:
  GET    /api/bulk/template                          — CSV template download
  POST   /api/bulk/import                            — Upload a CSV and register its rows
  GET    /api/bulk/batches/{batch_id}                — Progress / outcome of a run
  GET    /api/bulk/batches/{batch_id}/failures.csv   — Failed rows as CSV
  DELETE /api/bulk/batches/{batch_id}?confirm=true   — Roll back a run
  POST   /api/bulk/batches/{batch_id}/cleanup-failed — Delete players named in the failure list
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from bulk_import import BulkImporter, ImportReport, failures_csv, parse_csv, template_csv
from config import Config
from database import get_db
from deps import get_identity, require_admin
from identity import IdentityService
from limiter import limiter
from models import ImportBatch, Player
from notifications import EmailNotifier, get_notifier
from schemas import BatchStatusResponse, DeleteCountResponse, ImportReportResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bulk", tags=["Bulk Import"])


def _csv_download(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _get_batch(db: Session, batch_id: str) -> ImportBatch:
    batch = db.get(ImportBatch, batch_id)
    if batch is None:
        raise HTTPException(status_code=404, detail=f"Import batch {batch_id} not found")
    return batch


def _require_confirmation(confirm: bool, action: str):
    if not confirm:
        raise HTTPException(status_code=400, detail=f"{action} must be confirmed with confirm=true")


@router.get("/template")
def download_template(_admin: Player = Depends(require_admin)):
    return _csv_download(template_csv(), "hdx_bulk_template.csv")


@router.post("/import", response_model=ImportReportResponse)
@limiter.limit(Config.IMPORT_RATE_LIMIT)
def import_members(
    request: Request,
    file: UploadFile = File(...),
    notify: bool = Form(False),
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity),
    notifier: EmailNotifier = Depends(get_notifier),
    admin: Player = Depends(require_admin),
):
    """
    Register every row of the uploaded CSV.

    Rows run one after another; a failing row is reported and the run goes on.
    The batch id in the response is what a rollback needs.
    """
    try:
        text = file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")

    rows = parse_csv(text)
    if not rows:
        raise HTTPException(status_code=400, detail="Please upload a CSV file with at least one data row.")

    def log_progress(report: ImportReport):
        logger.debug("Batch %s: %d%% (%d succeeded / %d failed)",
                     report.batch_id, report.progress, report.success, report.failed)

    importer = BulkImporter(db, identity, notifier=notifier, created_by=admin.email)
    report = importer.run(rows, notify=notify, progress=log_progress)

    return ImportReportResponse(
        batch_id=report.batch_id,
        total=report.total,
        success=report.success,
        failed=report.failed,
        skipped=report.skipped,
        progress=report.progress,
        failures=report.failures,
    )


@router.get("/batches/{batch_id}", response_model=BatchStatusResponse)
def get_batch(batch_id: str, db: Session = Depends(get_db), _admin: Player = Depends(require_admin)):
    batch = _get_batch(db, batch_id)
    return BatchStatusResponse(
        batch_id=batch.id,
        status=batch.status,
        total=batch.total,
        processed=batch.processed,
        success=batch.success_count,
        failed=len(batch.failures or []),
        progress=batch.progress,
        failures=batch.failures or [],
        created_by=batch.created_by,
        created_at=batch.created_at,
    )


@router.get("/batches/{batch_id}/failures.csv")
def download_failures(batch_id: str, db: Session = Depends(get_db), _admin: Player = Depends(require_admin)):
    batch = _get_batch(db, batch_id)
    return _csv_download(failures_csv(batch.failures or []), "hdx_failed_registrations.csv")


@router.delete("/batches/{batch_id}", response_model=DeleteCountResponse)
def rollback_batch(
    batch_id: str,
    confirm: bool = False,
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity),
    admin: Player = Depends(require_admin),
):
    _require_confirmation(confirm, "Rollback")
    _get_batch(db, batch_id)
    deleted = BulkImporter(db, identity, created_by=admin.email).rollback(batch_id)
    return DeleteCountResponse(batch_id=batch_id, deleted=deleted)


@router.post("/batches/{batch_id}/cleanup-failed", response_model=DeleteCountResponse)
def cleanup_failed(
    batch_id: str,
    confirm: bool = False,
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity),
    admin: Player = Depends(require_admin),
):
    _require_confirmation(confirm, "Cleanup")
    batch = _get_batch(db, batch_id)
    emails = [f["email"] for f in batch.failures or []]
    deleted = BulkImporter(db, identity, created_by=admin.email).cleanup_failed(emails)
    return DeleteCountResponse(batch_id=batch_id, deleted=deleted)
