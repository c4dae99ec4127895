# loanease/api/routes_chat.py
import logging
import re
import uuid as _uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from loanease.core.config import settings
from loanease.models.domain_models import ApplicationStatus, SanctionLetter
from loanease.models.responses import ChatResponse
from loanease.schemas.chat_schemas import ChatIn, SessionOut
from loanease.services.chat_service import LoanOrchestrator, get_orchestrator
from loanease.services.mock_data_service import get_customer
from loanease.services.pdf_service import generate_sanction_pdf
from loanease.services.sanction_service import build_sanction_letter

router = APIRouter(prefix="/chat", tags=["chat"])

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# session ids double as upload directory names
SESSION_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,128}")


@router.get("/init", response_model=ChatResponse)
def init_session(session_id: Optional[str] = None, orchestrator: LoanOrchestrator = Depends(get_orchestrator)):
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID required")
    return orchestrator.initialize_session(session_id)


@router.post("/send", response_model=ChatResponse)
def send_message(payload: ChatIn, orchestrator: LoanOrchestrator = Depends(get_orchestrator)):
    if not payload.session_id.strip() or not payload.message.strip():
        raise HTTPException(status_code=400, detail="Session ID and message required")
    return orchestrator.process_message(payload.session_id, payload.message.strip(), payload.customer_id)


@router.post("/upload-salary-slip", response_model=ChatResponse)
def upload_salary_slip(
    session_id: Optional[str] = Form(None),
    application_id: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    orchestrator: LoanOrchestrator = Depends(get_orchestrator),
):
    if not session_id or not application_id or file is None:
        raise HTTPException(status_code=400, detail="Session ID, application ID, and file required")

    if not SESSION_ID_PATTERN.fullmatch(session_id):
        raise HTTPException(status_code=400, detail="Invalid session ID")

    session = orchestrator.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if not session.application or session.application.id != application_id:
        raise HTTPException(status_code=404, detail="Application not found")

    upload_root = Path(settings.UPLOAD_DIR).resolve()
    dest_dir = (upload_root / session_id).resolve()
    if dest_dir.parent != upload_root:
        raise HTTPException(status_code=400, detail="Invalid session ID")
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest_path = dest_dir / f"salary_{_uuid.uuid4().hex}_{Path(file.filename or 'upload').name}"

    size = 0
    with open(dest_path, "wb") as buffer:
        while True:
            chunk = file.file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > settings.MAX_UPLOAD_BYTES:
                break
            buffer.write(chunk)

    if size > settings.MAX_UPLOAD_BYTES:
        dest_path.unlink(missing_ok=True)
        raise HTTPException(status_code=413, detail="File too large")

    logger.info("salary slip stored: session=%s application=%s path=%s bytes=%s",
                session_id, application_id, dest_path, size)
    return orchestrator.handle_salary_slip_upload(session_id, application_id, file.filename or dest_path.name, size)


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session_summary(session_id: str, orchestrator: LoanOrchestrator = Depends(get_orchestrator)):
    session = orchestrator.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionOut(**session.model_dump())


@router.get("/sanction-letter", response_model=SanctionLetter)
def get_sanction_letter(application_id: Optional[str] = None, orchestrator: LoanOrchestrator = Depends(get_orchestrator)):
    if not application_id:
        raise HTTPException(status_code=400, detail="Application ID required")

    application = orchestrator.get_application(application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    if application.status != ApplicationStatus.SANCTIONED:
        raise HTTPException(status_code=400, detail="Loan not yet sanctioned")

    customer = get_customer(application.customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    return build_sanction_letter(application, customer)


@router.get("/download-sanction-letter")
def download_sanction_letter(application_id: Optional[str] = None, orchestrator: LoanOrchestrator = Depends(get_orchestrator)):
    if not application_id:
        raise HTTPException(status_code=400, detail="Application ID required")

    application = orchestrator.get_application(application_id)
    if not application or application.status != ApplicationStatus.SANCTIONED:
        raise HTTPException(status_code=404, detail="Sanctioned application not found")

    customer = get_customer(application.customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    pdf_bytes = generate_sanction_pdf(build_sanction_letter(application, customer), customer)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=sanction-letter-{application_id}.pdf"},
    )
