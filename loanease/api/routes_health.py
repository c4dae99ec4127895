from fastapi import APIRouter, Depends

from loanease.core.config import settings
from loanease.schemas.chat_schemas import HealthOut
from loanease.services.chat_service import LoanOrchestrator, get_orchestrator

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
def health(orchestrator: LoanOrchestrator = Depends(get_orchestrator)):
    return HealthOut(
        app=settings.APP_NAME,
        env=settings.ENV,
        llm_configured=bool(getattr(orchestrator.gateway, "configured", False)),
        details={"active_sessions": len(orchestrator.store)},
    )
