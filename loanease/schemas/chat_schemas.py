# loanease/schemas/chat_schemas.py
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import datetime

from loanease.models.domain_models import ConversationStep, ChatMessage, LoanApplication


class ChatIn(BaseModel):
    session_id: str
    message: str
    # optional customer binding, used when the UI already knows who is chatting
    customer_id: Optional[str] = None


class SessionOut(BaseModel):
    id: str
    customer_id: Optional[str] = None
    current_step: ConversationStep
    application: Optional[LoanApplication] = None
    messages: List[ChatMessage]
    started_at: datetime
    last_activity_at: datetime


class CustomerSummaryOut(BaseModel):
    id: str
    name: str
    phone: str
    city: str
    pre_approved_limit: int


class HealthOut(BaseModel):
    status: str = "ok"
    app: str
    env: str
    llm_configured: bool
    details: Dict[str, Any] = {}
