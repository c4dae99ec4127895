from pydantic import BaseModel, Field
from typing import Optional, List

from loanease.models.domain_models import ChatMessage, LoanApplication, ConversationStep


class ChatResponse(BaseModel):
    message: ChatMessage
    application: Optional[LoanApplication] = None
    current_step: ConversationStep
    suggested_responses: List[str] = Field(default_factory=list)
