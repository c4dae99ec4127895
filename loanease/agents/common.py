# loanease/agents/common.py
import re
from dataclasses import dataclass
from typing import Optional, Any

from loanease.models.domain_models import (
    AgentType,
    ChatMessage,
    ConversationSession,
    Customer,
    Intent,
    MessageMetadata,
    MessageRole,
)
from loanease.services.llm_gateway import AgentContext


@dataclass
class Turn:
    """Everything a step handler needs for one user message."""
    session: ConversationSession
    user_message: str
    intent: Intent
    context: AgentContext
    customer: Optional[Customer]
    gateway: Any

    @property
    def lowered(self) -> str:
        return self.user_message.lower()

    def mentions(self, *words: str) -> bool:
        """Whole-word, case-insensitive keyword check: "incorrect" does not mention "correct"."""
        return any(re.search(rf"\b{re.escape(w)}\b", self.lowered) for w in words)

    def ask_model(self, agent_type: AgentType, instructions: str) -> str:
        return self.gateway.generate_agent_response(agent_type, self.user_message, self.context, instructions)


def create_message(content: str, agent_type: AgentType, metadata: Optional[MessageMetadata] = None) -> ChatMessage:
    return ChatMessage(
        role=MessageRole.ASSISTANT,
        content=content,
        agent_type=agent_type,
        metadata=metadata,
    )


def build_context(session: ConversationSession, customer: Optional[Customer]) -> AgentContext:
    app = session.application
    return AgentContext(
        customer_name=customer.name if customer else None,
        customer_id=customer.id if customer else None,
        pre_approved_limit=customer.pre_approved_limit if customer else None,
        credit_score=(app.credit_score if app and app.credit_score else None) or (customer.credit_score if customer else None),
        requested_amount=app.requested_amount if app else None,
        tenure=app.tenure if app else None,
        interest_rate=app.interest_rate if app else None,
        emi=app.emi if app else None,
        status=app.status.value if app else None,
        conversation_history=[
            f"{'Customer' if m.role == MessageRole.USER else (m.agent_type.value if m.agent_type else 'AI')}: {m.content}"
            for m in session.messages
        ],
    )
