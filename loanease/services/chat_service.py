# loanease/services/chat_service.py
import logging
from typing import Callable, Dict, Optional

from loanease.agents.common import Turn, build_context, create_message
from loanease.agents.master_agent import (
    handle_generic,
    handle_greeting,
    handle_identification,
    handle_unidentified,
    welcome_response,
)
from loanease.agents.sales_agent import handle_needs_assessment, handle_offer_presentation
from loanease.agents.sanction_agent import handle_decision, handle_sanction
from loanease.agents.underwriting_agent import apply_salary_slip_decision, handle_underwriting
from loanease.agents.verification_agent import handle_verification
from loanease.core.session import SessionStore, session_store
from loanease.models.domain_models import (
    AgentType,
    ApplicationStatus,
    ChatMessage,
    ConversationSession,
    ConversationStep,
    LoanApplication,
    MessageRole,
)
from loanease.models.responses import ChatResponse
from loanease.services.llm_gateway import GeminiGateway
from loanease.services.mock_data_service import get_credit_score, get_customer

logger = logging.getLogger(__name__)

StepHandler = Callable[[Turn], ChatResponse]

STEP_HANDLERS: Dict[ConversationStep, StepHandler] = {
    ConversationStep.GREETING: handle_greeting,
    ConversationStep.IDENTIFICATION: handle_identification,
    ConversationStep.NEEDS_ASSESSMENT: handle_needs_assessment,
    ConversationStep.OFFER_PRESENTATION: handle_offer_presentation,
    ConversationStep.VERIFICATION: handle_verification,
    ConversationStep.UNDERWRITING: handle_underwriting,
    ConversationStep.DECISION: handle_decision,
    ConversationStep.SANCTION: handle_sanction,
    ConversationStep.CLOSED: handle_generic,
}

# steps whose handlers work on a bound customer
CUSTOMER_STEPS = {
    ConversationStep.NEEDS_ASSESSMENT,
    ConversationStep.OFFER_PRESENTATION,
    ConversationStep.VERIFICATION,
    ConversationStep.UNDERWRITING,
    ConversationStep.DECISION,
    ConversationStep.SANCTION,
}


class LoanOrchestrator:
    """
    Conversation state machine. One call handles one inbound message to
    completion under the session's lock, then commits message history,
    step and application back to the store.
    """

    def __init__(self, store: SessionStore, gateway):
        self.store = store
        self.gateway = gateway

    # -------------------------
    # Public operations
    # -------------------------

    def initialize_session(self, session_id: str) -> ChatResponse:
        with self.store.lock(session_id):
            session = self.store.get_or_create(session_id)

            if session.messages:
                last = next((m for m in reversed(session.messages) if m.role == MessageRole.ASSISTANT), None)
                if last is not None:
                    return ChatResponse(
                        message=last,
                        application=session.application,
                        current_step=session.current_step,
                    )

            response = welcome_response()
            self._commit(session, response)
            return response

    def process_message(self, session_id: str, user_message: str, customer_id: Optional[str] = None) -> ChatResponse:
        with self.store.lock(session_id):
            session = self.store.get_or_create(session_id)
            session.messages.append(ChatMessage(role=MessageRole.USER, content=user_message))

            customer = None
            if session.customer_id:
                customer = get_customer(session.customer_id)
            elif customer_id:
                customer = get_customer(customer_id)
                if customer:
                    session.customer_id = customer.id

            context = build_context(session, customer)
            intent = self.gateway.detect_intent(user_message, session.current_step)
            turn = Turn(
                session=session,
                user_message=user_message,
                intent=intent,
                context=context,
                customer=customer,
                gateway=self.gateway,
            )

            if session.current_step in CUSTOMER_STEPS and customer is None:
                handler = handle_unidentified
            else:
                handler = STEP_HANDLERS.get(session.current_step, handle_generic)

            logger.info("session %s: step=%s intent=%s", session_id, session.current_step.value, intent.value)
            response = handler(turn)
            self._commit(session, response)
            return response

    def handle_salary_slip_upload(self, session_id: str, application_id: str, file_name: str, file_size: int) -> ChatResponse:
        with self.store.lock(session_id):
            session = self.store.get(session_id)
            if not session or not session.application or session.application.id != application_id:
                logger.info("salary slip for unknown application %s (session %s)", application_id, session_id)
                return ChatResponse(
                    message=create_message(
                        "I couldn't find your application. Please try again or restart the conversation.",
                        AgentType.MASTER,
                    ),
                    current_step=session.current_step if session else ConversationStep.GREETING,
                )

            application = session.application
            customer = get_customer(session.customer_id)
            session.messages.append(
                ChatMessage(role=MessageRole.SYSTEM, content=f"Salary slip uploaded: {file_name} ({file_size} bytes)")
            )

            if customer is None or application.status != ApplicationStatus.UNDERWRITING:
                response = ChatResponse(
                    message=create_message(
                        "Thanks for the document. A salary slip isn't required at this stage of your application.",
                        AgentType.UNDERWRITING,
                    ),
                    application=application,
                    current_step=session.current_step,
                )
                self._commit(session, response)
                return response

            # document checks are simulated: an upload counts as verified
            application.salary_slip_uploaded = True
            application.salary_slip_verified = True
            application.salary_slip_file_name = file_name
            application.touch()

            credit = get_credit_score(customer.id)
            if credit:
                application.credit_score = credit.credit_score

            response = apply_salary_slip_decision(session, customer)
            self._commit(session, response)
            return response

    def get_application(self, application_id: str) -> Optional[LoanApplication]:
        return self.store.get_application(application_id)

    def get_session(self, session_id: str) -> Optional[ConversationSession]:
        return self.store.get(session_id)

    # -------------------------
    # Internals
    # -------------------------

    def _commit(self, session: ConversationSession, response: ChatResponse):
        previous = session.current_step
        session.messages.append(response.message)
        session.current_step = response.current_step
        if response.application is not None:
            session.application = response.application
        self.store.put(session)
        if previous != session.current_step:
            logger.info("session %s: %s -> %s", session.id, previous.value, session.current_step.value)


# Singleton
orchestrator = LoanOrchestrator(session_store, GeminiGateway())


def get_orchestrator() -> LoanOrchestrator:
    return orchestrator
