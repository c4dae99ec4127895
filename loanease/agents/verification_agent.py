# loanease/agents/verification_agent.py
from loanease.agents.common import Turn, create_message
from loanease.agents.underwriting_agent import apply_instant_approval
from loanease.models.domain_models import (
    AgentType,
    ApplicationStatus,
    ConversationStep,
    Intent,
    KycStatus,
    MessageMetadata,
)
from loanease.models.responses import ChatResponse
from loanease.services.mock_data_service import get_credit_score

CONFIRM_WORDS = ("yes", "correct")


def handle_verification(turn: Turn) -> ChatResponse:
    """
    KYC confirmation. Amounts above the pre-approved limit wait for a salary
    slip in the underwriting step; everything else goes through the instant
    approval check right away.
    """
    application = turn.session.application
    customer = turn.customer

    if not (turn.intent == Intent.CONFIRM or turn.mentions(*CONFIRM_WORDS)):
        reply = turn.ask_model(
            AgentType.VERIFICATION,
            "Handle the customer's response about verification. If they need to update details, guide them.",
        )
        return ChatResponse(
            message=create_message(reply, AgentType.VERIFICATION),
            application=application,
            current_step=ConversationStep.VERIFICATION,
            suggested_responses=["Yes, my details are correct", "I need to update something"],
        )

    if not application:
        return ChatResponse(
            message=create_message(
                "I'm sorry, there was an issue with your application. Please try again.", AgentType.MASTER
            ),
            current_step=ConversationStep.CLOSED,
            suggested_responses=["Start over"],
        )

    application.kyc_status = KycStatus.VERIFIED
    application.status = ApplicationStatus.UNDERWRITING
    application.touch()

    if application.requested_amount > customer.pre_approved_limit:
        message = create_message(
            "KYC verified successfully! Since your requested amount exceeds your pre-approved limit, "
            "I'll need your latest salary slip to verify your income. Please upload it using the file upload option.",
            AgentType.UNDERWRITING,
            MessageMetadata(document_required=True),
        )
        return ChatResponse(
            message=message,
            application=application,
            current_step=ConversationStep.UNDERWRITING,
            suggested_responses=["I'll upload now", "What formats are accepted?"],
        )

    return apply_instant_approval(application, customer, get_credit_score(customer.id))
