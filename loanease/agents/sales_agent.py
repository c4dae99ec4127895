# loanease/agents/sales_agent.py
import logging

from loanease.agents.common import Turn, create_message
from loanease.core.config import settings
from loanease.models.domain_models import (
    AgentType,
    ApplicationStatus,
    ConversationStep,
    Intent,
    LoanApplication,
    MessageMetadata,
)
from loanease.models.responses import ChatResponse
from loanease.services.loan_math import (
    MAX_LIMIT_MULTIPLE,
    calculate_emi,
    format_inr,
    interest_rate_for_score,
)

logger = logging.getLogger(__name__)

ACCEPT_WORDS = ("yes", "proceed", "accept")
CHANGE_WORDS = ("different", "change")


def _offer_lines(amount: int, rate: float, tenure: int, emi: int) -> str:
    return (
        f"Loan Amount: ₹{format_inr(amount)}\n"
        f"Interest Rate: {rate}% per annum\n"
        f"Tenure: {tenure} months\n"
        f"Monthly EMI: ₹{format_inr(emi)}\n\n"
    )


def handle_needs_assessment(turn: Turn) -> ChatResponse:
    customer = turn.customer
    limit = customer.pre_approved_limit

    details = turn.gateway.extract_loan_details(turn.user_message, turn.context)
    requested_amount = details.amount
    tenure = details.tenure or settings.DEFAULT_TENURE_MONTHS

    if not requested_amount:
        reply = turn.ask_model(
            AgentType.SALES,
            "Ask the customer to specify the loan amount they need. Mention their pre-approved limit.",
        )
        return ChatResponse(
            message=create_message(reply, AgentType.SALES),
            application=turn.session.application,
            current_step=ConversationStep.NEEDS_ASSESSMENT,
            suggested_responses=[f"₹{format_inr(limit)}", "₹3,00,000", "₹5,00,000"],
        )

    rate = interest_rate_for_score(customer.credit_score)
    emi = calculate_emi(requested_amount, rate, tenure)
    application = LoanApplication(
        customer_id=customer.id,
        customer_name=customer.name,
        requested_amount=requested_amount,
        tenure=tenure,
        interest_rate=rate,
        emi=emi,
    )

    max_limit = limit * MAX_LIMIT_MULTIPLE
    if requested_amount > max_limit:
        application.status = ApplicationStatus.REJECTED
        application.rejection_reason = (
            f"Requested amount of ₹{format_inr(requested_amount)} exceeds maximum lending limit of "
            f"₹{format_inr(max_limit)} ({MAX_LIMIT_MULTIPLE}x pre-approved limit)."
        )
        logger.info("application %s rejected at needs assessment: amount %s > %s",
                    application.id, requested_amount, max_limit)
        message = create_message(
            f"I appreciate your interest in ₹{format_inr(requested_amount)}. However, this exceeds our maximum "
            f"lending limit for your profile. Based on your pre-approved limit of ₹{format_inr(limit)}, the maximum "
            f"I can offer is ₹{format_inr(max_limit)}. Would you like to proceed with a lower amount?",
            AgentType.SALES,
            MessageMetadata(loan_amount=requested_amount, tenure=tenure, interest_rate=rate, status="rejected"),
        )
        return ChatResponse(
            message=message,
            application=application,
            current_step=ConversationStep.NEEDS_ASSESSMENT,
            suggested_responses=[f"₹{format_inr(max_limit)}", f"₹{format_inr(limit)}", "No, thank you"],
        )

    if requested_amount <= limit:
        text = (
            "Excellent choice! Based on your profile, here's your personalized offer:\n\n"
            + _offer_lines(requested_amount, rate, tenure, emi)
            + "This is within your pre-approved limit, so we can process this quickly! "
            "Would you like to proceed with this offer?"
        )
        document_required = False
    else:
        text = (
            f"I can see you'd like ₹{format_inr(requested_amount)}, which is above your pre-approved limit of "
            f"₹{format_inr(limit)}. Here's what I can offer:\n\n"
            + _offer_lines(requested_amount, rate, tenure, emi)
            + "We'll need to verify your income with a salary slip to proceed. Would you like to continue?"
        )
        document_required = True

    message = create_message(
        text,
        AgentType.SALES,
        MessageMetadata(
            loan_amount=requested_amount,
            tenure=tenure,
            interest_rate=rate,
            status="pending",
            document_required=document_required,
        ),
    )
    return ChatResponse(
        message=message,
        application=application,
        current_step=ConversationStep.OFFER_PRESENTATION,
        suggested_responses=["Yes, proceed", "I want a different amount", "What documents do you need?"],
    )


def handle_offer_presentation(turn: Turn) -> ChatResponse:
    application = turn.session.application

    if turn.intent in (Intent.ACCEPT_OFFER, Intent.CONFIRM) or turn.mentions(*ACCEPT_WORDS):
        if application:
            application.status = ApplicationStatus.VERIFICATION
            application.touch()

        message = create_message(
            "Great! Let me quickly verify your details. I can see your KYC is already verified with us. "
            f"Your registered address is: {turn.customer.address}. Is this correct?",
            AgentType.VERIFICATION,
        )
        return ChatResponse(
            message=message,
            application=application,
            current_step=ConversationStep.VERIFICATION,
            suggested_responses=["Yes, that's correct", "I need to update my address"],
        )

    if turn.intent == Intent.REJECT_OFFER or turn.mentions(*CHANGE_WORDS):
        message = create_message(
            "No problem! What loan amount would work better for you? I'm here to find the best solution.",
            AgentType.SALES,
        )
        return ChatResponse(
            message=message,
            application=application,
            current_step=ConversationStep.NEEDS_ASSESSMENT,
            suggested_responses=["₹3,00,000", "₹5,00,000", "₹7,00,000"],
        )

    reply = turn.ask_model(
        AgentType.SALES,
        "The customer hasn't clearly accepted or rejected the offer. "
        "Answer their question and gently ask if they'd like to proceed.",
    )
    return ChatResponse(
        message=create_message(reply, AgentType.SALES),
        application=application,
        current_step=ConversationStep.OFFER_PRESENTATION,
        suggested_responses=["Yes, proceed with the offer", "I have more questions"],
    )
