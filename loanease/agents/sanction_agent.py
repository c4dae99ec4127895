# loanease/agents/sanction_agent.py
from loanease.agents.common import Turn, create_message
from loanease.core.config import settings
from loanease.models.domain_models import (
    AgentType,
    ApplicationStatus,
    ConversationStep,
    Intent,
    MessageMetadata,
)
from loanease.models.responses import ChatResponse
from loanease.services.loan_math import format_inr

SANCTION_WORDS = ("yes", "generate")


def handle_decision(turn: Turn) -> ChatResponse:
    application = turn.session.application

    if application and (turn.intent == Intent.CONFIRM or turn.mentions(*SANCTION_WORDS)):
        application.status = ApplicationStatus.SANCTIONED
        application.touch()
        amount = application.approved_amount or application.requested_amount

        text = (
            f"Congratulations, {turn.customer.name}! Your personal loan sanction letter is ready!\n"
            f"Loan Amount: ₹{format_inr(amount)}\n"
            f"Interest Rate: {application.interest_rate}% p.a.\n"
            f"Monthly EMI: ₹{format_inr(application.emi)}\n"
            f"Tenure: {application.tenure} months\n\n"
            "You can download your sanction letter from the sidebar. The amount will be disbursed within "
            f"2-3 business days. Thank you for choosing {settings.LENDER_NAME}!"
        )
        message = create_message(
            text,
            AgentType.SANCTION,
            MessageMetadata(
                loan_amount=amount,
                tenure=application.tenure,
                interest_rate=application.interest_rate,
                status="approved",
            ),
        )
        return ChatResponse(
            message=message,
            application=application,
            current_step=ConversationStep.SANCTION,
            suggested_responses=["Download sanction letter", "Thank you!"],
        )

    reply = turn.ask_model(
        AgentType.UNDERWRITING,
        "The loan is approved. Answer any questions and encourage them to proceed with the sanction letter.",
    )
    return ChatResponse(
        message=create_message(reply, AgentType.UNDERWRITING),
        application=application,
        current_step=ConversationStep.DECISION,
        suggested_responses=["Generate sanction letter", "I have a question"],
    )


def handle_sanction(turn: Turn) -> ChatResponse:
    # already sanctioned; only the conversation moves on
    reply = turn.ask_model(
        AgentType.SANCTION,
        "The sanction letter is ready. Help with any final questions. Be congratulatory!",
    )
    return ChatResponse(
        message=create_message(reply, AgentType.SANCTION),
        application=turn.session.application,
        current_step=ConversationStep.CLOSED,
        suggested_responses=["Thank you!", "When will I receive the funds?"],
    )
