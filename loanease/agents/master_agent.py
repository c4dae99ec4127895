# loanease/agents/master_agent.py
from loanease.agents.common import Turn, create_message
from loanease.core.config import settings
from loanease.models.domain_models import AgentType, ConversationStep, Customer
from loanease.models.responses import ChatResponse
from loanease.services.loan_math import format_inr
from loanease.services.mock_data_service import find_customer

WELCOME_SUGGESTIONS = ["9876543210", "9876543211", "I'm a new customer"]


def welcome_response() -> ChatResponse:
    message = create_message(
        f"Hello! Welcome to {settings.LENDER_NAME}'s LoanEase. I'm here to help you with a personal loan today. "
        "To get started, could you please share your registered phone number or email address?",
        AgentType.MASTER,
    )
    return ChatResponse(
        message=message,
        current_step=ConversationStep.GREETING,
        suggested_responses=WELCOME_SUGGESTIONS,
    )


def _bind(turn: Turn, customer: Customer):
    turn.session.customer_id = customer.id
    turn.customer = customer


def handle_greeting(turn: Turn) -> ChatResponse:
    customer = find_customer(turn.user_message)

    if customer:
        _bind(turn, customer)
        limit = customer.pre_approved_limit
        message = create_message(
            f"Great to have you here, {customer.name}! I can see you have a pre-approved personal loan offer "
            f"of up to ₹{format_inr(limit)}. How much would you like to borrow today?",
            AgentType.MASTER,
        )
        return ChatResponse(
            message=message,
            current_step=ConversationStep.NEEDS_ASSESSMENT,
            suggested_responses=[
                f"₹{format_inr(limit)}",
                f"₹{format_inr(limit * 0.5)}",
                "I need more than my pre-approved limit",
            ],
        )

    reply = turn.ask_model(
        AgentType.MASTER,
        "The customer identity could not be found. Ask them to verify their phone number or email again, "
        "or let them know they might be a new customer.",
    )
    return ChatResponse(
        message=create_message(reply, AgentType.MASTER),
        current_step=ConversationStep.IDENTIFICATION,
        suggested_responses=["Let me try again", "I'm a new customer"],
    )


def handle_identification(turn: Turn) -> ChatResponse:
    customer = find_customer(turn.user_message)

    if customer:
        _bind(turn, customer)
        limit = customer.pre_approved_limit
        message = create_message(
            f"Found you, {customer.name}! You have a pre-approved personal loan offer of ₹{format_inr(limit)} "
            "at an attractive interest rate. How much would you like to borrow?",
            AgentType.MASTER,
        )
        return ChatResponse(
            message=message,
            current_step=ConversationStep.NEEDS_ASSESSMENT,
            suggested_responses=[
                f"₹{format_inr(limit)}",
                f"₹{format_inr(limit * 1.5)}",
                "What's my maximum limit?",
            ],
        )

    if turn.mentions("new customer"):
        message = create_message(
            "I appreciate your interest! For new customers, please visit our nearest branch or apply through "
            "our website for a personalized loan offer. Is there anything else I can help you with today?",
            AgentType.MASTER,
        )
        return ChatResponse(
            message=message,
            current_step=ConversationStep.CLOSED,
            suggested_responses=["Find nearest branch", "Visit website"],
        )

    reply = turn.ask_model(
        AgentType.MASTER,
        "Still unable to identify the customer. Be helpful and suggest trying their registered phone or email.",
    )
    return ChatResponse(
        message=create_message(reply, AgentType.MASTER),
        current_step=ConversationStep.IDENTIFICATION,
        suggested_responses=WELCOME_SUGGESTIONS,
    )


def handle_unidentified(turn: Turn) -> ChatResponse:
    """A step past identification was reached without a bound customer."""
    message = create_message(
        "I need to confirm who you are before we continue. "
        "Could you please share your registered phone number or email address?",
        AgentType.MASTER,
    )
    return ChatResponse(
        message=message,
        application=turn.session.application,
        current_step=ConversationStep.IDENTIFICATION,
        suggested_responses=WELCOME_SUGGESTIONS,
    )


def handle_generic(turn: Turn) -> ChatResponse:
    reply = turn.ask_model(
        AgentType.MASTER,
        "Handle this message appropriately based on the conversation context.",
    )
    return ChatResponse(
        message=create_message(reply, AgentType.MASTER),
        application=turn.session.application,
        current_step=turn.session.current_step,
    )
