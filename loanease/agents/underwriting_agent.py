# loanease/agents/underwriting_agent.py
import logging
from typing import Optional

from loanease.agents.common import Turn, create_message
from loanease.models.domain_models import (
    AgentType,
    ApplicationStatus,
    ConversationSession,
    ConversationStep,
    CreditReport,
    Customer,
    LoanApplication,
    MessageMetadata,
)
from loanease.models.responses import ChatResponse
from loanease.services.loan_math import (
    MAX_EMI_TO_INCOME,
    MIN_CREDIT_SCORE,
    emi_to_income_percent,
    format_inr,
    max_affordable_loan,
)

logger = logging.getLogger(__name__)


def run_instant_approval_check(application: LoanApplication, customer: Customer, credit: Optional[CreditReport]) -> dict:
    """
    Eligibility when no salary slip is needed, checked in order:
    - credit score >= 700 (a missing bureau report fails)
    - EMI <= 50% of monthly income
    - requested amount <= pre-approved limit
    """
    max_emi = customer.monthly_income * MAX_EMI_TO_INCOME

    if not credit or credit.credit_score < MIN_CREDIT_SCORE:
        return {
            "approved": False,
            "reason_code": "credit_score_too_low",
            "reason": f"Credit score below minimum requirement of {MIN_CREDIT_SCORE}",
            "credit_score": credit.credit_score if credit else None,
        }

    if application.emi > max_emi:
        affordable = max_affordable_loan(max_emi, application.interest_rate, application.tenure)
        return {
            "approved": False,
            "reason_code": "affordability_failed",
            "reason": (
                f"The EMI of ₹{format_inr(application.emi)} exceeds 50% of your monthly income "
                f"(₹{format_inr(customer.monthly_income)}). The maximum affordable loan is approximately "
                f"₹{format_inr(affordable)}."
            ),
            "credit_score": credit.credit_score,
            "max_affordable_loan": affordable,
        }

    if application.requested_amount > customer.pre_approved_limit:
        return {
            "approved": False,
            "reason_code": "exceeds_pre_approved",
            "reason": "Requested amount exceeds pre-approved limit and additional verification failed",
            "credit_score": credit.credit_score,
        }

    return {"approved": True, "reason_code": None, "reason": None, "credit_score": credit.credit_score}


def run_post_salary_check(application: LoanApplication, customer: Customer, credit_score: int) -> dict:
    """Eligibility after a verified salary slip; the credit score reason wins when both fail."""
    max_emi = customer.monthly_income * MAX_EMI_TO_INCOME

    if application.emi <= max_emi and credit_score >= MIN_CREDIT_SCORE:
        return {"approved": True, "reason_code": None, "reason": None}

    if credit_score < MIN_CREDIT_SCORE:
        return {
            "approved": False,
            "reason_code": "credit_score_too_low",
            "reason": f"Your credit score of {credit_score} is below our minimum requirement of {MIN_CREDIT_SCORE}.",
        }
    return {
        "approved": False,
        "reason_code": "affordability_failed_after_salary",
        "reason": f"The EMI of ₹{format_inr(application.emi)} exceeds 50% of your monthly income.",
    }


def _reject(application: LoanApplication, reason: str):
    application.status = ApplicationStatus.REJECTED
    application.rejection_reason = reason
    application.touch()
    logger.info("application %s rejected: %s", application.id, reason)


def _approve(application: LoanApplication):
    application.status = ApplicationStatus.APPROVED
    application.approved_amount = application.requested_amount
    application.touch()
    logger.info("application %s approved for %s", application.id, application.approved_amount)


def apply_instant_approval(application: LoanApplication, customer: Customer, credit: Optional[CreditReport]) -> ChatResponse:
    if credit:
        application.credit_score = credit.credit_score

    result = run_instant_approval_check(application, customer, credit)
    code = result["reason_code"]

    if code == "credit_score_too_low":
        _reject(application, result["reason"])
        text = (
            "I apologize, but based on our credit assessment, we're unable to approve this loan at the moment. "
            f"Your credit score of {result['credit_score'] or 'N/A'} is below our minimum requirement of "
            f"{MIN_CREDIT_SCORE}. I recommend working on improving your credit score and trying again in a few months."
        )
        suggestions = ["How can I improve my credit score?", "Thank you"]
    elif code == "affordability_failed":
        affordable = result["max_affordable_loan"]
        _reject(application, result["reason"])
        text = (
            f"I'm sorry, but the EMI of ₹{format_inr(application.emi)} would exceed 50% of your monthly income. "
            f"Based on your income of ₹{format_inr(customer.monthly_income)}, the maximum loan you can afford is "
            f"approximately ₹{format_inr(affordable)}. Would you like to apply for a lower amount?"
        )
        suggestions = [f"₹{format_inr(affordable)}", "No, thank you"]
    elif code == "exceeds_pre_approved":
        _reject(application, result["reason"])
        text = (
            f"I apologize, but the requested amount of ₹{format_inr(application.requested_amount)} exceeds your "
            f"pre-approved limit of ₹{format_inr(customer.pre_approved_limit)}. Would you like to proceed with an "
            "amount within your pre-approved limit?"
        )
        suggestions = [f"₹{format_inr(customer.pre_approved_limit)}", "No, thank you"]
    else:
        _approve(application)
        text = (
            f"Excellent news! Your credit score of {result['credit_score']} looks great, and your loan is approved! "
            f"Amount: ₹{format_inr(application.requested_amount)} at {application.interest_rate}% p.a. "
            f"Monthly EMI: ₹{format_inr(application.emi)} "
            f"({emi_to_income_percent(application.emi, customer.monthly_income)}% of your income). "
            "Shall I generate your sanction letter now?"
        )
        return ChatResponse(
            message=create_message(text, AgentType.UNDERWRITING, _metadata(application, "approved")),
            application=application,
            current_step=ConversationStep.DECISION,
            suggested_responses=["Yes, generate sanction letter", "Can I get more details?"],
        )

    return ChatResponse(
        message=create_message(text, AgentType.UNDERWRITING, _metadata(application, "rejected")),
        application=application,
        current_step=ConversationStep.CLOSED,
        suggested_responses=suggestions,
    )


def apply_salary_slip_decision(session: ConversationSession, customer: Customer) -> ChatResponse:
    application = session.application
    credit_score = application.credit_score if application.credit_score is not None else customer.credit_score
    result = run_post_salary_check(application, customer, credit_score)

    if result["approved"]:
        _approve(application)
        text = (
            f"Great news! Your salary slip has been verified. With a monthly income of "
            f"₹{format_inr(customer.monthly_income)} and EMI of ₹{format_inr(application.emi)} "
            f"({emi_to_income_percent(application.emi, customer.monthly_income)}% of income), "
            "your loan is approved! Ready for your sanction letter?"
        )
        return ChatResponse(
            message=create_message(text, AgentType.UNDERWRITING, _metadata(application, "approved")),
            application=application,
            current_step=ConversationStep.DECISION,
            suggested_responses=["Yes, generate sanction letter", "Show me the final terms"],
        )

    _reject(application, result["reason"])
    text = (
        f"I'm sorry, but we're unable to approve this loan application. {result['reason']} "
        "Would you like to apply for a lower amount that fits within your eligibility?"
    )
    return ChatResponse(
        message=create_message(text, AgentType.UNDERWRITING, _metadata(application, "rejected")),
        application=application,
        current_step=ConversationStep.CLOSED,
        suggested_responses=["Try a lower amount", "No, thank you"],
    )


def _metadata(application: LoanApplication, status: str) -> MessageMetadata:
    return MessageMetadata(
        loan_amount=application.approved_amount or application.requested_amount,
        tenure=application.tenure,
        interest_rate=application.interest_rate,
        status=status,
    )


def handle_underwriting(turn: Turn) -> ChatResponse:
    application = turn.session.application
    if application and application.salary_slip_uploaded and application.salary_slip_verified:
        return apply_salary_slip_decision(turn.session, turn.customer)

    reply = turn.ask_model(
        AgentType.UNDERWRITING,
        "The customer needs to upload their salary slip. Guide them through the process.",
    )
    return ChatResponse(
        message=create_message(
            reply, AgentType.UNDERWRITING, MessageMetadata(document_required=True)
        ),
        application=application,
        current_step=ConversationStep.UNDERWRITING,
        suggested_responses=["I'll upload now", "PDF", "What's the maximum file size?"],
    )
