# loanease/services/sanction_service.py
from datetime import datetime, timedelta
from typing import Optional

from loanease.core.config import settings
from loanease.models.domain_models import ApplicationStatus, Customer, LoanApplication, SanctionLetter, utc_now
from loanease.services.loan_math import processing_fee

DISBURSEMENT_DELAY_DAYS = 3

TERMS_AND_CONDITIONS = [
    "This sanction is valid for 30 days from the date of issue.",
    "The loan amount will be disbursed to your registered bank account.",
    "EMI will be deducted automatically via ECS/NACH mandate.",
    "Prepayment is allowed after 6 EMIs with no prepayment charges.",
    "Late payment penalty of 2% per month will be applicable on overdue EMIs.",
    "The borrower agrees to maintain adequate insurance coverage.",
    f"{settings.LENDER_NAME} reserves the right to modify interest rates as per RBI guidelines.",
]


def build_sanction_letter(application: LoanApplication, customer: Customer, now: Optional[datetime] = None) -> SanctionLetter:
    """Read-only view of a sanctioned application; dates derive from `now`."""
    if application.status != ApplicationStatus.SANCTIONED:
        raise ValueError(f"application {application.id} is not sanctioned (status={application.status.value})")

    issued = now or utc_now()
    amount = application.approved_amount or application.requested_amount

    return SanctionLetter(
        application_id=application.id,
        customer_name=customer.name,
        loan_amount=amount,
        interest_rate=application.interest_rate,
        tenure=application.tenure,
        emi=application.emi,
        processing_fee=processing_fee(amount),
        disbursement_date=issued + timedelta(days=DISBURSEMENT_DELAY_DAYS),
        sanction_date=issued,
        terms_and_conditions=list(TERMS_AND_CONDITIONS),
    )
