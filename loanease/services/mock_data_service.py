from pathlib import Path
from functools import lru_cache
import json
import uuid
from typing import Dict, List, Optional

from loanease.core.config import settings
from loanease.models.domain_models import Customer, CreditReport, LoanOffer
from loanease.services.loan_math import (
    calculate_emi,
    interest_rate_for_score,
    processing_fee,
)

DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "customers.json"


@lru_cache(maxsize=1)
def load_customers() -> Dict[str, Customer]:
    """
    Load the mock CRM table once. Insertion order follows the JSON file,
    which is also the lookup priority for find_customer.
    """
    if not DATA_PATH.exists():
        return {}

    with open(DATA_PATH, "r", encoding="utf-8") as f:
        arr = json.load(f)

    customers = [Customer(**c) for c in arr]
    return {c.id: c for c in customers}


def list_customers() -> List[Customer]:
    return list(load_customers().values())


def get_customer(customer_id: Optional[str]) -> Optional[Customer]:
    if not customer_id:
        return None
    return load_customers().get(customer_id)


def find_customer(identifier: str) -> Optional[Customer]:
    """
    Match phone, email (case-insensitive) or a name substring.
    First record in table order wins, regardless of which field matched.
    """
    normalized = (identifier or "").strip().lower()
    if not normalized:
        return None

    for c in load_customers().values():
        if (
            c.phone == normalized
            or c.email.lower() == normalized
            or normalized in c.name.lower()
        ):
            return c
    return None


def get_credit_score(customer_id: str) -> Optional[CreditReport]:
    customer = get_customer(customer_id)
    if not customer:
        return None

    if customer.credit_score >= 750:
        history = "Excellent"
    elif customer.credit_score >= 700:
        history = "Good"
    else:
        history = "Fair"

    return CreditReport(
        customer_id=customer.id,
        credit_score=customer.credit_score,
        credit_history=history,
        active_loans=len(customer.existing_loans),
        default_history=False,
    )


def generate_loan_offer(customer: Customer, amount: Optional[int] = None, tenure: Optional[int] = None) -> LoanOffer:
    loan_amount = amount or customer.pre_approved_limit
    tenure = tenure or settings.DEFAULT_TENURE_MONTHS
    rate = interest_rate_for_score(customer.credit_score)

    return LoanOffer(
        id=f"OFFER-{customer.id}-{uuid.uuid4().hex[:8]}",
        customer_id=customer.id,
        amount=loan_amount,
        interest_rate=rate,
        tenure=tenure,
        emi=calculate_emi(loan_amount, rate, tenure),
        processing_fee=processing_fee(loan_amount),
        pre_approved=loan_amount <= customer.pre_approved_limit,
    )
