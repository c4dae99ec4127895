# loanease/api/routes_mocks.py
from typing import List

from fastapi import APIRouter, HTTPException

from loanease.models.domain_models import CreditReport, LoanOffer
from loanease.schemas.chat_schemas import CustomerSummaryOut
from loanease.services.mock_data_service import (
    generate_loan_offer,
    get_credit_score,
    get_customer,
    list_customers,
)
from loanease.services.loan_math import round_half_up

router = APIRouter(tags=["mocks"])


def mask_phone(phone: str) -> str:
    return phone[-4:].rjust(10, "*")


@router.get("/customers", response_model=List[CustomerSummaryOut])
def customers():
    return [
        CustomerSummaryOut(
            id=c.id,
            name=c.name,
            phone=mask_phone(c.phone),
            city=c.city,
            pre_approved_limit=c.pre_approved_limit,
        )
        for c in list_customers()
    ]


@router.get("/credit-bureau/{customer_id}", response_model=CreditReport)
def credit_bureau(customer_id: str):
    report = get_credit_score(customer_id)
    if not report:
        raise HTTPException(status_code=404, detail="Customer not found")
    return report


@router.get("/offers/{customer_id}", response_model=List[LoanOffer])
def offers(customer_id: str):
    customer = get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    limit = customer.pre_approved_limit
    return [
        generate_loan_offer(customer, limit),
        generate_loan_offer(customer, round_half_up(limit * 0.5)),
        generate_loan_offer(customer, round_half_up(limit * 0.75)),
    ]
