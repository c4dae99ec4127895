from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from pypdf import PdfReader

from loanease.models.domain_models import ApplicationStatus, LoanApplication
from loanease.services.loan_math import calculate_emi
from loanease.services.mock_data_service import get_customer
from loanease.services.pdf_service import generate_sanction_pdf
from loanease.services.sanction_service import TERMS_AND_CONDITIONS, build_sanction_letter


def sanctioned_application(status=ApplicationStatus.SANCTIONED):
    app = LoanApplication(
        customer_id="CUST001",
        customer_name="Vikrant Yadav",
        requested_amount=500000,
        approved_amount=500000,
        tenure=36,
        interest_rate=11.5,
        emi=calculate_emi(500000, 11.5, 36),
    )
    app.status = status
    return app


def test_letter_requires_sanctioned_status():
    customer = get_customer("CUST001")
    for status in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.INITIATED):
        with pytest.raises(ValueError):
            build_sanction_letter(sanctioned_application(status), customer)


def test_letter_fields_derive_from_application():
    app = sanctioned_application()
    now = datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)
    letter = build_sanction_letter(app, get_customer("CUST001"), now=now)

    assert letter.application_id == app.id
    assert letter.customer_name == "Vikrant Yadav"
    assert letter.loan_amount == 500000
    assert letter.emi == app.emi
    assert letter.processing_fee == 10000
    assert letter.sanction_date == now
    assert letter.disbursement_date == now + timedelta(days=3)
    assert letter.terms_and_conditions == TERMS_AND_CONDITIONS
    assert len(letter.terms_and_conditions) == 7


def test_letter_falls_back_to_requested_amount():
    app = sanctioned_application()
    app.approved_amount = None
    letter = build_sanction_letter(app, get_customer("CUST001"))
    assert letter.loan_amount == app.requested_amount


def test_building_letter_does_not_mutate_application():
    app = sanctioned_application()
    before = app.model_dump()
    build_sanction_letter(app, get_customer("CUST001"))
    assert app.model_dump() == before


def test_pdf_is_valid_and_carries_metadata():
    app = sanctioned_application()
    customer = get_customer("CUST001")
    pdf = generate_sanction_pdf(build_sanction_letter(app, customer), customer)

    assert pdf.startswith(b"%PDF")
    reader = PdfReader(BytesIO(pdf))
    assert len(reader.pages) >= 1
    assert reader.metadata["/ApplicationId"] == app.id
    assert reader.metadata["/Subject"] == "Personal Loan Sanction Letter"
    text = reader.pages[0].extract_text()
    assert "SANCTION LETTER" in text
    assert "5,00,000" in text
