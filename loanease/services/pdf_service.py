# loanease/services/pdf_service.py
from io import BytesIO
from typing import Dict

from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from loanease.core.config import settings
from loanease.models.domain_models import Customer, SanctionLetter
from loanease.services.loan_math import format_inr


def augment_pdf_with_pypdf(pdf_bytes: bytes, metadata: Dict[str, str]) -> bytes:
    reader = PdfReader(BytesIO(pdf_bytes))
    writer = PdfWriter()
    for p in reader.pages:
        writer.add_page(p)
    writer.add_metadata({f"/{k}": str(v) for k, v in metadata.items()})
    out = BytesIO()
    writer.write(out)
    return out.getvalue()


def generate_sanction_pdf(letter: SanctionLetter, customer: Customer) -> bytes:
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    # Header
    c.setFont("Helvetica-Bold", 16)
    c.drawString(50, height - 70, settings.LENDER_NAME)
    c.setFont("Helvetica", 9)
    c.drawString(50, height - 84, "Non-Banking Financial Company")
    c.setFont("Helvetica-Bold", 13)
    c.drawString(50, height - 115, "PERSONAL LOAN SANCTION LETTER")
    c.setFont("Helvetica", 10)
    c.drawString(50, height - 135, f"Date: {letter.sanction_date.strftime('%d %B %Y')}    Application ID: {letter.application_id}")

    # Addressee
    y = height - 170
    c.drawString(50, y, f"Dear {letter.customer_name},")
    y -= 14
    c.drawString(50, y, customer.address)
    y -= 24
    c.drawString(50, y, "We are pleased to inform you that your personal loan application has been approved.")

    # Loan details
    y -= 30
    c.setFont("Helvetica-Bold", 11)
    c.drawString(50, y, "LOAN DETAILS")
    c.setFont("Helvetica", 10)
    y -= 18
    lines = [
        f"Sanctioned Amount: Rs. {format_inr(letter.loan_amount)}",
        f"Interest Rate: {letter.interest_rate}% per annum",
        f"Tenure: {letter.tenure} months",
        f"Monthly EMI: Rs. {format_inr(letter.emi)}",
        f"Processing Fee: Rs. {format_inr(letter.processing_fee)}",
        f"Expected Disbursement: {letter.disbursement_date.strftime('%d %B %Y')}",
    ]
    for ln in lines:
        c.drawString(50, y, ln)
        y -= 16

    # Terms
    y -= 14
    c.setFont("Helvetica-Bold", 11)
    c.drawString(50, y, "TERMS AND CONDITIONS")
    c.setFont("Helvetica", 9)
    y -= 18
    for i, term in enumerate(letter.terms_and_conditions, start=1):
        c.drawString(50, y, f"{i}. {term}")
        y -= 14
        if y < 80:
            c.showPage()
            c.setFont("Helvetica", 9)
            y = height - 80

    y -= 20
    c.setFont("Helvetica", 10)
    c.drawString(50, y, f"Thank you for choosing {settings.LENDER_NAME}.")
    y -= 14
    c.setFont("Helvetica-Oblique", 8)
    c.drawString(50, y, "This is a system-generated document.")

    c.showPage()
    c.save()

    return augment_pdf_with_pypdf(buffer.getvalue(), {
        "Title": f"Sanction Letter {letter.application_id}",
        "Subject": "Personal Loan Sanction Letter",
        "Author": settings.LENDER_NAME,
        "ApplicationId": letter.application_id,
    })
