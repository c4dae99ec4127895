# loanease/models/domain_models.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum
import uuid


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Enums ---

class ConversationStep(str, Enum):
    GREETING = "greeting"
    IDENTIFICATION = "identification"
    NEEDS_ASSESSMENT = "needs_assessment"
    OFFER_PRESENTATION = "offer_presentation"
    VERIFICATION = "verification"
    UNDERWRITING = "underwriting"
    DECISION = "decision"
    SANCTION = "sanction"
    CLOSED = "closed"


class ApplicationStatus(str, Enum):
    INITIATED = "initiated"
    VERIFICATION = "verification"
    UNDERWRITING = "underwriting"
    APPROVED = "approved"
    REJECTED = "rejected"
    SANCTIONED = "sanctioned"


class KycStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AgentType(str, Enum):
    MASTER = "master"
    SALES = "sales"
    VERIFICATION = "verification"
    UNDERWRITING = "underwriting"
    SANCTION = "sanction"


class Intent(str, Enum):
    PROVIDE_IDENTITY = "provide_identity"
    PROVIDE_LOAN_AMOUNT = "provide_loan_amount"
    PROVIDE_TENURE = "provide_tenure"
    ACCEPT_OFFER = "accept_offer"
    REJECT_OFFER = "reject_offer"
    ASK_QUESTION = "ask_question"
    PROVIDE_DOCUMENT = "provide_document"
    CONFIRM = "confirm"
    GREETING = "greeting"
    OTHER = "other"


# --- Reference data (mock CRM / bureau / offer mart) ---

class ExistingLoan(BaseModel):
    type: str
    amount: int
    emi: int
    remaining_tenure: int


class Customer(BaseModel):
    """Customer record from the mock CRM. Read-only for the process lifetime."""
    id: str
    name: str
    phone: str
    email: str
    age: int
    city: str
    address: str
    pan_number: str
    aadhar_number: str
    employment_type: str  # "salaried" | "self-employed"
    monthly_income: int
    employer: Optional[str] = None
    existing_loans: List[ExistingLoan] = Field(default_factory=list)
    pre_approved_limit: int
    credit_score: int
    kyc_verified: bool = True


class CreditReport(BaseModel):
    customer_id: str
    credit_score: int
    credit_history: str
    active_loans: int
    default_history: bool = False


class LoanOffer(BaseModel):
    id: str
    customer_id: str
    amount: int
    interest_rate: float
    tenure: int
    emi: int
    processing_fee: int
    pre_approved: bool


# --- Conversation state ---

class LoanApplication(BaseModel):
    id: str = Field(default_factory=lambda: f"APP-{uuid.uuid4().hex[:12].upper()}")
    customer_id: str
    customer_name: str
    requested_amount: int
    approved_amount: Optional[int] = None
    tenure: int
    interest_rate: float
    emi: int
    status: ApplicationStatus = ApplicationStatus.INITIATED
    kyc_status: KycStatus = KycStatus.PENDING
    credit_score: Optional[int] = None
    salary_slip_uploaded: bool = False
    salary_slip_verified: bool = False
    salary_slip_file_name: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def touch(self):
        self.updated_at = utc_now()


class MessageMetadata(BaseModel):
    loan_amount: Optional[int] = None
    tenure: Optional[int] = None
    interest_rate: Optional[float] = None
    status: Optional[str] = None  # "pending" | "approved" | "rejected"
    document_required: Optional[bool] = None


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: f"msg-{uuid.uuid4().hex}")
    role: MessageRole
    content: str
    agent_type: Optional[AgentType] = None
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: Optional[MessageMetadata] = None


class ConversationSession(BaseModel):
    id: str
    customer_id: Optional[str] = None
    messages: List[ChatMessage] = Field(default_factory=list)
    application: Optional[LoanApplication] = None
    current_step: ConversationStep = ConversationStep.GREETING
    started_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)


class SanctionLetter(BaseModel):
    application_id: str
    customer_name: str
    loan_amount: int
    interest_rate: float
    tenure: int
    emi: int
    processing_fee: int
    disbursement_date: datetime
    sanction_date: datetime
    terms_and_conditions: List[str]
