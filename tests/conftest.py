import pytest

from loanease.core.session import SessionStore
from loanease.models.domain_models import Intent
from loanease.services.chat_service import LoanOrchestrator
from loanease.services.llm_gateway import parse_loan_details


class FakeGateway:
    """Stands in for the Gemini gateway: canned replies, rule-based extraction, scripted intents."""

    configured = False

    def __init__(self, reply="(stub reply)", intents=None):
        self.reply = reply
        self.intents = intents or {}
        self.generated = []

    def generate_agent_response(self, agent_type, user_message, context, additional_instructions=None):
        self.generated.append((agent_type, user_message, additional_instructions))
        return self.reply

    def extract_loan_details(self, user_message, context):
        return parse_loan_details(user_message)

    def detect_intent(self, user_message, current_step):
        return self.intents.get(user_message, Intent.OTHER)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store():
    return SessionStore(max_entries=50, idle_ttl_minutes=60)


@pytest.fixture
def orch(store, gateway):
    return LoanOrchestrator(store, gateway)
