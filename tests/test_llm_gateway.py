import pytest

from loanease.models.domain_models import AgentType, ConversationStep, Intent
from loanease.services.llm_gateway import (
    AgentContext,
    GeminiGateway,
    parse_loan_details,
)
from loanease.services.prompts import APOLOGY_TEXT, EMPTY_REPLY_TEXT


class FakeResp:
    def __init__(self, text):
        self.text = text


def make_fake_model_factory(outcomes, seen=None):
    """outcomes: iterable of str (response text) or Exception (raised)."""
    it = iter(outcomes)

    class FakeModel:
        def __init__(self, model_name):
            self.model_name = model_name

        def generate_content(self, prompt, **kwargs):
            if seen is not None:
                seen.append({"model": self.model_name, "prompt": prompt, **kwargs})
            outcome = next(it)
            if isinstance(outcome, Exception):
                raise outcome
            return FakeResp(outcome)

    return FakeModel


@pytest.fixture
def ctx():
    return AgentContext(
        customer_name="Vikrant Yadav",
        customer_id="CUST001",
        pre_approved_limit=500000,
        conversation_history=["Customer: hi", "master: hello"],
    )


def test_unconfigured_gateway_degrades_without_calling_model(monkeypatch, ctx):
    def boom(*args, **kwargs):
        raise AssertionError("model must not be called without a key")

    monkeypatch.setattr("loanease.services.llm_gateway.genai.GenerativeModel", boom)
    gw = GeminiGateway(api_key="")

    assert gw.configured is False
    assert gw.generate_agent_response(AgentType.MASTER, "hi", ctx) == APOLOGY_TEXT
    assert gw.detect_intent("yes please", ConversationStep.OFFER_PRESENTATION) == Intent.OTHER
    details = gw.extract_loan_details("5 lakh for 3 years", ctx)
    assert details.amount == 500000 and details.tenure == 36


def test_generate_returns_model_text_with_timeout(monkeypatch, ctx):
    seen = []
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory(["Hello from model"], seen),
    )
    gw = GeminiGateway(api_key="fakekey", model="gemini-test", timeout=7, max_retries=0)

    reply = gw.generate_agent_response(AgentType.SALES, "what is my rate?", ctx, "Answer the rate question.")
    assert reply == "Hello from model"
    assert seen[0]["model"] == "gemini-test"
    assert seen[0]["request_options"] == {"timeout": 7}
    assert "Sales Agent" in seen[0]["prompt"]
    assert "Answer the rate question." in seen[0]["prompt"]
    assert "Vikrant Yadav" in seen[0]["prompt"]


def test_retry_then_success(monkeypatch, ctx):
    seen = []
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory([TimeoutError("slow"), "Second time lucky"], seen),
    )
    gw = GeminiGateway(api_key="fakekey", max_retries=1)
    assert gw.generate_agent_response(AgentType.MASTER, "hi", ctx) == "Second time lucky"
    assert len(seen) == 2


def test_all_attempts_fail_returns_apology(monkeypatch, ctx):
    seen = []
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory([RuntimeError("429"), RuntimeError("503"), RuntimeError("never")], seen),
    )
    gw = GeminiGateway(api_key="fakekey", max_retries=1)
    assert gw.generate_agent_response(AgentType.MASTER, "hi", ctx) == APOLOGY_TEXT
    assert len(seen) == 2


def test_empty_model_text_gets_placeholder(monkeypatch, ctx):
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory([""]),
    )
    gw = GeminiGateway(api_key="fakekey", max_retries=0)
    assert gw.generate_agent_response(AgentType.MASTER, "hi", ctx) == EMPTY_REPLY_TEXT


def test_extraction_reads_fenced_json(monkeypatch, ctx):
    seen = []
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory(['```json\n{"amount": 500000, "tenure": null}\n```'], seen),
    )
    gw = GeminiGateway(api_key="fakekey", max_retries=0)
    details = gw.extract_loan_details("five lakh please", ctx)
    assert details.amount == 500000
    assert details.tenure is None
    assert seen[0]["generation_config"] == {"response_mime_type": "application/json"}


def test_extraction_treats_zero_as_missing(monkeypatch, ctx):
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory(['{"amount": 0, "tenure": 24}']),
    )
    gw = GeminiGateway(api_key="fakekey", max_retries=0)
    details = gw.extract_loan_details("not sure yet, 2 years maybe", ctx)
    assert details.amount is None
    assert details.tenure == 24


def test_extraction_falls_back_on_unparsable_output(monkeypatch, ctx):
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory(["sorry, I can't do JSON"]),
    )
    gw = GeminiGateway(api_key="fakekey", max_retries=0)
    details = gw.extract_loan_details("Rs 3,00,000 for 24 months", ctx)
    assert details.amount == 300000
    assert details.tenure == 24


@pytest.mark.parametrize("raw,intent", [
    ("accept_offer", Intent.ACCEPT_OFFER),
    ('  "Confirm"\n', Intent.CONFIRM),
    ("provide_identity.", Intent.PROVIDE_IDENTITY),
    ("I think the user is happy", Intent.OTHER),
])
def test_detect_intent_normalises_labels(monkeypatch, raw, intent):
    monkeypatch.setattr(
        "loanease.services.llm_gateway.genai.GenerativeModel",
        make_fake_model_factory([raw]),
    )
    gw = GeminiGateway(api_key="fakekey", max_retries=0)
    assert gw.detect_intent("whatever", ConversationStep.VERIFICATION) == intent


@pytest.mark.parametrize("text,amount,tenure", [
    ("₹5,00,000", 500000, None),
    ("5 lakh for 3 years", 500000, 36),
    ("I need 2.5 lakhs over 24 months", 250000, 24),
    ("500000 for 48 months", 500000, 48),
    ("about 750k", 750000, None),
    ("I need more than my pre-approved limit", None, None),
    ("36 months please", None, 36),
])
def test_rule_based_parser(text, amount, tenure):
    details = parse_loan_details(text)
    assert details.amount == amount
    assert details.tenure == tenure
