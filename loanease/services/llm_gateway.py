# loanease/services/llm_gateway.py
import json
import logging
import re
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field

from loanease.core.config import settings
from loanease.models.domain_models import AgentType, ConversationStep, Intent
from loanease.services.loan_math import format_inr
from loanease.services.prompts import (
    APOLOGY_TEXT,
    CONTEXT_TEMPLATE,
    EMPTY_REPLY_TEXT,
    EXTRACTION_PROMPT,
    INTENT_PROMPT,
    RESPONSE_TEMPLATE,
    SYSTEM_PROMPTS,
)

logger = logging.getLogger(__name__)


class LLMUnavailableError(Exception):
    """Raised by the transport helper when every attempt at the model failed."""


class AgentContext(BaseModel):
    customer_name: Optional[str] = None
    customer_id: Optional[str] = None
    pre_approved_limit: Optional[int] = None
    credit_score: Optional[int] = None
    requested_amount: Optional[int] = None
    tenure: Optional[int] = None
    interest_rate: Optional[float] = None
    emi: Optional[int] = None
    status: Optional[str] = None
    conversation_history: List[str] = Field(default_factory=list)

    def to_prompt_block(self, window: int) -> str:
        return CONTEXT_TEMPLATE.format(
            customer_name=self.customer_name or "Not identified",
            customer_id=self.customer_id or "N/A",
            pre_approved_limit=f"Rs. {format_inr(self.pre_approved_limit)}" if self.pre_approved_limit else "N/A",
            credit_score=self.credit_score or "Not fetched",
            requested_amount=f"Rs. {format_inr(self.requested_amount)}" if self.requested_amount else "Not specified",
            tenure=f"{self.tenure} months" if self.tenure else "Not specified",
            interest_rate=f"{self.interest_rate}%" if self.interest_rate else "Not specified",
            emi=f"Rs. {format_inr(self.emi)}" if self.emi else "Not calculated",
            status=self.status or "Not started",
            history="\n".join(self.conversation_history[-window:]) if window > 0 else "",
        )


class LoanDetails(BaseModel):
    amount: Optional[int] = None
    tenure: Optional[int] = None


# --- helpers: model output cleanup and offline parsing ---

def extract_json_block(text: str) -> Dict[str, Any]:
    """Pull the first JSON object out of model text, tolerating ``` fences."""
    text = (text or "").strip()
    if "```" in text:
        for part in text.split("```"):
            clean_part = part.strip()
            if clean_part.startswith("json"):
                clean_part = clean_part[4:].strip()
            if clean_part.startswith("{") and clean_part.endswith("}"):
                text = clean_part
                break

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and last > first:
        text = text[first:last + 1]

    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError("model did not return a JSON object")
    return parsed


def _positive_int(value: Any) -> Optional[int]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number <= 0:
        return None
    return int(round(number))


_TENURE_YEARS = re.compile(r"(\d+(?:\.\d+)?)\s*(?:years?|yrs?)\b", re.IGNORECASE)
_TENURE_MONTHS = re.compile(r"(\d+)\s*(?:months?|mos?)\b", re.IGNORECASE)
_AMOUNT_LAKH = re.compile(r"(\d+(?:\.\d+)?)\s*(?:lakhs?|lacs?|lac)\b", re.IGNORECASE)
_AMOUNT_CRORE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:crores?|cr)\b", re.IGNORECASE)
_AMOUNT_THOUSAND = re.compile(r"(\d+(?:\.\d+)?)\s*(?:k|thousand)\b", re.IGNORECASE)
_PLAIN_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")


def parse_loan_details(message: str) -> LoanDetails:
    """Rule-based extraction used when the model cannot be reached."""
    text = message or ""
    tenure = None

    match = _TENURE_YEARS.search(text)
    if match:
        tenure = _positive_int(float(match.group(1)) * 12)
        text = text[:match.start()] + text[match.end():]
    else:
        match = _TENURE_MONTHS.search(text)
        if match:
            tenure = _positive_int(match.group(1))
            text = text[:match.start()] + text[match.end():]

    amount = None
    for pattern, multiplier in ((_AMOUNT_CRORE, 10_000_000), (_AMOUNT_LAKH, 100_000), (_AMOUNT_THOUSAND, 1_000)):
        match = pattern.search(text)
        if match:
            amount = _positive_int(float(match.group(1)) * multiplier)
            break

    if amount is None:
        for raw in _PLAIN_NUMBER.findall(text):
            value = _positive_int(raw.replace(",", ""))
            # small numbers are tenures, counts or option picks, not rupee amounts
            if value and value >= 1000:
                amount = value
                break

    return LoanDetails(amount=amount, tenure=tenure)


class GeminiGateway:
    """
    Wraps the three model calls the orchestrator makes. Every public method
    returns a usable value: on transport failure the reply is a fixed apology,
    extraction falls back to parse_loan_details and intent falls back to OTHER.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        history_window: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.model = model or settings.GOOGLE_MODEL
        self.timeout = timeout if timeout is not None else settings.LLM_TIMEOUT_SECONDS
        self.max_retries = max_retries if max_retries is not None else settings.LLM_MAX_RETRIES
        self.history_window = history_window if history_window is not None else settings.LLM_HISTORY_WINDOW
        if self.api_key:
            genai.configure(api_key=self.api_key)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _call_model(self, prompt: str, json_mode: bool = False) -> str:
        if not self.api_key:
            raise LLMUnavailableError("GOOGLE_API_KEY is not configured")

        options: Dict[str, Any] = {"request_options": {"timeout": self.timeout}}
        if json_mode:
            options["generation_config"] = {"response_mime_type": "application/json"}

        attempts = 1 + max(0, self.max_retries)
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                model_instance = genai.GenerativeModel(self.model)
                response = model_instance.generate_content(prompt, **options)
                text = response.text if response and response.text else ""
                logger.info("gemini: model=%s attempt=%s ok chars=%s", self.model, attempt, len(text))
                return text.strip()
            except Exception as exc:
                last_error = exc
                logger.warning("gemini: model=%s attempt=%s/%s failed: %s", self.model, attempt, attempts, exc)

        logger.error("gemini: all %s attempts failed for model %s", attempts, self.model)
        raise LLMUnavailableError(str(last_error)) from last_error

    def generate_agent_response(
        self,
        agent_type: AgentType,
        user_message: str,
        context: AgentContext,
        additional_instructions: Optional[str] = None,
    ) -> str:
        prompt = RESPONSE_TEMPLATE.format(
            system_prompt=SYSTEM_PROMPTS[AgentType(agent_type).value],
            context_block=context.to_prompt_block(self.history_window),
            additional_instructions=additional_instructions or "",
            user_message=user_message,
        )
        try:
            text = self._call_model(prompt)
        except LLMUnavailableError:
            return APOLOGY_TEXT
        return text or EMPTY_REPLY_TEXT

    def extract_loan_details(self, user_message: str, context: AgentContext) -> LoanDetails:
        prompt = EXTRACTION_PROMPT.format(user_message=user_message)
        try:
            parsed = extract_json_block(self._call_model(prompt, json_mode=True))
        except LLMUnavailableError:
            return parse_loan_details(user_message)
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning("could not parse loan details from model output: %s", exc)
            return parse_loan_details(user_message)

        return LoanDetails(
            amount=_positive_int(parsed.get("amount")),
            tenure=_positive_int(parsed.get("tenure")),
        )

    def detect_intent(self, user_message: str, current_step: ConversationStep) -> Intent:
        prompt = INTENT_PROMPT.format(
            current_step=ConversationStep(current_step).value,
            user_message=user_message,
        )
        try:
            raw = self._call_model(prompt)
        except LLMUnavailableError:
            return Intent.OTHER

        label = raw.strip().strip("\"'`.").lower()
        try:
            return Intent(label)
        except ValueError:
            logger.info("unrecognised intent label from model: %r", raw)
            return Intent.OTHER
