# loanease/services/loan_math.py
from math import floor

MIN_CREDIT_SCORE = 700
MAX_EMI_TO_INCOME = 0.5
MAX_LIMIT_MULTIPLE = 2
PROCESSING_FEE_RATE = 0.02

# (minimum score, annual rate %), highest bucket first
RATE_LADDER = [
    (800, 10.5),
    (750, 11.5),
    (700, 12.5),
]
FLOOR_RATE = 14.0


def round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


def interest_rate_for_score(credit_score: int) -> float:
    for min_score, rate in RATE_LADDER:
        if credit_score >= min_score:
            return rate
    return FLOOR_RATE


def calculate_emi(principal: float, annual_rate: float, tenure_months: int) -> int:
    """
    Standard amortized-loan EMI: P * r * (1+r)^n / ((1+r)^n - 1),
    r = annual_rate / 100 / 12, rounded to the nearest rupee.
    """
    if tenure_months <= 0:
        raise ValueError("tenure_months must be positive")
    r = annual_rate / 100 / 12
    if r == 0:
        return round_half_up(principal / tenure_months)
    growth = (1 + r) ** tenure_months
    return round_half_up(principal * r * growth / (growth - 1))


def max_affordable_loan(max_emi: float, annual_rate: float, tenure_months: int) -> int:
    """Largest principal whose EMI stays within max_emi (inverse of calculate_emi)."""
    if tenure_months <= 0:
        raise ValueError("tenure_months must be positive")
    r = annual_rate / 100 / 12
    if r == 0:
        return int(floor(max_emi * tenure_months))
    growth = (1 + r) ** tenure_months
    return int(floor(max_emi * (growth - 1) / (r * growth)))


def processing_fee(amount: float) -> int:
    return round_half_up(amount * PROCESSING_FEE_RATE)


def emi_to_income_percent(emi: int, monthly_income: int) -> int:
    if monthly_income <= 0:
        return 0
    return round_half_up(emi / monthly_income * 100)


def format_inr(value: float) -> str:
    """Indian digit grouping: 500000 -> '5,00,000'."""
    amount = round_half_up(value)
    sign = "-" if amount < 0 else ""
    digits = str(abs(amount))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])
