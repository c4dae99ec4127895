from loanease.services.mock_data_service import (
    find_customer,
    generate_loan_offer,
    get_credit_score,
    get_customer,
    list_customers,
)
from loanease.services.loan_math import calculate_emi


def test_fixture_loads_canonical_customers():
    customers = list_customers()
    assert len(customers) >= 8
    assert len({c.id for c in customers}) == len(customers)
    assert len({c.phone for c in customers}) == len(customers)


def test_find_by_phone():
    c = find_customer("9876543210")
    assert c is not None and c.id == "CUST001"


def test_find_by_email_is_case_insensitive():
    c = find_customer("  Priya.Sharma@Email.com ")
    assert c is not None and c.id == "CUST002"


def test_find_by_name_substring():
    c = find_customer("meera")
    assert c is not None and c.id == "CUST006"


def test_first_match_in_table_order_wins():
    # "a" is contained in almost every name; the first record wins
    assert find_customer("a").id == list_customers()[0].id


def test_unknown_or_blank_identifier_is_not_found():
    assert find_customer("0000000000") is None
    assert find_customer("I'm a new customer") is None
    assert find_customer("   ") is None


def test_get_customer_by_id():
    assert get_customer("CUST005").name == "Vikram Singh"
    assert get_customer("NOPE") is None
    assert get_customer(None) is None


def test_credit_report_buckets():
    assert get_credit_score("CUST002").credit_history == "Excellent"
    assert get_credit_score("CUST007").credit_history == "Good"
    report = get_credit_score("CUST003")
    assert report.credit_history == "Fair"
    assert report.credit_score < 700
    assert report.active_loans == 2
    assert report.default_history is False
    assert get_credit_score("NOPE") is None


def test_offer_defaults_to_pre_approved_limit():
    customer = get_customer("CUST001")
    offer = generate_loan_offer(customer)
    assert offer.amount == customer.pre_approved_limit
    assert offer.interest_rate == 11.5
    assert offer.tenure == 36
    assert offer.emi == calculate_emi(offer.amount, 11.5, 36)
    assert offer.processing_fee == 10000
    assert offer.pre_approved is True


def test_offer_above_limit_is_not_pre_approved():
    customer = get_customer("CUST001")
    offer = generate_loan_offer(customer, 750000, 24)
    assert offer.pre_approved is False
    assert offer.tenure == 24
