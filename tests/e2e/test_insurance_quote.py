import pytest

from quoteflow.models import DENIAL_AGE_EXPERIENCE, DENIAL_TOO_MANY_ACCIDENTS, QuoteOutcome

pytestmark = pytest.mark.e2e


def test_insurance_quote_01_valid_data_quote_5500(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("24", "3", "0")

    quote_form.submit()

    assert quote_form.get_quote_result() == "$5500"


def test_insurance_quote_02_four_accidents_denied(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("25", "3", "4")

    quote_form.submit()

    assert quote_form.get_quote_result() == DENIAL_TOO_MANY_ACCIDENTS


def test_insurance_quote_03_valid_with_discount_quote_3905(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("35", "9", "2")

    quote_form.submit()

    assert quote_form.get_quote_result() == "$3905"


def test_insurance_quote_04_invalid_phone_number_error(quote_form):
    quote_form.fill_personal_info(valid=False)
    quote_form.enter_text("postal_code", "N2L 3G1")
    quote_form.enter_text("phone", "123")
    quote_form.enter_text("email", "skaur@gmail.com")
    quote_form.fill_driving_info("27", "3", "0")

    quote_form.submit()

    assert quote_form.get_validation_message("phone") != ""


def test_insurance_quote_05_invalid_email_error(quote_form):
    quote_form.fill_personal_info(valid=False)
    quote_form.enter_text("postal_code", "N2L 3G1")
    quote_form.enter_text("phone", "519-555-1234")
    quote_form.enter_text("email", "Skaur@gmail.com")
    quote_form.fill_driving_info("28", "3", "0")

    quote_form.submit()

    assert quote_form.get_validation_message("email") != ""


def test_insurance_quote_06_invalid_postal_code_error(quote_form):
    quote_form.fill_personal_info(valid=False)
    quote_form.enter_text("postal_code", "12345")
    quote_form.enter_text("phone", "519-555-1234")
    quote_form.enter_text("email", "Skaur@gmail.com")
    quote_form.fill_driving_info("35", "15", "1")

    quote_form.submit()

    assert quote_form.get_validation_message("postalCode") != ""


def test_insurance_quote_07_age_omitted_error(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("", "5", "0")

    quote_form.submit()

    assert quote_form.get_validation_message("age") != ""


def test_insurance_quote_08_accidents_omitted_error(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("37", "8", "")

    quote_form.submit()

    assert quote_form.get_validation_message("accidents") != ""


def test_insurance_quote_09_experience_omitted_error(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("45", "", "0")

    quote_form.submit()

    assert quote_form.get_validation_message("experience") != ""


def test_insurance_quote_10_minimum_age_quote_7000(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("16", "0", "0")

    quote_form.submit()

    assert quote_form.get_quote_result() == "$7000"


def test_insurance_quote_11_age30_two_years_exp_quote_3905(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("30", "2", "1")

    quote_form.submit()

    assert quote_form.get_quote_result() == "$3905"


def test_insurance_quote_12_max_experience_diff_quote_2840(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("45", "29", "1")

    quote_form.submit()

    assert quote_form.get_quote_result() == "$2840"


def test_insurance_quote_13_invalid_age_15_error(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("15", "0", "0")

    quote_form.submit()

    assert quote_form.get_validation_message("age") != ""


def test_insurance_quote_14_invalid_experience_denied(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("20", "5", "0")

    quote_form.submit()

    assert quote_form.get_quote_result() == DENIAL_AGE_EXPERIENCE


def test_insurance_quote_15_valid_data_quote_2840(quote_form):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info("40", "10", "2")

    quote_form.submit()

    assert quote_form.get_quote_result() == "$2840"


@pytest.mark.parametrize("driving", [("24", "3", "0"), ("25", "3", "4"), ("20", "5", "0")])
def test_accepted_input_gives_quote_or_denial(quote_form, driving):
    quote_form.fill_personal_info()
    quote_form.fill_driving_info(*driving)

    quote_form.submit()

    assert QuoteOutcome.parse(quote_form.get_quote_result()).kind in {"quote", "denial"}
