import copy

import pytest

from mcp_server_siigo.field_validator import ArgumentValidationError, SiigoFieldValidator
from mcp_server_siigo.operations import get_operation

TRIAL_BALANCE = {"year": 2024, "month_start": 1, "month_end": 12, "includes_tax_difference": False}


@pytest.fixture
def validator():
    return SiigoFieldValidator()


def problems_for(validator, tool, arguments):
    with pytest.raises(ArgumentValidationError) as exc_info:
        validator.validate(get_operation(tool), arguments)
    return exc_info.value.problems


def test_missing_path_argument(validator):
    assert problems_for(validator, "siigo_get_product", {}) == ["id: Field required"]


def test_null_counts_as_missing(validator):
    assert problems_for(validator, "siigo_delete_invoice", {"id": None}) == ["id: Field required"]


def test_wrong_type(validator):
    assert problems_for(validator, "siigo_get_product", {"id": 5}) == ["id: expected string, got int"]


def test_bool_is_not_a_number(validator):
    problems = problems_for(validator, "siigo_get_invoices", {"page": True})
    assert problems == ["page: expected number, got bool"]


def test_enum_value(validator):
    problems = problems_for(validator, "siigo_search_customers", {"type": "Vendor"})
    assert problems == ["type: must be one of Customer, Supplier, Other"]


def test_payload_model_reports_nested_location(validator):
    problems = problems_for(validator, "siigo_create_product", {"product": {"code": "P1", "name": "Widget"}})
    assert problems == ["product.account_group: Field required"]


def test_invoice_needs_at_least_one_item(validator):
    invoice = {
        "document": {"id": 24446},
        "date": "2024-03-01",
        "customer": {"identification": "900123456", "branch_office": 0},
        "seller": 629,
        "items": [],
        "payments": [{"id": 5636, "value": 1190}],
    }
    problems = problems_for(validator, "siigo_create_invoice", {"invoice": invoice})
    assert len(problems) == 1
    assert problems[0].startswith("invoice.items:")


def test_report_month_out_of_range(validator):
    problems = problems_for(validator, "siigo_get_trial_balance", {**TRIAL_BALANCE, "month_end": 14})
    assert len(problems) == 1
    assert problems[0].startswith("month_end:")


def test_report_requires_flags(validator):
    arguments = dict(TRIAL_BALANCE)
    del arguments["includes_tax_difference"]
    assert problems_for(validator, "siigo_get_trial_balance", arguments) == ["includes_tax_difference: Field required"]


def test_all_problems_are_reported_together(validator):
    with pytest.raises(ArgumentValidationError) as exc_info:
        validator.validate(get_operation("siigo_send_invoice_email"), {"copy_to": 3})
    message = str(exc_info.value)
    assert message.startswith("Invalid arguments: ")
    assert "id: Field required" in message
    assert "mail_to: Field required" in message
    assert "copy_to: expected string, got int" in message


def test_batch_invoices_need_idempotency_keys(validator):
    arguments = {
        "notification_url": "https://hooks.example.co/siigo",
        "invoices": [
            {
                "document": {"id": 24446},
                "date": "2024-03-01",
                "customer": {"identification": "900123456"},
                "seller": 629,
                "items": [{"code": "P1", "quantity": 1, "price": 1000}],
                "payments": [{"id": 5636, "value": 1000}],
            }
        ],
    }
    assert problems_for(validator, "siigo_create_invoice_batch", arguments) == [
        "invoices.0.idempotency_key: Field required"
    ]


def test_partial_update_is_accepted(validator):
    validator.validate(get_operation("siigo_update_customer"), {"id": "c-1", "customer": {"commercial_name": "Acme"}})


def test_unknown_upstream_fields_are_allowed(validator):
    product = {"code": "P1", "name": "Widget", "account_group": 10, "custom_flag": "x"}
    validator.validate(get_operation("siigo_create_product"), {"product": product})


def test_valid_arguments_are_left_untouched(validator):
    arguments = {**TRIAL_BALANCE, "customer": {"identification": "900123456"}}
    before = copy.deepcopy(arguments)

    validator.validate(get_operation("siigo_get_trial_balance_by_third"), arguments)

    assert arguments == before


def test_operation_without_arguments(validator):
    validator.validate(get_operation("siigo_get_taxes"), {})
