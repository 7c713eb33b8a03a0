from __future__ import annotations

from decimal import Decimal

import pytest

from gibrocash.errors import ValidationError
from gibrocash.forms import (
    ImprestForm,
    ProposalForm,
    TransactionForm,
    UserForm,
    build_form,
)
from gibrocash.models import User

GOOD_USER = {
    "user_name": "Jane Wanjiku",
    "phone_no": "0712345678",
    "password": "secret1",
    "confirm_password": "secret1",
}


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"user_name": "", "phone_no": "", "password": ""}, "Name is required."),
        ({"phone_no": "  "}, "Phone number is required."),
        ({"phone_no": "12345"}, "Please enter a valid Kenyan phone number."),
        ({"phone_no": "07123456789"}, "Please enter a valid Kenyan phone number."),
        ({"password": "abc", "confirm_password": "abc"}, "Password must be at least 6 characters."),
        ({"confirm_password": "secret2"}, "Passwords do not match."),
    ],
)
def test_user_form_reports_first_failure_in_order(overrides, message):
    with pytest.raises(ValidationError) as excinfo:
        build_form(UserForm, **{**GOOD_USER, **overrides})
    assert str(excinfo.value) == message


@pytest.mark.parametrize("phone", ["0712345678", "0712 345 678", "254712345678", "+254712345678"])
def test_user_form_accepts_kenyan_phone_formats(phone):
    form = build_form(UserForm, **{**GOOD_USER, "phone_no": phone})
    assert form.phone_no == phone


def test_user_form_payload_uppercases_designation():
    form = build_form(UserForm, **GOOD_USER, designation="admin")
    assert form.to_payload() == {
        "UserName": "Jane Wanjiku",
        "phoneNo": "0712345678",
        "password": "secret1",
        "designation": "ADMIN",
    }


def test_validation_error_names_the_field():
    with pytest.raises(ValidationError) as excinfo:
        build_form(UserForm, **{**GOOD_USER, "phone_no": "999"})
    assert excinfo.value.field == "phone_no"


def test_imprest_form_requires_assignee():
    with pytest.raises(ValidationError, match="Please select a user"):
        build_form(ImprestForm, name="Office", amount="1000", assignee=None)


def test_imprest_form_rejects_negative_amount():
    with pytest.raises(ValidationError, match="Amount cannot be negative."):
        build_form(ImprestForm, name="Office", amount="-5", assignee=None)


def test_imprest_form_payload():
    jane = User(id=7, name="Jane", phone="0712345678", role="STAFF")
    form = build_form(
        ImprestForm, name="Fuel", amount="2500.50", imprest_type="Loan", assignee=jane
    )
    assert form.to_payload(created_by=1) == {
        "name": "Fuel",
        "amount": 2500.5,
        "createdBy": 1,
        "assignedTo": {"id": 7, "phone": "0712345678"},
        "ImprestType": "loan",
    }


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"item": " "}, "Item description is required."),
        ({"item_quantity": 0}, "Quantity must be at least 1."),
        ({"item_quantity": "two"}, "Quantity must be a whole number."),
        ({"unit_price": ""}, "Unit price is required."),
        ({"unit_price": "abc"}, "Unit price must be a number."),
        ({"vat_charged": "-1"}, "VAT cannot be negative."),
    ],
)
def test_transaction_form_checks(overrides, message):
    data = {"item": "Paper", "item_quantity": 2, "unit_price": "100", "vat_charged": "20"}
    with pytest.raises(ValidationError) as excinfo:
        build_form(TransactionForm, **{**data, **overrides})
    assert str(excinfo.value) == message


def test_transaction_form_missing_receipt_file(tmp_path):
    with pytest.raises(ValidationError, match="Receipt file not found"):
        build_form(TransactionForm, item="Paper", unit_price="1", receipt=tmp_path / "nope.png")


def test_transaction_form_preview_and_payload():
    form = build_form(TransactionForm, item="Paper", item_quantity="2", unit_price="100", vat_charged="20")
    assert form.preview_total() == Decimal(220)
    assert form.to_payload(imprest_id=3, user_id=1, image_url="r/1.png") == {
        "item": "Paper",
        "itemQuantity": 2,
        "unitPrice": 100.0,
        "Total_amount": 220.0,
        "imprestAccount_id": 3,
        "userID": 1,
        "vat_charged": 20.0,
        "url_image": "r/1.png",
    }


def test_proposal_form_checks_title_then_items():
    with pytest.raises(ValidationError, match="Title is required."):
        build_form(ProposalForm, title="", items=[])
    with pytest.raises(ValidationError, match="Add at least one item."):
        build_form(ProposalForm, title="Lunch", items=[])
    with pytest.raises(ValidationError, match="Each item needs a name."):
        build_form(ProposalForm, title="Lunch", items=[{"name": "", "quantity": 1, "price": 5}])


def test_proposal_form_preview_and_payload():
    form = build_form(
        ProposalForm,
        title="Lunch",
        items=[{"name": "Rice", "quantity": "2", "price": "500"}, {"name": "Soda", "quantity": 4, "price": 60}],
    )
    assert form.preview_total() == Decimal(1240)
    assert form.to_payload(created_by=1) == {
        "title": "Lunch",
        "amount": 1240.0,
        "createdBy": 1,
        "items": [
            {"name": "Rice", "quantity": 2, "price": 500.0},
            {"name": "Soda", "quantity": 4, "price": 60.0},
        ],
    }
