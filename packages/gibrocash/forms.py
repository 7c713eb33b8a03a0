"""Form models validated before any network call.

Each form is a pydantic model whose validators carry the exact user-facing
messages. :func:`build_form` constructs a form and converts the *first*
failing check (in field order, then cross-field checks) into a
:class:`gibrocash.errors.ValidationError`.

``to_payload`` produces the request body the remote API expects; amounts are
sent as JSON numbers.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .metrics import proposal_total, transaction_total
from .models import EntityId, User

KENYAN_PHONE_RE = re.compile(r"^(0|\+?254)\d{9}$")
MIN_PASSWORD_LENGTH = 6
DESIGNATIONS: tuple[str, ...] = ("STAFF", "ADMIN")
IMPREST_TYPES: tuple[str, ...] = ("company imprest", "directors advance", "loan")

FormT = TypeVar("FormT", bound=BaseModel)


def build_form(model: type[FormT], /, **data: Any) -> FormT:
    """Instantiate ``model`` or raise :class:`ValidationError` with the first message."""

    try:
        return model(**data)
    except PydanticValidationError as exc:
        err = exc.errors()[0]
        original = (err.get("ctx") or {}).get("error")
        message = str(original) if original is not None else err["msg"]
        field = ".".join(str(p) for p in err.get("loc", ())) or None
        raise ValidationError(message, field=field) from None


def _parse_decimal(value: Any, *, label: str, required: bool = True) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValueError(f"{label} is required.")
        return Decimal(0)
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number.")
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"{label} must be a number.") from None
    if not d.is_finite():
        raise ValueError(f"{label} must be a number.")
    if d < 0:
        raise ValueError(f"{label} cannot be negative.")
    return d


def _parse_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("Quantity must be a whole number.")
    try:
        qty = int(str(value).strip())
    except ValueError:
        raise ValueError("Quantity must be a whole number.") from None
    if qty < 1:
        raise ValueError("Quantity must be at least 1.")
    return qty


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    user_name: str = ""
    phone_no: str = ""
    password: str = ""
    confirm_password: str = ""
    designation: str = "STAFF"

    @field_validator("user_name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required.")
        return v

    @field_validator("phone_no")
    @classmethod
    def _kenyan_phone(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Phone number is required.")
        if not KENYAN_PHONE_RE.fullmatch(re.sub(r"\s", "", v)):
            raise ValueError("Please enter a valid Kenyan phone number.")
        return v

    @field_validator("password")
    @classmethod
    def _password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return v

    @field_validator("designation")
    @classmethod
    def _known_designation(cls, v: str) -> str:
        upper = v.strip().upper()
        if upper not in DESIGNATIONS:
            raise ValueError("Designation must be STAFF or ADMIN.")
        return upper

    @model_validator(mode="after")
    def _passwords_match(self) -> UserForm:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self

    def to_payload(self) -> dict[str, Any]:
        return {
            "UserName": self.user_name,
            "phoneNo": self.phone_no,
            "password": self.password,
            "designation": self.designation,
        }


# ---------------------------------------------------------------------------
# Imprests
# ---------------------------------------------------------------------------


class ImprestForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    name: str = ""
    amount: Decimal = Decimal(0)
    imprest_type: str = "company imprest"
    # A canonical User picked from the admin's user list.
    assignee: Any = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Imprest name is required.")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> Decimal:
        return _parse_decimal(v, label="Amount")

    @field_validator("imprest_type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        lowered = v.strip().lower()
        if lowered not in IMPREST_TYPES:
            raise ValueError("Imprest type must be one of: " + ", ".join(IMPREST_TYPES) + ".")
        return lowered

    @field_validator("assignee")
    @classmethod
    def _assignee_selected(cls, v: Any) -> User:
        if not isinstance(v, User):
            raise ValueError("Please select a user to assign the imprest to.")
        return v

    def to_payload(self, created_by: EntityId) -> dict[str, Any]:
        return {
            "name": self.name,
            "amount": float(self.amount),
            "createdBy": created_by,
            "assignedTo": {"id": self.assignee.id, "phone": self.assignee.phone},
            "ImprestType": self.imprest_type,
        }


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    item: str = ""
    item_quantity: int = 1
    unit_price: Decimal = Decimal(0)
    vat_charged: Decimal = Decimal(0)
    receipt: Path | None = None

    @field_validator("item")
    @classmethod
    def _item_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Item description is required.")
        return v

    @field_validator("item_quantity", mode="before")
    @classmethod
    def _quantity(cls, v: Any) -> int:
        return _parse_quantity(v)

    @field_validator("unit_price", mode="before")
    @classmethod
    def _unit_price(cls, v: Any) -> Decimal:
        return _parse_decimal(v, label="Unit price")

    @field_validator("vat_charged", mode="before")
    @classmethod
    def _vat(cls, v: Any) -> Decimal:
        return _parse_decimal(v, label="VAT", required=False)

    @field_validator("receipt")
    @classmethod
    def _receipt_exists(cls, v: Path | None) -> Path | None:
        if v is not None and not v.is_file():
            raise ValueError(f"Receipt file not found: {v}")
        return v

    def preview_total(self) -> Decimal:
        return transaction_total(self.item_quantity, self.unit_price, self.vat_charged)

    def to_payload(
        self, *, imprest_id: EntityId, user_id: EntityId, image_url: str = ""
    ) -> dict[str, Any]:
        return {
            "item": self.item,
            "itemQuantity": self.item_quantity,
            "unitPrice": float(self.unit_price),
            "Total_amount": float(self.preview_total()),
            "imprestAccount_id": imprest_id,
            "userID": user_id,
            "vat_charged": float(self.vat_charged),
            "url_image": image_url,
        }


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


class ProposalItemForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    name: str = ""
    quantity: int = 1
    price: Decimal = Decimal(0)

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Each item needs a name.")
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, v: Any) -> int:
        return _parse_quantity(v)

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v: Any) -> Decimal:
        return _parse_decimal(v, label="Price")


class ProposalForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    title: str = ""
    items: list[ProposalItemForm] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required.")
        return v

    @field_validator("items")
    @classmethod
    def _at_least_one(cls, v: list[ProposalItemForm]) -> list[ProposalItemForm]:
        if not v:
            raise ValueError("Add at least one item.")
        return v

    def preview_total(self) -> Decimal:
        return proposal_total(self.items)

    def to_payload(self, created_by: EntityId) -> dict[str, Any]:
        return {
            "title": self.title,
            "amount": float(self.preview_total()),
            "createdBy": created_by,
            "items": [
                {"name": i.name, "quantity": i.quantity, "price": float(i.price)}
                for i in self.items
            ],
        }


__all__ = [
    "DESIGNATIONS",
    "IMPREST_TYPES",
    "ImprestForm",
    "KENYAN_PHONE_RE",
    "ProposalForm",
    "ProposalItemForm",
    "TransactionForm",
    "UserForm",
    "build_form",
]
