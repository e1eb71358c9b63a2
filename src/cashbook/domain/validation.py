"""Input validation rules shared by the entity services.

Every check raises ``ValidationError`` before anything is persisted.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from cashbook.domain.entities import (
    AccountType,
    CustomerAccountType,
    FeeType,
    Subcategory,
    TransactionType,
)
from cashbook.domain.errors import ValidationError

MAX_AMOUNT = Decimal("999999999")
MIN_AMOUNT = Decimal("0.01")
MAX_PERCENTAGE_FEE = Decimal("100")

PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

CUSTOMER_REQUIRED = frozenset(
    {
        TransactionType.CASH_IN,
        TransactionType.CASH_OUT,
        TransactionType.LOAN_GIVEN,
        TransactionType.LOAN_RECEIVED,
        TransactionType.CASH_IN_PERSONAL,
        TransactionType.CASH_OUT_PERSONAL,
    }
)
FROM_ACCOUNT_REQUIRED = frozenset(
    {
        TransactionType.CASH_IN,
        TransactionType.ACCOUNT_TRANSFER,
        TransactionType.LOAN_GIVEN,
        TransactionType.EXPENSE,
        TransactionType.CASH_OUT_PERSONAL,
    }
)
TO_ACCOUNT_REQUIRED = frozenset(
    {
        TransactionType.CASH_OUT,
        TransactionType.ACCOUNT_TRANSFER,
        TransactionType.LOAN_RECEIVED,
        TransactionType.INCOME,
    }
)


def coerce_enum(enum_cls, value: Any, field: str):
    """Convert a raw value to ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Expected one of: {allowed}")


def coerce_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number, got '{value}'")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a number, got '{value}'")
    return number


def require_text(value: Optional[str], field: str, max_length: int) -> str:
    """Return stripped text, rejecting empty or overlong values."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    if len(text) > max_length:
        raise ValidationError(f"{field} is too long (max {max_length} characters)")
    return text


def optional_text(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} is too long (max {max_length} characters)")
    return text


def validate_amount(amount: Decimal, field: str = "Amount") -> Decimal:
    if amount < MIN_AMOUNT:
        raise ValidationError(f"{field} must be greater than 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} is too large")
    return amount


def validate_non_negative(amount: Decimal, field: str) -> Decimal:
    if amount < 0:
        raise ValidationError(f"{field} must be non-negative")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} is too large")
    return amount


def validate_phone(phone: Optional[str]) -> Optional[str]:
    phone = optional_text(phone, "Phone number", 20)
    if phone is not None and not PHONE_PATTERN.match(phone):
        raise ValidationError(f"Invalid phone number '{phone}'")
    return phone


def validate_fee_policy(fee_type: Any, fee_value: Any) -> tuple[FeeType, Decimal]:
    fee_type = coerce_enum(FeeType, fee_type, "fee type")
    value = validate_non_negative(coerce_decimal(fee_value, "Fee value"), "Fee value")
    if fee_type == FeeType.PERCENTAGE and value > MAX_PERCENTAGE_FEE:
        raise ValidationError("Percentage fee cannot exceed 100")
    return fee_type, value


def validate_account_fields(
    name: str,
    account_type: Any,
    opening_balance: Any,
    account_number: Optional[str] = None,
    provider: Optional[str] = None,
) -> dict[str, Any]:
    """Validate new-account input and return the normalised values."""
    return {
        "name": require_text(name, "Account name", 100),
        "type": coerce_enum(AccountType, account_type, "account type"),
        "opening_balance": validate_non_negative(
            coerce_decimal(opening_balance, "Opening balance"), "Opening balance"
        ),
        "account_number": optional_text(account_number, "Account number", 50),
        "provider": optional_text(provider, "Provider name", 100),
    }


def validate_customer_account_fields(
    account_title: str, account_number: str, bank_name: str, account_type: Any = "bank"
) -> dict[str, Any]:
    return {
        "account_title": require_text(account_title, "Account title", 100),
        "account_number": require_text(account_number, "Account number", 50),
        "bank_name": require_text(bank_name, "Bank name", 100),
        "type": coerce_enum(CustomerAccountType, account_type, "customer account type"),
    }


def resolve_subcategory(txn_type: TransactionType, subcategory: Any) -> Optional[Subcategory]:
    """Personal transactions default to physical cash; other types carry none."""
    if not txn_type.is_personal:
        return None
    if subcategory is None or subcategory == "":
        return Subcategory.PHYSICAL
    return coerce_enum(Subcategory, subcategory, "subcategory")


def required_counterparts(
    txn_type: TransactionType, subcategory: Optional[Subcategory]
) -> tuple[bool, bool, bool]:
    """Return (customer, from_account, to_account) requirements for a type."""
    needs_to = txn_type in TO_ACCOUNT_REQUIRED or (
        txn_type == TransactionType.CASH_IN_PERSONAL and subcategory == Subcategory.DIGITAL
    )
    return txn_type in CUSTOMER_REQUIRED, txn_type in FROM_ACCOUNT_REQUIRED, needs_to


def validate_counterparts(
    txn_type: TransactionType,
    subcategory: Optional[Subcategory],
    customer_id: Optional[object],
    from_account_id: Optional[object],
    to_account_id: Optional[object],
) -> None:
    needs_customer, needs_from, needs_to = required_counterparts(txn_type, subcategory)
    if needs_customer and customer_id is None:
        raise ValidationError(f"A customer is required for {txn_type.label} transactions")
    if needs_from and from_account_id is None:
        raise ValidationError(f"A from account is required for {txn_type.label} transactions")
    if needs_to and to_account_id is None:
        raise ValidationError(f"A to account is required for {txn_type.label} transactions")
    if (
        txn_type == TransactionType.ACCOUNT_TRANSFER
        and from_account_id is not None
        and from_account_id == to_account_id
    ):
        raise ValidationError("Cannot transfer between the same account")


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email address")
    return email


def validate_password(password: str) -> str:
    """Enforce the password policy used at sign-up and reset."""
    if len(password or "") < 8:
        raise ValidationError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise ValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValidationError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValidationError("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", password):
        raise ValidationError("Password must contain at least one special character")
    return password
