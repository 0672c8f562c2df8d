"""
Credit Ledger Data Models

Revolving credit accounts, the per-cycle debt record that mirrors their
consumption, and the transaction records exchanged with the transaction service.
"""

from enum import Enum
from typing import Optional
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pydantic import BaseModel, Field, field_serializer, field_validator


# ====================
# Enumerations
# ====================

class CreditTypeEnum(str, Enum):
    """Account category"""
    PERSONAL = "personal"
    BUSINESS = "business"


class DebtStatusEnum(str, Enum):
    """Debt lifecycle states"""
    ACTIVE = "ACTIVE"
    PAID = "PAID"
    EXPIRED = "EXPIRED"


class TransactionTypeEnum(str, Enum):
    """Transaction kinds sent to the transaction service"""
    CHARGE = "CHARGE"
    PAYMENT = "PAYMENT"


# ====================
# Core Data Models
# ====================

class Credit(BaseModel):
    """
    Revolving credit account.

    balance is derived: it always equals credit_limit - consumption_amount and
    is recomputed through recompute_balance() on every mutation.
    """
    id: str = Field(..., min_length=1, description="Unique account identifier")
    credit_number: str = Field(..., min_length=1, description="External account number")
    client_id: str = Field(..., min_length=1, description="Owner identifier")

    credit_limit: Decimal = Field(..., ge=0, description="Maximum total consumption")
    consumption_amount: Decimal = Field(default=Decimal("0"), ge=0, description="Outstanding consumption")
    balance: Decimal = Field(default=Decimal("0"), description="credit_limit - consumption_amount")
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0, description="Informational rate")
    type: CreditTypeEnum = Field(default=CreditTypeEnum.PERSONAL)

    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None

    @property
    def available_credit(self) -> Decimal:
        return self.credit_limit - self.consumption_amount

    def recompute_balance(self) -> None:
        self.balance = self.credit_limit - self.consumption_amount


class Debt(BaseModel):
    """
    Obligation record for the current billing cycle of a credit account.
    """
    id: str = Field(..., min_length=1, description="Unique debt identifier")
    credit_id: str = Field(..., min_length=1, description="Owning credit account")
    client_id: str = Field(..., min_length=1, description="Copied from the credit account")
    amount: Decimal = Field(default=Decimal("0"), description="Mirrors consumption while ACTIVE")
    status: DebtStatusEnum = Field(default=DebtStatusEnum.ACTIVE)
    due_date: date = Field(..., description="Pay-by date of the cycle")

    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None


# ====================
# Transaction Service Models
# ====================

class TransactionRequest(BaseModel):
    """Payload recorded by the transaction service for each charge/payment"""
    product_id: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    type: TransactionTypeEnum
    amount: Decimal
    balance: Decimal

    @field_serializer("amount", "balance", when_used="json")
    def _decimal_as_string(self, value: Decimal) -> str:
        # Strings keep the exact decimal value across the wire
        return str(value)

    def to_payload(self) -> dict:
        """camelCase body expected by the transaction service"""
        data = self.model_dump(mode="json")
        return {
            "productId": data["product_id"],
            "clientId": data["client_id"],
            "type": data["type"],
            "amount": data["amount"],
            "balance": data["balance"],
        }


class TransactionRecord(BaseModel):
    """Transaction acknowledged by the transaction service"""
    transaction_id: Optional[str] = None
    product_id: str
    client_id: str
    type: TransactionTypeEnum
    amount: Decimal
    balance: Decimal
    created_date: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "TransactionRecord":
        """Build from a camelCase or snake_case response body"""
        def pick(*keys):
            for key in keys:
                if key in payload and payload[key] is not None:
                    return payload[key]
            return None

        return cls(
            transaction_id=pick("id", "transactionId", "transaction_id"),
            product_id=pick("productId", "product_id"),
            client_id=pick("clientId", "client_id"),
            type=pick("type"),
            amount=Decimal(str(pick("amount"))),
            balance=Decimal(str(pick("balance"))),
            created_date=pick("createdDate", "created_date", "transactionDate"),
        )


# ====================
# Request / Response Models
# ====================

def _coerce_decimal(value):
    """Accept Decimal, int, str and float (via str()); reject bool and non-finite values."""
    if isinstance(value, bool):
        raise ValueError("must be a decimal amount, not a boolean")
    if isinstance(value, float):
        # str() keeps the shortest repr, avoiding binary float expansion
        value = str(value)
    if isinstance(value, (int, str)):
        try:
            value = Decimal(value)
        except InvalidOperation:
            raise ValueError(f"{value!r} is not a valid decimal")
    if not isinstance(value, Decimal):
        raise ValueError("must be a decimal amount")
    if not value.is_finite():
        raise ValueError("must be finite")
    return value


class CreateCreditRequest(BaseModel):
    """Request to open a credit account"""
    client_id: str = Field(..., min_length=1, max_length=64)
    credit_limit: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0)
    type: CreditTypeEnum = Field(default=CreditTypeEnum.PERSONAL)

    @field_validator('client_id')
    @classmethod
    def validate_client_id(cls, v):
        """Validate client_id is not blank"""
        if not v or not v.strip():
            raise ValueError("client_id cannot be empty")
        return v.strip()

    @field_validator('credit_limit', 'interest_rate', mode='before')
    @classmethod
    def validate_amounts(cls, v):
        return _coerce_decimal(v)


class UpdateCreditRequest(BaseModel):
    """Request to overwrite limit, type and rate"""
    credit_limit: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(..., ge=0)
    type: CreditTypeEnum

    @field_validator('credit_limit', 'interest_rate', mode='before')
    @classmethod
    def validate_amounts(cls, v):
        return _coerce_decimal(v)


class AmountRequest(BaseModel):
    """Charge or payment amount"""
    amount: Decimal = Field(..., gt=0)

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v):
        return _coerce_decimal(v)


class CreditFilter(BaseModel):
    """Optional filters for listing credits; unset fields do not filter"""
    credit_id: Optional[str] = None
    type: Optional[CreditTypeEnum] = None
    client_id: Optional[str] = None

    def matches(self, credit: Credit) -> bool:
        if self.credit_id and credit.id != self.credit_id:
            return False
        if self.type and credit.type != self.type:
            return False
        if self.client_id and credit.client_id != self.client_id:
            return False
        return True


class BalanceResponse(BaseModel):
    """Balance view of a credit account"""
    credit_id: str
    client_id: str
    balance: Decimal
    credit_limit: Decimal
    consumption_amount: Decimal
