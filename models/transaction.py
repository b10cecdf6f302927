"""Pydantic models for transaction data"""
from datetime import datetime, timezone
from decimal import Decimal, DecimalException
from typing import Annotated, Any, Literal, Optional

from bson.decimal128 import Decimal128
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    StringConstraints,
    ValidationInfo,
    field_validator,
)

from utils.dates import parse_datetime

TransactionType = Literal['income', 'expense']
TRANSACTION_TYPES = ('income', 'expense')

# Summed as Decimal, rendered as a JSON number
Amount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used='json'),
]

Description = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
]


class TransactionCreate(BaseModel):
    """
    A validated record ready to be persisted.
    """
    model_config = ConfigDict(extra='ignore')

    type: TransactionType
    amount: Annotated[Decimal, Field(ge=0, allow_inf_nan=False)]
    description: Description
    date: Optional[datetime] = None

    @field_validator('amount')
    @classmethod
    def fits_decimal128(cls, value: Decimal) -> Decimal:
        # Stored as BSON Decimal128: at most 34 significant digits, bounded exponent
        try:
            Decimal128(value)
        except DecimalException as exc:
            raise ValueError('amount out of Decimal128 range') from exc
        return value

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        # Naive values are read in the zone passed through the validation context
        if value is None:
            return None
        tz = (info.context or {}).get('tz', timezone.utc)
        try:
            return parse_datetime(value, tz)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ValueError(f'invalid date {value!r}') from exc


class Transaction(BaseModel):
    """
    Represents a single stored income or expense transaction.
    """
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    type: TransactionType
    amount: Amount
    description: str
    date: datetime


class BalanceResponse(BaseModel):
    balance: Amount


class Summary(BaseModel):
    income: Amount = Decimal(0)
    expense: Amount = Decimal(0)

