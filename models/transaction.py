# models/transaction.py
from pydantic import BaseModel, Field, field_validator
import datetime as dt
from decimal import Decimal
from typing import List, Optional, Union

from core.amount import parse_decimal


class ExtractedTransaction(BaseModel):
    """
    One candidate record pulled out of a bank statement.
    Amounts are signed and in major units: charges negative, deposits positive.
    """

    date: Union[dt.date, str] = Field(..., description="Posting date of the movement")
    payee: str = Field(default="", description="Counterpart name as printed on the statement")
    amount: Decimal = Field(..., description="Signed amount in major currency units")
    category_name: Optional[str] = Field(None, description="Suggested budget category")
    memo: str = Field(default="", description="Free-form note")

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str):
            try:
                from dateutil import parser
                return parser.parse(v).date()
            except (ValueError, OverflowError):
                return dt.date.today()
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        amount = parse_decimal(v)
        if amount is None:
            raise ValueError(f"unreadable amount: {v!r}")
        return amount

    @field_validator("payee", "memo", mode="before")
    @classmethod
    def validate_text(cls, v):
        return (v or "").strip()


class StatementExtraction(BaseModel):
    """Structured output expected from the statement extraction prompt."""

    transactions: List[ExtractedTransaction] = Field(default_factory=list)
    skipped: int = Field(0, description="Rows dropped because they failed validation")


class LedgerAccount(BaseModel):
    id: str
    name: str
    type: str = "checking"
    balance: int = Field(0, description="Balance in milliunits")


class LedgerTransaction(BaseModel):
    id: str
    account_id: str
    date: dt.date
    amount: int = Field(..., description="Amount in milliunits")
    payee_name: str = ""
    category_name: Optional[str] = None
    memo: str = ""
    approved: bool = True
