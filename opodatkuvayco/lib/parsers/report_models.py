"""
Broker Report Models

Pydantic models for the broker export document:
- Trade records (trades.detailed)
- Corporate action records (corporate_actions.detailed), validated only
  once they are known to be dividends

Trades with an operation other than buy/sell are skipped, not rejected.

Field aliases follow the broker's JSON keys (instr_nm, q, p, curr_c).

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from enum import Enum
from decimal import Decimal, InvalidOperation
from datetime import datetime
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from opodatkuvayco.core.errors import InputMalformedError
from opodatkuvayco.lib.utils.logging_config import setup_logger

logger = setup_logger(__name__)


DATE_FORMATS = (
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%d',
)

DIVIDEND_ACTION_TYPE = "dividend"


class OperationTypeError(ValueError):
    """Raised when a trade operation cannot be normalized."""
    pass


class OperationType(str, Enum):
    """Trade direction."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def normalize(cls, value: str) -> 'OperationType':
        """Normalize operation flags from various export formats.

        Raises:
            OperationTypeError: If the operation cannot be mapped.
        """
        clean_value = str(value).strip().upper()

        operation_map = {
            "BUY": cls.BUY,
            "B": cls.BUY,
            "SELL": cls.SELL,
            "S": cls.SELL,
        }

        result = operation_map.get(clean_value)
        if result is None:
            raise OperationTypeError(f"Unknown trade operation: '{value}'")

        return result

    @classmethod
    def is_known(cls, value) -> bool:
        if isinstance(value, cls):
            return True
        try:
            cls.normalize(value)
        except OperationTypeError:
            return False
        return True


def parse_decimal(v) -> Decimal:
    """Parse numbers and numeric strings ('1,234.56') into Decimal."""
    if v is None or v == '':
        return Decimal(0)
    if isinstance(v, Decimal):
        return v
    if isinstance(v, bool):
        raise ValueError(f'Not a number: {v}')
    if isinstance(v, str):
        v = v.replace(',', '').strip()
    try:
        return Decimal(str(v))
    except InvalidOperation:
        raise ValueError(f'Not a number: {v!r}')


def parse_datetime(v) -> datetime:
    """Parse broker date strings; date-only values become midnight."""
    if isinstance(v, datetime):
        return v
    if not isinstance(v, str):
        raise ValueError(f'Unsupported date value: {v!r}')

    value = v.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f'Unrecognized date format: {v!r}')


class TradeRecord(BaseModel):
    """One executed trade as exported by the broker."""

    model_config = ConfigDict(populate_by_name=True)

    ticker: str = Field(alias='instr_nm')
    operation: OperationType
    quantity: Decimal = Field(alias='q')
    price: Decimal = Field(alias='p')
    commission: Decimal = Decimal(0)
    currency: str = Field(alias='curr_c')
    date: datetime

    @field_validator('operation', mode='before')
    @classmethod
    def normalize_operation(cls, v):
        if isinstance(v, OperationType):
            return v
        return OperationType.normalize(v)

    @field_validator('quantity', 'price', 'commission', mode='before')
    @classmethod
    def parse_amounts(cls, v):
        """Parse string decimals, stripping thousands separators."""
        return parse_decimal(v)

    @field_validator('quantity', 'commission')
    @classmethod
    def non_negative_values(cls, v):
        """Quantities and commissions are unsigned; direction lives in operation."""
        if v < 0:
            raise ValueError(f'Value cannot be negative: {v}')
        return v

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v):
        return parse_datetime(v)


class CorporateActionRecord(BaseModel):
    """A corporate action (dividend, split, ...) as exported by the broker."""

    model_config = ConfigDict(populate_by_name=True)

    type_id: str
    ticker: str
    currency: str
    date: datetime
    amount: Decimal = Decimal(0)

    @field_validator('amount', mode='before')
    @classmethod
    def parse_amount(cls, v):
        return parse_decimal(v)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v):
        return parse_datetime(v)

    def is_dividend(self) -> bool:
        return self.type_id == DIVIDEND_ACTION_TYPE


class TradesSection(BaseModel):
    detailed: List[TradeRecord] = Field(default_factory=list)

    @field_validator('detailed', mode='before')
    @classmethod
    def skip_unknown_operations(cls, v):
        """Drop trades that are neither buys nor sells (transfers, fees, ...)."""
        if not isinstance(v, list):
            return v

        kept = []
        for item in v:
            if isinstance(item, dict) and not OperationType.is_known(item.get('operation')):
                logger.debug(
                    f"Skipping trade {item.get('instr_nm')} with operation {item.get('operation')!r}"
                )
                continue
            kept.append(item)
        return kept


class CorporateActionsSection(BaseModel):
    """
    Corporate actions are kept as raw mappings.

    Only dividends are ever read, so other action types (splits,
    conversions, ...) are not validated and cannot break a report.
    """

    detailed: List[Dict[str, Any]] = Field(default_factory=list)


class BrokerReport(BaseModel):
    """
    Top-level broker export document.

    Unknown keys (cash flows, account info, ...) are ignored.
    """

    trades: TradesSection = Field(default_factory=TradesSection)
    corporate_actions: CorporateActionsSection = Field(default_factory=CorporateActionsSection)

    @field_validator('trades', 'corporate_actions', mode='before')
    @classmethod
    def empty_section(cls, v):
        # Brokers export empty sections as [] or null
        if v is None or v == []:
            return {}
        return v

    @property
    def trade_records(self) -> List[TradeRecord]:
        return self.trades.detailed

    @property
    def dividend_actions(self) -> List[CorporateActionRecord]:
        """
        Validated dividend records, in report order.

        Raises:
            InputMalformedError: If a dividend lacks a usable ticker, currency,
                date or amount
        """
        dividends = []
        for position, action in enumerate(self.corporate_actions.detailed):
            if action.get('type_id') != DIVIDEND_ACTION_TYPE:
                continue
            try:
                dividends.append(CorporateActionRecord.model_validate(action))
            except ValidationError as e:
                raise InputMalformedError(
                    f"Invalid dividend at corporate_actions.detailed.{position}: {e}"
                ) from e
        return dividends
