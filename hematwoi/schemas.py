"""Validated boundary between loose external rows and the domain dataclasses.

Rows arrive as plain dicts (database results, seed files, form input) with
optional fields, string amounts and a few legacy column names. Every row is
parsed here into a strict ``Account``/``Transaction``/``Budget`` before any
aggregation touches it.
"""
import logging
import re
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from hematwoi.config import DEFAULT_CARRY_RULE
from hematwoi.domain import (
    ACCOUNT_TYPES,
    CARRY_RULES,
    TRANSACTION_TYPES,
    Account,
    Budget,
    Category,
    Transaction,
    coerce_amount,
)
from hematwoi.functional import Either, Left, Right
from hematwoi.periods import normalize_period

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


def _optional_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1", "yes")
    return bool(value)


class AccountRow(_Row):
    id: str
    type: str = "other"
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        return _optional_id(v)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v):
        kind = str(v or "").strip().lower()
        return kind if kind in ACCOUNT_TYPES else "other"

    def to_domain(self) -> Account:
        return Account(id=self.id, type=self.type, name=self.name)


class CategoryRow(_Row):
    id: str
    name: str
    type: str = "expense"

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        return _optional_id(v)

    def to_domain(self) -> Category:
        return Category(id=self.id, name=self.name, type=self.type.lower())


class TransactionRow(_Row):
    id: str
    account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    type: str
    amount: float = 0.0
    date: str = ""
    category_id: Optional[str] = None
    deleted_at: Optional[str] = None
    note: str = ""

    @field_validator("id", "account_id", "to_account_id", "category_id", "deleted_at", mode="before")
    @classmethod
    def _ids(cls, v):
        return _optional_id(v)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v):
        kind = str(v or "").strip().lower()
        if kind not in TRANSACTION_TYPES:
            raise ValueError(f"unknown transaction type {v!r}")
        return kind

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return coerce_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        if not v:
            return ""
        text = str(v).strip()[:10]
        if not _ISO_DATE.fullmatch(text):
            raise ValueError(f"invalid date {v!r}, expected YYYY-MM-DD")
        date.fromisoformat(text)
        return text

    @field_validator("note", mode="before")
    @classmethod
    def _note(cls, v):
        return "" if v is None else str(v)

    def to_domain(self) -> Transaction:
        return Transaction(**self.model_dump())


class BudgetRow(_Row):
    id: str
    category_id: Optional[str] = None
    name: Optional[str] = None
    period: str = Field(validation_alias=AliasChoices("period", "period_month", "month"))
    planned: float = Field(0.0, validation_alias=AliasChoices("planned", "amount_planned"))
    rollover_in: float = 0.0
    rollover_out: float = 0.0
    carry_rule: str = DEFAULT_CARRY_RULE

    @model_validator(mode="before")
    @classmethod
    def _legacy_carryover(cls, data):
        # older rows only have a carryover_enabled flag
        if isinstance(data, dict) and data.get("carry_rule") is None and data.get("carryover_enabled") is not None:
            data = {**data, "carry_rule": "carry-positive" if _flag(data["carryover_enabled"]) else "none"}
        return data

    @field_validator("id", "category_id", mode="before")
    @classmethod
    def _ids(cls, v):
        return _optional_id(v)

    @field_validator("period", mode="before")
    @classmethod
    def _period(cls, v):
        return normalize_period(str(v)[:10] if v else v)

    @field_validator("planned", "rollover_in", "rollover_out", mode="before")
    @classmethod
    def _amounts(cls, v):
        return coerce_amount(v)

    @field_validator("carry_rule", mode="before")
    @classmethod
    def _carry_rule(cls, v):
        rule = str(v or DEFAULT_CARRY_RULE).strip().lower()
        if rule not in CARRY_RULES:
            raise ValueError(f"unknown carry rule {v!r}")
        return rule

    def to_domain(self) -> Budget:
        return Budget(**self.model_dump())


def _parse(model: type, kind: str, row: Dict[str, Any]) -> Either:
    if not isinstance(row, dict):
        return Left({
            "error": f"invalid_{kind}",
            "message": f"Expected a mapping for {kind}, got {type(row).__name__}",
        })
    try:
        return Right(model.model_validate(row).to_domain())
    except ValidationError as exc:
        return Left({
            "error": f"invalid_{kind}",
            "message": "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ),
            "id": row.get("id"),
        })


def parse_account(row: Dict[str, Any]) -> Either:
    return _parse(AccountRow, "account", row)


def parse_category(row: Dict[str, Any]) -> Either:
    return _parse(CategoryRow, "category", row)


def parse_transaction(row: Dict[str, Any]) -> Either:
    return _parse(TransactionRow, "transaction", row)


def parse_budget(row: Dict[str, Any]) -> Either:
    return _parse(BudgetRow, "budget", row)


def parse_rows(rows: Iterable[Dict[str, Any]], parser: Callable[[Dict[str, Any]], Either]) -> Tuple[tuple, List[dict]]:
    """Split a batch into (parsed records, error dicts); bad rows never abort the batch."""
    parsed, errors = [], []
    for row in rows or ():
        result = parser(row)
        if result.is_right():
            parsed.append(result.get_or_else(None))
        else:
            errors.append(result.get_error())
    if errors:
        logger.warning("%s: rejected %d of %d rows", getattr(parser, "__name__", "parser"), len(errors), len(errors) + len(parsed))
    return tuple(parsed), errors
