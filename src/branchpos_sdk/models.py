from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def _parse_money(value: Any) -> Any:
    # JSON numbers arrive as floats; go through str so 24.99 stays 24.99.
    if isinstance(value, float):
        return Decimal(str(value))
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_parse_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]

ALL_CATEGORY_ID = "all"


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Branch(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class Store(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    branches: tuple[Branch, ...] = ()

    def branch(self, branch_id: str) -> Branch | None:
        for branch in self.branches:
            if branch.id == branch_id:
                return branch
        return None

    def has_branch(self, branch_id: str) -> bool:
        return self.branch(branch_id) is not None

    @property
    def first_branch(self) -> Branch | None:
        return self.branches[0] if self.branches else None


class Category(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class Product(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Money = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    category: str


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    VOIDED = "voided"


class TransactionItem(WireModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    product_name: str
    quantity: int = Field(ge=1)
    unit_price: Money = Field(ge=0)
    line_total: Money = Field(ge=0)


class TransactionDraft(WireModel):
    """A checked-out cart that the store of record has not assigned an id to yet."""

    model_config = ConfigDict(frozen=True)

    store_id: str
    store_name: str
    branch_id: str
    branch_name: str
    items: tuple[TransactionItem, ...] = ()
    subtotal: Money = Field(ge=0)
    discount: Money = Field(default=Decimal("0"), ge=0)
    total: Money = Field(ge=0)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class Transaction(TransactionDraft):
    id: str
    timestamp: int
    status: TransactionStatus = TransactionStatus.COMPLETED
    voided_at: int | None = None
    void_reason: str | None = None

    @property
    def is_voided(self) -> bool:
        return self.status is TransactionStatus.VOIDED

    @property
    def can_void(self) -> bool:
        return self.status is TransactionStatus.COMPLETED

    def voided(self, *, at: int, reason: str | None = None) -> "Transaction":
        update: dict[str, Any] = {"status": TransactionStatus.VOIDED, "voided_at": at}
        if reason:
            update["void_reason"] = reason
        return self.model_copy(update=update)


class TransactionQuery(WireModel):
    store_id: str | None = None
    branch_id: str | None = None

    def to_params(self) -> dict[str, str] | None:
        params = self.to_wire()
        return params or None

    def matches(self, transaction: TransactionDraft) -> bool:
        if self.store_id and transaction.store_id != self.store_id:
            return False
        if self.branch_id and transaction.branch_id != self.branch_id:
            return False
        return True


class TransactionListResponse(WireModel):
    transactions: list[Transaction] = Field(default_factory=list)


class TransactionEnvelope(WireModel):
    transaction: Transaction


class VoidRequest(WireModel):
    reason: str | None = None


class VoidResponse(WireModel):
    success: bool = True
