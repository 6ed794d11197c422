from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional


class DivisionMethod(str, Enum):
    EQUAL = "equal"
    CONSUMPTION = "consumption"


class BalanceStatus(str, Enum):
    CREDITOR = "creditor"
    DEBTOR = "debtor"
    SETTLED = "settled"


@dataclass(frozen=True, slots=True)
class Event:
    id: str
    name: str
    currency: str


@dataclass(frozen=True, slots=True)
class Participant:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ItemAssignment:
    participant_id: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class InvoiceItem:
    id: str
    name: str
    unit_price: Decimal
    quantity: int
    total: Decimal
    assignments: tuple[ItemAssignment, ...]

    @property
    def participant_ids(self) -> list[str]:
        return [assignment.participant_id for assignment in self.assignments]


@dataclass(frozen=True, slots=True)
class Participation:
    participant_id: str
    base_amount: Decimal
    tip_share: Decimal
    final_amount: Decimal


@dataclass(frozen=True, slots=True)
class Invoice:
    id: str
    event_id: str
    payer_id: str
    description: str
    total_amount: Decimal
    division_method: DivisionMethod
    participations: tuple[Participation, ...]
    tip_amount: Decimal = Decimal("0")
    birthday_person_id: Optional[str] = None
    consumptions: Optional[Mapping[str, Decimal]] = field(default=None, hash=False)
    items: Optional[tuple[InvoiceItem, ...]] = None

    @property
    def total_with_tip(self) -> Decimal:
        return self.total_amount + self.tip_amount


@dataclass(frozen=True, slots=True)
class Balance:
    participant_id: str
    total_paid: Decimal
    total_owed: Decimal
    net_balance: Decimal
    status: BalanceStatus


@dataclass(frozen=True, slots=True)
class Transfer:
    from_participant_id: str
    to_participant_id: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class TransferStatus:
    event_id: str
    from_participant_id: str
    to_participant_id: str
    is_settled: bool
    settled_at: Optional[datetime] = None
