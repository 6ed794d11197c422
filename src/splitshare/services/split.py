from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Sequence

from splitshare.domain.models import InvoiceItem, ItemAssignment
from splitshare.utils.money import ZERO, round2


IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class ItemDraft:
    name: str
    unit_price: Decimal
    quantity: int
    participant_ids: Sequence[str]
    id: str | None = None

    @property
    def total(self) -> Decimal:
        return round2(self.unit_price * self.quantity)


def unique_ids(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def divide_with_remainder(amount: Decimal, beneficiaries: Sequence[str]) -> dict[str, Decimal]:
    """Split ``amount`` so that the shares add up to it exactly.

    Every beneficiary but the last gets ``round2(amount / n)``; the last one
    absorbs whatever rounding left over. Order of ``beneficiaries`` matters.
    """
    if not beneficiaries:
        raise ValueError("beneficiaries must not be empty")

    share = round2(amount / len(beneficiaries))
    shares: dict[str, Decimal] = {}
    allocated = ZERO
    for beneficiary in beneficiaries[:-1]:
        shares[beneficiary] = share
        allocated += share
    shares[beneficiaries[-1]] = round2(amount - allocated)
    return shares


def merge_shares(shares: Iterable[Mapping[str, Decimal]]) -> dict[str, Decimal]:
    result: dict[str, Decimal] = {}
    for share in shares:
        for participant_id, amount in share.items():
            result[participant_id] = result.get(participant_id, ZERO) + amount
    return result


def split_item(item: ItemDraft, item_id: str) -> InvoiceItem:
    total = item.total
    shares = divide_with_remainder(total, unique_ids(item.participant_ids))
    return InvoiceItem(
        id=item_id,
        name=item.name,
        unit_price=item.unit_price,
        quantity=item.quantity,
        total=total,
        assignments=tuple(ItemAssignment(participant_id=pid, amount=amount) for pid, amount in shares.items()),
    )


def split_items(
    items: Sequence[ItemDraft],
    id_factory: IdFactory = new_id,
) -> tuple[list[InvoiceItem], dict[str, Decimal]]:
    split = [split_item(item, item.id or id_factory()) for item in items]
    consumptions = merge_shares(
        {assignment.participant_id: assignment.amount for assignment in item.assignments} for item in split
    )
    return split, consumptions
