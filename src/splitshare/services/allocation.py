from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import ClassVar, Collection, Mapping, Optional, Sequence, Union

from splitshare.domain.models import DivisionMethod, Invoice, InvoiceItem, Participation
from splitshare.errors import ConsistencyError, SplitError, ValidationError
from splitshare.logging import get_logger
from splitshare.services.split import IdFactory, ItemDraft, divide_with_remainder, new_id, split_items, unique_ids
from splitshare.utils.money import MAX_AMOUNT, TOLERANCE, ZERO, round2, too_large


log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class EqualSplit:
    method: ClassVar[DivisionMethod] = DivisionMethod.EQUAL


@dataclass(frozen=True, slots=True)
class ConsumptionSplit:
    consumptions: Mapping[str, Decimal]

    method: ClassVar[DivisionMethod] = DivisionMethod.CONSUMPTION


@dataclass(frozen=True, slots=True)
class ItemizedSplit:
    items: Sequence[ItemDraft]

    method: ClassVar[DivisionMethod] = DivisionMethod.CONSUMPTION


Division = Union[EqualSplit, ConsumptionSplit, ItemizedSplit]


@dataclass(frozen=True, slots=True)
class InvoiceDraft:
    description: str
    total_amount: Decimal
    payer_id: str
    participant_ids: Sequence[str]
    division: Division = EqualSplit()
    tip_amount: Decimal = ZERO
    birthday_person_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Allocation:
    participant_ids: tuple[str, ...]
    participations: tuple[Participation, ...]
    items: Optional[tuple[InvoiceItem, ...]] = None
    consumptions: Optional[Mapping[str, Decimal]] = field(default=None, hash=False)

    @property
    def total(self) -> Decimal:
        return sum((p.final_amount for p in self.participations), ZERO)


def allocate(
    draft: InvoiceDraft,
    known_participant_ids: Collection[str],
    id_factory: IdFactory = new_id,
) -> Allocation:
    """Compute every participant's share of one invoice.

    ``known_participant_ids`` is the set of participants that exist in the
    event. Raises ``ValidationError`` or ``ConsistencyError`` on the first
    problem found; nothing is returned unless the whole invoice balances.
    """
    try:
        allocation = _allocate(draft, known_participant_ids, id_factory)
    except SplitError as exc:
        log.info("invoice.rejected", code=exc.code, field=exc.field, reason=exc.message)
        raise

    log.debug(
        "invoice.allocated",
        method=draft.division.method.value,
        participants=len(allocation.participant_ids),
        items=len(allocation.items or ()),
        total=str(allocation.total),
    )
    return allocation


def _allocate(draft: InvoiceDraft, known_participant_ids: Collection[str], id_factory: IdFactory) -> Allocation:
    _validate_amounts(draft)
    participant_ids = _resolve_participants(draft, known_participant_ids)

    items: Optional[list[InvoiceItem]] = None
    consumptions: Optional[dict[str, Decimal]] = None
    division = draft.division
    if isinstance(division, ItemizedSplit):
        _validate_items(division.items, participant_ids, draft.total_amount)
        items, derived = split_items(division.items, id_factory)
        consumptions = _consumptions_for(derived, participant_ids, draft.total_amount)
    elif isinstance(division, ConsumptionSplit):
        consumptions = _consumptions_for(division.consumptions, participant_ids, draft.total_amount)

    if consumptions is None:
        base_shares = divide_with_remainder(draft.total_amount, participant_ids)
    else:
        base_shares = _consumption_shares(consumptions, participant_ids, draft.total_amount)

    if draft.birthday_person_id is not None:
        base_shares = _gift_birthday_share(base_shares, participant_ids, draft.birthday_person_id)

    tip_shares = _tip_shares(draft.tip_amount, participant_ids)
    participations = _merge(participant_ids, base_shares, tip_shares, draft.total_amount, draft.tip_amount)

    return Allocation(
        participant_ids=tuple(participant_ids),
        participations=tuple(participations),
        items=tuple(items) if items is not None else None,
        consumptions=_frozen(consumptions),
    )


def _frozen(consumptions: Optional[Mapping[str, Decimal]]) -> Optional[Mapping[str, Decimal]]:
    if consumptions is None:
        return None
    return MappingProxyType(dict(consumptions))


def _validate_amounts(draft: InvoiceDraft) -> None:
    if not draft.description or not draft.description.strip():
        raise ValidationError("description", "Description is required")
    if not draft.total_amount.is_finite() or draft.total_amount <= 0:
        raise ValidationError("totalAmount", "Total amount must be greater than 0")
    if too_large(draft.total_amount):
        raise ValidationError("totalAmount", f"Total amount must be at most {MAX_AMOUNT}")
    if not draft.tip_amount.is_finite() or draft.tip_amount < 0:
        raise ValidationError("tipAmount", "Tip amount must be >= 0")
    if too_large(draft.tip_amount):
        raise ValidationError("tipAmount", f"Tip amount must be at most {MAX_AMOUNT}")
    if not isinstance(draft.division, (EqualSplit, ConsumptionSplit, ItemizedSplit)):
        raise ValidationError("divisionMethod", "Division method must be equal or consumption")
    if not draft.payer_id:
        raise ValidationError("payerId", "Payer is required")


def _resolve_participants(draft: InvoiceDraft, known_participant_ids: Collection[str]) -> list[str]:
    # the payer always takes part in their own invoice
    participant_ids = unique_ids([*draft.participant_ids, draft.payer_id])
    if not participant_ids:
        raise ValidationError("participantIds", "At least one participant is required")

    missing = [pid for pid in participant_ids if pid not in known_participant_ids]
    if missing:
        raise ValidationError("participantIds", f"Missing participants: {', '.join(missing)}")

    birthday_id = draft.birthday_person_id
    if birthday_id is not None:
        if birthday_id not in participant_ids:
            raise ValidationError("birthdayPersonId", "Birthday person must be a participant")
        if len(participant_ids) < 2:
            raise ValidationError("birthdayPersonId", "Birthday person needs at least one other participant")

    return participant_ids


def _validate_items(items: Sequence[ItemDraft], participant_ids: Sequence[str], total_amount: Decimal) -> None:
    if not items:
        raise ValidationError("items", "At least one item is required")

    allowed = set(participant_ids)
    items_total = ZERO
    for index, item in enumerate(items):
        prefix = f"items[{index}]"
        if not item.name or not item.name.strip():
            raise ValidationError(f"{prefix}.name", "Item name is required")
        if not item.unit_price.is_finite() or item.unit_price <= 0:
            raise ValidationError(f"{prefix}.unitPrice", "Unit price must be greater than 0")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError(f"{prefix}.quantity", "Quantity must be an integer >= 1")
        if too_large(item.unit_price * item.quantity):
            raise ValidationError(f"{prefix}.unitPrice", f"Item total must be at most {MAX_AMOUNT}")
        if not item.participant_ids:
            raise ValidationError(f"{prefix}.participantIds", "Each item needs at least one participant")
        outsiders = [pid for pid in unique_ids(item.participant_ids) if pid not in allowed]
        if outsiders:
            raise ValidationError(
                f"{prefix}.participantIds",
                f"Item participants must be invoice participants: {', '.join(outsiders)}",
            )
        items_total += item.total

    if abs(total_amount - items_total) > TOLERANCE:
        raise ConsistencyError(
            "items",
            f"Sum of items ({items_total:.2f}) does not match total ({total_amount:.2f})",
            expected=total_amount,
            actual=items_total,
        )


def _consumptions_for(
    consumptions: Mapping[str, Decimal],
    participant_ids: Sequence[str],
    total_amount: Decimal,
) -> dict[str, Decimal]:
    unknown = [pid for pid in consumptions if pid not in participant_ids]
    if unknown:
        raise ValidationError("consumptions", f"Consumptions reference non-participants: {', '.join(unknown)}")

    normalized: dict[str, Decimal] = {}
    for pid in participant_ids:
        value = consumptions.get(pid, ZERO)
        if not value.is_finite() or value < 0:
            raise ValidationError("consumptions", f"Consumption for {pid} must be >= 0")
        if too_large(value):
            raise ValidationError("consumptions", f"Consumption for {pid} must be at most {MAX_AMOUNT}")
        normalized[pid] = round2(value)

    consumed = sum(normalized.values(), ZERO)
    if consumed <= 0:
        raise ValidationError("consumptions", "At least one consumption > 0 is required")
    if abs(total_amount - consumed) > TOLERANCE:
        raise ConsistencyError(
            "consumptions",
            f"Sum of consumptions ({consumed:.2f}) does not match total ({total_amount:.2f})",
            expected=total_amount,
            actual=consumed,
        )
    return normalized


def _consumption_shares(
    consumptions: Mapping[str, Decimal],
    participant_ids: Sequence[str],
    total_amount: Decimal,
) -> dict[str, Decimal]:
    shares: dict[str, Decimal] = {}
    allocated = ZERO
    for pid in participant_ids[:-1]:
        shares[pid] = consumptions[pid]
        allocated += consumptions[pid]
    # the last participant soaks up the within-tolerance gap
    shares[participant_ids[-1]] = round2(total_amount - allocated)
    return shares


def _gift_birthday_share(
    shares: Mapping[str, Decimal],
    participant_ids: Sequence[str],
    birthday_id: str,
) -> dict[str, Decimal]:
    gifted = dict(shares)
    gift = gifted[birthday_id]
    gifted[birthday_id] = ZERO
    if gift == 0:
        return gifted

    others = [pid for pid in participant_ids if pid != birthday_id]
    for pid, extra in divide_with_remainder(gift, others).items():
        gifted[pid] = round2(gifted[pid] + extra)
    return gifted


def _tip_shares(tip_amount: Decimal, participant_ids: Sequence[str]) -> dict[str, Decimal]:
    if tip_amount <= 0:
        return {pid: ZERO for pid in participant_ids}
    return divide_with_remainder(tip_amount, participant_ids)


def _merge(
    participant_ids: Sequence[str],
    base_shares: Mapping[str, Decimal],
    tip_shares: Mapping[str, Decimal],
    total_amount: Decimal,
    tip_amount: Decimal,
) -> list[Participation]:
    expected = round2(total_amount + tip_amount)
    last_index = len(participant_ids) - 1
    participations: list[Participation] = []
    allocated = ZERO
    for index, pid in enumerate(participant_ids):
        base = round2(base_shares[pid])
        tip = round2(tip_shares[pid])
        final = round2(base + tip)
        if index == last_index:
            # base and tip passes can each drift by a cent; fold it into the last tip
            tip = tip + expected - (allocated + final)
            final = round2(base + tip)
        allocated += final
        participations.append(Participation(participant_id=pid, base_amount=base, tip_share=tip, final_amount=final))
    return participations


def create_invoice(
    event_id: str,
    draft: InvoiceDraft,
    known_participant_ids: Collection[str],
    invoice_id: Optional[str] = None,
    id_factory: IdFactory = new_id,
) -> Invoice:
    allocation = allocate(draft, known_participant_ids, id_factory)
    method = draft.division.method
    return Invoice(
        id=invoice_id or id_factory(),
        event_id=event_id,
        payer_id=draft.payer_id,
        description=draft.description.strip(),
        total_amount=draft.total_amount,
        division_method=method,
        participations=allocation.participations,
        tip_amount=draft.tip_amount,
        birthday_person_id=draft.birthday_person_id,
        consumptions=_frozen(allocation.consumptions) if method is DivisionMethod.CONSUMPTION else None,
        items=allocation.items,
    )


def recalculate_invoice(
    invoice: Invoice,
    draft: InvoiceDraft,
    known_participant_ids: Collection[str],
    id_factory: IdFactory = new_id,
) -> Invoice:
    """Rebuild ``invoice`` from an edited draft, keeping its id and event."""
    return create_invoice(invoice.event_id, draft, known_participant_ids, invoice_id=invoice.id, id_factory=id_factory)
