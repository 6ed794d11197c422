from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

from splitshare.domain.models import DivisionMethod
from splitshare.errors import ValidationError
from splitshare.services.allocation import ConsumptionSplit, Division, EqualSplit, InvoiceDraft, ItemizedSplit
from splitshare.services.split import ItemDraft
from splitshare.utils.money import ZERO, to_money, to_quantity


def _parse_method(value: Any) -> DivisionMethod:
    try:
        return DivisionMethod(value)
    except ValueError as exc:
        raise ValidationError("divisionMethod", "Division method must be equal or consumption") from exc


def _parse_ids(value: Any, field: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise ValidationError(field, "Must be a list of participant ids")
    ids: list[str] = []
    for pid in value:
        if not isinstance(pid, str) or not pid:
            raise ValidationError(field, "Participant ids must be non-empty strings")
        ids.append(pid)
    return ids


def _parse_consumptions(value: Any) -> dict[str, Decimal]:
    if not isinstance(value, Mapping) or not value:
        raise ValidationError("consumptions", "Consumptions are required for consumption method")
    return {str(pid): to_money(amount, "consumptions") for pid, amount in value.items()}


def _parse_item(index: int, raw: Any) -> ItemDraft:
    prefix = f"items[{index}]"
    if not isinstance(raw, Mapping):
        raise ValidationError(prefix, "Item must be an object")
    name = raw.get("name")
    return ItemDraft(
        id=raw.get("id"),
        name=name.strip() if isinstance(name, str) else "",
        unit_price=to_money(raw.get("unitPrice"), f"{prefix}.unitPrice"),
        quantity=to_quantity(raw.get("quantity"), f"{prefix}.quantity"),
        participant_ids=_parse_ids(raw.get("participantIds"), f"{prefix}.participantIds"),
    )


def _parse_division(method: DivisionMethod, payload: Mapping[str, Any]) -> Division:
    items = payload.get("items")
    if items:
        if method is not DivisionMethod.CONSUMPTION:
            raise ValidationError("items", "Itemized invoices must use the consumption method")
        if not isinstance(items, (list, tuple)):
            raise ValidationError("items", "Items must be a list")
        return ItemizedSplit(items=[_parse_item(index, raw) for index, raw in enumerate(items)])

    if method is DivisionMethod.CONSUMPTION:
        return ConsumptionSplit(consumptions=_parse_consumptions(payload.get("consumptions")))
    return EqualSplit()


def parse_invoice_request(payload: Mapping[str, Any]) -> InvoiceDraft:
    """Build an ``InvoiceDraft`` from a create/update invoice request body.

    Keys follow the public API (``totalAmount``, ``participantIds`` ...).
    Numbers may arrive as strings. Participant references are only checked
    against the event later, by ``allocate``.
    """
    description = payload.get("description")
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("description", "Description is required")

    total_amount = to_money(payload.get("totalAmount"), "totalAmount")
    if not total_amount.is_finite() or total_amount <= 0:
        raise ValidationError("totalAmount", "Total amount must be greater than 0")
    tip_raw = payload.get("tipAmount")
    tip_amount = ZERO if tip_raw is None else to_money(tip_raw, "tipAmount")
    if not tip_amount.is_finite() or tip_amount < 0:
        raise ValidationError("tipAmount", "Tip amount must be >= 0")

    method = _parse_method(payload.get("divisionMethod"))

    payer_id = payload.get("payerId")
    if not isinstance(payer_id, str) or not payer_id:
        raise ValidationError("payerId", "Payer is required")

    birthday_person_id: Optional[str] = payload.get("birthdayPersonId") or None
    if birthday_person_id is not None and not isinstance(birthday_person_id, str):
        raise ValidationError("birthdayPersonId", "Birthday person must be a participant id")

    return InvoiceDraft(
        description=description.strip(),
        total_amount=total_amount,
        payer_id=payer_id,
        participant_ids=_parse_ids(payload.get("participantIds"), "participantIds"),
        division=_parse_division(method, payload),
        tip_amount=tip_amount,
        birthday_person_id=birthday_person_id,
    )
