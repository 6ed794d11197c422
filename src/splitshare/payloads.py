"""JSON-ready dictionaries for the public API shapes.

Keys are camelCase and amounts are plain floats so the result can go straight
to ``json.dumps``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable

from splitshare.domain.models import Balance, Invoice, InvoiceItem, Participation, Transfer, TransferStatus
from splitshare.services.events import EventSummary
from splitshare.services.settlement import SettlementLine


def _amount(value: Decimal) -> float:
    return float(value)


def participation_payload(participation: Participation) -> dict[str, Any]:
    return {
        "participantId": participation.participant_id,
        "baseAmount": _amount(participation.base_amount),
        "tipShare": _amount(participation.tip_share),
        "finalAmount": _amount(participation.final_amount),
    }


def item_payload(item: InvoiceItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "unitPrice": _amount(item.unit_price),
        "quantity": item.quantity,
        "total": _amount(item.total),
        "participantIds": item.participant_ids,
    }


def invoice_payload(invoice: Invoice) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": invoice.id,
        "eventId": invoice.event_id,
        "payerId": invoice.payer_id,
        "description": invoice.description,
        "totalAmount": _amount(invoice.total_amount),
        "divisionMethod": invoice.division_method.value,
        "tipAmount": _amount(invoice.tip_amount),
        "participations": [participation_payload(p) for p in invoice.participations],
    }
    if invoice.birthday_person_id is not None:
        payload["birthdayPersonId"] = invoice.birthday_person_id
    if invoice.items is not None:
        payload["items"] = [item_payload(item) for item in invoice.items]
    return payload


def balance_payload(balance: Balance) -> dict[str, Any]:
    return {
        "participantId": balance.participant_id,
        "totalPaid": _amount(balance.total_paid),
        "totalShouldPay": _amount(balance.total_owed),
        "netBalance": _amount(balance.net_balance),
        "status": balance.status.value,
    }


def transfer_payload(transfer: Transfer) -> dict[str, Any]:
    return {
        "fromParticipantId": transfer.from_participant_id,
        "toParticipantId": transfer.to_participant_id,
        "amount": _amount(transfer.amount),
    }


def transfer_status_payload(status: TransferStatus) -> dict[str, Any]:
    return {
        "fromParticipantId": status.from_participant_id,
        "toParticipantId": status.to_participant_id,
        "isSettled": status.is_settled,
        "settledAt": status.settled_at.isoformat() if status.settled_at else None,
    }


def _settlement_line_payload(line: SettlementLine, name_of: Callable[[str], str]) -> dict[str, Any]:
    payload = transfer_payload(line.transfer)
    payload["fromName"] = name_of(line.transfer.from_participant_id)
    payload["toName"] = name_of(line.transfer.to_participant_id)
    payload["isSettled"] = line.is_settled
    payload["settledAt"] = line.settled_at.isoformat() if line.settled_at else None
    return payload


def _invoice_detail_payload(invoice: Invoice, name_of: Callable[[str], str]) -> dict[str, Any]:
    payload = invoice_payload(invoice)
    payload["payerName"] = name_of(invoice.payer_id)
    for detail in payload["participations"]:
        detail["participantName"] = name_of(detail["participantId"])
        detail["isBirthdayPerson"] = detail["participantId"] == invoice.birthday_person_id
    return payload


def event_summary_payload(summary: EventSummary) -> dict[str, Any]:
    name_of = summary.participant_name
    balances = []
    for balance in summary.balances:
        item = balance_payload(balance)
        item["participantName"] = name_of(balance.participant_id)
        balances.append(item)

    return {
        "event": {
            "id": summary.event.id,
            "name": summary.event.name,
            "currency": summary.event.currency,
        },
        "participants": [{"id": p.id, "name": p.name} for p in summary.participants],
        "invoices": [_invoice_detail_payload(invoice, name_of) for invoice in summary.invoices],
        "balances": balances,
        "transfers": [_settlement_line_payload(line, name_of) for line in summary.transfers],
        "transferStatuses": [transfer_status_payload(status) for status in summary.transfer_statuses],
    }
