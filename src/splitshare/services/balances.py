from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from splitshare.domain.models import Balance, BalanceStatus, Invoice
from splitshare.utils.money import ZERO, round2, snap


def classify(net_balance: Decimal) -> BalanceStatus:
    if net_balance > 0:
        return BalanceStatus.CREDITOR
    if net_balance < 0:
        return BalanceStatus.DEBTOR
    return BalanceStatus.SETTLED


def calculate_balances(participant_ids: Sequence[str], invoices: Sequence[Invoice]) -> list[Balance]:
    """Fold an event's invoices into one balance per participant.

    Balances come out in ``participant_ids`` order. Payers and participations
    that point outside ``participant_ids`` are skipped.
    """
    paid: dict[str, Decimal] = {pid: ZERO for pid in participant_ids}
    owed: dict[str, Decimal] = {pid: ZERO for pid in participant_ids}

    for invoice in invoices:
        if invoice.payer_id in paid:
            paid[invoice.payer_id] = round2(paid[invoice.payer_id] + invoice.total_with_tip)
        for participation in invoice.participations:
            if participation.participant_id in owed:
                owed[participation.participant_id] = round2(
                    owed[participation.participant_id] + participation.final_amount
                )

    balances: list[Balance] = []
    for pid in paid:
        net = snap(paid[pid] - owed[pid])
        balances.append(
            Balance(
                participant_id=pid,
                total_paid=round2(paid[pid]),
                total_owed=round2(owed[pid]),
                net_balance=net,
                status=classify(net),
            )
        )
    return balances
