from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from splitshare.domain.models import Balance, Transfer, TransferStatus
from splitshare.logging import get_logger
from splitshare.utils.money import SETTLE_EPSILON, TOLERANCE, round2, snap


log = get_logger(__name__)


def settle(balances: Sequence[Balance]) -> List[Transfer]:
    """Suggest payments that bring every balance back to zero.

    Greedy: the largest debtor pays the largest creditor until one of them is
    square, then move on. At most ``creditors + debtors - 1`` transfers, which
    is not always the fewest possible.
    """
    # sorted() is stable, so ties keep participant order
    creditors = sorted(
        ([b.participant_id, b.net_balance] for b in balances if b.net_balance > SETTLE_EPSILON),
        key=lambda x: x[1],
        reverse=True,
    )
    debtors = sorted(
        ([b.participant_id, b.net_balance] for b in balances if b.net_balance < -SETTLE_EPSILON),
        key=lambda x: x[1],
    )

    transfers: list[Transfer] = []
    i, j = 0, 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = round2(min(abs(debtor[1]), creditor[1]))
        transfers.append(Transfer(from_participant_id=debtor[0], to_participant_id=creditor[0], amount=amount))

        debtor[1] = round2(debtor[1] + amount)
        creditor[1] = round2(creditor[1] - amount)

        if abs(debtor[1]) < TOLERANCE:
            i += 1
        if abs(creditor[1]) < TOLERANCE:
            j += 1

    log.debug("settlement.computed", creditors=len(creditors), debtors=len(debtors), transfers=len(transfers))
    return transfers


def apply_transfers(balances: Iterable[Balance], transfers: Iterable[Transfer]) -> dict[str, Decimal]:
    """Net balance left per participant once every transfer has been paid."""
    remaining = {b.participant_id: b.net_balance for b in balances}
    for transfer in transfers:
        remaining[transfer.from_participant_id] += transfer.amount
        remaining[transfer.to_participant_id] -= transfer.amount
    return {pid: snap(value) for pid, value in remaining.items()}


@dataclass(frozen=True, slots=True)
class SettlementLine:
    transfer: Transfer
    is_settled: bool = False
    settled_at: Optional[datetime] = None


def mark_transfer(
    statuses: Sequence[TransferStatus],
    event_id: str,
    from_participant_id: str,
    to_participant_id: str,
    is_settled: bool,
    now: datetime,
) -> list[TransferStatus]:
    updated = TransferStatus(
        event_id=event_id,
        from_participant_id=from_participant_id,
        to_participant_id=to_participant_id,
        is_settled=is_settled,
        settled_at=now if is_settled else None,
    )

    result: list[TransferStatus] = []
    replaced = False
    for status in statuses:
        if (
            status.event_id == event_id
            and status.from_participant_id == from_participant_id
            and status.to_participant_id == to_participant_id
        ):
            result.append(updated)
            replaced = True
        else:
            result.append(status)
    if not replaced:
        result.append(updated)
    return result


def annotate_transfers(transfers: Iterable[Transfer], statuses: Iterable[TransferStatus]) -> list[SettlementLine]:
    by_pair = {(s.from_participant_id, s.to_participant_id): s for s in statuses}
    lines: list[SettlementLine] = []
    for transfer in transfers:
        status = by_pair.get((transfer.from_participant_id, transfer.to_participant_id))
        if status is None:
            lines.append(SettlementLine(transfer=transfer))
        else:
            lines.append(SettlementLine(transfer=transfer, is_settled=status.is_settled, settled_at=status.settled_at))
    return lines
