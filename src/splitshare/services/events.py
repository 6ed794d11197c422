from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from splitshare.config import get_settings
from splitshare.domain.models import Balance, Event, Invoice, Participant, TransferStatus
from splitshare.errors import ValidationError
from splitshare.services.balances import calculate_balances
from splitshare.services.settlement import SettlementLine, annotate_transfers, settle
from splitshare.services.split import new_id


@dataclass(frozen=True, slots=True)
class EventSummary:
    event: Event
    participants: tuple[Participant, ...]
    invoices: tuple[Invoice, ...]
    balances: tuple[Balance, ...]
    transfers: tuple[SettlementLine, ...]
    transfer_statuses: tuple[TransferStatus, ...] = ()

    def participant_name(self, participant_id: str) -> str:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant.name
        return ""


def new_event(name: str, currency: Optional[str] = None, event_id: Optional[str] = None) -> Event:
    settings = get_settings()
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("name", "Event name is required")

    code = (currency or settings.default_currency).strip().upper()
    if code not in settings.supported_currencies:
        raise ValidationError("currency", f"Currency must be one of {', '.join(settings.supported_currencies)}")

    return Event(id=event_id or new_id(), name=clean_name, currency=code)


def new_participant(name: str, participant_id: Optional[str] = None) -> Participant:
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("name", "Participant name is required")
    return Participant(id=participant_id or new_id(), name=clean_name)


def summarize_event(
    event: Event,
    participants: Sequence[Participant],
    invoices: Iterable[Invoice],
    statuses: Iterable[TransferStatus] = (),
) -> EventSummary:
    """Everything a client needs to render an event, recomputed from invoices."""
    event_invoices = tuple(invoice for invoice in invoices if invoice.event_id == event.id)
    event_statuses = tuple(status for status in statuses if status.event_id == event.id)

    balances = calculate_balances([p.id for p in participants], event_invoices)
    transfers = settle(balances)

    return EventSummary(
        event=event,
        participants=tuple(participants),
        invoices=event_invoices,
        balances=tuple(balances),
        transfers=tuple(annotate_transfers(transfers, event_statuses)),
        transfer_statuses=event_statuses,
    )
