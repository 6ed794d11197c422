from datetime import datetime, timezone
from decimal import Decimal as D

from splitshare.domain.models import Balance, Transfer, TransferStatus
from splitshare.services.balances import classify
from splitshare.services.settlement import annotate_transfers, apply_transfers, mark_transfer, settle


def balance(pid, net):
    net = D(net)
    return Balance(participant_id=pid, total_paid=D("0"), total_owed=D("0"), net_balance=net, status=classify(net))


def test_settle_balances():
    balances = [balance("a", "50"), balance("b", "-20"), balance("c", "-30")]

    transfers = settle(balances)

    assert transfers == [
        Transfer(from_participant_id="c", to_participant_id="a", amount=D("30")),
        Transfer(from_participant_id="b", to_participant_id="a", amount=D("20")),
    ]
    assert all(value == 0 for value in apply_transfers(balances, transfers).values())


def test_settle_ties_keep_participant_order():
    balances = [balance("a", "-10"), balance("b", "10"), balance("c", "-10"), balance("d", "10")]

    transfers = settle(balances)

    assert [(t.from_participant_id, t.to_participant_id) for t in transfers] == [("a", "b"), ("c", "d")]


def test_settle_splits_large_debt():
    balances = [balance("a", "25.50"), balance("b", "14.50"), balance("c", "-40")]

    transfers = settle(balances)

    assert transfers == [
        Transfer(from_participant_id="c", to_participant_id="a", amount=D("25.50")),
        Transfer(from_participant_id="c", to_participant_id="b", amount=D("14.50")),
    ]


def test_transfer_total_matches_credit_and_bound():
    balances = [
        balance("a", "41.17"),
        balance("b", "-13.05"),
        balance("c", "7.01"),
        balance("d", "-20.12"),
        balance("e", "-15.01"),
        balance("f", "0"),
    ]

    transfers = settle(balances)

    assert sum(t.amount for t in transfers) == D("48.18")
    assert len(transfers) <= 2 + 3 - 1
    assert all(t.amount > 0 for t in transfers)
    assert all(abs(value) < D("0.01") for value in apply_transfers(balances, transfers).values())


def test_nothing_to_settle():
    assert settle([balance("a", "0"), balance("b", "0.00")]) == []


def test_mark_transfer_upserts():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    statuses = mark_transfer([], "e", "c", "a", True, now)
    assert statuses == [TransferStatus("e", "c", "a", True, now)]

    statuses = mark_transfer(statuses, "e", "b", "a", True, now)
    statuses = mark_transfer(statuses, "e", "c", "a", False, now)

    assert statuses == [TransferStatus("e", "c", "a", False, None), TransferStatus("e", "b", "a", True, now)]


def test_annotate_transfers():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    transfers = [Transfer("c", "a", D("30")), Transfer("b", "a", D("20"))]

    lines = annotate_transfers(transfers, [TransferStatus("e", "b", "a", True, now)])

    assert [(line.is_settled, line.settled_at) for line in lines] == [(False, None), (True, now)]
    assert lines[0].transfer is transfers[0]
