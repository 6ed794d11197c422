from decimal import Decimal as D

import pytest

from splitshare.errors import ValidationError
from splitshare.services.split import ItemDraft, divide_with_remainder, merge_shares, split_items
from splitshare.utils.money import round2, to_money, to_quantity


def test_divide_even():
    shares = divide_with_remainder(D("100"), ["a", "b", "c", "d"])
    assert shares == {"a": D("25"), "b": D("25"), "c": D("25"), "d": D("25")}


def test_divide_remainder_goes_to_last():
    shares = divide_with_remainder(D("100"), ["a", "b", "c"])
    assert list(shares) == ["a", "b", "c"]
    assert shares == {"a": D("33.33"), "b": D("33.33"), "c": D("33.34")}
    assert sum(shares.values()) == D("100")


def test_divide_rounding_up_leaves_last_short():
    shares = divide_with_remainder(D("0.05"), ["a", "b"])
    assert shares == {"a": D("0.03"), "b": D("0.02")}


def test_divide_requires_beneficiaries():
    with pytest.raises(ValueError):
        divide_with_remainder(D("10"), [])


def test_merge_shares():
    merged = merge_shares([{"a": D("1.50"), "b": D("2")}, {"b": D("0.50"), "c": D("3")}])
    assert merged == {"a": D("1.50"), "b": D("2.50"), "c": D("3")}


def test_split_items_accumulates_consumptions():
    items = [
        ItemDraft(name="Pizza", unit_price=D("10"), quantity=2, participant_ids=["a", "b", "c"]),
        ItemDraft(name="Beer", unit_price=D("4.5"), quantity=1, participant_ids=["b"]),
    ]
    ids = iter(["item-1", "item-2"])

    split, consumptions = split_items(items, id_factory=lambda: next(ids))

    assert [item.id for item in split] == ["item-1", "item-2"]
    assert split[0].total == D("20.00")
    assert [a.amount for a in split[0].assignments] == [D("6.67"), D("6.67"), D("6.66")]
    assert sum(a.amount for a in split[0].assignments) == split[0].total
    assert split[1].participant_ids == ["b"]
    assert consumptions == {"a": D("6.67"), "b": D("11.17"), "c": D("6.66")}


def test_split_items_keeps_given_id_and_dedupes_participants():
    item = ItemDraft(id="fixed", name="Cake", unit_price=D("9"), quantity=1, participant_ids=["a", "a", "b"])

    split, consumptions = split_items([item], id_factory=lambda: "unused")

    assert split[0].id == "fixed"
    assert split[0].participant_ids == ["a", "b"]
    assert consumptions == {"a": D("4.50"), "b": D("4.50")}


def test_round2_half_up():
    assert round2(D("0.125")) == D("0.13")
    assert round2(D("2.675")) == D("2.68")


@pytest.mark.parametrize(
    "value, expected",
    [(10, D("10")), (0.1, D("0.1")), ("12.50", D("12.50")), (D("3"), D("3"))],
)
def test_to_money(value, expected):
    assert to_money(value, "totalAmount") == expected


@pytest.mark.parametrize("value", [None, True, "abc", [1]])
def test_to_money_rejects(value):
    with pytest.raises(ValidationError) as exc:
        to_money(value, "totalAmount")
    assert exc.value.field == "totalAmount"


def test_to_quantity():
    assert to_quantity("3", "q") == 3
    assert to_quantity(2, "q") == 2
    for bad in (0, 1.5, "x", False):
        with pytest.raises(ValidationError):
            to_quantity(bad, "q")


def test_to_money_rejects_amounts_too_large_to_round():
    with pytest.raises(ValidationError) as exc:
        to_money("1e30", "unitPrice")
    assert exc.value.field == "unitPrice"
    assert to_money("999999999999.99", "unitPrice") == D("999999999999.99")
