from decimal import Decimal as D

import pytest

from splitshare.errors import ValidationError
from splitshare.services.allocation import ConsumptionSplit, EqualSplit, ItemizedSplit, allocate
from splitshare.services.requests import parse_invoice_request


def body(**overrides):
    payload = {
        "description": " Dinner ",
        "totalAmount": "100",
        "payerId": "a",
        "participantIds": ["a", "b", "c"],
        "divisionMethod": "equal",
    }
    payload.update(overrides)
    return payload


def test_parse_equal_request():
    draft = parse_invoice_request(body())

    assert draft.description == "Dinner"
    assert draft.total_amount == D("100")
    assert draft.tip_amount == D("0")
    assert isinstance(draft.division, EqualSplit)
    assert draft.birthday_person_id is None


def test_parse_consumption_request():
    draft = parse_invoice_request(
        body(divisionMethod="consumption", consumptions={"a": 50, "b": "25.5", "c": 24.5}, tipAmount=10)
    )

    assert isinstance(draft.division, ConsumptionSplit)
    assert draft.division.consumptions == {"a": D("50"), "b": D("25.5"), "c": D("24.5")}
    assert draft.tip_amount == D("10")


def test_parse_itemized_request_allocates():
    draft = parse_invoice_request(
        body(
            totalAmount=30,
            divisionMethod="consumption",
            items=[
                {"name": "Wine", "unitPrice": "10", "quantity": "2", "participantIds": ["a", "b"]},
                {"name": "Salad", "unitPrice": 10, "quantity": 1, "participantIds": ["c"]},
            ],
        )
    )

    assert isinstance(draft.division, ItemizedSplit)
    allocation = allocate(draft, {"a", "b", "c"}, id_factory=lambda: "item")
    assert [p.final_amount for p in allocation.participations] == [D("10"), D("10"), D("10")]


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"description": ""}, "description"),
        ({"totalAmount": "abc"}, "totalAmount"),
        ({"totalAmount": -5, "divisionMethod": "weird"}, "totalAmount"),
        ({"tipAmount": -1}, "tipAmount"),
        ({"divisionMethod": "weird"}, "divisionMethod"),
        ({"payerId": None}, "payerId"),
        ({"participantIds": "a"}, "participantIds"),
        ({"divisionMethod": "consumption"}, "consumptions"),
        ({"items": [{"name": "x", "unitPrice": 1, "quantity": 1, "participantIds": ["a"]}]}, "items"),
        (
            {"divisionMethod": "consumption", "items": [{"name": "x", "unitPrice": 1, "quantity": 0}]},
            "items[0].quantity",
        ),
    ],
)
def test_parse_rejects(overrides, field):
    with pytest.raises(ValidationError) as exc:
        parse_invoice_request(body(**overrides))

    assert exc.value.field == field
    assert exc.value.field_errors == {field: exc.value.message}


def test_parse_rejects_huge_amounts():
    with pytest.raises(ValidationError) as exc:
        parse_invoice_request(body(totalAmount="1e30"))

    assert exc.value.field == "totalAmount"
