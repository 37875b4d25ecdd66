from decimal import Decimal

import pytest

from data_models import BillState, ChargeMode, LineItem, ParsedReceipt, TaxTipSetting


def make_state(**overrides) -> BillState:
    values = dict(
        people=("Ann", "Bob", "Cy"),
        items=(
            LineItem("Soup", Decimal("6.00")),
            LineItem("Pie", Decimal("4.00")),
            LineItem("Tea", Decimal("2.00")),
        ),
        assignment={0: 0, 1: 1, 2: 2},
        payer_index=2,
    )
    values.update(overrides)
    return BillState(**values)


def test_line_item_converts_floats_exactly() -> None:
    assert LineItem("Tea", 2.1).price == Decimal("2.1")
    assert LineItem("Tea", "3.50").price == Decimal("3.50")


def test_line_item_rejects_negative_price() -> None:
    with pytest.raises(ValueError):
        LineItem("Refund", Decimal("-1.00"))


def test_charge_setting_resolve() -> None:
    assert TaxTipSetting(ChargeMode.PERCENTAGE, Decimal("10")).resolve(Decimal("80")) == Decimal("8")
    assert TaxTipSetting(ChargeMode.AMOUNT, Decimal("4.25")).resolve(Decimal("80")) == Decimal("4.25")
    assert TaxTipSetting("amount", "1").mode is ChargeMode.AMOUNT


@pytest.mark.parametrize("assignment", [{"0": 0}, {0: "1"}, {0: 1.0}, {True: 0}])
def test_assignment_indices_must_be_ints(assignment) -> None:
    with pytest.raises(TypeError):
        make_state(assignment=assignment)


def test_payer_index_must_be_int() -> None:
    with pytest.raises(TypeError):
        make_state(payer_index="1")


@pytest.mark.parametrize("assignment", [{3: 0}, {-1: 0}, {0: 3}])
def test_assignment_must_reference_existing_entries(assignment) -> None:
    with pytest.raises(ValueError):
        make_state(assignment=assignment)


def test_people_must_be_present_and_named() -> None:
    with pytest.raises(ValueError):
        make_state(people=(), assignment={}, payer_index=None)
    with pytest.raises(ValueError):
        make_state(people=("Ann", "  ", "Cy"))


def test_from_receipt_keeps_detected_amounts() -> None:
    receipt = ParsedReceipt(
        items=(LineItem("Soup", Decimal("6.00")),),
        subtotal=Decimal("6.00"),
        tax=Decimal("0.48"),
        tax_percent=Decimal("8"),
    )

    state = BillState.from_receipt(receipt, ["Ann"])

    assert state.tax == TaxTipSetting(ChargeMode.AMOUNT, Decimal("0.48"))
    assert state.tip == TaxTipSetting(ChargeMode.PERCENTAGE, Decimal("0"))
    assert state.assignment == {}
    assert state.payer_index is None
    assert state.items == receipt.items


def test_edits_return_new_state() -> None:
    state = make_state()

    edited = state.with_item_updated(0, name="Chowder", price="7.50")

    assert edited.items[0] == LineItem("Chowder", Decimal("7.50"))
    assert state.items[0] == LineItem("Soup", Decimal("6.00"))
    assert edited.subtotal == Decimal("13.50")


def test_item_update_rejects_negative_price() -> None:
    with pytest.raises(ValueError):
        make_state().with_item_updated(1, price=-2)


def test_removing_item_renumbers_assignment() -> None:
    state = make_state().with_item_removed(0)

    assert [item.name for item in state.items] == ["Pie", "Tea"]
    assert state.assignment == {0: 1, 1: 2}


def test_removing_unassigned_item() -> None:
    state = make_state(assignment={0: 0, 2: 2}).with_item_removed(1)

    assert state.assignment == {0: 0, 1: 2}
    assert state.unassigned_indices() == []


def test_removing_missing_item_raises() -> None:
    with pytest.raises(IndexError):
        make_state().with_item_removed(5)


def test_added_item_starts_unassigned() -> None:
    state = make_state().with_item_added()

    assert state.items[-1] == LineItem("", Decimal("0"))
    assert state.unassigned_indices() == [3]


def test_removing_person_shifts_assignment_and_payer() -> None:
    state = make_state().with_person_removed(1)

    assert state.people == ("Ann", "Cy")
    assert state.assignment == {0: 0, 2: 1}
    assert state.unassigned_indices() == [1]
    assert state.payer_index == 1


def test_removing_payer_clears_payer() -> None:
    assert make_state().with_person_removed(2).payer_index is None


def test_cannot_remove_last_person() -> None:
    state = BillState(people=("Ann",))

    with pytest.raises(ValueError):
        state.with_person_removed(0)


def test_assignment_and_payer_edits() -> None:
    state = make_state(assignment={}, payer_index=None)

    state = state.with_assignment(0, 1).with_assignment(0, 2).with_payer(0)

    assert state.assignment == {0: 2}
    assert state.payer_index == 0
    assert state.without_assignment(0).assignment == {}
    with pytest.raises(IndexError):
        state.with_assignment(0, 7)
    with pytest.raises(TypeError):
        state.with_payer("0")


def test_totals_follow_charge_settings() -> None:
    state = make_state().with_tax(TaxTipSetting(ChargeMode.PERCENTAGE, Decimal("10")))
    state = state.with_tip(TaxTipSetting(ChargeMode.AMOUNT, Decimal("2.00")))

    assert state.subtotal == Decimal("12.00")
    assert state.tax_amount == Decimal("1.2")
    assert state.tip_amount == Decimal("2.00")
    assert state.total == Decimal("15.2")


def test_assignment_cannot_be_changed_in_place() -> None:
    state = make_state()

    with pytest.raises(TypeError):
        state.assignment[1] = 99

    assert state.assignment == {0: 0, 1: 1, 2: 2}
    assert hash(state) == hash(make_state())


def test_without_assignment_checks_item_index() -> None:
    state = make_state()

    assert state.without_assignment(1).unassigned_indices() == [1]
    with pytest.raises(IndexError):
        state.without_assignment(7)
    with pytest.raises(TypeError):
        state.without_assignment("0")


def test_charge_setting_rejects_negative_value() -> None:
    with pytest.raises(ValueError):
        TaxTipSetting(ChargeMode.AMOUNT, Decimal("-3.00"))
    with pytest.raises(ValueError):
        TaxTipSetting().with_value(-1)
