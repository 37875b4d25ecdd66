"""
Bill Splitter module for Tabsplit
Handles bill splitting calculations and the payer report
"""

from decimal import ROUND_HALF_UP
from typing import List

from config import SETTLEMENT_EPSILON
from constants import DECIMAL_QUANTIZE, ZERO
from data_models import (
    BillState, ErrorKind, PersonShare, Settlement, SplitOutcome, SplitResult, ValidationError,
)
from utils import format_currency


class BillSplitter:
    """Splits a bill by item assignment.

    Each person pays for their own items. Tax and tip are divided by item
    count, not by item value: someone with one $1 item and someone with one
    $100 item carry the same tax and tip share. Nothing is rounded here;
    rounding happens when amounts are displayed.
    """

    def validate(self, state: BillState) -> List[ValidationError]:
        """Every reason the bill cannot be split yet, most blocking first"""
        errors = []
        if not state.items:
            errors.append(ValidationError(ErrorKind.EMPTY_BILL, "There are no items on the bill"))

        if state.payer_index is None or not 0 <= state.payer_index < len(state.people):
            errors.append(ValidationError(ErrorKind.NO_PAYER_SELECTED, "Please select who paid the bill"))

        unassigned = state.unassigned_indices()
        if unassigned:
            count = len(unassigned)
            errors.append(ValidationError(
                ErrorKind.UNASSIGNED_ITEMS,
                f"Please assign {count} remaining item{'s' if count > 1 else ''}",
                tuple(unassigned),
            ))
        return errors

    def compute_split(self, state: BillState) -> SplitOutcome:
        """Compute what each person owes, or the first reason it is not possible"""
        errors = self.validate(state)
        if errors:
            return SplitOutcome(error=errors[0])

        subtotal = state.subtotal
        tax_amount = state.tax.resolve(subtotal)
        tip_amount = state.tip.resolve(subtotal)
        item_count = len(state.items)

        per_person = {}
        for person_index, name in enumerate(state.people):
            items = tuple(
                item for item_index, item in enumerate(state.items)
                if state.assignment[item_index] == person_index
            )
            person_subtotal = sum((item.price for item in items), ZERO)
            tax_share = tax_amount * len(items) / item_count
            tip_share = tip_amount * len(items) / item_count
            per_person[person_index] = PersonShare(
                name=name,
                items=items,
                subtotal=person_subtotal,
                tax_share=tax_share,
                tip_share=tip_share,
                total=person_subtotal + tax_share + tip_share,
            )

        return SplitOutcome(result=SplitResult(
            per_person=per_person,
            payer_index=state.payer_index,
            grand_total=subtotal + tax_amount + tip_amount,
            subtotal=subtotal,
            tax_amount=tax_amount,
            tip_amount=tip_amount,
        ))

    def settlements(self, result: SplitResult) -> List[Settlement]:
        """Payments each non-payer owes the payer, rounded to cents"""
        payer = result.payer
        settlements = []
        for person_index, share in result.per_person.items():
            if person_index == result.payer_index:
                continue
            amount = share.total.quantize(DECIMAL_QUANTIZE, rounding=ROUND_HALF_UP)
            if amount >= SETTLEMENT_EPSILON:
                settlements.append(Settlement(
                    from_person=share.name,
                    to_person=payer.name,
                    amount=amount,
                ))
        return settlements

    def summary_lines(self, result: SplitResult) -> List[str]:
        """Plain text report: who paid, their own portion, then everyone else"""
        payer = result.payer
        lines = [
            f"{payer.name} paid {format_currency(result.grand_total)}",
            f"{payer.name}'s portion: {format_currency(payer.total)}",
        ]
        lines.extend(self._item_lines(payer))
        lines.append(self._charge_line(payer))

        for person_index, share in result.per_person.items():
            if person_index == result.payer_index:
                continue
            lines.append("")
            lines.append(f"{share.name} owes {payer.name} {format_currency(share.total)}")
            lines.extend(self._item_lines(share))
            lines.append(self._charge_line(share))
        return lines

    def _item_lines(self, share: PersonShare) -> List[str]:
        return [f"    {item.name}: {format_currency(item.price)}" for item in share.items]

    def _charge_line(self, share: PersonShare) -> str:
        return f"    Tax: {format_currency(share.tax_share)}  Tip: {format_currency(share.tip_share)}"


def compute_split(state: BillState) -> SplitOutcome:
    return BillSplitter().compute_split(state)
