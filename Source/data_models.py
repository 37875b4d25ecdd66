"""
Data models for Tabsplit - Receipt parsing and bill splitting

Every model is an immutable snapshot. Edits to a bill build a new BillState
instead of mutating the old one, so a split is always computed from one
consistent value.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from constants import ZERO, HUNDRED


def to_decimal(value) -> Decimal:
    """Convert a price-like value to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _check_index(value, what: str) -> int:
    # bool is an int subclass; "1" and 1.0 are not indices either
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an int, got {type(value).__name__}: {value!r}")
    return value


@dataclass(frozen=True)
class LineItem:
    """A single priced line on a receipt"""
    name: str
    price: Decimal = ZERO

    def __post_init__(self):
        price = to_decimal(self.price)
        if price < 0:
            raise ValueError(f"Item price cannot be negative: {price}")
        object.__setattr__(self, 'price', price)


@dataclass(frozen=True)
class ParsedReceipt:
    """Structured result of parsing OCR text.

    tax and tip are the absolute amounts found on the receipt; tax_percent
    and tip_percent are the same amounts expressed against the subtotal.
    """
    items: Tuple[LineItem, ...] = ()
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    tip: Decimal = ZERO
    total: Decimal = ZERO
    tax_percent: Decimal = ZERO
    tip_percent: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))

    @property
    def is_empty(self) -> bool:
        """Nothing usable was recognised; the receipt should be rescanned"""
        return not self.items and self.total == 0 and self.subtotal == 0


class ChargeMode(Enum):
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


@dataclass(frozen=True)
class TaxTipSetting:
    """How a tax or tip value is read: percent of subtotal or absolute amount"""
    mode: ChargeMode = ChargeMode.PERCENTAGE
    value: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, 'mode', ChargeMode(self.mode))
        value = to_decimal(self.value)
        if value < 0:
            raise ValueError(f"Tax or tip value cannot be negative: {value}")
        object.__setattr__(self, 'value', value)

    def resolve(self, subtotal: Decimal) -> Decimal:
        """Absolute currency amount of this charge for the given subtotal"""
        if self.mode is ChargeMode.PERCENTAGE:
            return self.value / HUNDRED * subtotal
        return self.value

    def with_mode(self, mode: ChargeMode) -> "TaxTipSetting":
        # The stored value is kept as-is; no percent/amount conversion.
        return replace(self, mode=mode)

    def with_value(self, value) -> "TaxTipSetting":
        return replace(self, value=to_decimal(value))


def _initial_setting(amount: Decimal, percent: Decimal) -> TaxTipSetting:
    if amount > 0:
        return TaxTipSetting(ChargeMode.AMOUNT, amount)
    return TaxTipSetting(ChargeMode.PERCENTAGE, percent)


@dataclass(frozen=True)
class BillState:
    """Everything needed to split a bill, as one snapshot.

    assignment maps item index to person index; items missing from it are
    unassigned. payer_index is None until somebody is chosen.
    """
    people: Tuple[str, ...]
    items: Tuple[LineItem, ...] = ()
    assignment: Mapping[int, int] = field(default_factory=dict, hash=False)
    tax: TaxTipSetting = field(default_factory=TaxTipSetting)
    tip: TaxTipSetting = field(default_factory=TaxTipSetting)
    payer_index: Optional[int] = None

    def __post_init__(self):
        people = tuple(self.people)
        items = tuple(self.items)
        if not people:
            raise ValueError("At least one person is required")
        for name in people:
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Person names must be non-empty strings, got {name!r}")

        assignment = {}
        for item_index, person_index in dict(self.assignment).items():
            _check_index(item_index, "Item index")
            _check_index(person_index, "Person index")
            if not 0 <= item_index < len(items):
                raise ValueError(f"Assignment refers to missing item {item_index}")
            if not 0 <= person_index < len(people):
                raise ValueError(f"Assignment refers to missing person {person_index}")
            assignment[item_index] = person_index

        if self.payer_index is not None:
            _check_index(self.payer_index, "Payer index")

        object.__setattr__(self, 'people', people)
        object.__setattr__(self, 'items', items)
        object.__setattr__(self, 'assignment', MappingProxyType(assignment))

    @classmethod
    def from_receipt(cls, receipt: ParsedReceipt, people) -> "BillState":
        """Start a bill from a parsed receipt.

        A detected tax or tip amount is kept as an absolute amount; otherwise
        the percentage (usually 0) is used.
        """
        return cls(
            people=tuple(people),
            items=receipt.items,
            tax=_initial_setting(receipt.tax, receipt.tax_percent),
            tip=_initial_setting(receipt.tip, receipt.tip_percent),
        )

    @property
    def subtotal(self) -> Decimal:
        return sum((item.price for item in self.items), ZERO)

    @property
    def tax_amount(self) -> Decimal:
        return self.tax.resolve(self.subtotal)

    @property
    def tip_amount(self) -> Decimal:
        return self.tip.resolve(self.subtotal)

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax_amount + self.tip_amount

    def unassigned_indices(self) -> List[int]:
        people = range(len(self.people))
        return [i for i in range(len(self.items)) if self.assignment.get(i) not in people]

    def _check_item(self, index: int):
        _check_index(index, "Item index")
        if not 0 <= index < len(self.items):
            raise IndexError(f"No item at index {index}")

    def _check_person(self, index: int):
        _check_index(index, "Person index")
        if not 0 <= index < len(self.people):
            raise IndexError(f"No person at index {index}")

    # Item edits

    def with_item_added(self, name: str = "", price=ZERO) -> "BillState":
        return replace(self, items=self.items + (LineItem(name, price),))

    def with_item_updated(self, index: int, name: Optional[str] = None, price=None) -> "BillState":
        self._check_item(index)
        item = self.items[index]
        if name is not None:
            item = replace(item, name=name)
        if price is not None:
            item = replace(item, price=to_decimal(price))
        items = self.items[:index] + (item,) + self.items[index + 1:]
        return replace(self, items=items)

    def with_item_removed(self, index: int) -> "BillState":
        """Drop an item; later items move up one index and keep their person"""
        self._check_item(index)
        items = self.items[:index] + self.items[index + 1:]
        assignment = {}
        for item_index, person_index in self.assignment.items():
            if item_index == index:
                continue
            if item_index > index:
                assignment[item_index - 1] = person_index
            else:
                assignment[item_index] = person_index
        return replace(self, items=items, assignment=assignment)

    # People edits

    def with_person_added(self, name: str) -> "BillState":
        return replace(self, people=self.people + (name,))

    def with_person_removed(self, index: int) -> "BillState":
        """Drop a person along with their assignments; later people shift down"""
        self._check_person(index)
        if len(self.people) == 1:
            raise ValueError("Cannot remove the only person on the bill")
        people = self.people[:index] + self.people[index + 1:]
        assignment = {}
        for item_index, person_index in self.assignment.items():
            if person_index == index:
                continue
            assignment[item_index] = person_index - 1 if person_index > index else person_index

        payer = self.payer_index
        if payer == index:
            payer = None
        elif payer is not None and payer > index:
            payer -= 1
        return replace(self, people=people, assignment=assignment, payer_index=payer)

    # Assignment, payer and charges

    def with_assignment(self, item_index: int, person_index: int) -> "BillState":
        self._check_item(item_index)
        self._check_person(person_index)
        return replace(self, assignment={**self.assignment, item_index: person_index})

    def without_assignment(self, item_index: int) -> "BillState":
        self._check_item(item_index)
        assignment = dict(self.assignment)
        assignment.pop(item_index, None)
        return replace(self, assignment=assignment)

    def with_payer(self, person_index: Optional[int]) -> "BillState":
        if person_index is not None:
            self._check_person(person_index)
        return replace(self, payer_index=person_index)

    def with_tax(self, setting: TaxTipSetting) -> "BillState":
        return replace(self, tax=setting)

    def with_tip(self, setting: TaxTipSetting) -> "BillState":
        return replace(self, tip=setting)


@dataclass(frozen=True)
class PersonShare:
    """What one person owes: their items plus their slice of tax and tip"""
    name: str
    items: Tuple[LineItem, ...] = ()
    subtotal: Decimal = ZERO
    tax_share: Decimal = ZERO
    tip_share: Decimal = ZERO
    total: Decimal = ZERO


@dataclass(frozen=True)
class SplitResult:
    """Per-person breakdown of a bill"""
    per_person: Mapping[int, PersonShare] = field(hash=False)
    payer_index: int
    grand_total: Decimal
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    tip_amount: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, 'per_person', MappingProxyType(dict(self.per_person)))

    @property
    def payer(self) -> PersonShare:
        return self.per_person[self.payer_index]


@dataclass(frozen=True)
class Settlement:
    """Represents a payment owed to the person who paid the bill"""
    from_person: str
    to_person: str
    amount: Decimal


class ErrorKind(Enum):
    PARSE_EMPTY_RESULT = "parse_empty_result"
    NO_PAYER_SELECTED = "no_payer_selected"
    UNASSIGNED_ITEMS = "unassigned_items"
    EMPTY_BILL = "empty_bill"


@dataclass(frozen=True)
class ValidationError:
    """Why a split could not be computed. Returned, never raised."""
    kind: ErrorKind
    message: str
    item_indices: Tuple[int, ...] = ()

    @property
    def count(self) -> int:
        return len(self.item_indices)


@dataclass(frozen=True)
class ParseEmptyResult:
    """No items and no totals were recognised in the OCR text"""
    message: str = "No items detected. Please rescan the receipt with a clear, well-lit image."
    kind: ErrorKind = ErrorKind.PARSE_EMPTY_RESULT


@dataclass(frozen=True)
class SplitOutcome:
    """Either a SplitResult or the ValidationError that prevented it"""
    result: Optional[SplitResult] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ProcessingMetrics:
    """Metrics for the OCR step"""
    workers_used: int = 0
    processing_time: float = 0.0
    regions_processed: int = 0
    characters_recognized: int = 0
