"""
Receipt Parser module for Tabsplit
Parses OCR text to extract receipt items, tax, tip and totals
"""

import re
from decimal import Decimal
from typing import Dict, List, Optional

import config
from constants import PRICE_PATTERN, TOTALS_RULES, SKIP_WORDS, ZERO, HUNDRED
from data_models import LineItem, ParsedReceipt, ParseEmptyResult

_PRICE_RE = re.compile(PRICE_PATTERN)
_NAME_NOISE_RE = re.compile(r'[^a-zA-Z0-9\s]')


class ReceiptParser:
    """Parses OCR text to extract receipt items and totals.

    Parsing is two passes over the non-empty, stripped lines:

    1. Bottom to top, summary lines (total, tip, tax, subtotal) are picked up
       by keyword. A later-processed line overwrites an earlier one, so the
       topmost matching line on the receipt wins.
    2. Top to bottom, every other priced line becomes an item, unless its
       amount looks like one of the summary values found in pass 1.
    """

    def __init__(self, debug: Optional[bool] = None):
        self.debug = config.DEBUG if debug is None else debug

    def _find_amount(self, line: str) -> Optional[Decimal]:
        """First dollar amount on the line, or None"""
        match = _PRICE_RE.search(line)
        if not match:
            return None
        amount = Decimal(match.group(1))
        # 0.00 counts as no amount at all
        return amount if amount else None

    def _split_lines(self, text: str) -> List[str]:
        return [line.strip() for line in text.split('\n') if line.strip()]

    def _classify(self, line: str) -> Optional[str]:
        lower = line.lower()
        for field_name, matches in TOTALS_RULES:
            if matches(lower):
                return field_name
        return None

    def _find_totals(self, lines: List[str]) -> Dict[str, Decimal]:
        """Pass 1: summary values, scanned from the last line up"""
        totals = {'total': ZERO, 'tip': ZERO, 'tax': ZERO, 'subtotal': ZERO}
        for line in reversed(lines):
            amount = self._find_amount(line)
            if amount is None:
                continue
            field_name = self._classify(line)
            if field_name is None:
                continue
            if self.debug and totals[field_name]:
                print(f"  {field_name}: {totals[field_name]} replaced by '{line}'")
            totals[field_name] = amount
        return totals

    def _item_name(self, line: str) -> str:
        name = _PRICE_RE.sub('', line, count=1)
        return _NAME_NOISE_RE.sub(' ', name).strip()

    def _find_items(self, lines: List[str], totals: Dict[str, Decimal]) -> List[LineItem]:
        """Pass 2: priced lines that are not summary lines, top to bottom"""
        items = []
        for i, line in enumerate(lines):
            lower = line.lower()
            if any(word in lower for word in SKIP_WORDS):
                continue

            amount = self._find_amount(line)
            if amount is None:
                continue
            if totals['total'] and amount >= totals['total']:
                if self.debug:
                    print(f"  Skipping '{line}': not below total {totals['total']}")
                continue
            if amount == totals['tax'] or amount == totals['tip']:
                if self.debug:
                    print(f"  Skipping '{line}': matches tax or tip")
                continue

            name = self._item_name(line)
            if not name and i > 0:
                # price printed on its own line under the item name
                name = lines[i - 1].strip()
            if name:
                items.append(LineItem(name=name, price=amount))
                if self.debug:
                    print(f"    ✓ Found item: {name} = {amount}")
        return items

    def parse(self, ocr_text: str) -> ParsedReceipt:
        """Parse OCR text into a ParsedReceipt; unreadable text gives an empty one"""
        if self.debug:
            print("\n🔍 Starting receipt parsing...")
            print(f"OCR text length: {len(ocr_text)} characters")

        lines = self._split_lines(ocr_text)
        totals = self._find_totals(lines)
        items = self._find_items(lines, totals)

        subtotal = totals['subtotal']
        if not subtotal and items:
            subtotal = sum((item.price for item in items), ZERO)
            if self.debug:
                print(f"  Calculated subtotal from items: {subtotal}")

        tax_percent = totals['tax'] / subtotal * HUNDRED if subtotal else ZERO
        tip_percent = totals['tip'] / subtotal * HUNDRED if subtotal else ZERO

        receipt = ParsedReceipt(
            items=tuple(items),
            subtotal=subtotal,
            tax=totals['tax'],
            tip=totals['tip'],
            total=totals['total'],
            tax_percent=tax_percent,
            tip_percent=tip_percent,
        )

        if self.debug:
            print(f"\n📊 Parsing Results:")
            print(f"  Items found: {len(receipt.items)}")
            print(f"  Subtotal: {receipt.subtotal}  Tax: {receipt.tax}  Tip: {receipt.tip}  Total: {receipt.total}")

        return receipt


def check_parse_result(receipt: ParsedReceipt) -> Optional[ParseEmptyResult]:
    """ParseEmptyResult when the receipt has nothing usable, else None"""
    if receipt.is_empty:
        return ParseEmptyResult()
    return None
