"""
Tabsplit - Receipt scanning and bill splitting

python3 main.py receipt.jpg                              # Scan and show items
python3 main.py --text receipt.txt                       # Parse already recognised text
python3 main.py receipt.jpg --people Ann Bob --payer 1 --assign 1=1 2=2
python3 main.py --help                                   # Show help
"""

import argparse
import json
import sys
from typing import List, Optional, Tuple

import config
from bill_splitter import BillSplitter
from data_models import BillState, ChargeMode, ParsedReceipt, SplitResult
from receipt_parser import ReceiptParser, check_parse_result
from utils import (
    clean_text_for_display, format_currency, quantize_money, try_parse_decimal, try_parse_int,
    validate_image_path,
)

__version__ = "1.0.0"

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_NEEDS_ATTENTION = 2


def assignment_arg(value: str) -> Tuple[int, int]:
    """ITEM=PERSON, both 1-based as shown on screen"""
    item, sep, person = value.partition('=')
    item_num, person_num = try_parse_int(item), try_parse_int(person)
    if not sep or item_num is None or person_num is None or item_num < 1 or person_num < 1:
        raise argparse.ArgumentTypeError(f"expected ITEM=PERSON with 1-based numbers, got '{value}'")
    return item_num - 1, person_num - 1


def decimal_arg(value: str):
    number = try_parse_decimal(value)
    if number is None or number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative number, got '{value}'")
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Tabsplit - scan a receipt and split the bill',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py receipt.jpg                       # Show detected items
  python main.py --text receipt.txt --people Ann Bob --payer 1 --assign 1=1 2=2
  python main.py --text - --people Ann --payer 1 --assign 1=1 --tip 18
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('image', nargs='?', help='Receipt image to scan')
    source.add_argument('--text', metavar='FILE', help="Recognised receipt text ('-' for stdin)")

    parser.add_argument('--people', nargs='+', metavar='NAME', help='People splitting the bill')
    parser.add_argument('--assign', nargs='+', type=assignment_arg, default=[], metavar='ITEM=PERSON',
                        help='Assign an item to a person (1-based)')
    parser.add_argument('--payer', type=int, metavar='PERSON', help='Person who paid (1-based)')
    parser.add_argument('--tax', type=decimal_arg, help='Tax value (percent or amount, see --tax-mode)')
    parser.add_argument('--tax-mode', choices=[m.value for m in ChargeMode])
    parser.add_argument('--tip', type=decimal_arg, help='Tip value (percent or amount, see --tip-mode)')
    parser.add_argument('--tip-mode', choices=[m.value for m in ChargeMode])
    parser.add_argument('--json', action='store_true', help='Print the split (or the parsed receipt) as JSON')
    parser.add_argument(
        '--workers',
        type=int,
        default=config.DEFAULT_MAX_WORKERS,
        help=f'Number of parallel OCR regions (default: {config.DEFAULT_MAX_WORKERS})'
    )
    parser.add_argument('--debug', action='store_true', default=config.DEBUG, help='Trace parsing decisions')
    parser.add_argument('--version', action='version', version=f'Tabsplit {__version__}')
    return parser


def read_receipt_text(args) -> Optional[str]:
    """Raw text from --text or from OCR of the image; None when unreadable"""
    if args.text:
        if args.text == '-':
            return sys.stdin.read()
        try:
            with open(args.text, encoding='utf-8', errors='replace') as f:
                return f.read()
        except OSError as e:
            print(f"❌ Cannot read {args.text}: {e}")
            return None

    if not validate_image_path(args.image):
        return None

    # OpenCV and Tesseract are only needed for images
    from ocr_processor import OCRProcessor

    processor = OCRProcessor(num_workers=args.workers, debug=args.debug)
    print(f"📸 Scanning receipt: {args.image}")
    text = processor.recognize_text(args.image)
    print(f"⚡ Recognised in {processor.metrics.processing_time:.2f}s "
          f"using {processor.metrics.workers_used} worker(s)")
    return text


def display_receipt(receipt: ParsedReceipt):
    """Display parsed receipt"""
    print("\n" + "="*50)
    print("📋 RECEIPT ITEMS")
    print("="*50)
    for i, item in enumerate(receipt.items, 1):
        print(f"{i:2}. {clean_text_for_display(item.name):40} {format_currency(item.price):>8}")
    print("-"*50)
    print(f"{'SUBTOTAL:':44} {format_currency(receipt.subtotal):>8}")
    if receipt.tax:
        print(f"{'TAX:':44} {format_currency(receipt.tax):>8}")
    if receipt.tip:
        print(f"{'TIP:':44} {format_currency(receipt.tip):>8}")
    if receipt.total:
        print(f"{'TOTAL:':44} {format_currency(receipt.total):>8}")


def build_bill_state(receipt: ParsedReceipt, args) -> BillState:
    """Apply the command line choices to a fresh bill, one edit at a time"""
    state = BillState.from_receipt(receipt, args.people)

    tax = state.tax
    if args.tax_mode:
        tax = tax.with_mode(ChargeMode(args.tax_mode))
    if args.tax is not None:
        tax = tax.with_value(args.tax)
    tip = state.tip
    if args.tip_mode:
        tip = tip.with_mode(ChargeMode(args.tip_mode))
    if args.tip is not None:
        tip = tip.with_value(args.tip)
    state = state.with_tax(tax).with_tip(tip)

    for item_index, person_index in args.assign:
        state = state.with_assignment(item_index, person_index)
    if args.payer is not None:
        state = state.with_payer(args.payer - 1)
    return state


def receipt_to_dict(receipt: ParsedReceipt) -> dict:
    """JSON-friendly view of a parsed receipt"""
    return {
        'items': [{'name': item.name, 'price': str(item.price)} for item in receipt.items],
        'subtotal': str(quantize_money(receipt.subtotal)),
        'tax': str(quantize_money(receipt.tax)),
        'tip': str(quantize_money(receipt.tip)),
        'total': str(quantize_money(receipt.total)),
    }


def split_to_dict(result: SplitResult) -> dict:
    """JSON-friendly view of a split, amounts rounded to cents"""
    def money(amount):
        return str(quantize_money(amount))

    return {
        'payer': result.payer.name,
        'subtotal': money(result.subtotal),
        'tax': money(result.tax_amount),
        'tip': money(result.tip_amount),
        'grand_total': money(result.grand_total),
        'people': [
            {
                'name': share.name,
                'is_payer': index == result.payer_index,
                'items': [{'name': item.name, 'price': money(item.price)} for item in share.items],
                'subtotal': money(share.subtotal),
                'tax_share': money(share.tax_share),
                'tip_share': money(share.tip_share),
                'total': money(share.total),
            }
            for index, share in result.per_person.items()
        ],
        'settlements': [
            {'from': s.from_person, 'to': s.to_person, 'amount': money(s.amount)}
            for s in BillSplitter().settlements(result)
        ],
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_arg_parser().parse_args(argv)

    text = read_receipt_text(args)
    if text is None:
        return EXIT_INPUT_ERROR

    receipt = ReceiptParser(debug=args.debug).parse(text)
    problem = check_parse_result(receipt)
    if problem:
        print(f"\n⚠ {problem.message}")
        print("Try:")
        print("  • Better image quality/lighting")
        print("  • Flattening the receipt and cropping the background")
        return EXIT_NEEDS_ATTENTION

    if not args.json:
        display_receipt(receipt)
    if not args.people:
        if args.json:
            print(json.dumps(receipt_to_dict(receipt), indent=2, ensure_ascii=False))
        return EXIT_OK

    try:
        state = build_bill_state(receipt, args)
    except (ValueError, IndexError) as e:
        print(f"\n⚠ {e}")
        return EXIT_INPUT_ERROR

    splitter = BillSplitter()
    outcome = splitter.compute_split(state)
    if not outcome.ok:
        print(f"\n⚠ {outcome.error.message}")
        if outcome.error.item_indices:
            print("Unassigned items: " + ', '.join(str(i + 1) for i in outcome.error.item_indices))
        return EXIT_NEEDS_ATTENTION

    if args.json:
        print(json.dumps(split_to_dict(outcome.result), indent=2, ensure_ascii=False))
        return EXIT_OK

    print("\n" + "="*50)
    print("💸 SPLIT")
    print("="*50)
    for line in splitter.summary_lines(outcome.result):
        print(line)
    return EXIT_OK


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!")
        sys.exit(0)
