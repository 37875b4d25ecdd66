#!/usr/bin/env python3
"""
Utility functions for Tabsplit
"""

import re
import mimetypes
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from pathlib import Path
from typing import Optional

from config import MAX_IMAGE_SIZE_BYTES, CURRENCY_SYMBOL
from constants import ALLOWED_IMAGE_EXTENSIONS, DECIMAL_QUANTIZE


def validate_image_path(image_path: str) -> bool:
    """Image path validation with basic security checks"""
    if not isinstance(image_path, str):
        print("Image path must be a string")
        return False

    path = Path(image_path)

    if '..' in path.parts:
        print(f"Security risk: Invalid path pattern: {image_path}")
        return False

    if not path.exists():
        print(f"File not found: {image_path}")
        return False

    if not path.is_file():
        print(f"Path is not a file: {image_path}")
        return False

    size = path.stat().st_size
    if size > MAX_IMAGE_SIZE_BYTES:
        print(f"File too large: {size} bytes (max: {MAX_IMAGE_SIZE_BYTES})")
        return False

    if path.suffix.lower() not in ALLOWED_IMAGE_EXTENSIONS:
        print(f"Unsupported file extension: {path.suffix}")
        return False

    mime_type, _ = mimetypes.guess_type(str(path))
    if mime_type and not mime_type.startswith('image/'):
        print(f"Invalid MIME type: {mime_type}")
        return False

    return True


def quantize_money(amount: Decimal) -> Decimal:
    """Round to cents for display"""
    return Decimal(amount).quantize(DECIMAL_QUANTIZE, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format currency amount, rounded to cents"""
    value = quantize_money(amount)
    if value < 0:
        return f"-{symbol}{-value}"
    return f"{symbol}{value}"


def try_parse_int(value: str) -> Optional[int]:
    """Safely parse integer from string"""
    try:
        return int(value.strip())
    except (ValueError, AttributeError):
        return None


def try_parse_decimal(value: str) -> Optional[Decimal]:
    """Safely parse a money or percent value; accepts "$" and "%" and a decimal comma"""
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lstrip('$').rstrip('%').replace(',', '.')
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def clean_text_for_display(text: str, max_length: int = 40) -> str:
    """Clean text for safe display in a fixed-width column"""
    if not isinstance(text, str):
        return ""

    # Remove control characters
    text = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', text)
    text = ' '.join(text.split())

    if len(text) > max_length:
        text = text[:max_length-3] + "..."

    return text
