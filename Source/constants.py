from decimal import Decimal

# Dollar amount with exactly two decimals, optional leading "$"
PRICE_PATTERN = r'\$?\s*([0-9]+\.[0-9]{2})'

# Summary line rules, checked in order; first match wins per line
TOTALS_RULES = [
    ('total', lambda line: 'total' in line and 'sub' not in line),
    ('tip', lambda line: 'tip' in line or 'gratuity' in line),
    ('tax', lambda line: 'tax' in line or 'gst' in line or 'hst' in line),
    ('subtotal', lambda line: 'subtotal' in line or 'sub-total' in line),
]

# Lines containing any of these are never items
SKIP_WORDS = ['total', 'tax', 'tip', 'gratuity', 'change', 'balance', 'card', 'cash']

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DECIMAL_QUANTIZE = Decimal("0.01")

ALLOWED_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.gif', '.webp'}
