"""
Centralized configuration for Tabsplit with environment
"""

import os
from decimal import Decimal

# OCR settings
OCR_PSM = int(os.getenv("TABSPLIT_OCR_PSM", "6"))
OCR_LANGUAGES = os.getenv("TABSPLIT_OCR_LANGUAGES", "eng")
OCR_THRESHOLD = int(os.getenv("TABSPLIT_OCR_THRESHOLD", "128"))

# Runtime settings
DEFAULT_MAX_WORKERS = int(os.getenv("TABSPLIT_MAX_WORKERS", "1"))
CURRENCY_SYMBOL = os.getenv("TABSPLIT_CURRENCY_SYMBOL", "$")
DEBUG = os.getenv("TABSPLIT_DEBUG", "0").lower() in ("1", "true", "yes", "on")

# Thresholds
SETTLEMENT_EPSILON = Decimal(os.getenv("TABSPLIT_SETTLEMENT_EPSILON", "0.01"))
IMAGE_REGION_OVERLAP_PX = int(os.getenv("TABSPLIT_IMAGE_OVERLAP", "50"))
MAX_IMAGE_SIZE_BYTES = int(os.getenv("TABSPLIT_MAX_IMAGE_SIZE_BYTES", str(50 * 1024 * 1024)))

# Workers bounds
WORKERS_MIN = int(os.getenv("TABSPLIT_WORKERS_MIN", "1"))
WORKERS_MAX = int(os.getenv("TABSPLIT_WORKERS_MAX", "16"))
