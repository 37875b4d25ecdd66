"""
OCR Processing module for Tabsplit
Turns a receipt image into raw text for the receipt parser
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np
import pytesseract
from PIL import Image, ImageEnhance, ImageFilter

import config
from data_models import ProcessingMetrics


class OCRProcessor:
    """Tesseract-backed text recognition.

    With more than one worker the image is cut into horizontal strips that
    overlap a little, recognised in parallel and joined back in order.
    """

    def __init__(self, num_workers: int = config.DEFAULT_MAX_WORKERS,
                 threshold: int = config.OCR_THRESHOLD, debug: Optional[bool] = None):
        self.num_workers = max(config.WORKERS_MIN, min(config.WORKERS_MAX, num_workers))
        self.threshold = threshold
        self.debug = config.DEBUG if debug is None else debug
        self.metrics = ProcessingMetrics()

    def _get_ocr_language(self) -> str:
        """Configured languages that Tesseract actually has installed"""
        try:
            available = set(pytesseract.get_languages(config=''))
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            print(f"⚠ Could not check OCR languages: {e}")
            return config.OCR_LANGUAGES
        wanted = [lang for lang in config.OCR_LANGUAGES.split('+') if lang in available]
        return '+'.join(wanted) or 'eng'

    def preprocess_image(self, image: Image.Image) -> Image.Image:
        """Grayscale, boost contrast, denoise and binarize"""
        if image.mode != 'L':
            image = image.convert('L')

        image = ImageEnhance.Contrast(image).enhance(2.0)
        image = image.filter(ImageFilter.SHARPEN)

        img_array = np.array(image)
        img_array = cv2.bilateralFilter(img_array, 9, 75, 75)
        _, img_array = cv2.threshold(img_array, self.threshold, 255, cv2.THRESH_BINARY)
        return Image.fromarray(img_array)

    def split_image_into_regions(self, image: Image.Image) -> List[Tuple[int, Image.Image]]:
        """Split image into overlapping horizontal strips"""
        width, height = image.size
        if self.num_workers == 1:
            return [(0, image)]

        region_height = height // self.num_workers
        regions = []
        for i in range(self.num_workers):
            y_start = i * region_height
            if i == self.num_workers - 1:
                y_end = height
            else:
                y_end = min(height, (i + 1) * region_height + config.IMAGE_REGION_OVERLAP_PX)
            regions.append((i, image.crop((0, y_start, width, y_end))))
        return regions

    def process_region(self, region_data: Tuple[int, Image.Image], lang: str) -> str:
        """Recognise a single region; a failed region yields no text"""
        region_id, region_image = region_data
        try:
            text = pytesseract.image_to_string(
                region_image,
                lang=lang,
                config=f'--psm {config.OCR_PSM}'
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as e:
            print(f"  Region {region_id + 1}: Error - {e}")
            return ""
        if self.debug:
            print(f"  Region {region_id + 1}: {len(text)} characters")
        return text

    def recognize_text(self, image: Union[str, Image.Image]) -> str:
        """Recognise the text of a receipt image (path or PIL image)"""
        start_time = time.time()
        if isinstance(image, str):
            image = Image.open(image)
        if self.debug:
            print(f"📷 Image loaded: {image.size[0]}x{image.size[1]} pixels")

        processed = self.preprocess_image(image)
        regions = self.split_image_into_regions(processed)
        lang = self._get_ocr_language()

        results = []
        with ThreadPoolExecutor(max_workers=len(regions)) as executor:
            future_to_region = {
                executor.submit(self.process_region, region, lang): region[0]
                for region in regions
            }
            for future in as_completed(future_to_region):
                results.append((future_to_region[future], future.result()))

        results.sort(key=lambda x: x[0])
        combined_text = '\n'.join(text for _, text in results)

        self.metrics = ProcessingMetrics(
            workers_used=len(regions),
            processing_time=time.time() - start_time,
            regions_processed=len(regions),
            characters_recognized=len(combined_text),
        )
        if self.debug:
            print(f"✅ OCR complete in {self.metrics.processing_time:.2f}s")
        return combined_text
