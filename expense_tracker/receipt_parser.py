import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# Matches both 1,200.50 and 1.200,50; the two-digit suffix is mandatory
PRICE_PATTERN = re.compile(r'[$€£]?\s*(\d{1,3}(?:[.,]\d{3})*[.,]\d{2})', re.ASCII)
SUBTOTAL_PATTERN = re.compile(r'sub\s*-?\s*total', re.IGNORECASE)
EUROPEAN_SUFFIX = re.compile(r',\d{2}$', re.ASCII)
LEADING_NUMBER = re.compile(r'\d+(?:\.\d+)?', re.ASCII)
TOTAL_KEYWORDS = ('total', 'amount', 'due', 'balance', 'grand total')


@dataclass(frozen=True)
class ReceiptScan:
    total: Optional[float]
    raw_text: str

    def serialize(self) -> Dict:
        return {'total': self.total, 'rawText': self.raw_text}


def parse_price(token: str) -> float:
    """
    Convert '1.200,50' or '$ 1,200.50' to 1200.5.

    Only the first comma of a European token becomes the decimal point and
    the leading numeric part is read, so a malformed token such as
    '1,000,00' still yields a value (1.0) instead of being dropped.
    """
    clean = re.sub(r'[^0-9.,]', '', token)
    if EUROPEAN_SUFFIX.search(clean):
        clean = clean.replace('.', '').replace(',', '.', 1)
    else:
        clean = clean.replace(',', '')
    return float(LEADING_NUMBER.match(clean).group(0))


def find_prices(text: str) -> List[float]:
    return [parse_price(match.group(0)) for match in PRICE_PATTERN.finditer(text)]


def _is_excluded(line: str) -> bool:
    if SUBTOTAL_PATTERN.search(line):
        return True
    # "Tax: 5.00" is skipped, "Total (incl. tax) 5.50" is not
    return ('tax' in line or 'vat' in line) and 'total' not in line


def find_total_line_price(lines: List[str]) -> Optional[float]:
    for line in reversed(lines):
        lowered = line.lower()
        if _is_excluded(lowered):
            continue
        if not any(keyword in lowered for keyword in TOTAL_KEYWORDS):
            continue
        prices = find_prices(line)
        if prices:
            return prices[-1]
    return None


def parse_receipt(text: Optional[str]) -> ReceiptScan:
    """
    Pick the amount most likely paid from raw OCR receipt text.

    Lines are read bottom-up so a grand total printed after subtotal and tax
    lines wins. The last figure on the first qualifying keyword line is used;
    with no such line the largest figure anywhere on the receipt is returned.
    The total is None only when the text holds no figure with a two-digit
    decimal part.
    """
    text = text or ''
    total = find_total_line_price(text.split('\n'))
    if total is None:
        candidates = find_prices(text)
        if candidates:
            total = max(candidates)

    logger.debug(f'Receipt total extracted: {total}')
    return ReceiptScan(total=total, raw_text=text)
