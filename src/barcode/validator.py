"""
Validation filter plus EAN/UPC product-code helpers.

The ValidationPolicy decides acceptance. The checksum helpers only annotate
accepted detections (symbology, check digit, normalized form).
"""

import re
from dataclasses import dataclass

from src.config import Settings
from src.core.exceptions import ValidationRejected
from src.models.detection import BarcodeSymbology


@dataclass(frozen=True)
class ValidationPolicy:
    """
    Length and character-set gate applied to every candidate string.

    A code is accepted iff ``min_length <= len(code) <= max_length`` and the
    whole code matches ``allowed_pattern``.
    """

    min_length: int
    max_length: int
    allowed_pattern: re.Pattern[str]

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationPolicy":
        return cls(
            min_length=settings.scan_min_code_length,
            max_length=settings.scan_max_code_length,
            allowed_pattern=re.compile(settings.scan_valid_code_pattern),
        )

    def accepts(self, code: str | None) -> bool:
        """Return True if the code passes length and pattern checks."""
        if not code:
            return False
        if not self.min_length <= len(code) <= self.max_length:
            return False
        return self.allowed_pattern.fullmatch(code) is not None

    def check(self, code: str | None) -> str:
        """
        Return the code unchanged if accepted.

        Raises:
            ValidationRejected: With the reason the code was refused
        """
        if not code:
            raise ValidationRejected(code or "", "empty code")
        if len(code) < self.min_length:
            raise ValidationRejected(code, f"shorter than {self.min_length} characters")
        if len(code) > self.max_length:
            raise ValidationRejected(code, f"longer than {self.max_length} characters")
        if self.allowed_pattern.fullmatch(code) is None:
            raise ValidationRejected(code, "contains characters outside the allowed set")
        return code


def gs1_check_digit(body: str) -> int:
    """
    Compute the GS1 mod-10 check digit for EAN-8, EAN-13 and UPC-A.

    Digits are weighted 3, 1, 3, ... starting from the rightmost digit of
    the body (the position next to the check digit).
    """
    if not body.isdigit():
        raise ValueError(f"Invalid character in code: {body!r}")

    total = sum(int(digit) * (3 if i % 2 == 0 else 1) for i, digit in enumerate(reversed(body)))
    return (10 - total % 10) % 10


def calculate_ean13_checksum(code: str) -> int:
    """Calculate the EAN-13 check digit from the first 12 digits."""
    if len(code) < 12:
        raise ValueError("Code must have at least 12 digits for EAN-13")
    return gs1_check_digit(code[:12])


def calculate_ean8_checksum(code: str) -> int:
    """Calculate the EAN-8 check digit from the first 7 digits."""
    if len(code) < 7:
        raise ValueError("Code must have at least 7 digits for EAN-8")
    return gs1_check_digit(code[:7])


def _has_valid_check_digit(code: str, length: int) -> bool:
    if len(code) != length or not code.isdigit():
        return False
    return gs1_check_digit(code[:-1]) == int(code[-1])


def validate_ean13_checksum(code: str) -> bool:
    """Validate a 13-digit EAN code."""
    return _has_valid_check_digit(code, 13)


def validate_ean8_checksum(code: str) -> bool:
    """Validate an 8-digit EAN code."""
    return _has_valid_check_digit(code, 8)


def validate_upc_checksum(code: str) -> bool:
    """Validate a 12-digit UPC-A code."""
    return _has_valid_check_digit(code, 12)


SYMBOLOGY_BY_LENGTH = {
    13: BarcodeSymbology.EAN_13,
    12: BarcodeSymbology.UPC_A,
    8: BarcodeSymbology.EAN_8,
    7: BarcodeSymbology.UPC_E,
    6: BarcodeSymbology.UPC_E,
}

CHECKSUM_VALIDATORS = {
    BarcodeSymbology.EAN_13: validate_ean13_checksum,
    BarcodeSymbology.UPC_A: validate_upc_checksum,
    BarcodeSymbology.EAN_8: validate_ean8_checksum,
}


def detect_symbology(code: str) -> BarcodeSymbology:
    """Guess the product-code symbology from a code's length."""
    if not code.isdigit():
        return BarcodeSymbology.UNKNOWN
    return SYMBOLOGY_BY_LENGTH.get(len(code), BarcodeSymbology.UNKNOWN)


def is_valid_barcode(code: str) -> tuple[bool, BarcodeSymbology, str]:
    """
    Validate a product code completely.

    Returns:
        Tuple of (is_valid, symbology, error_message)
    """
    if not code.isdigit():
        return False, BarcodeSymbology.UNKNOWN, "Code contains non-numeric characters"

    symbology = detect_symbology(code)
    if symbology == BarcodeSymbology.UNKNOWN:
        return False, symbology, f"Unsupported code length: {len(code)}"

    validator = CHECKSUM_VALIDATORS.get(symbology)
    # UPC-E needs expansion before its check digit can be verified
    if validator is None:
        return True, symbology, ""

    if validator(code):
        return True, symbology, ""
    return False, symbology, f"Invalid {symbology.value} checksum"


def normalize_barcode(code: str, symbology: BarcodeSymbology) -> str:
    """Normalize UPC-A to EAN-13 by adding a leading 0; others unchanged."""
    if symbology == BarcodeSymbology.UPC_A and len(code) == 12:
        return "0" + code
    return code


def strip_leading_zero(code: str) -> str:
    """
    Drop one leading zero, turning a UPC-A read as EAN-13 back into 12 digits.

    Codes without a leading zero are returned unchanged.
    """
    if len(code) > 1 and code.startswith("0"):
        return code[1:]
    return code
