"""
Shared fixtures.
"""

import re

import numpy as np
import pytest
import structlog

from src.acquisition import PixelBuffer
from src.barcode.validator import ValidationPolicy
from src.config.settings import DEFAULT_CODE_PATTERN
from tests.helpers import BARCODE_DIGITS, guarded_row, row_to_buffer


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


@pytest.fixture
def policy() -> ValidationPolicy:
    return ValidationPolicy(
        min_length=8,
        max_length=20,
        allowed_pattern=re.compile(DEFAULT_CODE_PATTERN),
    )


@pytest.fixture
def white_buffer() -> PixelBuffer:
    return PixelBuffer.from_gray(np.full((40, 60), 255, dtype=np.uint8))


@pytest.fixture
def barcode_buffer() -> PixelBuffer:
    return row_to_buffer(guarded_row(BARCODE_DIGITS))
