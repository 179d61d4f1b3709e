from __future__ import annotations

import re

from massage_booking.application.utils.confirmation import generate_confirmation_number


def test_confirmation_number_shape():
    number = generate_confirmation_number(now_ms=1_700_000_000_000)
    prefix, suffix = number.split("-")
    assert prefix == "LOYW3V28"
    assert re.fullmatch(r"[0-9A-Z]{4}", suffix)


def test_confirmation_numbers_differ():
    assert len({generate_confirmation_number() for _ in range(50)}) > 1
