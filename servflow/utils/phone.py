from __future__ import annotations

import re
from typing import Any

_NON_DIGIT_RE = re.compile(r"\D")


def to_e164(number: Any, country_code: str = "+1") -> str:
    """Normalise ``number`` to E.164.

    Numbers already starting with ``+`` are returned stripped of whitespace;
    anything else has its non-digits removed and ``country_code`` prefixed.
    Integers stored in an action config are converted to text first.
    """
    number = str(number).strip()
    if number.startswith("+"):
        return number
    return f"{country_code}{_NON_DIGIT_RE.sub('', number)}"
