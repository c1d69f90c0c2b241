"""Country-indexed format checks used by the validation artifact."""

from __future__ import annotations

import re
from typing import Callable

from domaingen.checks import brazil

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9\-]+(?:\.[A-Za-z0-9\-]+)*\.[A-Za-z]{2,}")


def is_valid_email(email: str) -> bool:
    """Pragmatic address check: one ``@``, a dotted domain, no spaces."""
    text = str(email)
    if len(text) < 5 or text.count("@") != 1:
        return False
    return bool(_EMAIL_RE.fullmatch(text))


POSTAL_CODE_CHECKS: dict[str, Callable[[str], bool]] = {
    "BR": brazil.is_valid_cep,
    "US": lambda v: bool(re.fullmatch(r"[0-9]{5}(?:-[0-9]{4})?", str(v).strip())),
    "PT": lambda v: bool(re.fullmatch(r"[0-9]{4}-[0-9]{3}", str(v).strip())),
}

NATIONAL_TAX_ID_CHECKS: dict[str, Callable[[str], bool]] = {
    "BR": brazil.is_valid_tax_id,
}

PHONE_CHECKS: dict[str, Callable[[str], bool]] = {
    "BR": brazil.is_valid_phone,
}
