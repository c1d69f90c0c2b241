"""Brazilian document, postal code and phone checks.

Pure functions shared by the validation artifact and its tests.  Inputs may
be formatted (``123.456.789-09``); only digits are considered.
"""

from __future__ import annotations


def digits_only(value: str) -> str:
    return "".join(c for c in str(value) if c.isascii() and c.isdigit())


def _mod11_digit(total: int) -> int:
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def cpf_check_digits(base: str) -> str:
    """Return the two CPF check digits for a 9-digit base."""
    nums = [int(c) for c in base]
    first = _mod11_digit(sum(d * (10 - i) for i, d in enumerate(nums)))
    nums.append(first)
    second = _mod11_digit(sum(d * (11 - i) for i, d in enumerate(nums)))
    return f"{first}{second}"


def is_valid_cpf(cpf: str) -> bool:
    """Validate a CPF (individual taxpayer number)."""
    digits = digits_only(cpf)
    if len(digits) != 11:
        return False
    # Repeated sequences pass the arithmetic but are never issued
    if len(set(digits)) == 1:
        return False
    return cpf_check_digits(digits[:9]) == digits[9:]


_CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_WEIGHTS_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def cnpj_check_digits(base: str) -> str:
    """Return the two CNPJ check digits for a 12-digit base."""
    nums = [int(c) for c in base]
    first = _mod11_digit(sum(d * w for d, w in zip(nums, _CNPJ_WEIGHTS_1)))
    nums.append(first)
    second = _mod11_digit(sum(d * w for d, w in zip(nums, _CNPJ_WEIGHTS_2)))
    return f"{first}{second}"


def is_valid_cnpj(cnpj: str) -> bool:
    """Validate a CNPJ (business registry number)."""
    digits = digits_only(cnpj)
    if len(digits) != 14:
        return False
    if len(set(digits)) == 1:
        return False
    return cnpj_check_digits(digits[:12]) == digits[12:]


def is_valid_tax_id(value: str) -> bool:
    """CPF for 11 digits, CNPJ for 14, anything else is invalid."""
    digits = digits_only(value)
    if len(digits) == 11:
        return is_valid_cpf(digits)
    if len(digits) == 14:
        return is_valid_cnpj(digits)
    return False


def is_valid_cep(cep: str) -> bool:
    """A CEP is eight digits, optionally written ``XXXXX-XXX``."""
    text = str(cep).strip()
    digits = digits_only(text)
    if len(digits) != 8:
        return False
    return text in (digits, f"{digits[:5]}-{digits[5:]}")


def is_valid_phone(phone: str) -> bool:
    """Brazilian landline or mobile number, with or without +55."""
    digits = digits_only(phone)
    if len(digits) == 13:
        return digits.startswith("55") and is_valid_phone(digits[2:])
    if len(digits) == 12:
        return digits.startswith("55") and is_valid_phone(digits[2:])
    if digits[:1] == "0" or digits[1:2] == "0":
        return False
    if len(digits) == 10:
        return digits[2] in "2345"
    if len(digits) == 11:
        # Mobile numbers carry a leading 9 after the area code
        return digits[2] == "9"
    return False


def format_cpf(cpf: str) -> str:
    """Format as ``XXX.XXX.XXX-XX``; other input is returned unchanged."""
    d = digits_only(cpf)
    if len(d) != 11:
        return cpf
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def format_cnpj(cnpj: str) -> str:
    """Format as ``XX.XXX.XXX/XXXX-XX``; other input is returned unchanged."""
    d = digits_only(cnpj)
    if len(d) != 14:
        return cnpj
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"


def format_cep(cep: str) -> str:
    """Format as ``XXXXX-XXX``; other input is returned unchanged."""
    d = digits_only(cep)
    if len(d) != 8:
        return cep
    return f"{d[:5]}-{d[5:]}"


def format_phone(phone: str) -> str:
    """Format 10, 11 or 13 digit numbers; other input is returned unchanged."""
    d = digits_only(phone)
    if len(d) == 10:
        return f"({d[:2]}) {d[2:6]}-{d[6:]}"
    if len(d) == 11:
        return f"({d[:2]}) {d[2]} {d[3:7]}-{d[7:]}"
    if len(d) == 13:
        return f"+{d[:2]} ({d[2:4]}) {d[4]} {d[5:9]}-{d[9:]}"
    return phone


def nfe_check_digit(body: str) -> int:
    """Mod-11 check digit of an NFe access key (weights 2..9 from the right)."""
    total = 0
    weight = 2
    for c in reversed(body):
        total += int(c) * weight
        weight = 2 if weight == 9 else weight + 1
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def ean13_check_digit(body: str) -> int:
    """Check digit for a 12-digit EAN-13 body."""
    total = sum(int(c) * (1 if i % 2 == 0 else 3) for i, c in enumerate(body))
    return (10 - total % 10) % 10
