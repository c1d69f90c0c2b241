"""Pure check-digit and format algorithms used by generated validation code."""

from domaingen.checks.brazil import (
    format_cep,
    format_cnpj,
    format_cpf,
    format_phone,
    is_valid_cep,
    is_valid_cnpj,
    is_valid_cpf,
    is_valid_phone,
    is_valid_tax_id,
)
from domaingen.checks.formats import is_valid_email

__all__ = [
    "format_cep",
    "format_cnpj",
    "format_cpf",
    "format_phone",
    "is_valid_cep",
    "is_valid_cnpj",
    "is_valid_cpf",
    "is_valid_email",
    "is_valid_phone",
    "is_valid_tax_id",
]
