"""Tests for the Brazilian document, postal code and phone checks."""

from __future__ import annotations

import pytest

from domaingen.checks import brazil
from domaingen.checks.formats import POSTAL_CODE_CHECKS, is_valid_email


# ── CPF / CNPJ ───────────────────────────────────────────────────────────────

class TestTaxIds:

    @pytest.mark.parametrize("cpf", ["529.982.247-25", "52998224725"])
    def test_valid_cpf(self, cpf):
        assert brazil.is_valid_cpf(cpf)

    @pytest.mark.parametrize("cpf", ["529.982.247-26", "111.111.111-11", "1234567890", ""])
    def test_invalid_cpf(self, cpf):
        assert not brazil.is_valid_cpf(cpf)

    def test_cpf_check_digits(self):
        assert brazil.cpf_check_digits("529982247") == "25"

    @pytest.mark.parametrize("cnpj", ["11.222.333/0001-81", "11222333000181"])
    def test_valid_cnpj(self, cnpj):
        assert brazil.is_valid_cnpj(cnpj)

    @pytest.mark.parametrize("cnpj", ["11.222.333/0001-82", "00.000.000/0000-00", "1122233300018"])
    def test_invalid_cnpj(self, cnpj):
        assert not brazil.is_valid_cnpj(cnpj)

    def test_tax_id_dispatches_on_length(self):
        assert brazil.is_valid_tax_id("529.982.247-25")
        assert brazil.is_valid_tax_id("11.222.333/0001-81")
        assert not brazil.is_valid_tax_id("123")

    def test_format_cpf_and_cnpj(self):
        assert brazil.format_cpf("52998224725") == "529.982.247-25"
        assert brazil.format_cnpj("11222333000181") == "11.222.333/0001-81"


# ── CEP / phone / email ──────────────────────────────────────────────────────

class TestFormats:

    @pytest.mark.parametrize("cep, ok", [
        ("01310-100", True),
        ("01310100", True),
        ("01310 100", False),
        ("0131-0100", False),
        ("1234567", False),
    ])
    def test_cep(self, cep, ok):
        assert brazil.is_valid_cep(cep) is ok

    @pytest.mark.parametrize("phone, formatted", [
        ("1132654321", "(11) 3265-4321"),
        ("11987654321", "(11) 9 8765-4321"),
        ("5511987654321", "+55 (11) 9 8765-4321"),
        ("123", "123"),
    ])
    def test_format_phone(self, phone, formatted):
        assert brazil.format_phone(phone) == formatted

    def test_format_cep(self):
        assert brazil.format_cep("01310100") == "01310-100"
        assert brazil.format_cep("0131") == "0131"

    @pytest.mark.parametrize("phone, ok", [
        ("(11) 98765-4321", True),
        ("1132654321", True),
        ("+55 11 98765-4321", True),
        ("551132654321", True),
        ("1187654321", False),   # landline must start with 2-5
        ("11 8765-43210", False),  # 11 digits without the mobile 9
        ("0119876543", False),
        ("123", False),
    ])
    def test_phone(self, phone, ok):
        assert brazil.is_valid_phone(phone) is ok

    @pytest.mark.parametrize("email, ok", [
        ("maria@example.com.br", True),
        ("a.b+tag@sub.example.org", True),
        ("no-at-sign", False),
        ("two@@example.com", False),
        ("x@y", False),
        ("spaces in@example.com", False),
        ("ana@example.com\n", False),
    ])
    def test_email(self, email, ok):
        assert is_valid_email(email) is ok

    def test_postal_code_by_country(self):
        assert POSTAL_CODE_CHECKS["US"]("94105-1234")
        assert POSTAL_CODE_CHECKS["PT"]("1000-001")
        assert not POSTAL_CODE_CHECKS["PT"]("1000001")
        assert not POSTAL_CODE_CHECKS["US"]("\u0669\u0664\u0661\u0660\u0665")


# ── Check digits for keys and barcodes ───────────────────────────────────────

class TestCheckDigits:

    def test_ean13(self):
        assert brazil.ean13_check_digit("789100010003") == 5
        assert brazil.ean13_check_digit("400638133393") == 1

    def test_nfe_digit_range(self):
        assert 0 <= brazil.nfe_check_digit("3" * 43) <= 9
