"""
Unit tests for money helpers.
"""

import pytest
from decimal import Decimal

from taqueria.exceptions import ValidationError
from taqueria.utils.money import MAX_AMOUNT, format_money, money_str, parse_money, round2, to_money


class TestToMoney:
    
    def test_accepts_decimal_int_and_string(self):
        assert to_money(Decimal('15')) == Decimal('15.00')
        assert to_money(7) == Decimal('7.00')
        assert to_money(' 12.5 ') == Decimal('12.50')
    
    def test_rounds_half_up(self):
        assert to_money('2.345') == Decimal('2.35')
        assert round2(Decimal('9.604')) == Decimal('9.60')
        assert round2(Decimal('0.005')) == Decimal('0.01')
    
    @pytest.mark.parametrize('value', [0.1, True, None, 'abc', 'NaN', 'Infinity', [1]])
    def test_rejects_invalid_values(self, value):
        with pytest.raises(ValidationError):
            to_money(value)
    
    @pytest.mark.parametrize('value', [Decimal('1E+30'), '1e30', '100000000.00', Decimal('-100000000')])
    def test_rejects_amounts_out_of_range(self, value):
        with pytest.raises(ValidationError):
            to_money(value)

    def test_largest_column_amount_is_accepted(self):
        assert to_money('99999999.99') == MAX_AMOUNT
        assert to_money(-MAX_AMOUNT) == -MAX_AMOUNT

    def test_repeated_sums_do_not_drift(self):
        total = sum((to_money('0.10') for _ in range(1000)), Decimal('0.00'))
        assert total == Decimal('100.00')


class TestFormatting:
    
    def test_money_str(self):
        assert money_str(Decimal('1234.5')) == '1234.50'
        assert money_str(Decimal('0')) == '0.00'
    
    def test_format_money(self):
        assert format_money(Decimal('1234.5')) == '$1,234.50'
        assert format_money(Decimal('-15')) == '-$15.00'
        assert format_money(Decimal('0')) == '$0.00'


class TestParseMoney:
    
    def test_parses_user_input(self):
        assert parse_money('185') == Decimal('185.00')
        assert parse_money('$1,185.50') == Decimal('1185.50')
        assert parse_money('-15.5') == Decimal('-15.50')
    
    @pytest.mark.parametrize('text', ['', '   ', None, '12.345', '1.2.3', 'doce'])
    def test_rejects_malformed_input(self, text):
        with pytest.raises(ValidationError):
            parse_money(text)
