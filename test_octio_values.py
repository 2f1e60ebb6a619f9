"""Tests for the element text codec."""

import numpy as np
import pytest

from octio.descriptor import ElementKind
from octio.errors import ElementParseError
from octio.values import (
    format_complex,
    format_element,
    format_real,
    parse_complex,
    parse_element,
    parse_real,
    to_array,
    to_scalar,
)


class TestFormatReal:

    def test_integers(self):
        assert format_real(np.int32(-1), ElementKind.INT32) == "-1"
        assert format_real(2**63 - 1, ElementKind.INT64) == "9223372036854775807"
        assert format_real(np.uint64(2**64 - 1), ElementKind.UINT64) == "18446744073709551615"

    def test_eight_bit_kinds_are_numbers(self):
        assert format_real(np.int8(-128), ElementKind.INT8) == "-128"
        assert format_real(np.uint8(65), ElementKind.UINT8) == "65"

    def test_double(self):
        assert format_real(1.5, ElementKind.DOUBLE) == "1.5"
        assert format_real(-1.1, ElementKind.DOUBLE) == "-1.1"

    def test_single_uses_shortest_form(self):
        assert format_real(np.float32(-1.1), ElementKind.SINGLE) == "-1.1"

    def test_non_finite(self):
        assert format_real(float("nan"), ElementKind.DOUBLE) == "NaN"
        assert format_real(float("inf"), ElementKind.SINGLE) == "Inf"
        assert format_real(-np.inf, ElementKind.DOUBLE) == "-Inf"

    def test_char_is_not_numeric(self):
        with pytest.raises(TypeError):
            format_real(1, ElementKind.CHAR)


class TestParseReal:

    def test_int(self):
        value = parse_real("-4", ElementKind.INT32)
        assert value == -4
        assert value.dtype == np.int32

    def test_int_out_of_range(self):
        with pytest.raises(ElementParseError):
            parse_real("300", ElementKind.INT8)
        with pytest.raises(ElementParseError):
            parse_real("-1", ElementKind.UINT16)

    def test_int_rejects_fraction(self):
        with pytest.raises(ElementParseError):
            parse_real("1.5", ElementKind.INT64)

    def test_float_invalid(self):
        with pytest.raises(ElementParseError):
            parse_real("abc", ElementKind.DOUBLE)

    def test_nan_tokens(self):
        assert np.isnan(parse_real("NaN", ElementKind.DOUBLE))
        assert np.isnan(parse_real("NA", ElementKind.DOUBLE))
        assert np.isnan(parse_real("NaN", ElementKind.SINGLE))

    def test_inf_tokens(self):
        assert parse_real("Inf", ElementKind.DOUBLE) == np.inf
        assert parse_real("-Inf", ElementKind.SINGLE) == -np.inf

    def test_error_carries_line(self):
        with pytest.raises(ElementParseError) as exc:
            parse_real("x", ElementKind.INT16, line=7)
        assert exc.value.line == 7
        assert str(exc.value).startswith("Line 7:")

    @pytest.mark.parametrize(
        "value",
        [np.finfo(np.float64).max, np.finfo(np.float64).tiny, -1.1, 1e-300, 0.1 + 0.2],
    )
    def test_double_text_round_trip(self, value):
        assert parse_real(format_real(value, ElementKind.DOUBLE), ElementKind.DOUBLE) == value

    @pytest.mark.parametrize(
        "value",
        [np.finfo(np.float32).max, np.finfo(np.float32).tiny, np.float32(-1.1), np.float32(3.3)],
    )
    def test_single_text_round_trip(self, value):
        text = format_real(value, ElementKind.SINGLE)
        assert parse_real(text, ElementKind.SINGLE) == np.float32(value)


class TestComplex:

    def test_format(self):
        assert format_complex(complex(1.5, -2.25), ElementKind.DOUBLE) == "(1.5,-2.25)"

    def test_parse(self):
        real, imag = parse_complex("(1.5,-2.25)", ElementKind.DOUBLE)
        assert real == 1.5
        assert imag == -2.25

    def test_token_round_trip(self):
        real, imag = parse_complex("(1.5,-2.25)", ElementKind.DOUBLE)
        assert format_complex(complex(real, imag), ElementKind.DOUBLE) == "(1.5,-2.25)"

    def test_integer_pairs(self):
        assert format_complex((-1, 1), ElementKind.INT32) == "(-1,1)"
        pair = to_scalar(parse_complex("(-1,1)", ElementKind.INT32), ElementKind.INT32, True)
        assert pair["real"] == -1
        assert pair["imag"] == 1
        assert format_complex(pair, ElementKind.INT32) == "(-1,1)"

    def test_nan_parts(self):
        text = format_complex(complex(np.nan, np.nan), ElementKind.SINGLE)
        assert text == "(NaN,NaN)"
        real, imag = parse_complex(text, ElementKind.SINGLE)
        assert np.isnan(real) and np.isnan(imag)

    @pytest.mark.parametrize("token", ["(1.5)", "1.5", "(1,2,3)", "(a,b)"])
    def test_invalid(self, token):
        with pytest.raises(ElementParseError):
            parse_complex(token, ElementKind.DOUBLE)


class TestPacking:

    def test_element_dispatch(self):
        assert format_element(3, ElementKind.UINT8, False) == "3"
        assert format_element(1 - 1j, ElementKind.DOUBLE, True) == "(1.0,-1.0)"
        assert parse_element("(2,3)", ElementKind.INT8, True) == (2, 3)

    def test_to_array_complex_float(self):
        arr = to_array([(np.float32(1), np.float32(-2))], ElementKind.SINGLE, True)
        assert arr.dtype == np.complex64
        assert arr[0] == 1 - 2j

    def test_to_array_complex_int(self):
        arr = to_array([(1, 2), (3, 4)], ElementKind.INT64, True)
        assert arr.dtype.names == ("real", "imag")
        np.testing.assert_array_equal(arr["imag"], [2, 4])

    def test_to_scalar_real(self):
        value = to_scalar(np.uint16(7), ElementKind.UINT16, False)
        assert value == 7
        assert value.dtype == np.uint16
