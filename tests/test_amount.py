import pytest

from ton_disburser.amount import AmountError, format_ton, parse_ton_amount


@pytest.mark.parametrize(
    "text,nano",
    [
        ("1", 1_000_000_000),
        ("0", 0),
        ("1.5", 1_500_000_000),
        ("0.000000001", 1),
        (".25", 250_000_000),
        ("2.", 2_000_000_000),
        ("123.456789012", 123_456_789_012),
    ],
)
def test_parse_ton_amount(text, nano):
    assert parse_ton_amount(text) == nano


@pytest.mark.parametrize("text", ["", ".", "-1", "+1", "1e9", "abc", "1.0000000001", "1,5", "1.2.3"])
def test_parse_ton_amount_rejects(text):
    with pytest.raises(AmountError):
        parse_ton_amount(text)


def test_format_ton():
    assert format_ton(1_500_000_000) == "1.5"
    assert format_ton(300_000) == "0.0003"
    assert format_ton(2_000_000_000) == "2"
    assert format_ton(0) == "0"
