from live_portfolio.lib.formatters import (
    FINANCIAL_DISCLAIMER,
    format_inr,
    format_response,
    line_money,
    line_text,
)


def test_format_response_includes_disclaimer() -> None:
    output = format_response("Title", ["a", "b"], source="X", warning="Y")
    assert "Title" in output
    assert "Source: X" in output
    assert "Warning: Y" in output
    assert FINANCIAL_DISCLAIMER in output


def test_format_inr_uses_indian_grouping_and_rounds() -> None:
    assert format_inr(35000) == "₹35,000"
    assert format_inr(123456.5) == "₹1,23,457"
    assert format_inr(12345678) == "₹1,23,45,678"
    assert format_inr(999) == "₹999"
    assert format_inr(-5000.2) == "-₹5,000"


def test_unknown_values_render_as_dash_not_zero() -> None:
    assert format_inr(None) == "—"
    assert line_money("CMP", None) == "CMP: —"
    assert line_text("P/E", None) == "P/E: —"
    assert line_text("P/E", "24.5") == "P/E: 24.5"


def test_line_money_rounds_to_whole_rupees() -> None:
    assert line_money("Price", 10.123) == "Price: ₹10"
