"""
Tests for display formatting and toast templates.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from shared.formatters import (
    NEW_ORDER_TOAST,
    format_currency,
    format_short_datetime,
    format_time,
    get_status_toast,
    order_detail_route,
    status_label,
)


class TestFormatCurrency:
    @pytest.mark.parametrize("value, expected", [
        (Decimal("1234.5"), "R$1.234,50"),
        (Decimal("0"), "R$0,00"),
        (42, "R$42,00"),
        (Decimal("1000000"), "R$1.000.000,00"),
        (19.9, "R$19,90"),
    ])
    def test_brazilian_format(self, value, expected):
        assert format_currency(value) == expected


class TestDates:
    def test_format_time(self):
        assert format_time(datetime(2024, 5, 10, 8, 5, 3, tzinfo=timezone.utc)) == "08:05:03"

    def test_format_short_datetime(self):
        assert format_short_datetime(datetime(2024, 5, 10, 8, 5, tzinfo=timezone.utc)) == "10/05 08:05"


class TestStatus:
    def test_labels(self):
        assert status_label("preparing") == "Em Preparação"
        assert status_label("mystery") == "mystery"

    def test_no_toast_for_pending(self):
        assert get_status_toast("pending") is None

    def test_toast_for_every_later_status(self):
        for status in ("preparing", "ready", "out_for_delivery", "delivered", "cancelled", "rejected"):
            assert get_status_toast(status) is not None


class TestTemplates:
    def test_new_order_toast(self):
        title, description = NEW_ORDER_TOAST.render(customer_name="Ana", total="R$5,00")

        assert title == "🎉 Novo Pedido!"
        assert description == "Ana fez um pedido de R$5,00"
        assert NEW_ORDER_TOAST.duration_ms == 5000

    def test_missing_variable(self):
        with pytest.raises(KeyError):
            NEW_ORDER_TOAST.render(customer_name="Ana")


def test_order_detail_route():
    assert order_detail_route("ord-001") == "/orders?order=ord-001"
