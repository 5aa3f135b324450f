"""
Display formatting and toast templates.

Everything user-facing is rendered for the pt-BR storefront: currency as
R$1.234,56, status labels in Portuguese, toast copy per order status.

Design decisions:
- Templates are plain strings with {variable} placeholders
- Status toasts exist only for transitions a customer cares about
  (no toast for "pending", the customer just placed the order)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from urllib.parse import urlencode

from shared.models import OrderStatus


ORDERS_ROUTE = "/orders"


STATUS_LABELS: dict[str, str] = {
    OrderStatus.PENDING.value: "Pendente",
    OrderStatus.PREPARING.value: "Em Preparação",
    OrderStatus.READY.value: "Pronto",
    OrderStatus.OUT_FOR_DELIVERY.value: "Saiu para Entrega",
    OrderStatus.DELIVERED.value: "Entregue",
    OrderStatus.CANCELLED.value: "Cancelado",
    OrderStatus.REJECTED.value: "Rejeitado",
}


@dataclass(frozen=True)
class ToastTemplate:
    """Title/description pair for a transient toast message."""
    title: str
    description: str
    duration_ms: int = 4000

    def render(self, **kwargs) -> tuple[str, str]:
        """Render the template with provided variables."""
        return self.title.format(**kwargs), self.description.format(**kwargs)


NEW_ORDER_TOAST = ToastTemplate(
    title="🎉 Novo Pedido!",
    description="{customer_name} fez um pedido de {total}",
    duration_ms=5000,
)

SUBSCRIBE_FAILED_TOAST = ToastTemplate(
    title="Notificações indisponíveis",
    description="Não foi possível conectar às atualizações de pedidos.",
    duration_ms=5000,
)

STATUS_TOASTS: dict[str, ToastTemplate] = {
    OrderStatus.PREPARING.value: ToastTemplate(
        "👨‍🍳 Em preparação", "Seu pedido está sendo preparado."
    ),
    OrderStatus.READY.value: ToastTemplate(
        "📦 Pronto!", "Seu pedido está pronto para retirada/entrega."
    ),
    OrderStatus.OUT_FOR_DELIVERY.value: ToastTemplate(
        "🛵 Saiu para entrega", "Seu pedido saiu para entrega."
    ),
    OrderStatus.DELIVERED.value: ToastTemplate(
        "✅ Entregue", "Seu pedido foi entregue com sucesso!"
    ),
    OrderStatus.CANCELLED.value: ToastTemplate(
        "❌ Cancelado", "Seu pedido foi cancelado."
    ),
    OrderStatus.REJECTED.value: ToastTemplate(
        "🚫 Rejeitado", "Seu pedido foi rejeitado."
    ),
}


def format_currency(value: Union[Decimal, float, int]) -> str:
    """
    Format an amount as Brazilian reais.

    Example:
        format_currency(Decimal("1234.5")) -> "R$1.234,50"
    """
    formatted = f"{Decimal(str(value)):,.2f}"
    # swap separators: 1,234.50 -> 1.234,50
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R${formatted}"


def format_time(value: datetime) -> str:
    """Time of day as shown in the bell (HH:MM:SS)."""
    return value.strftime("%H:%M:%S")


def format_short_datetime(value: datetime) -> str:
    """Day/month and time as shown in the order modal (dd/mm HH:MM)."""
    return value.strftime("%d/%m %H:%M")


def status_label(status: str) -> str:
    """Portuguese label for a status, falling back to the raw value."""
    return STATUS_LABELS.get(status, status)


def get_status_toast(status: str) -> Optional[ToastTemplate]:
    """Get the customer-facing toast for a status, if one exists."""
    return STATUS_TOASTS.get(status)


def order_detail_route(order_id: str) -> str:
    """Navigation target for a clicked notification."""
    return f"{ORDERS_ROUTE}?{urlencode({'order': order_id})}"
