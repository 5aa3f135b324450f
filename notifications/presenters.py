"""
Notification presenters.

Passive views over the notification store and the aggregator's modal state:
- Toaster: transient toast messages
- NotificationBell: unread badge, entry list, mark-as-read, clear-all
- OrderNotificationModal: the new-order / status-change dialog content
- NotificationProvider: both modals, wired to the aggregator's close actions

Presenters keep no copy of the notifications; they read a fresh snapshot from
the store every time they render and only subscribe to know when to re-render.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from notifications.store import NotificationStore
from shared.formatters import (
    ToastTemplate,
    format_currency,
    format_short_datetime,
    format_time,
    order_detail_route,
    status_label,
)
from shared.models import OrderNotification

logger = logging.getLogger("presenters")


# =============================================================================
# Toasts
# =============================================================================

@dataclass
class Toast:
    title: str
    description: str
    duration_ms: int = 4000
    variant: str = "default"  # or "destructive"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"[{self.variant}] {self.title} - {self.description}"


class Toaster:
    """Collects toasts shown to the user (newest last)."""

    def __init__(self, limit: int = 20):
        self.limit = limit
        self.toasts: list[Toast] = []

    def show(
        self,
        title: str,
        description: str,
        duration_ms: int = 4000,
        variant: str = "default",
    ) -> Toast:
        toast = Toast(title, description, duration_ms, variant)
        self.toasts = [*self.toasts, toast][-self.limit:]
        logger.info(f"Toast: {toast}")
        return toast

    def show_template(self, template: ToastTemplate, variant: str = "default", **kwargs) -> Toast:
        title, description = template.render(**kwargs)
        return self.show(title, description, template.duration_ms, variant)

    def dismiss_all(self) -> None:
        self.toasts = []


# =============================================================================
# Bell
# =============================================================================

@dataclass(frozen=True)
class BellEntry:
    order_id: str
    heading: str
    detail: str


Navigator = Callable[[str], None]


class NotificationBell:
    """
    Bell icon with an unread badge and a dropdown of recent orders.

    Clicking an entry marks it as read (removes it from the store) and
    navigates to the order's detail route.
    """

    def __init__(
        self,
        store: NotificationStore,
        navigate: Optional[Navigator] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.navigate = navigate or (lambda route: None)
        self.on_change = on_change
        self.render_count = 0
        self._unsubscribe = store.subscribe(self._store_changed)

    def _store_changed(self) -> None:
        self.render_count += 1
        if self.on_change is not None:
            self.on_change()

    @property
    def badge(self) -> Optional[int]:
        """Count shown on the badge, or None when there is nothing unread."""
        if not self.store.has_unread():
            return None
        return len(self.store.get_notifications())

    def entries(self) -> list[BellEntry]:
        return [self._entry(n) for n in self.store.get_notifications()]

    @staticmethod
    def _entry(notification: OrderNotification) -> BellEntry:
        detail = (
            f"{format_currency(notification.total_amount)} • "
            f"{format_time(notification.created_at)}"
        )
        if notification.order_code:
            detail += f" • #{notification.order_code}"
        return BellEntry(
            order_id=notification.id,
            heading=f"Pedido - {notification.customer_name}",
            detail=detail,
        )

    def mark_as_read(self, order_id: str) -> None:
        self.store.remove_notification(order_id)

    def select(self, order_id: str) -> str:
        """Click on an entry: mark it read and navigate. Returns the route."""
        self.mark_as_read(order_id)
        route = order_detail_route(order_id)
        self.navigate(route)
        return route

    def clear_all(self) -> None:
        self.store.clear_all()

    def render(self) -> str:
        """Plain-text rendering of the dropdown."""
        badge = self.badge
        lines = [f"Notificações ({badge})" if badge else "Notificações"]
        entries = self.entries()
        if not entries:
            lines.append("  Nenhuma notificação")
        for entry in entries:
            lines.append(f"  {entry.heading}")
            lines.append(f"    {entry.detail}")
        return "\n".join(lines)

    def close(self) -> None:
        """Stop listening to the store."""
        self._unsubscribe()


# =============================================================================
# Modals
# =============================================================================

NEW_ORDER = "new-order"
STATUS_CHANGE = "status-change"


@dataclass(frozen=True)
class ModalView:
    """Rendered content of an open order modal."""
    kind: str
    title: str
    description: str
    order_code: str
    status_label: str
    fields: tuple[tuple[str, str], ...]
    actions: tuple[str, ...]


class OrderNotificationModal:
    """Content of the order dialog for one modal kind."""

    TITLES = {
        NEW_ORDER: (
            "Novo Pedido Recebido!",
            "Um novo pedido foi recebido em seu estabelecimento.",
        ),
        STATUS_CHANGE: (
            "Status do Pedido Atualizado",
            "O status do seu pedido foi atualizado.",
        ),
    }

    def __init__(self, kind: str):
        if kind not in self.TITLES:
            raise ValueError(f"Unknown modal kind: {kind}")
        self.kind = kind

    def render(self, order: Optional[OrderNotification], is_open: bool) -> Optional[ModalView]:
        """Render the dialog, or None when it is closed or empty."""
        if order is None or not is_open:
            return None

        title, description = self.TITLES[self.kind]
        fields = [("Cliente", order.customer_name)]
        if order.customer_phone:
            fields.append(("Telefone", order.customer_phone))
        if order.customer_address:
            fields.append(("Endereço", order.customer_address))
        fields.append(("Total do Pedido", format_currency(order.total_amount)))
        fields.append(("Horário", format_short_datetime(order.created_at)))
        if order.payment_method:
            fields.append(("Forma de Pagamento", order.payment_method))
        if order.notes:
            fields.append(("Observações", order.notes))

        actions = ("Fechar", "Ver Pedidos") if self.kind == NEW_ORDER else ("Fechar",)
        return ModalView(
            kind=self.kind,
            title=title,
            description=description,
            order_code=f"#{order.display_code}",
            status_label=status_label(order.status),
            fields=tuple(fields),
            actions=actions,
        )


class NotificationProvider:
    """
    Both order modals, bound to an aggregator.

    Closing one modal never touches the other.
    """

    def __init__(self, aggregator):
        self.aggregator = aggregator
        self.new_order = OrderNotificationModal(NEW_ORDER)
        self.status_change = OrderNotificationModal(STATUS_CHANGE)

    def render(self) -> dict[str, Optional[ModalView]]:
        new_state = self.aggregator.new_order_modal
        status_state = self.aggregator.status_modal
        return {
            NEW_ORDER: self.new_order.render(new_state.order, new_state.is_open),
            STATUS_CHANGE: self.status_change.render(status_state.order, status_state.is_open),
        }

    def close(self, kind: str) -> None:
        if kind == NEW_ORDER:
            self.aggregator.close_new_order_modal()
        elif kind == STATUS_CHANGE:
            self.aggregator.close_status_modal()
        else:
            raise ValueError(f"Unknown modal kind: {kind}")
