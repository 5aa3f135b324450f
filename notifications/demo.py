"""
Demonstration scripts for the notification system.

These functions run scripted sessions against the fixture directory and print
what the user would see: toasts, the bell dropdown and the open modals.
"""

from typing import Optional

from notifications.context import NotificationContext
from realtime.orders import OrdersTable
from shared.config import Settings, configure_logging, get_settings
from shared.models import OrderStatus, UserAccount


def _print_screen(ctx: NotificationContext) -> None:
    print("\nToasts:")
    for toast in ctx.toaster.toasts:
        print(f"  {toast}")
    if not ctx.toaster.toasts:
        print("  (none)")

    print("\nBell:")
    bell = ctx.bell()
    print(bell.render())
    bell.close()

    print("\nModals:")
    for kind, view in ctx.provider().render().items():
        if view is None:
            print(f"  {kind}: closed")
        else:
            print(f"  {kind}: {view.title} {view.order_code} [{view.status_label}]")
    print(f"\nSound alerts played: {ctx.sound_player.play_count}")


def run_owner_demo(settings: Optional[Settings] = None) -> None:
    """
    Business owner receives two new orders and one status update.

    Shows:
    1. INSERT events open the new-order modal, toast and play the alert
    2. The UPDATE refreshes the bell entry without a modal or sound
    3. An order for another business never reaches this session
    """
    settings = settings or get_settings()
    configure_logging(settings)

    print("\n" + "=" * 70)
    print("DEMO: Business owner receives orders")
    print("=" * 70)

    with NotificationContext(settings) as ctx:
        table = OrdersTable(ctx.feed)
        owner = ctx.data_store.get_user("user-owner-1") or UserAccount(id="user-owner-1")
        aggregator = ctx.start_session(owner)
        print(f"\nResolved role: {aggregator.role}\n")

        first = table.insert(
            business_id="biz-001", customer_id="cust-001", customer_name="Maria Silva",
            total_amount="58.90", customer_phone="+55 11 91234-5678",
            customer_address="Rua das Flores, 123", payment_method="pix",
        )
        table.insert(
            business_id="biz-002", customer_id="cust-002", customer_name="João Souza",
            total_amount="120.00",
        )
        table.insert(
            business_id="biz-001", customer_id="cust-002", customer_name="João Souza",
            total_amount="32.50", notes="Sem cebola",
        )
        table.update_status(first["id"], OrderStatus.PREPARING)

        _print_screen(ctx)


def run_customer_demo(settings: Optional[Settings] = None) -> None:
    """
    Customer follows an order from pending to delivered.

    Each status change opens the status-change modal and shows a toast; an
    address correction updates the snapshot silently.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    print("\n" + "=" * 70)
    print("DEMO: Customer follows an order")
    print("=" * 70)

    with NotificationContext(settings) as ctx:
        table = OrdersTable(ctx.feed)
        customer = ctx.data_store.get_user("user-cust-1") or UserAccount(id="user-cust-1")
        aggregator = ctx.start_session(customer)
        print(f"\nResolved role: {aggregator.role}\n")

        order = table.insert(
            business_id="biz-001", customer_id="cust-001", customer_name="Maria Silva",
            total_amount="58.90",
        )
        table.update(order["id"], customer_address="Rua das Flores, 125")
        for status in (OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED):
            table.update_status(order["id"], status)

        _print_screen(ctx)


def run_all_demos(settings: Optional[Settings] = None) -> None:
    run_owner_demo(settings)
    run_customer_demo(settings)
