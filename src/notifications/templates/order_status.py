"""Order status template, sent whenever an order changes status."""

from notifications.templates import NotificationType, short_id


class OrderStatusTemplate:
    notification_type = NotificationType.ORDER_STATUS.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = short_id(context.get("order_id", ""))
        status = str(context.get("status", "")).upper()
        store_name = context.get("store_name", "our store")
        if context.get("status") == "delivered":
            closing = "Enjoy your meal! We hope to see you again soon."
        else:
            closing = "You can track the progress in your account."
        return {
            "subject": f"Update on Order #{order_ref}",
            "body": (
                f"Hi {context.get('name', 'there')},\n\n"
                f"The status of your order #{order_ref} has been updated to: {status}.\n\n"
                f"{closing}\n\n"
                "Best,\n"
                f"The {store_name} Team"
            ),
        }
