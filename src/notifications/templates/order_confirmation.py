"""Order confirmation template, sent when checkout records an order."""

from notifications.templates import NotificationType, short_id


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = short_id(context.get("order_id", ""))
        store_name = context.get("store_name", "our store")
        items = ", ".join(f"{item['quantity']}x {item['name']}" for item in context.get("items", []))
        address = context.get("shipping_address") or {}
        destination = ", ".join(part for part in (address.get("street"), address.get("city")) if part) or "N/A"
        return {
            "subject": f"Order Confirmation #{order_ref}",
            "body": (
                f"Hi {context.get('name', 'there')},\n\n"
                f"Thank you for your order with {store_name}!\n"
                f"We've received your order #{order_ref} and are preparing it with fresh ingredients.\n\n"
                "Order Details:\n"
                "----------------\n"
                f"Total: {context.get('currency', 'INR')} {float(context.get('total', 0)):.2f}\n"
                f"Items: {items}\n\n"
                f"Shipping to:\n{destination}\n\n"
                "Stay Healthy!\n"
                f"The {store_name} Team"
            ),
        }
