"""Cart recovery template, sent by the abandoned-cart sequence."""

from notifications.templates import NotificationType


class CartRecoveryTemplate:
    notification_type = NotificationType.CART_RECOVERY.value

    @staticmethod
    def render(context: dict) -> dict:
        count = context.get("item_count", 0)
        noun = "item" if count == 1 else "items"
        return {
            "subject": "You left something fresh behind!",
            "body": (
                f"It looks like you didn't finish your order ({count} {noun} in your cart). "
                "Your healthy meal is waiting for you! Come back to complete your purchase."
            ),
        }
