"""Newsletter welcome template, carrying the first-order discount code."""

from notifications.templates import NotificationType


class NewsletterWelcomeTemplate:
    notification_type = NotificationType.NEWSLETTER_WELCOME.value

    @staticmethod
    def render(context: dict) -> dict:
        store_name = context.get("store_name", "our store")
        code = context.get("discount_code", "FRESH10")
        return {
            "subject": f"Welcome to the {store_name} Family!",
            "body": f"Thanks for subscribing! Here is a 10% discount code for your first order: {code}",
        }
