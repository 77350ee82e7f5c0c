"""Welcome template, sent when a user registers."""

from notifications.templates import NotificationType


class WelcomeTemplate:
    notification_type = NotificationType.WELCOME.value

    @staticmethod
    def render(context: dict) -> dict:
        name = context.get("name", "there")
        store_name = context.get("store_name", "our store")
        return {
            "subject": f"Welcome to {store_name}, {name}!",
            "body": (
                f"Hi {name},\n\n"
                f"Thank you for joining {store_name}! We're excited to have you.\n\n"
                "Start exploring our menu and plans.\n\n"
                f"The {store_name} Team"
            ),
        }
