"""Template registry: maps NotificationType to template classes.

Each template renders a subject and body from a plain context dict.
"""

from enum import Enum


class NotificationType(Enum):
    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_STATUS = "order_status"
    WELCOME = "welcome"
    NEWSLETTER_WELCOME = "newsletter_welcome"
    CART_RECOVERY = "cart_recovery"


def _registry() -> dict[str, type]:
    from notifications.templates.cart_recovery import CartRecoveryTemplate
    from notifications.templates.newsletter_welcome import NewsletterWelcomeTemplate
    from notifications.templates.order_confirmation import OrderConfirmationTemplate
    from notifications.templates.order_status import OrderStatusTemplate
    from notifications.templates.welcome import WelcomeTemplate

    return {
        template.notification_type: template
        for template in (
            OrderConfirmationTemplate,
            OrderStatusTemplate,
            WelcomeTemplate,
            NewsletterWelcomeTemplate,
            CartRecoveryTemplate,
        )
    }


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = _registry().get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls


def short_id(value) -> str:
    """Customer-facing order reference: the last six characters of the id."""
    return str(value)[-6:]
