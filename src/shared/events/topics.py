"""Bus topic names shared by every storefront context.

Names are stable for the lifetime of the process. Payload shapes are agreed
by convention:

    ORDER_CREATED        order dict (Order.to_dict())
    ORDER_UPDATED        order dict after a status change
    PRODUCT_UPDATED      product dict
    USER_REGISTERED      user dict
    SAGA_FAILED          {saga_id, order_id, payer_id, failed_state, reason,
                          compensated, committed}
    CHAT_SESSION_UPDATE  no payload; consumers re-fetch session state
"""

ORDER_CREATED = "order-created"
ORDER_UPDATED = "order-updated"
PRODUCT_UPDATED = "product-updated"
USER_REGISTERED = "user-registered"
SAGA_FAILED = "saga-failed"
CHAT_SESSION_UPDATE = "chat-session-update"

ALL_TOPICS = (
    ORDER_CREATED,
    ORDER_UPDATED,
    PRODUCT_UPDATED,
    USER_REGISTERED,
    SAGA_FAILED,
    CHAT_SESSION_UPDATE,
)
