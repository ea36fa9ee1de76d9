"""Application error taxonomy.

Request-scoped errors carry the HTTP status they are rendered with by
``eshop.core.exception_handlers``. Messaging errors are raised inside the
outbox dispatcher and the event bus; they are logged there and never reach an
HTTP client.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = 404


class BadRequestError(AppError):
    status_code = 400


class InternalServerError(AppError):
    status_code = 500


class BasketNotFoundError(NotFoundError):
    def __init__(self, user_name: str):
        super().__init__(f"Basket for user '{user_name}' is empty or does not exist.")
        self.user_name = user_name


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        super().__init__(f"Product with ID {product_id} not found.")
        self.product_id = product_id


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id):
        super().__init__(f"Order with ID {order_id} not found.")
        self.order_id = order_id


class OutboxMessageNotFoundError(NotFoundError):
    def __init__(self, message_id):
        super().__init__(f"Outbox message with ID {message_id} not found.")
        self.message_id = message_id


# ----------- Messaging -----------

class MessagingError(Exception):
    """Base class for failures while moving integration events."""


class UnknownEventTypeError(MessagingError):
    """The outbox row names an event type the registry cannot resolve."""

    def __init__(self, event_type: str):
        super().__init__(f"Unknown integration event type: {event_type}")
        self.event_type = event_type


class EventDeserializationError(MessagingError):
    """The outbox row content does not match its declared event type."""

    def __init__(self, event_type: str, reason: str):
        super().__init__(f"Could not deserialize {event_type}: {reason}")
        self.event_type = event_type


class PublishError(MessagingError):
    """At least one subscriber failed; the event must be redelivered."""

    def __init__(self, event_type: str, errors):
        super().__init__(f"Publishing {event_type} failed for {len(errors)} subscriber(s): {errors}")
        self.event_type = event_type
        self.errors = errors
