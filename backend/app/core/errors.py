"""
Error kinds shared by the pricing services.

Business-rule failures (an expired or exhausted discount code, a cart that
qualifies for nothing) are not errors: they come back as regular results.
"""


class InvalidInputError(ValueError):
    """Malformed input reached a pricing service. Mapped to HTTP 400."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.message = message
        self.field = field
