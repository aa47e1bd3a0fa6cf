# storefront/errors.py
import logging

from .utils.api import err

log = logging.getLogger(__name__)


class StorefrontError(Exception):
    status_code = 400
    message = "Request failed"

    def __init__(self, message=None, data=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.data = data

    def to_response(self):
        return err(self.message, self.status_code, self.data)


class ValidationError(StorefrontError):
    status_code = 422
    message = "Invalid input"

    def __init__(self, message=None, field=None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class EmptyCodeError(ValidationError):
    message = "Enter a coupon code"

    def __init__(self, message=None):
        super().__init__(message, field="code")


class EmptyCartError(ValidationError):
    message = "Add products to the cart first"


class NotFoundError(StorefrontError):
    status_code = 404
    message = "Not found"


class CouponNotFound(NotFoundError):
    message = "Invalid or expired coupon"


class MinimumNotMetError(StorefrontError):
    status_code = 422

    def __init__(self, minimum):
        self.minimum = minimum
        super().__init__(
            f"Minimum spend for this coupon is {minimum:.2f}",
            {"minimum_spend": float(minimum)},
        )


class ConflictError(StorefrontError):
    status_code = 409
    message = "Conflict"


class UpstreamUnavailable(StorefrontError):
    status_code = 503
    message = "Service temporarily unavailable, please try again later"


def register_error_handlers(app):
    @app.errorhandler(StorefrontError)
    def handle_storefront_error(e):
        if isinstance(e, UpstreamUnavailable):
            log.error("upstream unavailable: %s", e)
        return e.to_response()
