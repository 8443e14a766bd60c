"""Business-rule errors raised by marketplace workflows.

Every rule violation is a Protean ``ValidationError`` so command handlers
abort their Unit of Work the same way field validation does. Each class
carries the HTTP status it maps to and a human-readable message.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ValidationError


class BusinessRuleError(ValidationError):
    field = "order"
    status_code = 400

    def __init__(self, message: str):
        super().__init__({self.field: [message]})
        self.message = message

    def __str__(self) -> str:
        return self.message


class CartEmpty(BusinessRuleError):
    field = "cart"

    def __init__(self):
        super().__init__("Cart is empty")


class ProductUnavailable(BusinessRuleError):
    field = "product"

    def __init__(self, name: str):
        super().__init__(f"{name} is no longer available")
        self.product_name = name


class InsufficientStock(BusinessRuleError):
    field = "stock"

    def __init__(self, name: str):
        super().__init__(f"Insufficient stock for {name}")
        self.product_name = name


class CouponNotFound(BusinessRuleError):
    field = "coupon"
    status_code = 404

    def __init__(self, code: str):
        super().__init__("Invalid coupon code")
        self.code = code


class CouponInvalid(BusinessRuleError):
    field = "coupon"


class OrderAlreadyPaid(BusinessRuleError):
    field = "payment"

    def __init__(self):
        super().__init__("Order is already paid")


class WrongPaymentMethod(BusinessRuleError):
    field = "payment"

    def __init__(self, method: str):
        super().__init__(f"Order payment method is {method}, not an online payment")


class SignatureMismatch(BusinessRuleError):
    field = "payment"

    def __init__(self, message: str = "Payment verification failed"):
        super().__init__(message)


class ReconciliationRequired(BusinessRuleError):
    """Money was captured by the gateway but the order cannot be honoured."""

    field = "payment"

    def __init__(self, order_id: str, reason: str):
        super().__init__("Payment captured; contact support for refund")
        self.order_id = order_id
        self.reason = reason


class InvalidItemStatus(BusinessRuleError):
    field = "status"


class InvalidOrderState(BusinessRuleError):
    field = "order_status"


class NotAuthorized(BusinessRuleError):
    field = "authorization"
    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class GatewayUnavailable(Exception):
    """The payment gateway could not be reached or rejected the request."""

    status_code = 502

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# FastAPI wiring
# ---------------------------------------------------------------------------
async def _business_rule_handler(request: Request, exc: BusinessRuleError) -> JSONResponse:
    content = {"error": exc.message}
    if isinstance(exc, ReconciliationRequired):
        content["reconciliation"] = True
    return JSONResponse(status_code=exc.status_code, content=content)


async def _version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": "Concurrent update detected, please retry"},
    )


async def _gateway_handler(request: Request, exc: GatewayUnavailable) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    """Map marketplace errors to HTTP responses.

    Registered after ``protean.integrations.fastapi.register_exception_handlers``;
    Starlette resolves handlers by exception MRO, so these subclasses win over
    the generic ValidationError mapping.
    """
    app.add_exception_handler(BusinessRuleError, _business_rule_handler)
    app.add_exception_handler(ExpectedVersionError, _version_conflict_handler)
    app.add_exception_handler(GatewayUnavailable, _gateway_handler)
