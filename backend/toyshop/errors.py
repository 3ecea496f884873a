# Overview: Domain error types shared by services and routes.

"""
Error kinds surfaced by the POS core.

Every error carries a human-readable message plus a `details` dict with the
context a cashier needs to correct the request (available stock, returnable
quantity, amount due). Routes turn them into JSON with `status_code`.

InternalError is the only opaque kind: storage failures are logged where they
happen and re-raised as InternalError without the underlying message.
"""

from __future__ import annotations


class PosError(Exception):
    """Base class for all domain errors."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class ValidationError(PosError):
    """400-level input problem."""
    status_code = 400


class AuthenticationError(PosError):
    """Missing, invalid or expired credentials."""
    status_code = 401


class AuthorizationError(PosError):
    """Role or ownership mismatch."""
    status_code = 403


class NotFoundError(PosError):
    """Referenced record does not exist."""
    status_code = 404


class ConflictError(PosError):
    """409-level business rule conflict (e.g., duplicate barcode)."""
    status_code = 409


class InsufficientStockError(PosError):
    status_code = 409

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, Requested: {requested}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class OverReturnError(PosError):
    status_code = 409

    def __init__(self, sale_item_id: int, available_to_return: int, requested: int):
        super().__init__(
            f"Cannot return {requested} items. Only {available_to_return} available to return.",
            details={
                "sale_item_id": sale_item_id,
                "available_to_return": available_to_return,
                "requested": requested,
            },
        )
        self.sale_item_id = sale_item_id
        self.available_to_return = available_to_return
        self.requested = requested


class PaymentError(PosError):
    status_code = 400

    def __init__(self, total_cents: int, paid_amount_cents: int):
        super().__init__(
            "Insufficient payment",
            details={
                "total_cents": total_cents,
                "paid_amount_cents": paid_amount_cents,
                "shortfall_cents": total_cents - paid_amount_cents,
            },
        )
        self.total_cents = total_cents
        self.paid_amount_cents = paid_amount_cents


class InternalError(PosError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
