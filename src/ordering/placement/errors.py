"""Placement failures as seen by callers of the placement saga."""

from enum import Enum


class FailureReason(Enum):
    VALIDATION = "validation"
    INSUFFICIENT_STOCK = "insufficient_stock"
    CONTENTION_TIMEOUT = "contention_timeout"
    PERSISTENCE_ERROR = "persistence_error"
    CANCELLED = "cancelled"


class PlacementError(Exception):
    """A placement ended in FAILED. Nothing it touched remains changed.

    ``product_id`` names the first offending product where one exists, and
    ``retryable`` tells the caller whether submitting the same request again
    can succeed without changes.
    """

    def __init__(self, reason, message, product_id=None, retryable=False, messages=None):
        self.reason = reason
        self.message = message
        self.product_id = str(product_id) if product_id is not None else None
        self.retryable = retryable
        self.messages = messages or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "reason": self.reason.value,
            "message": self.message,
            "product_id": self.product_id,
            "retryable": self.retryable,
            "messages": self.messages,
        }
