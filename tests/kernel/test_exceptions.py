"""Tests for recon_kernel.exceptions -- codes and structured attributes."""

import pytest

from recon_kernel.exceptions import (
    CreditAccountNotFoundError,
    EventError,
    InvalidEventPayloadError,
    NotFoundError,
    OrderNotFoundError,
    ReconciliationError,
    UnsupportedEventTypeError,
)


@pytest.mark.parametrize(
    "exc, code, parent",
    [
        (OrderNotFoundError("O1"), "ORDER_NOT_FOUND", NotFoundError),
        (CreditAccountNotFoundError("A1"), "CREDIT_ACCOUNT_NOT_FOUND", NotFoundError),
        (UnsupportedEventTypeError("refund"), "UNSUPPORTED_EVENT_TYPE", EventError),
        (
            InvalidEventPayloadError("credit_payment", "amount", "must be positive"),
            "INVALID_EVENT_PAYLOAD",
            EventError,
        ),
    ],
)
def test_codes_and_hierarchy(exc, code, parent):
    assert exc.code == code
    assert isinstance(exc, parent)
    assert isinstance(exc, ReconciliationError)


def test_structured_attributes():
    assert OrderNotFoundError("O1").order_id == "O1"
    assert CreditAccountNotFoundError("A1").credit_account_id == "A1"
    payload_error = InvalidEventPayloadError("credit_payment", "amount", "is required")
    assert payload_error.field == "amount"
    assert "amount" in str(payload_error)
