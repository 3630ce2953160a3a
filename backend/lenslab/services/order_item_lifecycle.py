# Overview: Order-item status state machine; transition whitelist, stock effects, payment gate, order status.

"""
Order-Item Status Lifecycle

================================================================================
STATE MACHINE:
    Received -> Processing -> Printed -> Completed -> Delivered
    Void reachable from every non-terminal state; Void -> Received re-opens.

    Received:   initial; nothing consumed
    Processing: in the lab; nothing consumed
    Printed:    blank consumed from operator stock
    Completed:  finished lens; still consumed
    Delivered:  terminal
    Void:       scrapped; the blank is consumed as well

RULES:
1. Only whitelisted transitions are legal; same-status writes are no-ops
2. Entering the consumed set (Printed/Void) from outside it reduces stock by `unit`
3. Leaving the consumed set restores stock by `unit` (best-effort)
4. Moves inside the consumed set never move stock
5. Non-stock-service lines never move stock
================================================================================
"""

from __future__ import annotations

from ..validation import ConflictError, ValidationError


RECEIVED = "Received"
PROCESSING = "Processing"
PRINTED = "Printed"
COMPLETED = "Completed"
DELIVERED = "Delivered"
VOID = "Void"

VALID_STATUSES = {RECEIVED, PROCESSING, PRINTED, COMPLETED, DELIVERED, VOID}

INITIAL_STATUS = RECEIVED

VALID_TRANSITIONS = {
    (RECEIVED, PROCESSING),
    (RECEIVED, PRINTED),
    (RECEIVED, VOID),
    (PROCESSING, RECEIVED),
    (PROCESSING, PRINTED),
    (PROCESSING, VOID),
    (PRINTED, PROCESSING),
    (PRINTED, COMPLETED),
    (PRINTED, DELIVERED),
    (PRINTED, VOID),
    (COMPLETED, DELIVERED),
    (COMPLETED, VOID),
    (VOID, RECEIVED),
}

# States in which the line's blank has left operator stock
CONSUMED_STATUSES = {PRINTED, COMPLETED, DELIVERED, VOID}

# Statuses whose entry from outside CONSUMED_STATUSES triggers a reduce
REDUCING_STATUSES = {PRINTED, VOID}

ORDER_PENDING = "Pending"
ORDER_PROCESSING = "Processing"
ORDER_STATUS_BY_UNIFORM_ITEM_STATUS = {
    RECEIVED: ORDER_PENDING,
    PRINTED: "Printed",
    COMPLETED: "Completed",
    DELIVERED: "Delivered",
}

STOCK_NONE = "none"
STOCK_REDUCE = "reduce"
STOCK_RESTORE = "restore"


class TransitionError(ConflictError):
    """Raised when a status change is not in the whitelist."""


def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    if from_status == to_status:
        return True
    return (from_status, to_status) in VALID_TRANSITIONS


def assert_transition(from_status: str, to_status: str) -> None:
    validate_status(to_status)
    if not can_transition(from_status, to_status):
        raise TransitionError(f"Cannot change order item status from {from_status} to {to_status}")


def stock_effect(from_status: str, to_status: str, *, is_non_stock_service: bool) -> str:
    """Which stock movement (if any) a legal transition implies."""
    if is_non_stock_service or from_status == to_status:
        return STOCK_NONE
    was_consumed = from_status in CONSUMED_STATUSES
    if not was_consumed and to_status in REDUCING_STATUSES:
        return STOCK_REDUCE
    if was_consumed and to_status not in CONSUMED_STATUSES:
        return STOCK_RESTORE
    return STOCK_NONE


def check_payment_gate(payment_term, from_status: str, to_status: str) -> None:
    """
    Reject status moves the order's payment state does not allow.

    - into Delivered: blocked while anything is outstanding
    - any other change: blocked while nothing at all has been paid
    Only applies when the payment term has force_payment on.
    """
    if payment_term is None or not payment_term.force_payment:
        return
    if from_status == to_status:
        return

    remaining = float(payment_term.remaining_amount or 0)
    total = float(payment_term.total_amount or 0)

    if to_status == DELIVERED:
        if remaining > 0:
            raise ConflictError(
                f"Payment is not completed. Cannot deliver order with outstanding payment of {remaining}."
            )
        return

    if remaining == total:
        raise ConflictError(
            f'Payment is not completed. Cannot change status to "{to_status}" because force payment '
            "is enabled and no payment has been made."
        )


def derive_order_status(item_statuses) -> str:
    """
    Collapse line statuses into the order label.

    All lines in one of Received/Printed/Completed/Delivered -> that label
    (Received reads as "Pending"); anything mixed -> "Processing".
    """
    statuses = set(item_statuses)
    if not statuses:
        return ORDER_PENDING
    if len(statuses) == 1:
        only = next(iter(statuses))
        return ORDER_STATUS_BY_UNIFORM_ITEM_STATUS.get(only, ORDER_PROCESSING)
    return ORDER_PROCESSING
