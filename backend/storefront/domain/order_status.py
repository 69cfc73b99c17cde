"""
Order Status Progression

The customer-facing timeline is a fixed linear sequence:

    pending -> confirmed -> processing -> shipped -> in_transit -> delivered

with cancelled and returned as terminal side branches (refunded follows
returned or delivered). The lookup table drives the timeline display; the
transition map is what admin updates are checked against.

Author: TM3
Date: 2025-10-17
"""
from typing import Dict, List, Optional, Iterable


ORDER_STATUSES = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "in_transit",
    "delivered",
    "cancelled",
    "returned",
    "refunded",
)

PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded", "partially_refunded")

PAYMENT_METHODS = ("cod", "bkash", "nagad", "rocket", "card", "credit_card", "bank_transfer")

# Card payments that must be paid before the customer sees the order
CARD_METHODS = ("card", "credit_card")

# Linear display progression
PROGRESSION = ("pending", "confirmed", "processing", "shipped", "in_transit", "delivered")

# Status -> display metadata
STATUS_TABLE: Dict[str, Dict] = {
    "pending":    {"step": 0, "label": "Pending",    "color": "yellow", "is_terminal": False},
    "confirmed":  {"step": 1, "label": "Confirmed",  "color": "blue",   "is_terminal": False},
    "processing": {"step": 2, "label": "Processing", "color": "indigo", "is_terminal": False},
    "shipped":    {"step": 3, "label": "Shipped",    "color": "purple", "is_terminal": False},
    "in_transit": {"step": 4, "label": "In Transit", "color": "cyan",   "is_terminal": False},
    "delivered":  {"step": 5, "label": "Delivered",  "color": "green",  "is_terminal": False},
    "cancelled":  {"step": None, "label": "Cancelled", "color": "red",    "is_terminal": True},
    "returned":   {"step": None, "label": "Returned",  "color": "orange", "is_terminal": True},
    "refunded":   {"step": None, "label": "Refunded",  "color": "gray",   "is_terminal": True},
}

# Allowed admin transitions
TRANSITIONS: Dict[str, tuple] = {
    "pending": ("confirmed", "cancelled"),
    "confirmed": ("processing", "cancelled"),
    "processing": ("shipped", "cancelled"),
    "shipped": ("in_transit", "delivered", "returned"),
    "in_transit": ("delivered", "returned"),
    "delivered": ("returned", "refunded"),
    "returned": ("refunded",),
    "cancelled": (),
    "refunded": (),
}

# Customers may cancel their own order only before it is processed
CUSTOMER_CANCELLABLE = ("pending", "confirmed")

# Statuses whose revenue is not counted in reports
NON_REVENUE_STATUSES = ("cancelled", "refunded")

_ALIASES = {
    "intransit": "in_transit",
    "in-transit": "in_transit",
    "canceled": "cancelled",
}


def normalize_status(value: Optional[str]) -> Optional[str]:
    """
    Accept camelCase/hyphenated spellings (inTransit, in-transit) and
    return the stored form. Unknown values raise ValueError.
    """
    if value is None:
        return None
    key = value.strip()
    lowered = key.lower()
    status = _ALIASES.get(lowered, lowered)
    if status not in ORDER_STATUSES:
        raise ValueError(f"Invalid order status: {value}")
    return status


def can_transition(current: str, new: str) -> bool:
    if current == new:
        return True
    return new in TRANSITIONS.get(current, ())


def check_transition(current: str, new: str) -> None:
    if not can_transition(current, new):
        allowed = TRANSITIONS.get(current, ())
        if not allowed:
            raise ValueError(f"Cannot change status of a {current} order")
        raise ValueError(
            f"Cannot change status from {current} to {new}. "
            f"Allowed: {', '.join(allowed)}"
        )


def status_info(status: str) -> Dict:
    info = STATUS_TABLE.get(status)
    if info is None:
        raise ValueError(f"Invalid order status: {status}")
    return {"status": status, **info}


def progress(status: str, history: Optional[Iterable[str]] = None) -> Dict:
    """
    Timeline data for an order.

    For side branches the timeline stops at the last linear step the order
    reached, taken from its status history.
    """
    info = status_info(status)
    if info["step"] is not None:
        reached = info["step"]
    else:
        reached = -1
        for past in history or ():
            past_step = STATUS_TABLE.get(past, {}).get("step")
            if past_step is not None and past_step > reached:
                reached = past_step
        # Without history the order at least reached pending
        reached = max(reached, 0)

    steps: List[Dict] = []
    for index, name in enumerate(PROGRESSION):
        steps.append({
            "status": name,
            "label": STATUS_TABLE[name]["label"],
            "completed": index <= reached,
            "current": index == reached and not info["is_terminal"],
        })

    return {
        "status": status,
        "label": info["label"],
        "color": info["color"],
        "is_terminal": info["is_terminal"],
        "current_step": reached,
        "total_steps": len(PROGRESSION),
        "steps": steps,
    }
