"""
Unit tests for the order status progression

Author: TM3
Date: 2025-10-17
"""
import pytest

from storefront.domain.order_status import (
    normalize_status,
    can_transition,
    check_transition,
    progress,
    status_info,
)


class TestNormalizeStatus:
    """Accepted spellings of order statuses"""

    @pytest.mark.parametrize("raw,expected", [
        ("pending", "pending"),
        ("inTransit", "in_transit"),
        ("in-transit", "in_transit"),
        ("IN_TRANSIT", "in_transit"),
        (" Delivered ", "delivered"),
        ("canceled", "cancelled"),
    ])
    def test_aliases(self, raw, expected):
        assert normalize_status(raw) == expected

    def test_none_passes_through(self):
        assert normalize_status(None) is None

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError, match="Invalid order status"):
            normalize_status("lost")


class TestTransitions:
    """Admin status changes"""

    def test_forward_steps_allowed(self):
        assert can_transition("pending", "confirmed")
        assert can_transition("shipped", "in_transit")
        assert can_transition("shipped", "delivered")
        assert can_transition("delivered", "refunded")

    def test_same_status_is_noop(self):
        assert can_transition("processing", "processing")

    def test_skipping_backwards_rejected(self):
        assert not can_transition("delivered", "pending")
        assert not can_transition("shipped", "cancelled")

    def test_check_transition_lists_allowed_targets(self):
        with pytest.raises(ValueError) as exc:
            check_transition("pending", "delivered")
        assert "Allowed: confirmed, cancelled" in str(exc.value)

    def test_terminal_status_cannot_change(self):
        with pytest.raises(ValueError, match="Cannot change status of a cancelled order"):
            check_transition("cancelled", "pending")


class TestProgress:
    """Timeline data shown on the order page"""

    def test_linear_status_marks_steps_up_to_current(self):
        result = progress("shipped")

        assert result["current_step"] == 3
        assert result["total_steps"] == 6
        assert [s["completed"] for s in result["steps"]] == [True, True, True, True, False, False]
        assert [s["current"] for s in result["steps"]].index(True) == 3

    def test_cancelled_stops_at_last_reached_step(self):
        result = progress("cancelled", ["pending", "confirmed", "cancelled"])

        assert result["is_terminal"] is True
        assert result["label"] == "Cancelled"
        assert result["current_step"] == 1
        # Terminal orders have no "current" step
        assert not any(s["current"] for s in result["steps"])

    def test_terminal_without_history_reached_pending(self):
        assert progress("returned")["current_step"] == 0

    def test_status_info_unknown(self):
        with pytest.raises(ValueError):
            status_info("unknown")
