"""Tests for the delivery status machine."""

import pytest

from src.rb_common.enums import DeliveryStatus
from src.rb_common.errors import BadRequestError, InvalidStatusTransitionError
from src.rb_delivery.domain.status import LOCKED, check_transition, parse_status


class TestParseStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("pending", DeliveryStatus.PENDING),
            ("in_progress", DeliveryStatus.IN_PROGRESS),
            ("in_transit", DeliveryStatus.IN_PROGRESS),
            ("completed", DeliveryStatus.DELIVERED),
            (" Delivered ", DeliveryStatus.DELIVERED),
            ("CANCELLED", DeliveryStatus.CANCELLED),
        ],
    )
    def test_known_values_and_aliases(self, raw: str, expected: DeliveryStatus) -> None:
        assert parse_status(raw) is expected

    def test_unknown_value(self) -> None:
        with pytest.raises(BadRequestError) as exc:
            parse_status("lost")
        assert exc.value.code == "INVALID_STATUS"


class TestTransitions:
    def test_pending_can_go_anywhere(self) -> None:
        for target in (
            DeliveryStatus.IN_PROGRESS,
            DeliveryStatus.DELIVERED,
            DeliveryStatus.CANCELLED,
        ):
            check_transition(DeliveryStatus.PENDING, target)

    def test_in_progress_cannot_go_back(self) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            check_transition(DeliveryStatus.IN_PROGRESS, DeliveryStatus.PENDING)

    @pytest.mark.parametrize("terminal", sorted(LOCKED, key=lambda s: s.value))
    def test_terminal_states(self, terminal: DeliveryStatus) -> None:
        for target in DeliveryStatus:
            if target is terminal:
                continue
            with pytest.raises(InvalidStatusTransitionError):
                check_transition(terminal, target)
