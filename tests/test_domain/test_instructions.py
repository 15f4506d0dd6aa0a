"""Tests for amount conversion and unsigned instruction builders."""

from __future__ import annotations

from decimal import Decimal

import pytest

from freelance_escrow.domain.enums import InstructionKind, JobStatus
from freelance_escrow.domain.exceptions import InvalidTransitionError, ValidationError
from freelance_escrow.domain.instructions import (
    deposit_instruction,
    release_instruction,
    to_minor_units,
)
from helpers import ESCROW, FREELANCER, make_job


class TestToMinorUnits:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (10, 10_000_000),
            (0, 0),
            (Decimal("2.5"), 2_500_000),
            (0.1, 100_000),
            ("1.000001", 1_000_001),
            (Decimal("0.0000005"), 1),
            (Decimal("0.0000004"), 0),
        ],
    )
    def test_scaling_and_rounding(self, amount: object, expected: int) -> None:
        assert to_minor_units(amount) == expected

    @pytest.mark.parametrize("amount", [-1, Decimal("-0.5"), float("inf"), float("nan"), "ten"])
    def test_rejects_bad_amounts(self, amount: object) -> None:
        with pytest.raises(ValidationError) as exc_info:
            to_minor_units(amount)
        assert exc_info.value.field == "amount"

    def test_rejects_bool(self) -> None:
        with pytest.raises(ValidationError):
            to_minor_units(True)


class TestDepositInstruction:
    def test_shape(self) -> None:
        instruction = deposit_instruction(ESCROW, 10_000_000)
        assert instruction.kind == InstructionKind.TRANSFER
        assert instruction.destination == ESCROW
        assert instruction.amount == 10_000_000


class TestReleaseInstruction:
    def test_pays_freelancer_full_amount(self) -> None:
        job = make_job(status=JobStatus.SUBMITTED, freelancer_address=FREELANCER)
        instruction = release_instruction(job)
        assert instruction.kind == InstructionKind.TRANSFER
        assert instruction.destination == FREELANCER
        assert instruction.amount == job.amount

    def test_requires_freelancer(self) -> None:
        with pytest.raises(InvalidTransitionError, match="no freelancer assigned"):
            release_instruction(make_job())
