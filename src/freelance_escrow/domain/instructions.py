"""Unsigned transfer instructions for the prepare steps of the escrow flows.

User-facing amounts are in major units; instructions and stored amounts are
integers in minor units. Conversion is fixed-point: multiply by 10^6 and round
half up to the nearest integer.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from freelance_escrow.domain.enums import InstructionKind
from freelance_escrow.domain.exceptions import InvalidTransitionError, ValidationError
from freelance_escrow.domain.models import UnsignedInstruction

if TYPE_CHECKING:
    from freelance_escrow.domain.models import Job

MINOR_UNITS_PER_MAJOR = 10**6


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """Convert a major-unit amount to an integer number of minor units.

    Raises:
        ValidationError: If the amount is not a finite, non-negative number.
    """
    if isinstance(amount, bool):
        raise ValidationError("amount", "must be a number")
    try:
        # str() first so floats convert by their shortest repr (0.1 -> "0.1")
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation:
        raise ValidationError("amount", "must be a number") from None
    if not value.is_finite():
        raise ValidationError("amount", "must be finite")
    if value < 0:
        raise ValidationError("amount", "must not be negative")
    scaled = (value * MINOR_UNITS_PER_MAJOR).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(scaled)


def deposit_instruction(escrow_address: str, amount_minor: int) -> UnsignedInstruction:
    """Client -> escrow transfer."""
    return UnsignedInstruction(
        kind=InstructionKind.TRANSFER,
        destination=escrow_address,
        amount=amount_minor,
    )


def release_instruction(job: Job) -> UnsignedInstruction:
    """Escrow -> freelancer payout of the full job amount."""
    if job.freelancer_address is None:
        raise InvalidTransitionError(
            job.status.value, "release", detail="no freelancer assigned"
        )
    return UnsignedInstruction(
        kind=InstructionKind.TRANSFER,
        destination=job.freelancer_address,
        amount=job.amount,
    )
