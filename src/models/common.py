# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared DTO building blocks."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, PlainSerializer

from src.utils.datetime import ensure_utc

CENT = Decimal("0.01")


def quantize_cents(value: Decimal) -> Decimal:
    """Round a decimal to two places, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# Money travels as a JSON number with two decimals.
Money = Annotated[
    Decimal,
    AfterValidator(quantize_cents),
    PlainSerializer(float, return_type=float, when_used="json"),
]

SchoolYear = Annotated[
    str,
    Field(min_length=4, max_length=20, description="School year, e.g. 2025-2026"),
]


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str = Field(description="Human readable result")


class CountResponse(BaseModel):
    """Number of affected or matching rows."""

    count: int = Field(ge=0, description="Row count")


# Aware UTC on the way in and out; SQLite returns naive values.
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
