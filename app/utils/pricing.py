from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

PLATFORM_FEE_RATE = Decimal("0.10")
GST_RATE = Decimal("0.18")

_CENT = Decimal("0.01")
_UNIT = Decimal("1")


@dataclass(frozen=True)
class FeeBreakdown:
    venue_amount: float
    platform_fee: float
    gst: float
    total: int


def _to_decimal(value) -> Decimal:
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _round_display(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def resolve_day_count(dates_timings=None, number_of_days=None) -> int:
    """Schedule entries win, then an explicit day count, else a single day."""
    if dates_timings:
        return len(dates_timings)
    if number_of_days and int(number_of_days) > 0:
        return int(number_of_days)
    return 1


def calculate_total_from_amount(venue_amount) -> FeeBreakdown:
    """venue amount -> platform fee -> GST -> total (rounded to whole rupees)."""
    venue = _to_decimal(venue_amount)
    platform_fee = venue * PLATFORM_FEE_RATE
    gst = (venue + platform_fee) * GST_RATE
    total = (venue + platform_fee + gst).quantize(_UNIT, rounding=ROUND_HALF_UP)

    return FeeBreakdown(
        venue_amount=_round_display(venue),
        platform_fee=_round_display(platform_fee),
        gst=_round_display(gst),
        total=int(total),
    )


def calculate_fees(price_per_day, day_count: int) -> FeeBreakdown:
    return calculate_total_from_amount(_to_decimal(price_per_day) * int(day_count))


def decompose_total(total) -> FeeBreakdown:
    """Split a charged total back into venue amount, platform fee and GST."""
    charged = _to_decimal(total)
    venue = charged / ((1 + PLATFORM_FEE_RATE) * (1 + GST_RATE))
    platform_fee = venue * PLATFORM_FEE_RATE

    venue_display = venue.quantize(_CENT, rounding=ROUND_HALF_UP)
    fee_display = platform_fee.quantize(_CENT, rounding=ROUND_HALF_UP)
    # GST absorbs the rounding so the three parts always add up to the total
    gst_display = charged - venue_display - fee_display

    return FeeBreakdown(
        venue_amount=float(venue_display),
        platform_fee=float(fee_display),
        gst=float(gst_display),
        total=int(charged.quantize(_UNIT, rounding=ROUND_HALF_UP)),
    )


def to_minor_units(total) -> int:
    """Rupees -> paise."""
    return int((_to_decimal(total) * 100).quantize(_UNIT, rounding=ROUND_HALF_UP))
