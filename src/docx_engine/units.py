"""
Unit conversion helpers.

Layout is measured in twips (1/1440 inch), font sizes in half-points and
drawing extents in EMUs (1/914400 inch). All conversions go through
``fractions.Fraction`` and round once, so repeated edits never drift.
Pass decimal values as strings (``"0.5"``) or Fractions to keep them exact.
"""

from fractions import Fraction
from numbers import Rational

TWIPS_PER_INCH = 1440
TWIPS_PER_POINT = 20
TWIPS_PER_CM = Fraction(1440 * 100, 254)
HALF_POINTS_PER_POINT = 2

EMU_PER_INCH = 914400
EMU_PER_CM = 360000
EMU_PER_PIXEL = 9525  # At 96 DPI
EMU_PER_TWIP = 635
EMU_PER_POINT = 12700

Number = int | str | Fraction | Rational


def _exact(value: Fraction) -> int:
    return round(value)


def inches_to_twips(inches: Number) -> int:
    """Convert inches to twips.

    Example:
        >>> inches_to_twips("0.5")
        720
    """
    return _exact(Fraction(inches) * TWIPS_PER_INCH)


def points_to_twips(points: Number) -> int:
    return _exact(Fraction(points) * TWIPS_PER_POINT)


def cm_to_twips(cm: Number) -> int:
    return _exact(Fraction(cm) * TWIPS_PER_CM)


def points_to_half_points(points: Number) -> int:
    """Convert a font size in points to half-points (12 -> 24)."""
    return _exact(Fraction(points) * HALF_POINTS_PER_POINT)


def half_points_to_points(half_points: int) -> Fraction:
    return Fraction(half_points, HALF_POINTS_PER_POINT)


def inches_to_emu(inches: Number) -> int:
    return _exact(Fraction(inches) * EMU_PER_INCH)


def cm_to_emu(cm: Number) -> int:
    return _exact(Fraction(cm) * EMU_PER_CM)


def pixels_to_emu(pixels: int) -> int:
    return pixels * EMU_PER_PIXEL


def twips_to_emu(twips: int) -> int:
    return twips * EMU_PER_TWIP
