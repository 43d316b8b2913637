"""
Biorhythm and natal sign calculations.

Pure arithmetic used to enrich personalized prompts. The readings are
illustrative context for the generated text and are not astronomically
meaningful.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from cosmic_horoscope.models import ZodiacSign, ZODIAC_SIGNS

# Biorhythm cycle lengths (in days)
PHYSICAL_CYCLE_DAYS = 23
EMOTIONAL_CYCLE_DAYS = 28
INTELLECTUAL_CYCLE_DAYS = 33

# Readings closer to zero than this are a cycle crossing
CRITICAL_THRESHOLD = 15


@dataclass(frozen=True)
class BiorhythmReading:
    """
    Biorhythm cycle values for one day.

    Attributes:
        physical: Physical cycle value (-100 to 100)
        emotional: Emotional cycle value (-100 to 100)
        intellectual: Intellectual cycle value (-100 to 100)
        days_since_birth: Whole days between birth and the target date
    """

    physical: float
    emotional: float
    intellectual: float
    days_since_birth: int

    @property
    def physical_status(self) -> str:
        return cycle_status(self.physical)

    @property
    def emotional_status(self) -> str:
        return cycle_status(self.emotional)

    @property
    def intellectual_status(self) -> str:
        return cycle_status(self.intellectual)

    @property
    def critical_day(self) -> bool:
        """True if any cycle is crossing zero."""
        return any(
            abs(value) < CRITICAL_THRESHOLD
            for value in (self.physical, self.emotional, self.intellectual)
        )


def cycle_status(value: float) -> str:
    """
    Describe a single cycle value.

    Args:
        value: Cycle value (-100 to 100)

    Returns:
        Status label
    """
    if abs(value) < CRITICAL_THRESHOLD:
        return 'Critical'
    if value > 70:
        return 'Peak'
    if value > 40:
        return 'High'
    if value > 15:
        return 'Rising'
    if value > -15:
        return 'Declining'
    if value > -40:
        return 'Low'
    return 'Very Low'


def _cycle_value(days: int, cycle_days: int) -> float:
    return math.sin(2 * math.pi * days / cycle_days) * 100


def calculate_biorhythm(birth_date: date, target_date: date) -> Optional[BiorhythmReading]:
    """
    Calculate biorhythm cycles for a target date.

    Args:
        birth_date: Date of birth
        target_date: Day to calculate the cycles for

    Returns:
        BiorhythmReading, or None if the target date precedes the birth date

    Examples:
        >>> reading = calculate_biorhythm(date(1990, 1, 1), date(1990, 1, 1))
        >>> reading.physical
        0.0
        >>> reading.critical_day
        True
    """
    days_since_birth = (target_date - birth_date).days
    if days_since_birth < 0:
        return None

    return BiorhythmReading(
        physical=_cycle_value(days_since_birth, PHYSICAL_CYCLE_DAYS),
        emotional=_cycle_value(days_since_birth, EMOTIONAL_CYCLE_DAYS),
        intellectual=_cycle_value(days_since_birth, INTELLECTUAL_CYCLE_DAYS),
        days_since_birth=days_since_birth
    )


def calculate_zodiac_sign(birth_date: date) -> ZodiacSign:
    """
    Determine the sun sign for a birth date.

    Args:
        birth_date: Date of birth

    Returns:
        ZodiacSign whose date range contains the birth date
    """
    for sign in ZODIAC_SIGNS:
        if sign.contains(birth_date.month, birth_date.day):
            return sign

    # The table covers every calendar day; Capricorn wraps the year end
    return ZODIAC_SIGNS[0]
