"""
Prompt construction for horoscope generation.

PromptBuilder implementations turn a sign, a timeframe and the current time
into the text sent to the generation provider. BiorhythmPromptBuilder wraps
another builder and appends personalization context when a birth date is
known.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Optional

from cosmic_horoscope.models import Granularity, ZodiacSign
from cosmic_horoscope.utils.biorhythm import calculate_biorhythm, calculate_zodiac_sign

PATENT_GUIDANCE_URL = 'https://patentwerks.ai'
IP_SERVICES_URL = 'https://ipservices.us'

DAILY_TEMPLATE = """You are generating a daily INVENTOR'S horoscope for {sign} ({dates}) for {date_phrase}.

This horoscope is for inventors, entrepreneurs, and innovators. Focus on invention, patents, intellectual property, creativity, and innovation themes.

CRITICAL: You MUST use this EXACT format with headers on separate lines. Copy this structure exactly:

**Innovation & Creativity:**
Write 2-3 sentences about inventive breakthroughs, creative ideas, and innovation opportunities today. Mention patents or intellectual property naturally.

**Business & Commercialization:**
Write 2-3 sentences about bringing inventions to market, business opportunities, licensing, or partnerships. Naturally mention checking resources at {patent_url} for patent guidance or {ip_url} for IP services when relevant.

**Mindset & Strategy:**
Write 2-3 sentences about mental clarity, strategic thinking, problem-solving, or overcoming obstacles in the invention process.

**Cosmic Guidance for Inventors:**
Write 1-2 sentences of mystical advice specifically for inventors and innovators.

**Lucky Elements:**
Numbers: 3, 7, 21
Color: Emerald Green

DO NOT write this as a flowing paragraph. Each section header MUST be on its own line followed by the content on the next line. Use a blank line between each section.

Make it mystical, encouraging, inspiring for inventors, and positive yet realistic. 150-200 words total."""

WEEKLY_TEMPLATE = """You are generating a weekly INVENTOR'S horoscope for {sign} ({dates}) for the week starting {date_phrase}.

This horoscope is for inventors, entrepreneurs, and innovators. Focus on invention, patents, intellectual property, R&D, prototyping, and commercialization themes.

CRITICAL: You MUST use this EXACT format with headers on separate lines. Copy this structure exactly:

**Week Overview:**
Write 2-3 sentences about the week's overall energy for inventors and innovators.

**Innovation & R&D:**
Write 3-4 sentences about research, development, prototyping, testing, or creative breakthroughs this week.

**Patent & IP Strategy:**
Write 3-4 sentences about protecting inventions, filing patents, IP strategy, or legal considerations. Naturally mention consulting with experts at {patent_url} for patent strategy or {ip_url} for comprehensive IP services.

**Commercialization & Partnerships:**
Write 2-3 sentences about licensing deals, finding manufacturers, investor meetings, or business partnerships.

**Inventor's Mindset:**
Write 2-3 sentences about staying focused, overcoming setbacks, maintaining creative flow, or work-life balance.

**Key Days:**
Monday - breakthrough moment, Wednesday - important meeting, Friday - strategic planning

**Weekly Lucky Elements:**
Numbers: 5, 12, 18, 25
Colors: Azure Blue, Rose Gold

DO NOT write this as a flowing paragraph. Each section header MUST be on its own line. Use blank lines between sections.

Make it mystical, insightful, and inspiring for inventors. 250-300 words total."""

MONTHLY_TEMPLATE = """You are generating a comprehensive monthly INVENTOR'S horoscope for {sign} ({dates}) for {date_phrase}.

This horoscope is for inventors, entrepreneurs, patent holders, and innovators. Focus on invention cycles, patent processes, product development, funding, and commercialization.

CRITICAL: You MUST use this EXACT format with headers on separate lines. Copy this structure exactly:

**Monthly Overview:**
Write 3-4 sentences about the cosmic energy affecting invention and innovation this month.

**Innovation & Product Development:**
Write 4-5 sentences about major invention themes, product development cycles, prototyping milestones, or R&D breakthroughs.

**Patent & IP Protection:**
Write 4-5 sentences about patent filing timelines, IP strategy decisions, trademark considerations, or protecting innovations. Mention consulting the experts at {patent_url} for patent guidance and {ip_url} for comprehensive IP services throughout the month.

**Commercialization & Funding:**
Write 3-4 sentences about bringing products to market, investor pitches, crowdfunding, licensing opportunities, or manufacturing partnerships.

**Strategic Planning:**
Write 3-4 sentences about long-term vision, competitive analysis, market positioning, or scaling strategies.

**Inventor's Personal Growth:**
Write 3-4 sentences about mental resilience, creative confidence, work-life integration, or networking within the inventor community.

**Key Dates:**
{month_abbr} 15 - patent milestone, {month_abbr} 22 - investor opportunity, {month_abbr} 28 - strategic breakthrough

**Monthly Lucky Elements:**
Numbers: 2, 9, 14, 21, 28
Colors: Midnight Blue, Silver, Coral
Gemstone: Amethyst

DO NOT write this as a flowing paragraph. Each section header MUST be on its own line. Use blank lines between sections.

Make it comprehensive, mystical, and deeply inspiring for inventors. 350-400 words total."""

NARRATIVE_ARC_INSTRUCTION = (
    "\n\nThis reading is generated together with the daily, weekly and monthly "
    "readings for the same sign. Keep its themes consistent with a single "
    "narrative arc: the daily reading is a step within the week, and the week "
    "a chapter of the month."
)

TEMPLATES = {
    Granularity.DAILY: DAILY_TEMPLATE,
    Granularity.WEEKLY: WEEKLY_TEMPLATE,
    Granularity.MONTHLY: MONTHLY_TEMPLATE,
}


def _long_date(day: date) -> str:
    return f'{day:%A}, {day:%B} {day.day}, {day.year}'


def date_phrase(granularity: Granularity, now: datetime) -> str:
    """
    Describe the period a horoscope covers.

    Args:
        granularity: Timeframe
        now: Current time

    Returns:
        'Wednesday, January 15, 2025' for daily, the Monday of the current
        week in the same form for weekly, 'January 2025' for monthly
    """
    today = now.date()

    if granularity is Granularity.DAILY:
        return _long_date(today)

    if granularity is Granularity.WEEKLY:
        return _long_date(today - timedelta(days=today.weekday()))

    return f'{today:%B} {today.year}'


class PromptBuilder(ABC):
    """Strategy for building generation prompts."""

    @abstractmethod
    def build(
        self,
        sign: ZodiacSign,
        granularity: Granularity,
        now: datetime,
        birth_date: Optional[date] = None,
        narrative_arc: bool = False
    ) -> str:
        """
        Build the prompt for one horoscope.

        Args:
            sign: Zodiac sign
            granularity: Timeframe
            now: Current time
            birth_date: Reader's birth date for personalized prompts
            narrative_arc: Whether the prompt is part of a set generated
                for every timeframe at once

        Returns:
            Prompt text
        """


class InventorPromptBuilder(PromptBuilder):
    """Inventor and entrepreneur themed horoscope prompts."""

    def __init__(
        self,
        patent_url: str = PATENT_GUIDANCE_URL,
        ip_url: str = IP_SERVICES_URL
    ):
        self.patent_url = patent_url
        self.ip_url = ip_url

    def build(
        self,
        sign: ZodiacSign,
        granularity: Granularity,
        now: datetime,
        birth_date: Optional[date] = None,
        narrative_arc: bool = False
    ) -> str:
        prompt = TEMPLATES[granularity].format(
            sign=sign.name,
            dates=sign.dates,
            date_phrase=date_phrase(granularity, now),
            month_abbr=f'{now:%b}',
            patent_url=self.patent_url,
            ip_url=self.ip_url
        )

        if narrative_arc:
            prompt += NARRATIVE_ARC_INSTRUCTION

        return prompt


class BiorhythmPromptBuilder(PromptBuilder):
    """
    Adds natal sign and biorhythm context to another builder's prompt.

    Without a birth date the wrapped builder's prompt is returned unchanged.
    """

    def __init__(self, base: Optional[PromptBuilder] = None):
        self.base = base or InventorPromptBuilder()

    def build(
        self,
        sign: ZodiacSign,
        granularity: Granularity,
        now: datetime,
        birth_date: Optional[date] = None,
        narrative_arc: bool = False
    ) -> str:
        prompt = self.base.build(sign, granularity, now, birth_date, narrative_arc)

        if birth_date is None:
            return prompt

        return prompt + self._personalization(birth_date, now.date())

    @staticmethod
    def _personalization(birth_date: date, today: date) -> str:
        natal_sign = calculate_zodiac_sign(birth_date)
        lines = [
            '',
            '',
            'PERSONALIZATION:',
            f"The reader's natal sun sign is {natal_sign.name} "
            f"({natal_sign.element} element).",
        ]

        reading = calculate_biorhythm(birth_date, today)
        if reading is not None:
            lines.append(
                f'Biorhythm cycles today: '
                f'physical {reading.physical:.0f} ({reading.physical_status}), '
                f'emotional {reading.emotional:.0f} ({reading.emotional_status}), '
                f'intellectual {reading.intellectual:.0f} ({reading.intellectual_status}).'
            )
            if reading.critical_day:
                lines.append(
                    'Today is a critical biorhythm day; advise extra care '
                    'with decisions and prototypes.'
                )

        lines.append('Weave this context in naturally without listing raw numbers.')
        return '\n'.join(lines)
