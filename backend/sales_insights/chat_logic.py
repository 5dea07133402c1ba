"""
Rule-based question routing.

Questions are lower-cased and matched against an ordered list of keyword
rules by plain substring containment. The first rule whose keyword groups
all match wins; nothing after it is evaluated.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

from sales_insights.analytics import (
    analyze_period_change,
    analyze_segment_comparison,
    detect_unusual_patterns,
    summarize_revenue_trend,
)
from sales_insights.config import AnalysisConfig, get_config
from sales_insights.insight_models import InsightResult, Message
from sales_insights.records import SalesRecord, get_records, previous_month

logger = logging.getLogger(__name__)

UNSUPPORTED_INTENT = "unsupported"

EXAMPLE_QUESTIONS = (
    "Why did sales drop in Germany last month?",
    "Highlight anything unusual in the last 14 days",
    "Show resellers down more than 20% YoY",
    "What's the revenue trend over time?",
)

FALLBACK_TEXT = (
    "I'm not sure how to answer that question yet. Here are some things you can ask me:\n\n"
    + "\n".join(f"• \"{q}\"" for q in EXAMPLE_QUESTIONS)
    + "\n\nTry one of these or rephrase your question!"
)

DECLINE_WORDS = ("drop", "decline", "down", "fell")
ANOMALY_WORDS = ("unusual", "anomaly", "anomalies")
RECENCY_WORDS = ("14", "14 days", "two weeks", "recent")
SEGMENT_CHANGE_WORDS = ("down", "decline", "yoy", "year")
TREND_WORDS = ("trend", "over time", "total")

Handler = Callable[[Tuple[SalesRecord, ...], AnalysisConfig], InsightResult]


@dataclass(frozen=True)
class IntentRule:
    """A named intent: every keyword group needs one substring hit."""
    name: str
    required: Tuple[Tuple[str, ...], ...]
    handler: Handler

    def matches(self, q: str) -> bool:
        return all(any(k in q for k in group) for group in self.required)


def _period_comparison(records, config: AnalysisConfig) -> InsightResult:
    pc = config.period_comparison
    return analyze_period_change(
        records, config.anchor_date,
        country=pc.country, segment=pc.segment, currency=config.currency_symbol,
    )


def _anomaly_detection(records, config: AnalysisConfig) -> InsightResult:
    ad = config.anomaly_detection
    return detect_unusual_patterns(
        records, config.anchor_date,
        country=ad.country, segment=ad.segment,
        window_days=ad.window_days, baseline_returns=ad.baseline_returns,
    )


def _segment_comparison(records, config: AnalysisConfig) -> InsightResult:
    sc = config.segment_comparison
    # last complete month before the anchor
    month, _ = previous_month(config.anchor_date)
    return analyze_segment_comparison(
        records, month,
        segment=sc.segment, countries=sc.countries, currency=config.currency_symbol,
    )


def _revenue_trend(records, config: AnalysisConfig) -> InsightResult:
    return summarize_revenue_trend(records, currency=config.currency_symbol)


def build_rules(config: AnalysisConfig) -> Tuple[IntentRule, ...]:
    """The intent rules in priority order, keyed on the configured slices."""
    pc = config.period_comparison
    country_words = tuple(dict.fromkeys(
        [pc.country.lower()] + [a.lower() for a in pc.country_aliases]
    ))
    segment_words = (config.segment_comparison.segment.lower(),)
    return (
        IntentRule("period_comparison", (country_words, DECLINE_WORDS), _period_comparison),
        IntentRule("anomaly_detection", (ANOMALY_WORDS, RECENCY_WORDS), _anomaly_detection),
        IntentRule("segment_comparison", (segment_words, SEGMENT_CHANGE_WORDS), _segment_comparison),
        IntentRule("revenue_trend", (("revenue",), TREND_WORDS), _revenue_trend),
    )


def _match(question: Optional[str], config: AnalysisConfig) -> Optional[IntentRule]:
    q = (question or "").lower()
    for rule in build_rules(config):
        if rule.matches(q):
            return rule
    return None


def classify_intent(question: Optional[str], config: Optional[AnalysisConfig] = None) -> str:
    """Name of the intent a question routes to, or 'unsupported'."""
    rule = _match(question, config or get_config())
    return rule.name if rule else UNSUPPORTED_INTENT


def fallback_result() -> InsightResult:
    return InsightResult(text=FALLBACK_TEXT)


def route_question(
    question: Optional[str],
    records: Optional[Tuple[SalesRecord, ...]] = None,
    config: Optional[AnalysisConfig] = None,
) -> Tuple[str, InsightResult]:
    """
    Match a question once and answer it.

    Returns:
        (intent name, result); the intent is 'unsupported' when the
        fallback answered
    """
    config = config or get_config()
    rule = _match(question, config)
    if rule is None:
        logger.info(f"No intent matched question={question!r}; returning suggestions")
        return UNSUPPORTED_INTENT, fallback_result()

    logger.info(f"Routing question={question!r} to intent '{rule.name}'")
    return rule.name, rule.handler(records if records is not None else get_records(), config)


def answer_question(
    question: Optional[str],
    records: Optional[Tuple[SalesRecord, ...]] = None,
    config: Optional[AnalysisConfig] = None,
) -> InsightResult:
    """
    Answer a free-text question about the sales records.

    Args:
        question: Raw question text from the user
        records: Record store override; defaults to the bundled fixture
        config: Configuration override; defaults to settings/analysis.yaml

    Returns:
        InsightResult from the matching routine, or the fallback listing
        the supported example questions
    """
    _, result = route_question(question, records=records, config=config)
    return result


def latest_user_question(messages: Iterable[Message]) -> Optional[str]:
    question = None
    for message in messages:
        if message.role == "user":
            question = message.content
    return question


def answer_conversation(
    messages: Iterable[Message],
    records: Optional[Tuple[SalesRecord, ...]] = None,
    config: Optional[AnalysisConfig] = None,
) -> InsightResult:
    """Answer the most recent user message; earlier turns carry no state."""
    question = latest_user_question(messages)
    if question is None:
        logger.info("Conversation has no user message; returning suggestions")
        return fallback_result()
    return answer_question(question, records=records, config=config)
