"""Sales insights chat engine: keyword intent routing over a static sales fixture."""
from sales_insights.chat_logic import answer_question, answer_conversation, classify_intent, route_question
from sales_insights.insight_models import ChartDataPoint, InsightResult, Message

__all__ = [
    "answer_question",
    "answer_conversation",
    "classify_intent",
    "route_question",
    "ChartDataPoint",
    "InsightResult",
    "Message",
]
