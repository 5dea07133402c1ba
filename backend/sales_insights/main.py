import os
import logging
from contextlib import asynccontextmanager
from typing import List, Literal

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from sales_insights import chat_logic
from sales_insights.config import get_config
from sales_insights.insight_models import Message
from sales_insights.records import get_records

# Load environment variables
load_dotenv()

# Logging setup (structured-ish JSON)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='{"time":"%(asctime)s","level":"%(levelname)s","message":"%(message)s","module":"%(name)s"}',
)
logger = logging.getLogger(__name__)


# --- Pydantic Models ---
class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage]


class AskRequest(BaseModel):
    question: str


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Fail fast on a bad config or fixture instead of on the first question
    config = get_config()
    records = get_records()
    logger.info(f"Sales insights ready: {len(records)} records, anchor date {config.anchor_date}")
    yield


app = FastAPI(title="Sales Insights Chat API", lifespan=lifespan)


def _respond(intent: str, result) -> dict:
    payload = result.to_dict()
    payload["intent"] = intent
    return payload


@app.post("/chat")
def chat(request: ChatRequest):
    """Answer the latest user message of a conversation."""
    try:
        messages = [Message(role=m.role, content=m.content) for m in request.messages]
        # a conversation without a user turn falls back like an empty question
        intent, result = chat_logic.route_question(chat_logic.latest_user_question(messages))
        return _respond(intent, result)
    except Exception as e:
        logger.error(f"Error during chat processing: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/ask")
def ask(request: AskRequest):
    try:
        return _respond(*chat_logic.route_question(request.question))
    except Exception as e:
        logger.error(f"Error answering question: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/questions")
def example_questions():
    return {"questions": list(chat_logic.EXAMPLE_QUESTIONS)}


@app.get("/")
def read_root():
    return {"message": "Sales Insights Chat API is running."}


@app.get("/health")
def health_check():
    try:
        config = get_config()
        return {
            "status": "ok",
            "records_loaded": len(get_records()),
            "anchor_date": config.anchor_date.isoformat(),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
