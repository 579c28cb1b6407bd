"""Chatbot domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ChatbotRequest(BaseModel):
    question: Optional[str] = None
    previousQuestions: list[str] = Field(default_factory=list)


class ChatbotResponse(BaseModel):
    answer: str
    status: str = "success"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
