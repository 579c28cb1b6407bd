"""Chatbot router - Public help assistant endpoints"""

from fastapi import APIRouter, Depends

from ...rate_limiter import create_rate_limiter
from .schemas import ChatbotRequest, ChatbotResponse
from .service import ChatbotService, GeminiClient

router = APIRouter(prefix="/chatbot", tags=["Chatbot"])

rate_limit_chatbot = create_rate_limiter(limit=20, window_seconds=60, key_prefix="chatbot")


def get_gemini_client() -> GeminiClient:
    return GeminiClient()


def get_chatbot_service(client: GeminiClient = Depends(get_gemini_client)) -> ChatbotService:
    return ChatbotService(client)


@router.post("/ask", response_model=ChatbotResponse)
async def ask_question(
    data: ChatbotRequest,
    _: None = Depends(rate_limit_chatbot),
    service: ChatbotService = Depends(get_chatbot_service),
):
    answer = await service.ask(data.question, data.previousQuestions)
    return ChatbotResponse(answer=answer)


@router.get("/health")
async def chatbot_health(client: GeminiClient = Depends(get_gemini_client)):
    return {"status": "ok", "service": "chatbot", "configured": client.configured}
