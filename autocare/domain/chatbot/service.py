"""
Chatbot service - Customer help assistant backed by Google Gemini

The assistant never fails a request: any error talking to Gemini is logged
and the customer gets a fixed apology instead.
"""

import logging
from typing import Optional

import httpx

from ... import config
from ...shared.errors import ValidationError

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = (
    "I apologize, but I'm experiencing technical difficulties at the moment. "
    "Please try again later or contact our support team for immediate assistance."
)

SYSTEM_PROMPT = """You are an intelligent customer service assistant for an automobile service center.
You help customers with:

1. Appointment scheduling: how to book, reschedule or cancel a vehicle service appointment
2. Service information: repair, maintenance, inspection, diagnostics and similar services
3. Vehicle support: cars, motorcycles, trucks and vans
4. Appointment status: what each status means and how the workflow progresses
5. Employee assignment: how technicians are assigned to appointments
6. Time slots: how booking works and that each slot takes a single appointment
7. Service instructions: how to describe what the vehicle needs
8. Using the system: where to find features in the customer dashboard

Guidelines:
- Be professional, friendly and concise
- For questions about a specific appointment, point the customer to their dashboard or to support
- For technical vehicle problems give general guidance and recommend a professional inspection
- If you do not know something, say so and suggest contacting support
- Use bullet points or numbered lists for multi-step answers

Available services:
- Regular maintenance (oil change, filter replacement, fluid checks)
- Repairs (engine, transmission, brakes, suspension)
- Inspections (safety, emissions, pre-purchase)
- Diagnostics (computer diagnostics, problem identification)
- Tire services (rotation, alignment, replacement)
- Electrical services (battery, alternator, starter)

Appointment statuses:
- PENDING: request received, waiting for confirmation
- CONFIRMED: accepted and assigned to a staff member
- IN_PROGRESS: a technician is working on the vehicle
- COMPLETED: service finished
- CANCELLED: the appointment was cancelled
"""


class GeminiError(Exception):
    pass


class GeminiClient:
    """Minimal async client for the Gemini ``generateContent`` endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else config.GEMINI_API_KEY
        self.model = model or config.GEMINI_MODEL
        self.base_url = base_url or config.GEMINI_API_BASE
        self.timeout = timeout or config.GEMINI_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def generate(self, prompt: str) -> str:
        if not self.configured:
            raise GeminiError("GEMINI_API_KEY is not configured")

        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/{self.model}:generateContent",
                params={"key": self.api_key},
                json=payload,
            )

        if response.status_code != 200:
            raise GeminiError(f"Gemini returned HTTP {response.status_code}: {response.text[:200]}")
        return extract_text(response.json())


def extract_text(body: dict) -> str:
    """candidates[0].content.parts[0].text"""
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise GeminiError(f"Unexpected Gemini response shape: {e}") from e
    if not text:
        raise GeminiError("Gemini returned an empty answer")
    return text


def build_prompt(question: str, previous_questions: Optional[list[str]] = None) -> str:
    lines = [SYSTEM_PROMPT, "", "Conversation history:"]
    for i, previous in enumerate(previous_questions or [], start=1):
        lines.append(f"Previous question {i}: {previous}")
    lines += ["", f"Current question: {question}", "", "Provide a helpful, accurate and concise response:"]
    return "\n".join(lines)


class ChatbotService:
    def __init__(self, client: GeminiClient):
        self.client = client

    async def ask(self, question: Optional[str], previous_questions: Optional[list[str]] = None) -> str:
        question = (question or "").strip()
        if not question:
            raise ValidationError("Please provide a question.")

        logger.info(f"🤖 Chatbot question received ({len(question)} chars)")
        try:
            return await self.client.generate(build_prompt(question, previous_questions))
        except (GeminiError, httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Chatbot answer failed: {e}")
            return FALLBACK_ANSWER
