"""
Chat assistant backed by the Gemini ``generateContent`` REST endpoint.

Every failure is folded into one of a handful of user-facing replies; callers
always get a string back and never see the upstream error.
"""
import logging

import requests
from pybreaker import CircuitBreakerError

from . import config
from .circuit_breaker import assistant_circuit_breaker

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

MISSING_KEY_REPLY = "Invalid or missing API key. Please contact support."
SAFETY_REPLY = "Content blocked due to safety concerns. Please rephrase your message."
RECITATION_REPLY = "Response stopped due to recitation issues. Try a different question."
FALLBACK_REPLY = "Failed to generate response. Please try again later."

GENERATION_CONFIG = {
    "temperature": 0.7,
    "maxOutputTokens": 200,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


def build_payload(message: str) -> dict:
    return {
        "contents": [{"parts": [{"text": message}]}],
        "generationConfig": GENERATION_CONFIG,
        "safetySettings": SAFETY_SETTINGS,
    }


@assistant_circuit_breaker
def _post_generate(message: str) -> requests.Response:
    response = requests.post(
        GEMINI_API_URL.format(model=config.GEMINI_MODEL),
        params={"key": config.GEMINI_API_KEY},
        json=build_payload(message),
        timeout=config.GEMINI_TIMEOUT_SECONDS,
    )
    # Only server-side failures count against the breaker
    if response.status_code >= 500:
        response.raise_for_status()
    return response


def reply_from_payload(data: dict) -> str:
    """Pick the reply text out of a ``generateContent`` response body."""
    feedback = data.get("promptFeedback") or {}
    if feedback.get("blockReason"):
        return SAFETY_REPLY

    candidates = data.get("candidates") or []
    if not candidates:
        return FALLBACK_REPLY

    candidate = candidates[0]
    finish_reason = candidate.get("finishReason")
    if finish_reason == "SAFETY":
        return SAFETY_REPLY
    if finish_reason == "RECITATION":
        return RECITATION_REPLY

    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts).strip()
    return text or FALLBACK_REPLY


def generate_reply(message: str) -> str:
    if not config.GEMINI_API_KEY:
        logger.error("GEMINI_API_KEY is not set; assistant replies are disabled")
        return MISSING_KEY_REPLY

    logger.info("Gemini request (%d chars)", len(message))
    try:
        response = _post_generate(message)
    except CircuitBreakerError:
        logger.warning("Assistant circuit is open; not calling Gemini")
        return FALLBACK_REPLY
    except requests.RequestException as exc:
        logger.error("Gemini request failed: %s", exc)
        return FALLBACK_REPLY

    if response.status_code in (400, 401, 403) and "API key" in response.text:
        logger.error("Gemini rejected the configured API key")
        return MISSING_KEY_REPLY
    if not response.ok:
        logger.error("Gemini returned HTTP %s", response.status_code)
        return FALLBACK_REPLY

    try:
        data = response.json()
    except ValueError:
        logger.error("Gemini returned a non-JSON body")
        return FALLBACK_REPLY
    return reply_from_payload(data)
