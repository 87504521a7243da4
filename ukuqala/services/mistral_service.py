import logging
from typing import Any, Optional

import httpx

from .. import config

logger = logging.getLogger(__name__)

ASSISTANT_INSTRUCTIONS = """# Qala-Lwazi: Advanced Medical Intelligence System

You are Qala-Lwazi, a medical assistant by Ukuqala Labs. Follow the provided conversation instructions to stay safe, patient-centric, and helpful."""

FALLBACK_REPLY = "I'm here to assist with your medical questions."


class MistralError(Exception):
    """Chat completion could not be produced"""


class MistralService:
    """Service for the Mistral chat completions API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else config.MISTRAL_API_KEY
        self.model = model or config.MISTRAL_MODEL
        self.api_url = api_url or config.MISTRAL_API_URL
        self.transport = transport

    async def chat(self, history: list[dict[str, str]]) -> dict[str, Any]:
        """
        Send the conversation history and return the assistant reply.

        Args:
            history: [{"role": "user"|"assistant", "content": str}, ...] oldest first

        Returns:
            {"content": str, "model": str}
        """
        if not self.api_key:
            logger.error("❌ MISTRAL_API_KEY not configured")
            raise MistralError("Chat assistant is not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": ASSISTANT_INSTRUCTIONS}, *history],
            "temperature": 0.7,
            "max_tokens": 2048,
            "top_p": 1,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"}

        logger.info(f"🤖 Requesting Mistral completion ({len(history)} messages, model={self.model})")
        try:
            async with httpx.AsyncClient(timeout=60.0, transport=self.transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Mistral returned HTTP {e.response.status_code}: {e.response.text[:200]}")
            raise MistralError("Chat assistant request failed") from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Mistral request failed: {e}")
            raise MistralError("Chat assistant request failed") from e

        data = response.json()
        choices = data.get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        if isinstance(content, list):
            # Chunked content: join the text parts
            content = "".join(part.get("text", "") for part in content if isinstance(part, dict))

        return {"content": content or FALLBACK_REPLY, "model": data.get("model") or self.model}


def get_mistral_service() -> MistralService:
    """Dependency injection for MistralService"""
    return MistralService()
