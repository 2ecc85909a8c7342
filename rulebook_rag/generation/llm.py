"""
LLM Inference Wrapper
Chat completions on the Hugging Face router (OpenAI-compatible API)
"""

import asyncio
from typing import Any, Dict, List, Optional

import requests

from rulebook_rag.core.config import Settings
from rulebook_rag.core.exception import GenerationServiceError
from rulebook_rag.core.logger import logger


HF_CHAT_URL = "https://router.huggingface.co/v1/chat/completions"


class LLMClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        api_url: str = HF_CHAT_URL,
        max_tokens: int = 512,
        timeout: Optional[float] = None,
    ):
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.headers = {"Authorization": f"Bearer {api_key}"}

    def generate_chat(self, messages: List[Dict[str, str]], temperature: float = 0.0) -> Any:
        """
        Returns the raw message content of the first choice, which is usually
        a string but is not guaranteed to be one.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
        }

        try:
            res = requests.post(self.api_url, headers=self.headers, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise GenerationServiceError(f"LLM request timed out: {e}")
        except requests.RequestException as e:
            raise GenerationServiceError(e)

        if res.status_code != 200:
            logger.error(f"HF Inference failed: {res.text[:200]}")
            raise GenerationServiceError(f"LLM Inference Error {res.status_code}")

        try:
            output = res.json()
        except ValueError:
            raise GenerationServiceError("LLM returned a non-JSON body")

        try:
            return output["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise GenerationServiceError(f"Unexpected LLM response shape: {str(output)[:200]}")

    async def agenerate_chat(self, messages: List[Dict[str, str]], temperature: float = 0.0) -> Any:
        return await asyncio.to_thread(self.generate_chat, messages, temperature)


def get_llm_client(settings: Settings) -> LLMClient:
    return LLMClient(
        api_key=settings.HF_API_KEY,
        model=settings.LLM_MODEL,
        api_url=settings.HF_CHAT_URL,
        max_tokens=settings.MAX_TOKENS,
        timeout=settings.PROVIDER_TIMEOUT,
    )
