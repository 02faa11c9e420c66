"""Ollama client for LLM inference"""
import logging
from typing import Optional
from langchain_community.chat_models import ChatOllama

from ..config import settings

logger = logging.getLogger(__name__)


class OllamaClient:
    """Builds ChatOllama instances from settings"""

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[int] = None
    ):
        self.host = host or settings.OLLAMA_HOST
        self.model = model or settings.OLLAMA_MODEL
        self.temperature = temperature if temperature is not None else settings.OLLAMA_TEMPERATURE
        self.timeout = timeout or settings.OLLAMA_TIMEOUT

    def get_llm(self, temperature: Optional[float] = None, json_mode: bool = False) -> ChatOllama:
        """
        Get Ollama LLM instance.

        Args:
            temperature: Temperature for generation (0-1)
            json_mode: Whether to request JSON output format

        Returns:
            ChatOllama instance
        """
        kwargs = {
            "base_url": self.host,
            "model": self.model,
            "temperature": temperature if temperature is not None else self.temperature,
            "timeout": self.timeout,
        }

        if json_mode:
            kwargs["format"] = "json"

        return ChatOllama(**kwargs)
