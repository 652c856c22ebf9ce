"""
API Client module for HTML Page Translator

Handles interactions with the Claude API: request construction,
per-request timeout and mapping of SDK failures onto translator errors
"""
import asyncio
import logging
from typing import Any, Optional

from anthropic import AnthropicError, APIError, APITimeoutError, AsyncAnthropic

from config import API_CONFIG, get_api_key
from errors import GenerationTimeoutError, TransportError, ValidationError
from utils import truncate_str

logger = logging.getLogger('website_translator')


class TranslationAPIClient:
    """
    Process-wide generation client. Construct once and pass it to the
    translator; it holds no per-request state
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[Any] = None,
                 model: Optional[str] = None, request_timeout: Optional[float] = None):
        self.client = client or AsyncAnthropic(api_key=get_api_key(api_key), max_retries=0)
        self.model = API_CONFIG['model'] if model is None else model
        self.request_timeout = API_CONFIG['request_timeout'] if request_timeout is None else request_timeout

    async def generate(self, prompt: str,
                       temperature: Optional[float] = None,
                       max_tokens: Optional[int] = None) -> str:
        """
        Sends one prompt and returns the text of the answer.
        Raises GenerationTimeoutError, TransportError or ValidationError
        """
        temperature = API_CONFIG['temperature'] if temperature is None else temperature
        max_tokens = API_CONFIG['max_tokens'] if max_tokens is None else max_tokens
        logger.info(f"Prompt size: {len(prompt)} Temp={temperature} Max_tokens={max_tokens}")

        request = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if API_CONFIG['stop_sequences']:
            request["stop_sequences"] = API_CONFIG['stop_sequences']

        try:
            message = await asyncio.wait_for(
                self.client.messages.create(**request),
                timeout=self.request_timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            logger.error(f"API call timed out after {self.request_timeout}s")
            raise GenerationTimeoutError(f"Generation call exceeded {self.request_timeout}s") from e
        except APIError as e:
            logger.error(f"API Error: {str(e)}")
            raise TransportError(str(e)) from e
        except AnthropicError as e:
            logger.error(f"Client Error: {str(e)}")
            raise TransportError(str(e)) from e

        return self.process_response(message)

    def process_response(self, message: Any) -> str:
        """Joins the text blocks of a response; an empty answer is a validation failure"""
        text = "".join(getattr(block, "text", "") for block in (message.content or []))
        if not text.strip():
            raise ValidationError("Empty answer")
        if getattr(message, "stop_reason", None) == "max_tokens":
            logger.warning("Answer hit the max_tokens limit and may be truncated")
        logger.info(f"Answer ({len(text)} chars): {truncate_str(text, 50)}")
        return text
