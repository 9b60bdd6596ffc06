import asyncio
import logging
import os
import re
from itertools import cycle
from threading import Lock
from typing import Iterable, List, Optional

from openai import AsyncOpenAI

from app.services.constants import (
    GENERATION_CONFIG,
    SERVICE_CONFIG,
    SYSTEM_ROLE,
    TRIVIA_GENERATION_TIMEOUT,
    TRIVIA_MODEL_NAME,
    USER_ROLE,
)
from app.services.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)


def collect_api_keys(env_var: str) -> List[str]:
    """Collect keys from env variables like PREFIX_API_KEY, PREFIX_API_KEY_2, etc."""
    pattern = re.compile(rf"{re.escape(env_var)}(_\d+)?")
    keys = []
    for k, v in sorted(os.environ.items()):
        if pattern.fullmatch(k) and v.strip():
            logger.info(f"Found API key: {k}")
            keys.append(v.strip())
    return keys


class GenerativeClient:
    """
    Chat-completions client for an OpenAI-compatible provider.

    Holds one or more API keys and rotates through them per call, so rate
    limits are spread across keys.
    """

    def __init__(
        self,
        api_keys: Iterable[str],
        base_url: Optional[str] = None,
        model_name: str = TRIVIA_MODEL_NAME,
        timeout: float = TRIVIA_GENERATION_TIMEOUT,
    ):
        keys = [key for key in api_keys if key and key.strip()]
        if not keys:
            raise ConfigurationError("At least one API key is required for the generative provider.")
        self.api_keys = keys
        self.base_url = base_url
        self.model_name = model_name
        self.timeout = timeout
        self._key_cycle = cycle(keys)
        self._key_lock = Lock()
        self._clients = {}

    @classmethod
    def from_env(cls, service: str = "gemini") -> Optional["GenerativeClient"]:
        """Build a client from the environment, or None when no key is configured."""
        try:
            config = SERVICE_CONFIG[service.lower()]
        except KeyError:
            logger.error(f"Service configuration for '{service}' is missing", exc_info=True)
            raise

        keys = collect_api_keys(config["api_key_env_var"])
        if not keys:
            logger.warning(f"No {service.upper()} API keys found; generative tier disabled.")
            return None
        return cls(keys, base_url=config["base_url"])

    @property
    def api_key(self) -> str:
        return self.api_keys[0]

    def _next_client(self) -> AsyncOpenAI:
        with self._key_lock:
            api_key = next(self._key_cycle)
            if api_key not in self._clients:
                self._clients[api_key] = AsyncOpenAI(
                    api_key=api_key,
                    base_url=self.base_url,
                    timeout=self.timeout,
                    max_retries=0,
                )
            return self._clients[api_key]

    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Send one chat completion and return the raw reply text.

        Raises:
            ProviderError: on network failure, timeout or an empty reply.
        """
        messages = []
        if system:
            messages.append({"role": SYSTEM_ROLE, "content": system})
        messages.append({"role": USER_ROLE, "content": prompt})

        client = self._next_client()
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model_name,
                    messages=messages,
                    temperature=GENERATION_CONFIG["temperature"],
                    top_p=GENERATION_CONFIG["top_p"],
                    max_tokens=GENERATION_CONFIG["max_tokens"],
                    extra_body={"top_k": GENERATION_CONFIG["top_k"]},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(f"Provider call timed out after {self.timeout}s") from e
        except Exception as e:
            raise ProviderError(f"Provider call failed for model {self.model_name}: {e}") from e

        if not response.choices or not response.choices[0].message:
            raise ProviderError("Incomplete response received from LLM service.")

        reply = response.choices[0].message.content
        if not reply:
            raise ProviderError("Empty response from LLM service.")
        return reply
