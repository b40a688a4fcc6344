"""
Single prompt-completion calls against the local ollama backend.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from langchain_core.language_models import BaseLLM
from langchain_ollama import OllamaLLM

from neuratalk.core.errors import ConnectFailed, GenerationFailed
from neuratalk.models import SEPARATOR

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling knobs forwarded to the backend as-is; ranges are not checked here."""
    temperature: float = 0.7
    top_p: float = 0.9
    top_k: float = 40
    max_tokens: float = 2048
    context_length: float = 4096


LLMFactory = Callable[[str, GenerationOptions], Any]


def build_prompt(prior: str, prompt: str) -> str:
    if prior:
        return prior + SEPARATOR + prompt
    return prompt


def build_llm(model: str, options: GenerationOptions, base_url: str = DEFAULT_BASE_URL) -> BaseLLM:
    return OllamaLLM(
        model=model,
        base_url=base_url,
        temperature=options.temperature,
        top_p=options.top_p,
        top_k=int(options.top_k),
        num_predict=int(options.max_tokens),
        num_ctx=int(options.context_length),
    )


_CONNECT_ERRORS = (ConnectionError, httpx.ConnectError, httpx.ConnectTimeout)


class GenerationClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, llm_factory: Optional[LLMFactory] = None):
        self.base_url = base_url
        self._llm_factory = llm_factory or (
            lambda model, options: build_llm(model, options, base_url=self.base_url)
        )

    async def generate(
        self,
        model_id: str,
        prior_turns_joined: str,
        new_prompt: str,
        options: GenerationOptions,
    ) -> str:
        """
        Run one completion for the flattened conversation.

        Args:
            model_id: ollama model identifier, e.g. `llama3.2:latest`.
            prior_turns_joined: earlier turns in wire form, may be empty.
            new_prompt: the user's new prompt.
            options: snapshot of the sampling settings for this call.

        Returns:
            str: the complete response text.

        Raises:
            ConnectFailed: the backend could not be reached.
            GenerationFailed: the backend reported an error.
        """
        try:
            llm = self._llm_factory(model_id, options)
        except Exception as exc:
            raise ConnectFailed(f"could not set up {model_id}: {exc}") from exc

        full_prompt = build_prompt(prior_turns_joined, new_prompt)
        start_time = time.perf_counter()
        try:
            response = await llm.ainvoke(full_prompt)
        except _CONNECT_ERRORS as exc:
            logger.warning("Connection to ollama failed: %s", exc)
            raise ConnectFailed(f"cannot connect to ollama at {self.base_url}: {exc}") from exc
        except Exception as exc:
            logger.warning("Generation with %s failed: %s", model_id, exc)
            raise GenerationFailed(f"failed to generate response: {exc}") from exc

        elapsed = time.perf_counter() - start_time
        logger.info(
            "Generated %d chars with %s in %.3fs (prompt %d chars)",
            len(response), model_id, elapsed, len(full_prompt),
        )
        return response
