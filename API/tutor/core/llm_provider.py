from abc import ABC, abstractmethod

import httpx

from tutor.core.errors import GenerationError
from tutor.core.resilience import get_breaker
from tutor.core.settings import settings


def _estimate_tokens(text: str) -> int:
    # Rough chars/4 estimate; Ollama's non-streaming reply has eval counts but not for every model.
    return max(1, len((text or "").strip()) // 4)


class BaseLLMProvider(ABC):
    provider_name: str

    @abstractmethod
    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        raise NotImplementedError


class OllamaLLMProvider(BaseLLMProvider):
    provider_name = "ollama"

    def __init__(self, model_name: str | None = None, base_url: str | None = None, timeout: float | None = None):
        self.model_name = model_name or settings.ollama_model
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.timeout = float(timeout or settings.llm_timeout_seconds)

    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        breaker = get_breaker(f"llm:{self.provider_name}:{self.model_name}")
        if not breaker.can_execute():
            return None, {"provider": self.provider_name, "model": self.model_name, "reason": "circuit_open"}

        payload = {
            "model": self.model_name,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": settings.llm_temperature, "top_p": settings.llm_top_p},
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/api/generate", json=payload)
                response.raise_for_status()
                body = response.json()
        except BaseException:
            # Any exit, cancellation included, must release a half-open breaker.
            breaker.record_failure()
            raise

        breaker.record_success()
        text = (body.get("response") or "").strip()
        usage = {
            "provider": self.provider_name,
            "model": self.model_name,
            "prompt_tokens_estimate": _estimate_tokens(prompt),
            "completion_tokens_estimate": _estimate_tokens(text),
            "total_tokens_estimate": _estimate_tokens(prompt) + _estimate_tokens(text),
        }
        return (text or None), usage


class NullLLMProvider(BaseLLMProvider):
    provider_name = "none"

    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        return None, {
            "provider": self.provider_name,
            "model": "none",
            "prompt_tokens_estimate": _estimate_tokens(prompt),
            "completion_tokens_estimate": 0,
            "total_tokens_estimate": _estimate_tokens(prompt),
            "reason": "unsupported_provider",
        }


def get_llm_provider(model_name: str | None = None) -> BaseLLMProvider:
    provider = (settings.llm_provider or "").lower()
    if provider == "ollama":
        return OllamaLLMProvider(model_name=model_name)
    return NullLLMProvider()


async def generate_text(prompt: str, model_name: str | None = None) -> tuple[str, dict]:
    """Generate text or raise GenerationError; an empty reply counts as a failure."""
    provider = get_llm_provider(model_name)
    try:
        text, usage = await provider.generate(prompt)
    except httpx.TimeoutException as exc:
        raise GenerationError(f"{provider.provider_name} generation timed out") from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise GenerationError(f"{provider.provider_name} generation failed: {exc}") from exc
    if not text:
        raise GenerationError(f"{provider.provider_name} returned no text ({usage.get('reason', 'empty')})")
    return text, usage
