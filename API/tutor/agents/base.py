from abc import ABC, abstractmethod
from typing import Any

from tutor.core.llm_provider import generate_text


class BaseAgent(ABC):
    """An agent turns a learner context into one model call and a structured result."""

    model_name: str | None = None

    async def generate(self, prompt: str) -> str:
        text, _usage = await generate_text(prompt, model_name=self.model_name)
        return text

    @abstractmethod
    async def run(self, input_data: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError
