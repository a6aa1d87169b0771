from tutor.agents.base import BaseAgent
from tutor.agents.prompts import build_quiz_prompt, build_quiz_request
from tutor.core.quiz_parser import parse_quiz_response


class QuizGenerationAgent(BaseAgent):
    """Generates one multiple-choice question at the context's current difficulty."""

    async def run(self, input_data: dict) -> dict:
        context = input_data["context"]
        retrieved = input_data.get("retrieved") or []
        difficulty = context.current_difficulty
        request = build_quiz_request(build_quiz_prompt(context), retrieved, difficulty)
        raw = await self.generate(request)
        return {"question": parse_quiz_response(raw, difficulty), "raw": raw}
