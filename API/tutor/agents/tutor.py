from tutor.agents.base import BaseAgent
from tutor.agents.prompts import build_chat_prompt, build_chat_request


class TutorAgent(BaseAgent):
    """Answers one student message inside the current topic."""

    async def run(self, input_data: dict) -> dict:
        context = input_data["context"]
        retrieved = input_data.get("retrieved") or []
        system_prompt = build_chat_prompt(context, retrieved)
        response = await self.generate(build_chat_request(system_prompt, input_data["message"]))
        return {"response": response, "relevant_content_used": bool(retrieved)}
