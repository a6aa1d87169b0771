"""Prompt builders for the tutor chat and quiz generation. Pure string projections of a context."""
from tutor.agents.adaptation import analyze_performance
from tutor.core.settings import settings
from tutor.memory.context import QuizContext, UserContext

QUIZ_OUTPUT_FORMAT = """QUESTION: [Clear, specific question about {topic}]
A) [First option]
B) [Second option]
C) [Third option]
D) [Fourth option]
ANSWER: [A, B, C, or D]
EXPLANATION: [Clear explanation connecting to CBSE curriculum, mentioning why other options are incorrect]"""

DIFFICULTY_GUIDELINES: dict[str, tuple[str, ...]] = {
    "easy": (
        "Focus on basic definitions and simple calculations",
        "Use direct application of formulas",
        "Single-step problems with clear solutions",
        "Avoid complex multi-part questions",
    ),
    "medium": (
        "Include 2-3 step problem solving",
        "Combine multiple concepts within {topic}",
        "Include some application-based word problems",
        "Require understanding beyond memorization",
    ),
    "hard": (
        "Multi-step complex problems",
        "Integration of multiple concepts",
        "Real-world application scenarios",
        "Require deep conceptual understanding and analysis",
    ),
}


def format_curriculum_content(retrieved: list[str]) -> str:
    return "\n\n".join(f"[Content {i}]: {content}" for i, content in enumerate(retrieved, start=1))


def difficulty_guidelines(difficulty: str, topic: str) -> str:
    lines = DIFFICULTY_GUIDELINES.get(difficulty)
    if lines is None:
        return "- Standard CBSE level questions"
    return "\n".join(f"- {line.format(topic=topic)}" for line in lines)


def _conversation_block(context: UserContext, turns: int) -> str:
    recent = context.conversation_history[-turns:] if turns > 0 else []
    return "\n".join(
        f"{'Student' if turn.role == 'user' else 'Tutor'}: {turn.content}" for turn in recent
    )


def _content_section(context: UserContext, retrieved: list[str]) -> str:
    if retrieved:
        return (
            "AVAILABLE CURRICULUM CONTENT:\n"
            f"{format_curriculum_content(retrieved)}\n\n"
            "IMPORTANT: Only use the above content if it's directly relevant to the student's question.\n\n"
        )
    return (
        "CURRICULUM STATUS: No curriculum content found for this question.\n\n"
        "IMPORTANT: This likely means the student is asking about a topic different from the "
        f'selected session topic "{context.topic}". You MUST redirect them appropriately.\n\n'
    )


def build_chat_prompt(context: UserContext, retrieved: list[str], history_turns: int | None = None) -> str:
    turns = settings.prompt_history_turns if history_turns is None else history_turns
    topic = context.topic
    return (
        f"{_content_section(context, retrieved)}"
        f"You are a supportive AI Chatbot helping a Class 10 CBSE student learn {topic} in {context.subject}.\n"
        "\n"
        "STUDENT CONTEXT:\n"
        f"- Mastery level: {context.mastery}%\n"
        f"- Knowledge gaps: {', '.join(context.gaps)}\n"
        f"- Recent performance: {context.correct_count}/{context.total_count} correct\n"
        f"- Current difficulty level: {context.current_difficulty}\n"
        "\n"
        "TEACHING APPROACH:\n"
        "1. For struggling students (mastery < 50%): Focus on fundamentals, use simple examples\n"
        "2. For average students (mastery 50-80%): Provide balanced explanations with practice\n"
        "3. For advanced students (mastery > 80%): Challenge with complex problems and connections\n"
        "4. Use Socratic method - guide discovery through questions, don't give direct answers\n"
        "5. Use Indian context (cricket scores for statistics, festival dates for calculations, local examples)\n"
        "6. Connect concepts to real-world applications students can relate to\n"
        "7. If no relevant curriculum content is available, provide general educational guidance "
        "based on CBSE Class 10 standards\n"
        "\n"
        "RESPONSE GUIDELINES:\n"
        "- Keep responses concise (2-3 sentences for simple questions, 4-5 for complex explanations)\n"
        "- Use encouraging, patient language especially for struggling students\n"
        "- Adjust complexity based on mastery level\n"
        "- If student seems confused, break down concepts into smaller steps\n"
        "- Celebrate progress and correct understanding\n"
        "\n"
        "CRITICAL RULE - TOPIC BOUNDARIES:\n"
        "If no curriculum content was found (empty content status above), this indicates the student "
        f'is asking about a different topic than "{topic}". In this case, you MUST:\n'
        "\n"
        "1. DO NOT provide a detailed answer about the off-topic question\n"
        f'2. Politely acknowledge their question but explain you\'re focused on "{topic}"\n'
        "3. Suggest they either:\n"
        "   - Change their topic selection to match their question, OR\n"
        f'   - Ask questions related to "{topic}" instead\n'
        "\n"
        "Example response for off-topic questions:\n"
        f"\"I see you're asking about [different topic], but our current session is focused on {topic}. "
        "To get help with [different topic], please change your topic selection above, "
        f'or feel free to ask me anything about {topic}!"\n'
        "\n"
        "CONVERSATION HISTORY:\n"
        f"{_conversation_block(context, turns)}\n"
        "\n"
        "Remember: Your goal is to guide the student to understand concepts deeply, not just memorize "
        "formulas. If specific curriculum content isn't available for the topic, provide helpful general "
        "educational guidance appropriate for Class 10 CBSE level."
    )


def build_quiz_prompt(context: QuizContext) -> str:
    difficulty = context.current_difficulty
    topic = context.topic
    trend = analyze_performance(context.mastery, context.consecutive_correct, context.consecutive_wrong)
    return (
        f"You are an adaptive quiz generator for Class 10 CBSE {context.subject}, specifically for {topic}.\n"
        "\n"
        "STUDENT PERFORMANCE ANALYSIS:\n"
        f"- Current mastery: {context.mastery}%\n"
        f"- Consecutive correct: {context.consecutive_correct}\n"
        f"- Consecutive wrong: {context.consecutive_wrong}\n"
        f"- Adaptive difficulty: {difficulty}\n"
        f"- Performance trend: {trend}\n"
        "\n"
        "ADAPTIVE DIFFICULTY RULES:\n"
        f"- Current level: {difficulty}\n"
        "- 2+ correct answers → increase difficulty (easy→medium→hard)\n"
        "- 2+ wrong answers → decrease difficulty (hard→medium→easy)\n"
        f"- Questions should match {difficulty} level complexity\n"
        "\n"
        "QUESTION GENERATION GUIDELINES:\n"
        f"For {difficulty} difficulty:\n"
        f"{difficulty_guidelines(difficulty, topic)}\n"
        "\n"
        "QUESTION FORMAT:\n"
        "Generate a multiple-choice question following this EXACT format:\n"
        "\n"
        f"{QUIZ_OUTPUT_FORMAT.format(topic=topic)}\n"
        "\n"
        "IMPORTANT:\n"
        f"- Ensure question aligns with CBSE Class 10 {context.subject} syllabus\n"
        "- Use Indian context in word problems (Indian currency, cricket, festivals)\n"
        "- Make incorrect options plausible but clearly wrong\n"
        "- Explanation should reinforce learning, not just state the answer\n"
        "- For struggling students, include helpful hints in explanation"
    )


def build_chat_request(system_prompt: str, message: str) -> str:
    return f"{system_prompt}\n\nStudent Question: {message}\n\nTutor Response:"


def build_quiz_request(system_prompt: str, retrieved: list[str], difficulty: str) -> str:
    content = f"CURRICULUM CONTENT:\n{format_curriculum_content(retrieved)}\n\n" if retrieved else ""
    return f"{content}{system_prompt}\n\nGenerate a {difficulty} difficulty question now:"
