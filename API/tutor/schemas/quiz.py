from pydantic import BaseModel, ConfigDict, Field


class QuizGenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str = Field(..., min_length=1)
    session_id: int | None = Field(default=None, alias="sessionId")


class QuizQuestionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: list[str] = Field(..., min_length=4, max_length=4)
    correct_answer: str = Field(..., alias="correctAnswer")
    explanation: str
    difficulty: str


class QuizContextOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mastery: int
    consecutive_correct: int = Field(..., alias="consecutiveCorrect")
    consecutive_wrong: int = Field(..., alias="consecutiveWrong")


class QuizGenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: int = Field(..., alias="sessionId")
    question: QuizQuestionOut
    difficulty: str
    context: QuizContextOut


class QuizSubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: int = Field(..., alias="sessionId")
    user_answer: str = Field(..., min_length=1, max_length=8, alias="userAnswer")
    correct_answer: str = Field(..., min_length=1, max_length=8, alias="correctAnswer")
    question: str = Field(..., min_length=1)


class QuizSubmitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_correct: bool = Field(..., alias="isCorrect")
    message: str
    accuracy: int
    total_questions: int = Field(..., alias="totalQuestions")
    correct_answers: int = Field(..., alias="correctAnswers")
    next_difficulty_hint: str = Field(..., alias="nextDifficultyHint")
