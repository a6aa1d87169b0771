from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    log_level: str = "INFO"
    frontend_origin: str = "http://localhost:5173"

    database_url: str = "postgresql+asyncpg://postgres@localhost:5432/ai_tutor_dev"
    database_echo: bool = False
    database_bootstrap_enabled: bool = True
    database_command_timeout_seconds: float = 10.0

    llm_provider: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "mistral:7b"
    llm_temperature: float = 0.7
    llm_top_p: float = 0.9
    llm_timeout_seconds: float = 120.0

    embedding_provider: str = "ollama"
    embedding_model: str = "nomic-embed-text"
    embedding_dimensions: int = 768
    embedding_timeout_seconds: float = 30.0
    breaker_failure_threshold: int = 4
    breaker_recovery_seconds: float = 30.0

    chat_retrieval_top_k: int = 3
    quiz_retrieval_top_k: int = 2
    chat_history_limit: int = 10
    prompt_history_turns: int = 6
    mastery_session_window: int = 5
    streak_answer_window: int = 5

    ingest_chunk_size: int = 1000
    ingest_chunk_overlap: int = 200
    ingest_min_chunk_chars: int = 50
    ingest_delay_seconds: float = 0.1

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
