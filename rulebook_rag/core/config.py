from typing import List, Literal, Optional

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Rulebook RAG"
    ENVIRONMENT: str = "Dev"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: List[str] = ["*"]

    # Provider credential, required before the app is created
    HF_API_KEY: Optional[str] = None
    HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
    HF_INFERENCE_URL: str = "https://router.huggingface.co/hf-inference/models"
    LLM_MODEL: str = "meta-llama/Llama-3.1-8B-Instruct"
    MAX_TOKENS: int = 512
    PROVIDER_TIMEOUT: Optional[float] = None

    EMBEDDING_BACKEND: Literal["api", "local"] = "api"
    EMBEDDING_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
    EMBEDDING_BATCH_SIZE: int = 32

    RULEBOOK_PATH: str = "westin_rulebook.txt"
    CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200
    TOP_K: int = 4

    # Use Pydantic v2 style config and ignore unexpected env vars
    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
