"""Configuration settings."""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load .env file if exists (current directory first, then project root)
load_dotenv()
load_dotenv(Path(__file__).parent.parent / ".env")


class Settings:
    """Application settings from environment variables."""

    # Generation service (does the actual batch generation)
    GENERATION_SERVICE_URL: str = os.getenv("GENERATION_SERVICE_URL", "http://localhost:8765")
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "120"))

    # Timing (seconds)
    POLL_INTERVAL_SECONDS: float = float(os.getenv("POLL_INTERVAL_SECONDS", "1.0"))
    NOTIFICATION_TIMEOUT_SECONDS: float = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "5.0"))

    # Export destinations
    EXPORT_DIR: str = os.getenv("EXPORT_DIR", "")
    DOWNLOADS_DIR: str = os.getenv("DOWNLOADS_DIR", str(Path.home() / "Downloads"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    CORS_ORIGINS: List[str] = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000"
    ).split(",")

    # Defaults for a fresh session
    DEFAULT_TARGET_ENTRIES = 2000
    DEFAULT_BATCH_SIZE = 50
    DEFAULT_FORMAT = "alpaca"

    # Candidates shown in the batch size analysis
    BATCH_SIZE_CANDIDATES = [10, 20, 25, 50, 100]
    TARGET_QUALITY = 0.85

    # Hosted models offered next to whatever Ollama has installed
    OPENAI_MODELS = [
        {
            "id": "gpt-4.1-nano",
            "name": "GPT-4.1-nano",
            "size": "nano",
            "modified": "2025",
            "capabilities": ["text-generation", "instruction-following", "fast-inference"],
        },
        {
            "id": "gpt-4o",
            "name": "GPT-4o",
            "size": "multimodal",
            "modified": "2024",
            "capabilities": ["text-generation", "instruction-following", "multimodal"],
        },
        {
            "id": "gpt-4o-mini",
            "name": "GPT-4o-mini",
            "size": "efficient",
            "modified": "2024",
            "capabilities": ["text-generation", "instruction-following", "fast-inference"],
        },
        {
            "id": "gpt-4.1-mini",
            "name": "GPT-4.1-mini",
            "size": "mini",
            "modified": "2025",
            "capabilities": ["text-generation", "instruction-following", "enhanced-reasoning"],
        },
    ]


settings = Settings()
