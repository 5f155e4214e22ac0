"""Configuration for the Toolkit Chat client (environment + .env)."""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

# Service: any OpenAI-compatible chat-completions endpoint (Ollama by default)
CHAT_BASE_URL = os.getenv("CHAT_BASE_URL", "http://localhost:11434/v1")
CHAT_MODEL = os.getenv("CHAT_MODEL", "llama3.1")
CHAT_API_KEY = os.getenv("CHAT_API_KEY", "ollama")  # Ollama ignores the key
CHAT_TIMEOUT_SECONDS = float(os.getenv("CHAT_TIMEOUT_SECONDS", "120"))

# Session defaults
DEFAULT_USER_NAME = "User"
DEFAULT_ASSISTANT_NAME = "Assistant"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 500
PROVISIONAL_MARKER = "..."

# "tag" keeps failed assistant turns marked as failed, "discard" removes them
FAILED_TURN_POLICY = os.getenv("FAILED_TURN_POLICY", "tag")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
