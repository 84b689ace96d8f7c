"""
Configuration management for the WhatsApp relay server.

Loads environment variables from .env file and provides typed access to
server-level settings. Backend selection lives in infra.config.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the relay server."""

    # HTTP server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))

    # Only the control panel host may call the API from a browser
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://191.252.156.197").split(",")
        if origin.strip()
    ]

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
