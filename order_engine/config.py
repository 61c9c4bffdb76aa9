"""
Engine Configuration - config.py
Environment driven settings for the order entry engine and trade desk
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class EngineConfig:
    """Order entry settings"""

    # Order construction
    default_leverage: int = 30
    max_leverage: int = 500
    quantity_step_divisor: float = 100.0
    feedback_clear_seconds: float = 3.0

    # Backend API
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 30.0

    # Desk server
    desk_port: int = 8084
    storage_secret: str = ""


def get_config() -> EngineConfig:
    """Build configuration from the current environment"""
    return EngineConfig(
        default_leverage=int(os.getenv("DEFAULT_LEVERAGE", "30")),
        max_leverage=int(os.getenv("MAX_LEVERAGE", "500")),
        quantity_step_divisor=float(os.getenv("QUANTITY_STEP_DIVISOR", "100")),
        feedback_clear_seconds=float(os.getenv("FEEDBACK_CLEAR_SECONDS", "3.0")),
        api_base_url=os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/"),
        api_timeout_seconds=float(os.getenv("API_TIMEOUT_SECONDS", "30")),
        desk_port=int(os.getenv("DESK_PORT", "8084")),
        storage_secret=os.getenv("STORAGE_SECRET", ""),
    )


def validate_config(config: EngineConfig) -> bool:
    """Check settings that would make the engine unusable"""
    if config.default_leverage <= 0 or config.max_leverage < config.default_leverage:
        return False
    if config.quantity_step_divisor <= 0:
        return False
    if config.feedback_clear_seconds < 0 or config.api_timeout_seconds <= 0:
        return False
    return True
