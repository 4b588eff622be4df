# ecom_insights/config/settings.py

"""Central configuration for the ecom_insights catalog core."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the ecom_insights catalog core."""

    # --- Storage ---
    # Empty → volatile in-memory store; ``sqlite:///path`` → persistent
    DATABASE_URL: str = os.getenv("DATABASE_URL", "").strip()
    DB_TIMEOUT: float = float(os.getenv("DB_TIMEOUT", "5.0"))  # Seconds

    # --- Query surface ---
    DEFAULT_PAGE_LIMIT: int = 50
    MAX_PAGE_LIMIT: int = 500
    DEFAULT_RANKING_LIMIT: int = 10

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    SEED_CSV_PATH: Path = DATA_DIR / "products.csv"
    LOGS_DIR: Path = BASE_DIR / "logs"
