import os

from app.db_config import check_db_connection, db_config
from core import telegram, x_api
from providers.registry import get_provider_registry


class Capabilities:
    @staticmethod
    def is_db_enabled() -> bool:
        return db_config.is_db_enabled

    @staticmethod
    def check_db_connection() -> bool:
        """Verify database connection with a trivial query"""
        if not Capabilities.is_db_enabled():
            return False
        return check_db_connection()

    @staticmethod
    def is_ai_enabled() -> bool:
        return bool(os.getenv("OPENROUTER_API_KEY"))

    @staticmethod
    def is_telegram_enabled() -> bool:
        return telegram.is_configured()

    @staticmethod
    def is_x_enabled() -> bool:
        return x_api.is_configured()

    @staticmethod
    def get_provider_status() -> dict:
        return get_provider_registry().status()

    @classmethod
    def get_status(cls) -> dict:
        db = cls.check_db_connection()
        ai = cls.is_ai_enabled()
        telegram_enabled = cls.is_telegram_enabled()
        x = cls.is_x_enabled()

        if db and ai and telegram_enabled and x:
            status = "green"
        else:
            status = "amber"

        return {
            "status": status,
            "components": {
                "db": db,
                "ai": ai,
                "telegram": telegram_enabled,
                "x": x,
            },
        }

    @classmethod
    def get_capabilities(cls) -> dict:
        return {
            "providers": cls.get_provider_status(),
            "ai": cls.is_ai_enabled(),
            "telegram": cls.is_telegram_enabled(),
            "x": cls.is_x_enabled(),
        }
