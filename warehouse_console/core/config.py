"""Настройки конфигурации приложения."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Загружает настройки из файла .env.

    Атрибуты:
        model_config: Конфигурация для Pydantic моделей.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # База данных: по умолчанию все данные живут в памяти процесса
    DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"
    SEED_SAMPLE_DATA: bool = True

    # Redis (хранилище FSM и сохраненного пользователя).
    # Без REDIS_HOST используется хранилище в памяти.
    REDIS_HOST: str | None = None
    REDIS_PORT: int = 6379

    # Telegram Bot
    BOT_TOKEN: str
    # URL, на который будет установлен вебхук (например, https://your.domain)
    BASE_WEBHOOK_URL: str
    # Секретный ключ для проверки подлинности запросов от Telegram
    WEBHOOK_SECRET: str

    # Учетная запись консоли
    CONSOLE_EMAIL: str = "admin@example.com"
    CONSOLE_PASSWORD: str = "password"
    # Имитация сетевой задержки при входе, в секундах
    LOGIN_DELAY: float = 1.0
    # Ключ, под которым сохраняется текущий пользователь
    SESSION_KEY: str = "user"

    # Каталог для выгрузок Excel
    EXPORT_DIR: str = "exports"

    @property
    def webhook_url(self) -> str:
        """
        Собирает полный URL для вебхука.

        Returns:
            Полный URL вебхука.
        """
        return f"{self.BASE_WEBHOOK_URL}/telegram/webhook/{self.BOT_TOKEN}"


settings = Settings()  # type: ignore[call-arg]
