"""Главный файл приложения. Точка входа."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.base import BaseStorage
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from warehouse_console.console import build_console
from warehouse_console.core.config import settings
from warehouse_console.db.session import create_engine, create_session_factory, init_db
from warehouse_console.handlers import (
    auth,
    commands,
    product_management,
    reports,
    withdrawals,
)
from warehouse_console.middlewares.console import ConsoleMiddleware


def create_storage() -> BaseStorage:
    """Redis, если он настроен, иначе хранилище в памяти процесса."""
    if settings.REDIS_HOST:
        return RedisStorage(redis=Redis(host=settings.REDIS_HOST, port=settings.REDIS_PORT))
    return MemoryStorage()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Контекстный менеджер для управления жизненным циклом приложения.
    """
    logging.basicConfig(level=logging.INFO)
    print("--- LIFESPAN START ---")

    print("0. Initializing database and console services...")
    engine = create_engine(settings.DATABASE_URL)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, seed=settings.SEED_SAMPLE_DATA)
    storage = create_storage()
    console = build_console(
        session_factory,
        storage,
        email=settings.CONSOLE_EMAIL,
        password=settings.CONSOLE_PASSWORD,
        login_delay=settings.LOGIN_DELAY,
        session_key=settings.SESSION_KEY,
        export_dir=settings.EXPORT_DIR,
    )
    await console.session_store.restore()
    print("-> Database, storage and console services initialized.")

    print("1. Initializing Bot and Dispatcher...")
    bot = Bot(token=settings.BOT_TOKEN)
    dp = Dispatcher(storage=storage)

    # Сохраняем экземпляры в app.state для доступа в хендлерах
    app.state.bot = bot
    app.state.dp = dp
    app.state.storage = storage
    app.state.engine = engine
    print("-> Bot and Dispatcher initialized.")

    print("2. Deleting old webhook...")
    await bot.delete_webhook(drop_pending_updates=True)
    print("-> Old webhook deleted.")

    print("3. Registering middlewares and routers...")
    dp.update.middleware(ConsoleMiddleware(console))
    dp.include_router(auth.router)
    dp.include_router(commands.router)
    dp.include_router(product_management.router)
    dp.include_router(withdrawals.router)
    dp.include_router(reports.router)
    dp.include_router(auth.fallback_router)
    print("-> Middlewares and routers registered.")

    print(f"4. Setting new webhook to: {settings.webhook_url}")
    await bot.set_webhook(
        url=settings.webhook_url, secret_token=settings.WEBHOOK_SECRET
    )
    print("-> New webhook set successfully.")
    print("--- LIFESPAN STARTUP COMPLETE. APP IS READY. ---")

    yield

    print("--- LIFESPAN SHUTDOWN ---")
    await app.state.bot.delete_webhook()
    await app.state.bot.session.close()
    await app.state.storage.close()
    await app.state.engine.dispose()
    print("--- LIFESPAN SHUTDOWN COMPLETE ---")


# --- Приложение FastAPI ---
app = FastAPI(lifespan=lifespan)


@app.post("/telegram/webhook/{token}")
async def webhook_handler(request: Request, token: str) -> Response:
    """
    Обработчик вебхуков от Telegram.
    """
    if token != settings.BOT_TOKEN:
        return JSONResponse(content={"error": "Invalid token"}, status_code=403)

    telegram_secret_token = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
    if telegram_secret_token != settings.WEBHOOK_SECRET:
        return JSONResponse(content={"error": "Invalid secret token"}, status_code=403)

    try:
        update = await request.json()
        dp: Dispatcher = request.app.state.dp
        bot: Bot = request.app.state.bot
        await dp.feed_webhook_update(bot=bot, update=update)
    except Exception:
        logging.exception("!!! Critical error in webhook handler !!!")
        return Response(status_code=500)

    return Response(status_code=200)


# --- Точка входа для локального запуска ---
if __name__ == "__main__":
    uvicorn.run(
        "warehouse_console.main:app",
        host="0.0.0.0",  # noqa: B104
        port=8000,
        reload=True,
    )
