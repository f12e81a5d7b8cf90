import sys

from fastapi import FastAPI, Request, Response
from loguru import logger

from chatledger.api.routes import router
from chatledger.config import get_settings
from chatledger.deps import get_database

settings = get_settings()

# Configure loguru
logger.remove()
logger.add(sys.stderr, level=settings.log_level, format="{time:HH:mm:ss} | {level:<7} | {message}")

app = FastAPI(title="Chat Ledger", version="0.1.0")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("{} {}", request.method, request.url.path)
    response: Response = await call_next(request)
    logger.info("{} {} -> {}", request.method, request.url.path, response.status_code)
    return response


app.include_router(router)


@app.on_event("startup")
async def startup():
    """Open the ledger and start the Telegram bot when a token is configured."""
    db = get_database()
    logger.info(
        "Ledger {} ({} expenses), model {}, week starts on day {}",
        settings.db_path,
        len(db.table("expenses")),
        settings.llm_model,
        settings.first_weekday,
    )
    if not settings.whatsapp_access_token:
        logger.warning("WHATSAPP_ACCESS_TOKEN not set, WhatsApp replies will be rejected")

    if not settings.telegram_bot_token:
        logger.warning("TELEGRAM_BOT_TOKEN not set, Telegram bot will not start")
        return

    from chatledger.bot.handler import build_bot_app

    bot_app = build_bot_app()
    app.state.bot = bot_app

    await bot_app.initialize()
    await bot_app.start()
    await bot_app.updater.start_polling(drop_pending_updates=True)
    logger.info("Telegram bot started (polling)")


@app.on_event("shutdown")
async def shutdown():
    """Stop the Telegram bot, then close the ledger file."""
    bot_app = getattr(app.state, "bot", None)
    if bot_app:
        await bot_app.updater.stop()
        await bot_app.stop()
        await bot_app.shutdown()
        logger.info("Telegram bot stopped")

    get_database().close()
    logger.info("Ledger closed")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
