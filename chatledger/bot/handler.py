from loguru import logger
from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from chatledger.config import get_settings
from chatledger.deps import get_dispatcher, get_formatters, get_users
from chatledger.formatters.registry import format_for_platform
from chatledger.models.schemas import Platform

settings = get_settings()

WELCOME = (
    "Hey! I'm your expense tracking bot.\n\n"
    "Just tell me what you spent, or ask about your spending.\n\n"
    "Examples:\n"
    '• "Spent $50 on lunch"\n'
    '• "Coffee 4.50 yesterday"\n'
    '• "How much did I spend this week?"\n'
    '• "How much on food last month?"\n'
    '• "Show me my latest expenses"\n'
    '• "Delete my last expense"\n'
    '• "Expense report for this month" (pie chart)\n'
    '• "Daily expenses this week" (bar chart)\n\n'
    "Commands:\n"
    "/help — Show this message"
)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text(WELCOME)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await start_command(update, context)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Run a text message through the engine and send back the formatted reply."""
    user_text = update.message.text.strip()
    chat_id = update.effective_chat.id
    sender = update.effective_user

    owner = get_users().find_or_create(
        f"telegram:{sender.id if sender else chat_id}",
        name=sender.full_name if sender else None,
    )

    await update.message.chat.send_action("typing")

    envelope = await get_dispatcher().process_message(user_text, owner.id, Platform.TELEGRAM)
    outbound = format_for_platform(envelope, Platform.TELEGRAM, str(chat_id), get_formatters())

    try:
        if "photo" in outbound:
            await context.bot.send_photo(**outbound)
        else:
            await context.bot.send_message(**outbound)
    except TelegramError as e:
        # the ledger change (if any) stays committed
        logger.error("Failed to deliver Telegram reply to chat {}: {}", chat_id, e)


def build_bot_app() -> Application:
    """Build and return the Telegram bot application."""
    app = Application.builder().token(settings.telegram_bot_token).build()

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    return app
