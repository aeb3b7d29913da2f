"""Daily Diary Telegram Bot."""

import logging

from telegram import Bot, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    filters,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config
from .core.entries import today_key
from .errors import ConfigurationError, DiaryError
from .services import open_diary
from .telegram_handlers import (
    calendar_handler,
    entries_handler,
    fav_handler,
    help_handler,
    moods_handler,
    start_handler,
    today_handler,
    write_cancel_handler,
    write_content_handler,
    write_mood_handler,
    write_start_handler,
    write_title_handler,
)
from .telegram_states import WriteStates

logger = logging.getLogger(__name__)


class AuthFilter(filters.BaseFilter):
    """Filter to only allow authorized users."""

    def __init__(self, allowed_users: list[int]):
        super().__init__()
        self.allowed_users = allowed_users

    def check_update(self, update: Update) -> bool:
        if not self.allowed_users:
            return True  # No restriction if no users configured
        user = update.effective_user
        if user is None:
            return False
        return user.id in self.allowed_users


def create_application(config: Config | None = None) -> Application:
    """Create and configure the Telegram bot application."""
    if config is None:
        config = load_config()

    if not config.telegram_bot_token:
        raise ConfigurationError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Get a token from @BotFather on Telegram and add it to diary.conf"
        )

    app = Application.builder().token(config.telegram_bot_token).build()
    app.bot_data["config"] = config

    auth_filter = AuthFilter(config.telegram_allowed_users)

    app.add_handler(CommandHandler("start", start_handler, filters=auth_filter))
    app.add_handler(CommandHandler("help", help_handler, filters=auth_filter))
    app.add_handler(CommandHandler("entries", entries_handler, filters=auth_filter))
    app.add_handler(CommandHandler("today", today_handler, filters=auth_filter))
    app.add_handler(CommandHandler("calendar", calendar_handler, filters=auth_filter))
    app.add_handler(CommandHandler("moods", moods_handler, filters=auth_filter))
    app.add_handler(CommandHandler("fav", fav_handler, filters=auth_filter))

    write_conv = ConversationHandler(
        entry_points=[CommandHandler("write", write_start_handler, filters=auth_filter)],
        states={
            WriteStates.TITLE: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, write_title_handler),
            ],
            WriteStates.CONTENT: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, write_content_handler),
            ],
            WriteStates.MOOD: [
                CallbackQueryHandler(write_mood_handler),
            ],
        },
        fallbacks=[CommandHandler("cancel", write_cancel_handler)],
        per_user=True,
    )
    app.add_handler(write_conv)

    async def unauthorized_handler(update: Update, context):
        user = update.effective_user
        logger.warning(f"Unauthorized access attempt from user {user.id} ({user.username})")
        await update.message.reply_text(
            "Unauthorized. This diary is private.\n"
            "If you're the owner, add your Telegram user ID to TELEGRAM_ALLOWED_USERS in diary.conf"
        )

    if config.telegram_allowed_users:
        app.add_handler(
            MessageHandler(~auth_filter & filters.ALL, unauthorized_handler)
        )

    return app


def setup_scheduler(app: Application, config: Config | None = None) -> AsyncIOScheduler:
    """Set up the daily writing reminder."""
    if config is None:
        config = load_config()

    scheduler = AsyncIOScheduler(timezone=config.timezone or "UTC")

    if config.telegram_reminder_time and config.telegram_allowed_users:
        try:
            hour, minute = map(int, config.telegram_reminder_time.split(":"))
            scheduler.add_job(
                send_entry_reminder,
                CronTrigger(hour=hour, minute=minute),
                args=[app.bot, config.telegram_allowed_users, config],
                id="entry_reminder",
            )
            logger.info(f"Scheduled entry reminder at {hour:02d}:{minute:02d}")
        except ValueError:
            logger.warning(f"Invalid reminder time format: {config.telegram_reminder_time}")

    return scheduler


async def send_entry_reminder(bot: Bot, user_ids: list[int], config: Config):
    """Remind users to write if there is no entry for today."""
    try:
        diary = open_diary(config)
        await diary.view_model.load()
    except DiaryError as e:
        logger.error(f"Skipping entry reminder, diary unavailable: {e}")
        return

    if diary.view_model.entries_on_date(today_key()):
        logger.info("Entry already written today, skipping reminder")
        return

    logger.info("Sending entry reminder")
    for user_id in user_ids:
        try:
            await bot.send_message(
                chat_id=user_id,
                text="No diary entry yet today.\n\nUse /write to capture how your day went.",
            )
        except Exception as e:
            logger.error(f"Failed to send entry reminder to user {user_id}: {e}")


def run_bot(config: Config | None = None):
    """Run the Telegram bot."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = config or load_config()
    app = create_application(config)
    scheduler = setup_scheduler(app, config)

    async def post_init(application: Application) -> None:
        """Start scheduler after event loop is running."""
        scheduler.start()
        logger.info("Scheduler started")

    app.post_init = post_init

    if config.telegram_allowed_users:
        logger.info(f"Bot authorized for users: {config.telegram_allowed_users}")
    else:
        logger.warning("No TELEGRAM_ALLOWED_USERS configured - bot is open to anyone!")

    logger.info("Starting Daily Diary Telegram bot...")

    app.run_polling(allowed_updates=Update.ALL_TYPES)
