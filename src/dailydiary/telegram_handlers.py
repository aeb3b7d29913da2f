"""Telegram command handlers."""

import logging
from datetime import date

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes, ConversationHandler

from .config import Config, load_config
from .core.display import format_entry, format_entry_line, format_month_grid, format_mood_histogram
from .core.entries import MOODS, EntryFilter, today_key
from .editor import EditorState, EntryEditor
from .errors import DiaryError, StoreWriteFailed, ValidationError
from .services import Diary, open_diary
from .telegram_format import send_markdown
from .telegram_states import WriteStates

logger = logging.getLogger(__name__)

MAX_LISTED_ENTRIES = 20
MOOD_KEYBOARD_WIDTH = 4


def _config(context: ContextTypes.DEFAULT_TYPE) -> Config:
    return context.bot_data.get("config") or load_config()


async def _load_diary(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Diary | None:
    """Open and load the diary, replying with the error on failure."""
    try:
        diary = open_diary(_config(context))
        await diary.view_model.load()
    except DiaryError as e:
        logger.error(f"Failed to load diary: {e}")
        await update.message.reply_text(f"Couldn't load your diary: {e}")
        return None
    return diary


# ============== Simple Commands ==============


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text(
        "Hi! I'm your Daily Diary.\n\n"
        "Commands:\n"
        "/write - Write a new entry\n"
        "/today - Today's entries\n"
        "/entries - Recent entries (add text to search)\n"
        "/calendar - This month at a glance\n"
        "/moods - Mood overview\n"
        "/help - Show all commands"
    )


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text(
        "*Daily Diary Commands*\n\n"
        "/write - Write a new entry (title, content, mood)\n"
        "/today - Entries written today\n"
        "/entries [text] - Recent entries, optionally searching title and content\n"
        "/calendar - Days with entries this month\n"
        "/moods - Your most common moods\n"
        "/fav ID - Toggle an entry's favorite flag\n"
        "/cancel - Cancel current operation\n",
        parse_mode="Markdown",
    )


async def entries_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /entries [text] - list recent entries, optionally filtered."""
    diary = await _load_diary(update, context)
    if diary is None:
        return

    search = " ".join(context.args or []).strip()
    shown = diary.view_model.project(EntryFilter(search_text=search))

    if not shown:
        await update.message.reply_text("No entries match." if search else "No entries yet. Use /write to start.")
        return

    header = f"*Entries matching \"{search}\"*" if search else "*Recent entries*"
    lines = [format_entry_line(e) for e in shown[:MAX_LISTED_ENTRIES]]
    if len(shown) > MAX_LISTED_ENTRIES:
        lines.append(f"...and {len(shown) - MAX_LISTED_ENTRIES} more")
    await send_markdown(update.message, header + "\n\n" + "\n".join(f"- {line}" for line in lines))


async def today_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /today - show today's entries."""
    diary = await _load_diary(update, context)
    if diary is None:
        return

    todays = diary.view_model.entries_on_date(today_key())
    if not todays:
        await update.message.reply_text(
            f"No entry for {date.today().strftime('%A, %b %d')} yet. Use /write to add one."
        )
        return

    await send_markdown(update.message, "\n\n".join(format_entry(e) for e in todays))


async def calendar_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /calendar - this month's grid."""
    diary = await _load_diary(update, context)
    if diary is None:
        return

    today = date.today()
    grid = diary.view_model.month_grid(today.year, today.month, today=today)
    occupied = len(grid.occupied_days())
    await send_markdown(
        update.message,
        f"```\n{format_month_grid(grid)}\n```\n{occupied} day(s) with entries",
    )


async def moods_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /moods - mood overview."""
    diary = await _load_diary(update, context)
    if diary is None:
        return

    histogram = diary.view_model.mood_histogram(limit=5)
    await send_markdown(update.message, f"*Mood Overview*\n\n{format_mood_histogram(histogram, width=10)}")


async def fav_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /fav ID - toggle favorite."""
    if not context.args:
        await update.message.reply_text("Usage: /fav ENTRY_ID")
        return

    diary = await _load_diary(update, context)
    if diary is None:
        return

    entry_id = context.args[0]
    try:
        title = diary.view_model.get(entry_id).title
        is_favorite = await diary.view_model.toggle_favorite(entry_id)
    except KeyError:
        await update.message.reply_text(f"No entry with id {entry_id}.")
        return
    except DiaryError as e:
        await update.message.reply_text(str(e))
        return

    if is_favorite:
        await update.message.reply_text(f"★ Added '{title}' to favorites.")
    else:
        await update.message.reply_text(f"Removed '{title}' from favorites.")


# ============== Write Conversation ==============


def _mood_keyboard() -> InlineKeyboardMarkup:
    buttons = [InlineKeyboardButton(mood, callback_data=f"mood:{mood}") for mood in MOODS]
    rows = [buttons[i : i + MOOD_KEYBOARD_WIDTH] for i in range(0, len(buttons), MOOD_KEYBOARD_WIDTH)]
    return InlineKeyboardMarkup(rows)


def _editor(context: ContextTypes.DEFAULT_TYPE) -> EntryEditor:
    return context.user_data["editor"]


async def write_start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Start the write conversation."""
    try:
        diary = open_diary(_config(context))
    except DiaryError as e:
        await update.message.reply_text(f"Couldn't open your diary: {e}")
        return ConversationHandler.END

    diary.editor.start_new()
    context.user_data["editor"] = diary.editor

    await update.message.reply_text(
        "*New entry*\n\nWhat's the title?\n_Send /cancel to stop_",
        parse_mode="Markdown",
    )
    return WriteStates.TITLE


async def write_title_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle the title."""
    editor = _editor(context)
    editor.update_draft(title=update.message.text.strip())
    await update.message.reply_text("What's on your mind? Send the entry text.")
    return WriteStates.CONTENT


async def write_content_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle the content and ask for a mood."""
    editor = _editor(context)
    editor.update_draft(content=update.message.text.strip())
    await update.message.reply_text("How are you feeling?", reply_markup=_mood_keyboard())
    return WriteStates.MOOD


async def write_mood_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle mood selection and save the entry."""
    query = update.callback_query
    await query.answer()

    if not query.data.startswith("mood:"):
        return WriteStates.MOOD

    mood = query.data[5:]
    editor = _editor(context)
    title = editor.update_draft(mood=mood).title

    try:
        await editor.commit()
    except ValidationError as e:
        await query.edit_message_text(f"{e}. Send /write to start over.")
        editor.cancel()
        context.user_data.pop("editor", None)
        return ConversationHandler.END
    except StoreWriteFailed as e:
        await query.edit_message_text(
            f"{e}. Tap a mood to try again or /cancel.",
            reply_markup=_mood_keyboard(),
        )
        return WriteStates.MOOD
    except DiaryError as e:
        if editor.state != EditorState.IDLE:
            logger.error(f"Entry not saved: {e}")
            await query.edit_message_text(
                f"Couldn't save the entry: {e}. Tap a mood to try again or /cancel.",
                reply_markup=_mood_keyboard(),
            )
            return WriteStates.MOOD
        logger.error(f"Entry saved but reload failed: {e}")

    context.user_data.pop("editor", None)
    await query.edit_message_text(f"✓ Saved {mood} {title}")
    return ConversationHandler.END


async def write_cancel_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Cancel the write conversation."""
    editor = context.user_data.pop("editor", None)
    if editor is not None:
        editor.cancel()
    await update.message.reply_text("Entry discarded.")
    return ConversationHandler.END
