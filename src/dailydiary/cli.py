"""Daily Diary CLI."""

import asyncio
import json
import logging
import sys
from datetime import date

import click

from . import __version__
from .adapters.firebase_auth import validate_new_password
from .config import Session, load_config
from .core.calendar import parse_month
from .core.display import format_entry, format_entry_line, format_month_grid, format_mood_histogram
from .core.entries import ALL_MOODS, DEFAULT_MOOD, MOODS, Entry, EntryFilter, SortBy, is_date_key, today_key
from .core.profile import UserProfile
from .errors import DiaryError
from .services import Diary, get_identity, load_profile, open_diary, save_profile


def _fail(message) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _run(coro):
    """Run a coroutine, reporting diary errors and unknown ids on stderr."""
    try:
        return asyncio.run(coro)
    except DiaryError as e:
        _fail(e)
    except KeyError as e:
        _fail(f"No entry with id {e.args[0]!r}")


def _open() -> Diary:
    try:
        return open_diary(load_config())
    except DiaryError as e:
        _fail(e)


def _entry_json(entry: Entry) -> dict:
    return {
        "id": entry.id,
        "title": entry.title,
        "content": entry.content,
        "mood": entry.mood,
        "date": entry.date,
        "isFavorite": entry.is_favorite,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
        "updatedAt": entry.updated_at.isoformat() if entry.updated_at else None,
    }


@click.group()
@click.version_option(__version__)
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Daily Diary - personal journal CLI."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


# ============== Account ==============


@main.command()
@click.option("--email", prompt=True)
@click.option("--name", prompt="Full name", default="", show_default=False)
def signup(email: str, name: str):
    """Create an account."""
    password = click.prompt("Password", hide_input=True)
    confirm = click.prompt("Confirm password", hide_input=True)

    async def run():
        validate_new_password(password, confirm)
        identity = get_identity(load_config())
        return await identity.sign_up(email, password, name)

    user = _run(run())
    click.echo(f"✓ Account created for {user.email}")


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Sign in with email and password."""

    async def run():
        identity = get_identity(load_config())
        return await identity.sign_in(email, password)

    user = _run(run())
    click.echo(f"✓ Signed in as {user.display_name or user.email}")


@main.command()
def logout():
    """Sign out and forget the saved session."""
    Session.clear()
    click.echo("Signed out.")


@main.command()
def whoami():
    """Show the signed-in account."""
    session = Session.load()
    if not session.signed_in:
        click.echo("Not signed in.")
        return
    name = f"{session.display_name} " if session.display_name else ""
    click.echo(f"{name}<{session.email}> ({session.user_id})")


# ============== Entries ==============


@main.command()
@click.option("--search", "-s", default="", help="Match text in title or content")
@click.option("--mood", "-m", default=ALL_MOODS, help="Only entries with this mood")
@click.option(
    "--sort",
    "sort_by",
    type=click.Choice([s.value for s in SortBy]),
    default=SortBy.NEWEST.value,
    show_default=True,
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def entries(search: str, mood: str, sort_by: str, as_json: bool):
    """List entries."""
    diary = _open()
    _run(diary.view_model.load())

    entry_filter = EntryFilter(search_text=search, mood=mood, sort_by=SortBy(sort_by))
    shown = diary.view_model.project(entry_filter)

    if as_json:
        click.echo(json.dumps([_entry_json(e) for e in shown], indent=2, ensure_ascii=False))
        return

    if not shown:
        if diary.view_model.total:
            click.echo("No entries match.")
        else:
            click.echo("No entries yet. Start with 'diary write'.")
        return

    for entry in shown:
        click.echo(format_entry_line(entry))


@main.command()
@click.argument("entry_id")
def show(entry_id: str):
    """Show one entry."""
    diary = _open()

    async def run():
        await diary.view_model.load()
        return diary.view_model.get(entry_id)

    click.echo(format_entry(_run(run())))


@main.command()
@click.option("--title", "-t", default=None)
@click.option("--content", "-c", default=None)
@click.option("--mood", "-m", type=click.Choice(MOODS), default=DEFAULT_MOOD, show_default=True)
@click.option("--date", "-d", "entry_date", default=None, help="Entry date (YYYY-MM-DD), defaults to today")
def write(title: str | None, content: str | None, mood: str, entry_date: str | None):
    """Write a new entry."""
    diary = _open()
    if title is None:
        title = click.prompt("Title", default="", show_default=False)
    if content is None:
        content = click.prompt("Content", default="", show_default=False)

    async def run():
        diary.editor.start_new(entry_date)
        diary.editor.update_draft(title=title, content=content, mood=mood)
        return await diary.editor.commit()

    entry_id = _run(run())
    click.echo(f"✓ Saved entry {entry_id} for {entry_date or today_key()}")


@main.command()
@click.argument("entry_id")
@click.option("--title", "-t", default=None)
@click.option("--content", "-c", default=None)
@click.option("--mood", "-m", type=click.Choice(MOODS), default=None)
@click.option("--date", "-d", "entry_date", default=None, help="Move the entry to another date")
def edit(entry_id: str, title: str | None, content: str | None, mood: str | None, entry_date: str | None):
    """Edit an entry. Unspecified fields keep their current values."""
    diary = _open()
    changes = {
        name: value
        for name, value in (("title", title), ("content", content), ("mood", mood), ("date", entry_date))
        if value is not None
    }
    if not changes:
        _fail("Nothing to change. Pass --title, --content, --mood or --date.")

    async def run():
        await diary.view_model.load()
        diary.editor.start_edit(diary.view_model.get(entry_id))
        diary.editor.update_draft(**changes)
        return await diary.editor.commit()

    _run(run())
    click.echo(f"✓ Updated entry {entry_id}")


@main.command()
@click.argument("entry_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def delete(entry_id: str, yes: bool):
    """Delete an entry permanently."""
    diary = _open()
    vm = diary.view_model

    async def run():
        await vm.load()
        entry = vm.request_delete(entry_id)
        if not yes and not click.confirm(
            f"Delete '{entry.title}' ({entry.date})? This cannot be undone."
        ):
            vm.cancel_delete()
            return None
        return await vm.confirm_delete()

    if _run(run()) is None:
        click.echo("Cancelled.")
    else:
        click.echo(f"✓ Deleted entry {entry_id}")


@main.command()
@click.argument("entry_id")
def favorite(entry_id: str):
    """Toggle an entry's favorite flag."""
    diary = _open()

    async def run():
        await diary.view_model.load()
        return await diary.view_model.toggle_favorite(entry_id)

    if _run(run()):
        click.echo(f"★ Added {entry_id} to favorites")
    else:
        click.echo(f"Removed {entry_id} from favorites")


# ============== Calendar ==============


@main.command()
@click.option("--month", "month_str", default=None, help="Month to show (YYYY-MM), defaults to this month")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def calendar(month_str: str | None, as_json: bool):
    """Show a month with the days that have entries."""
    today = date.today()
    if month_str:
        try:
            year, month = parse_month(month_str)
        except ValueError as e:
            _fail(e)
    else:
        year, month = today.year, today.month

    diary = _open()
    _run(diary.view_model.load())
    grid = diary.view_model.month_grid(year, month, today=today)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "month": f"{year:04d}-{month:02d}",
                    "leadingBlanks": grid.leading_blanks,
                    "days": [
                        {"date": d.date_key, "hasEntries": d.has_entries, "isToday": d.is_today}
                        for d in grid.days
                    ],
                },
                indent=2,
            )
        )
        return

    click.echo(format_month_grid(grid))
    occupied = len(grid.occupied_days())
    click.echo(f"\n{occupied} day(s) with entries")


@main.command()
@click.argument("day_key")
def day(day_key: str):
    """Show entries written on a date (YYYY-MM-DD)."""
    if not is_date_key(day_key):
        _fail(f"Invalid date '{day_key}' (expected YYYY-MM-DD)")

    diary = _open()
    _run(diary.view_model.load())

    if diary.view_model.select_date(day_key) is None:
        click.echo(f"No entry for {day_key}. Write one with: diary write --date {day_key}")
        return

    for i, entry in enumerate(diary.view_model.entries_on_date(day_key)):
        if i:
            click.echo()
        click.echo(format_entry(entry))


# ============== Overview ==============


@main.command()
def moods():
    """Mood overview."""
    diary = _open()
    _run(diary.view_model.load())
    click.echo(format_mood_histogram(diary.view_model.mood_histogram(limit=5)))


@main.command()
def stats():
    """Entry counts at a glance."""
    diary = _open()
    vm = diary.view_model
    _run(vm.load())

    this_month = today_key()[:7]
    month_count = sum(1 for e in vm.entries if e.date.startswith(this_month))
    words = sum(e.word_count() for e in vm.entries)
    top = vm.mood_histogram(limit=1)

    click.echo(f"Total entries: {vm.total}")
    click.echo(f"Favorites:     {vm.favorite_count()}")
    click.echo(f"This month:    {month_count}")
    click.echo(f"Words written: {words}")
    if top:
        click.echo(f"Top mood:      {top[0].mood} ({top[0].count})")


# ============== Profile ==============


@main.group()
def profile():
    """View or update your profile."""


@profile.command("show")
def profile_show():
    """Show your profile."""
    diary = _open()
    session = Session.load()
    user_profile = _run(load_profile(diary.profiles, diary.owner_id))

    if session.signed_in:
        click.echo(f"Email:         {session.email}")
    click.echo(f"Name:          {user_profile.name or session.display_name or '-'}")
    age = user_profile.age()
    dob = f"{user_profile.date_of_birth} (age {age})" if age is not None else user_profile.date_of_birth
    click.echo(f"Date of birth: {dob or '-'}")
    click.echo(f"Place:         {user_profile.place or '-'}")


@profile.command("set")
@click.option("--name", default=None)
@click.option("--dob", default=None, help="Date of birth (YYYY-MM-DD)")
@click.option("--place", default=None)
def profile_set(name: str | None, dob: str | None, place: str | None):
    """Update profile fields. Unspecified fields keep their current values."""
    if dob and not is_date_key(dob):
        _fail(f"Invalid date of birth '{dob}' (expected YYYY-MM-DD)")

    config = load_config()
    diary = _open()
    session = Session.load()
    identity = None
    if config.store_backend == "firestore" and session.signed_in:
        identity = get_identity(config, session)

    async def run():
        current = await load_profile(diary.profiles, diary.owner_id)
        updated = UserProfile(
            name=current.name if name is None else name,
            date_of_birth=current.date_of_birth if dob is None else dob,
            place=current.place if place is None else place,
        )
        await save_profile(diary.profiles, diary.owner_id, updated, identity)
        return updated

    _run(run())
    click.echo("✓ Profile updated")


# ============== Bot ==============


@main.command()
def bot():
    """Run the Telegram bot."""
    from .telegram_bot import run_bot

    click.echo("Starting Daily Diary Telegram bot...")
    click.echo("Press Ctrl+C to stop")
    try:
        run_bot()
    except DiaryError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nBot stopped.")


if __name__ == "__main__":
    main()
