"""Interactive CLI application."""
import logging
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from study_companion.assistant import StudyAssistant
from study_companion.catalog import available_streams
from study_companion.config import Settings, load_settings
from study_companion.controller import AppController
from study_companion.dashboard import get_progress_color, get_progress_label, get_target_gap_label
from study_companion.focus import FOCUS_MODES, MODE_FEATURES, activity_dates, focus_score
from study_companion.importer import import_file
from study_companion.journal import get_mood_label, mood_trend, save_reflection
from study_companion.models import User, UserPreferences
from study_companion.notes import create_note, filter_notes
from study_companion.persistence import PersistenceGateway
from study_companion.remote import HttpDocumentStore
from study_companion.resources import create_resource, filter_resources
from study_companion.subscription import PremiumFeatureError, require_premium
from study_companion.syllabus import PROGRESS_FLAGS

console = Console()

FLAG_CHOICES = ["lecture", "revision", "pyq", "pyqFailed"]


def show_welcome(controller: AppController):
    user = controller.state.user
    stream = controller.state.stream
    console.print(Panel(
        f"[bold]Study Companion[/bold]\n[dim]{user.name or user.id}"
        + (f" · {stream.value}" if stream else "") + "[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Progress, projection and countdown"),
        ("syllabus", "Browse a subject's topics"),
        ("toggle", "Mark lecture / revision / PYQ for a topic"),
        ("focus", "Log a focus session"),
        ("journal", "Write a reflection"),
        ("notes", "Browse and add notes"),
        ("resources", "Saved links"),
        ("import", "Import a file as a note"),
        ("ask", "Ask the AI assistant"),
        ("strategy", "AI study strategy"),
        ("setup", "Change stream and goals"),
        ("upgrade", "Activate a subscription"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<12}[/cyan] {desc}")


def progress_bar(value: float, width: int = 20) -> str:
    filled = int(value / 100 * width)
    color = get_progress_color(value)
    return f"[{color}]{'█' * filled}{'░' * (width - filled)}[/{color}]"


def cmd_setup(controller: AppController):
    streams = available_streams()
    for i, s in enumerate(streams, 1):
        console.print(f"  [cyan]{i}[/cyan]) {s.value}")
    choice = IntPrompt.ask("Select stream", choices=[str(i) for i in range(1, len(streams) + 1)])
    current = controller.state.preferences or UserPreferences()
    target_year = Prompt.ask("Target exam year", choices=["2026", "2027", "2028"], default=current.target_year)
    target_marks = IntPrompt.ask("Target marks (0-100)", default=current.target_marks)
    prefs = UserPreferences(
        target_year=target_year,
        attempt_type=current.attempt_type,
        primary_goal=current.primary_goal,
        target_marks=max(0, min(100, target_marks)),
        theme_color=current.theme_color,
    )
    controller.complete_setup(prefs, streams[choice - 1])
    console.print(f"[green]Loaded {streams[choice - 1].value} syllabus.[/green]")


def cmd_dashboard(controller: AppController):
    stats = controller.stats()
    prefs = controller.state.preferences or UserPreferences()
    profile = controller.state.profile
    color = get_progress_color(stats.overall_progress)

    console.print(Panel(
        f"[bold]{stats.days_remaining} days[/bold] to the exam · "
        f"streak [bold]{profile.streak}[/bold] · today {profile.daily_hours}h",
        title="Dashboard", border_style="blue",
    ))
    console.print(f"\n  Lectures: [bold]{stats.overall_progress}%[/bold] {progress_bar(stats.overall_progress)} "
                  f"[{color}]{get_progress_label(stats.overall_progress)}[/{color}]")
    console.print(f"  Projected score: [bold]{stats.projected_score}[/bold] / target {prefs.target_marks} "
                  f"[dim]({get_target_gap_label(prefs.target_marks, stats.projected_score)})[/dim]")
    console.print(f"  Primary topics: [bold]{stats.primary_completion}%[/bold]  |  "
                  f"PYQs: [bold]{stats.pyq_done}[/bold]/{stats.total_topics}  |  "
                  f"Revised: [bold]{stats.revision_done}[/bold]  |  "
                  f"Weak: [bold]{stats.weak_count}[/bold]\n")

    table = Table(title="Subjects")
    table.add_column("Subject", style="cyan")
    table.add_column("Topics", justify="right")
    table.add_column("Progress")
    for sp in stats.subjects:
        table.add_row(sp.name, str(sp.total), f"{progress_bar(sp.progress, 10)} {sp.progress:.0f}%")
    console.print(table)

    if stats.next_topic:
        nt = stats.next_topic
        console.print(f"\n  [yellow]Next up: {nt.topic}[/yellow] [dim]({nt.subject} › {nt.chapter})[/dim]")


def _pick_subject(controller: AppController):
    subjects = controller.state.subjects
    for i, s in enumerate(subjects, 1):
        console.print(f"  [cyan]{i}[/cyan]) {s.name}")
    choice = IntPrompt.ask("Select subject", choices=[str(i) for i in range(1, len(subjects) + 1)])
    return subjects[choice - 1]


def cmd_syllabus(controller: AppController):
    if not controller.state.subjects:
        console.print("[yellow]No syllabus loaded. Run 'setup' first.[/yellow]")
        return
    subject = _pick_subject(controller)
    table = Table(title=subject.name)
    table.add_column("ID", style="dim")
    table.add_column("Topic")
    table.add_column("Lec", justify="center")
    table.add_column("Rev", justify="center")
    table.add_column("PYQ", justify="center")
    table.add_column("Weak", justify="center")
    mark = lambda flag: "[green]✓[/green]" if flag else ""
    for chapter in subject.chapters or []:
        table.add_row("", f"[bold]{chapter.name}[/bold]", "", "", "", "")
        for t in chapter.topics or []:
            p = t.progress
            name = f"{t.name} [magenta]*[/magenta]" if t.is_primary else t.name
            table.add_row(t.id, name, mark(p.lecture), mark(p.revision), mark(p.pyq),
                          "[red]![/red]" if p.pyq_failed else "")
    console.print(table)
    console.print("[dim]* primary topic[/dim]")


def cmd_toggle(controller: AppController):
    topic_id = Prompt.ask("Topic ID").strip()
    flag = Prompt.ask("Flag", choices=FLAG_CHOICES, default="lecture")
    result = controller.toggle_topic(topic_id, flag)
    if not result.changed:
        console.print(f"[red]Topic not found: {topic_id}[/red]")
        return
    state = "on" if getattr(result.progress, PROGRESS_FLAGS[flag]) else "off"
    console.print(f"[green]{flag} → {state}[/green]")


def cmd_focus(controller: AppController):
    mode = Prompt.ask("Mode", choices=list(FOCUS_MODES), default="pomodoro")
    if mode in MODE_FEATURES:
        require_premium(controller.state.profile, MODE_FEATURES[mode])
    custom = IntPrompt.ask("Minutes", default=45) if mode == "custom" else None
    intent = Prompt.ask("Intent for this session", default="")
    Prompt.ask("[dim]Press Enter when the session is over[/dim]", default="")
    distractions = IntPrompt.ask("Distractions", default=0)
    session = controller.log_focus_session(mode, custom, intent, distractions)
    recent = controller.gateway.get_recent_sessions(controller.state.user.id)
    console.print(f"[green]Logged {session.duration_minutes} min (focus {focus_score(distractions)}%).[/green] "
                  f"Active days in last 60: {len(activity_dates(recent))}")


def cmd_journal(controller: AppController):
    user_id = controller.state.user.id
    wins = Prompt.ask("Wins today", default="")
    blockers = Prompt.ask("Blockers", default="")
    mood = IntPrompt.ask("Mood (1-5)", choices=["1", "2", "3", "4", "5"], default=3)
    reflection = save_reflection(controller.gateway, user_id, wins, blockers, mood)
    if reflection is None:
        console.print("[yellow]Nothing to save.[/yellow]")
    else:
        console.print(f"[green]Saved ({get_mood_label(mood)}).[/green]")
    trend = mood_trend(controller.gateway.get_reflections(user_id))
    if trend:
        console.print("  " + "  ".join(f"{day[5:]}:{m}" for day, m in trend))


def cmd_notes(controller: AppController):
    user_id = controller.state.user.id
    query = Prompt.ask("Search (blank for all)", default="")
    notes = filter_notes(controller.gateway.get_notes(user_id), query)
    table = Table(title="Notes")
    table.add_column("Title", style="cyan")
    table.add_column("Subject")
    table.add_column("Type")
    table.add_column("Priority")
    for n in notes:
        table.add_row(n.title, n.subject, n.type, n.priority)
    console.print(table)
    if Confirm.ask("Add a note?", default=False):
        title = Prompt.ask("Title")
        subject = Prompt.ask("Subject", default="")
        note_type = Prompt.ask("Type", choices=["concept", "formula", "mistake", "general"], default="general")
        content = Prompt.ask("Content", default="")
        if controller.premium and not content and Confirm.ask("Draft it with AI?", default=False):
            content = controller.assistant.note_content(title, controller.state.stream.value)
        controller.gateway.save_note(user_id, create_note(title, subject, content, note_type))
        console.print("[green]Note saved.[/green]")


def cmd_resources(controller: AppController):
    user_id = controller.state.user.id
    group = Prompt.ask("Show", choices=["all", "video", "reading"], default="all")
    table = Table(title="Resources")
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("URL", style="dim")
    for r in filter_resources(controller.gateway.get_resources(user_id), group):
        table.add_row(r.title, r.type, r.url)
    console.print(table)
    if Confirm.ask("Add a link?", default=False):
        url = Prompt.ask("URL")
        title = Prompt.ask("Title", default=url)
        controller.gateway.save_resource(user_id, create_resource(title, url))
        console.print("[green]Saved.[/green]")


def cmd_import(controller: AppController, settings: Settings):
    require_premium(controller.state.profile, "note-import")
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    note = import_file(controller.gateway, controller.state.user.id, file_path,
                       controller.state.subjects, settings.attachments_dir)
    console.print(f"[green]Imported {note.title} ({len(note.content)} chars) → {note.subject or 'uncategorized'}[/green]")


def cmd_ask(controller: AppController):
    require_premium(controller.state.profile, "ai-assistant")
    question = Prompt.ask("Question")
    console.print(Panel(controller.assistant.ask(question), border_style="cyan"))


def cmd_strategy(controller: AppController):
    require_premium(controller.state.profile, "ai-strategy")
    stats = controller.stats()
    prefs = controller.state.preferences or UserPreferences()
    text = controller.assistant.syllabus_strategy(
        controller.state.subjects, controller.state.stream.value, stats.days_remaining, prefs.target_marks,
    )
    console.print(Panel(text, title="Strategy", border_style="magenta"))


def cmd_upgrade(controller: AppController, settings: Settings):
    if controller.premium:
        console.print("[green]Subscription already active.[/green]")
        return
    if not settings.payment_secret:
        console.print("[red]Payments are not configured.[/red]")
        return
    order_id = Prompt.ask("Order ID")
    payment_id = Prompt.ask("Payment ID")
    signature = Prompt.ask("Signature")
    if controller.upgrade(order_id, payment_id, signature, settings.payment_secret):
        console.print(f"[green]Subscription active until {controller.state.profile.subscription_expiry_date[:10]}.[/green]")
    else:
        console.print("[red]Payment could not be verified.[/red]")


def build_controller(settings: Settings) -> AppController:
    remote = None
    if settings.remote_url:
        remote = HttpDocumentStore(settings.remote_url, settings.remote_token, timeout=settings.write_timeout)
    gateway = PersistenceGateway(settings.db_path, remote, settings.read_timeout, settings.write_timeout)
    assistant = StudyAssistant(settings.gemini_api_key, settings.gemini_model)
    return AppController(gateway, assistant)


def main():
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    controller = build_controller(settings)
    controller.session_started(User(id=settings.user_id, name=settings.user_id))
    if controller.needs_setup:
        console.print("[dim]First run: pick your stream and goals.[/dim]")
        cmd_setup(controller)

    show_welcome(controller)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        try:
            if choice == "dashboard":
                cmd_dashboard(controller)
            elif choice == "syllabus":
                cmd_syllabus(controller)
            elif choice == "toggle":
                cmd_toggle(controller)
            elif choice == "focus":
                cmd_focus(controller)
            elif choice == "journal":
                cmd_journal(controller)
            elif choice == "notes":
                cmd_notes(controller)
            elif choice == "resources":
                cmd_resources(controller)
            elif choice == "import":
                cmd_import(controller, settings)
            elif choice == "ask":
                cmd_ask(controller)
            elif choice == "strategy":
                cmd_strategy(controller)
            elif choice == "setup":
                cmd_setup(controller)
            elif choice == "upgrade":
                cmd_upgrade(controller, settings)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except PremiumFeatureError as e:
            console.print(f"[yellow]{e}. Upgrade to unlock.[/yellow]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")

    controller.session_ended()
    controller.gateway.close()


if __name__ == "__main__":
    main()
