"""Interactive CLI application."""
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from quiz_academy.backend import SqliteBackend
from quiz_academy.config import (
    get_current_user,
    get_smart_selection,
    load_config,
    set_current_user,
    set_smart_selection,
)
from quiz_academy.controller import QuizContext, QuizController
from quiz_academy.db import init_db
from quiz_academy.importer import import_question_bank
from quiz_academy.logging_config import configure_logging
from quiz_academy.models import MODE_PRACTICE, MODE_TEST, QuizError, QuizStats
from quiz_academy.questions import list_academies, list_topics
from quiz_academy.review import reset_topic_progress
from quiz_academy.seed import is_seeded, seed_all
from quiz_academy.sessions import ensure_profile
from quiz_academy.stats import (
    find_rank,
    get_mastery_color,
    get_rankings,
    get_topic_stats,
    get_user_stats,
)

console = Console()

EXIT_WORDS = ("q", "quit", "menu")


class SessionExitRequested(Exception):
    """Raised when the user leaves a quiz before finishing it."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def console_notifier(target: Console = console):
    def notify(title: str, message: str) -> None:
        target.print(Panel(message, title=title, border_style="red"))
    return notify


def show_welcome():
    console.print(Panel(
        "[bold]Quiz Academy[/bold]\n[dim]Multiple-choice practice by academy and topic[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("test", "Quiz on an academy topic"),
        ("practice", "Retry your failed questions"),
        ("stats", "Your overall statistics"),
        ("topics", "Mastery by topic"),
        ("ranking", "Points leaderboard"),
        ("smart", "Toggle smart question selection"),
        ("reset", "Forget your progress on a topic"),
        ("import", "Add a question bank"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_results(stats: QuizStats) -> None:
    table = Table(title="Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Questions", str(stats.total_questions))
    table.add_row("Correct", f"[green]{stats.correct_answers}[/green]")
    table.add_row("Incorrect", f"[red]{stats.incorrect_answers}[/red]")
    table.add_row("Score", f"{stats.percentage}%")
    table.add_row("Avg time", f"{stats.average_time_per_question}s")
    table.add_row("Points", f"+{stats.points_earned}")
    console.print(table)
    if stats.questions_still_failed:
        console.print(
            f"[yellow]{len(stats.questions_still_failed)} question(s) added to practice.[/yellow]"
        )


def run_quiz_session(controller: QuizController) -> QuizStats | None:
    """Ask every loaded question, then finalize the session.

    Raises SessionExitRequested when the user quits part way; answers given so
    far stay recorded.
    """
    total = len(controller.state.questions)
    if not total:
        console.print("[yellow]No questions available![/yellow]")
        return None
    console.print(f"\n[bold]Quiz[/bold] - {total} questions\n")
    while controller.current_question is not None:
        q = controller.current_question
        index = controller.state.current_index + 1
        console.print(f"[bold]Q{index}/{total}.[/bold] {q.prompt}\n")
        options = controller.answer_options
        for label, text in options:
            console.print(f"  [cyan]{label})[/cyan] {text}")
        labels = [label for label, _ in options]
        answer = session_prompt(
            "\nYour answer",
            choices=labels + [label.lower() for label in labels] + list(EXIT_WORDS),
            show_choices=False,
        )
        result = controller.submit_answer(answer)
        if result.is_correct:
            console.print("[green]Correct![/green]")
        elif result.answered:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{q.correct_label}[/green]")
        else:
            console.print("[yellow]Answer not recorded.[/yellow]")
        console.print()
        if controller.is_finished:
            break
        controller.next_question()
    stats = controller.complete_quiz()
    show_results(stats)
    return stats


def _pick(items: list[dict], label: str) -> dict | None:
    if not items:
        console.print(f"[yellow]No {label} available.[/yellow]")
        return None
    for i, item in enumerate(items, 1):
        console.print(f"  [cyan]{i}[/cyan]) {item['name']}")
    choice = IntPrompt.ask(f"Select {label}", choices=[str(i) for i in range(1, len(items) + 1)])
    return items[choice - 1]


def _run(controller: QuizController, mode: str, academy_id=None, topic_id=None) -> None:
    try:
        controller.load_questions(mode, academy_id, topic_id)
    except QuizError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        return
    try:
        run_quiz_session(controller)
    except SessionExitRequested:
        if controller.state.answers and Confirm.ask("Save the answers given so far?", default=True):
            show_results(controller.complete_quiz())
        controller.reset_quiz()
        console.print("[dim]Quiz abandoned.[/dim]")


def cmd_test(db_path: str, controller: QuizController):
    console.print("\n[bold]Test[/bold]")
    academy = _pick(list_academies(db_path), "academy")
    if not academy:
        return
    topic = _pick(list_topics(db_path, academy["id"]), "topic")
    if not topic:
        return
    _run(controller, MODE_TEST, academy["id"], topic["id"])


def cmd_practice(controller: QuizController):
    console.print("\n[bold]Practice[/bold]")
    _run(controller, MODE_PRACTICE)


def cmd_stats(db_path: str, user_id: str):
    stats = get_user_stats(db_path, user_id)
    table = Table(title=f"Statistics for {user_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Sessions", f"{stats.completed_sessions}/{stats.total_sessions}")
    table.add_row("Questions answered", str(stats.total_questions_answered))
    table.add_row("Correct answers", str(stats.total_correct_answers))
    table.add_row("Accuracy", f"{stats.overall_accuracy_percentage}%")
    table.add_row("Best session", f"{stats.best_session_score_percentage:.0f}%")
    table.add_row("Failed questions", str(stats.current_failed_questions))
    table.add_row("Points", str(stats.points))
    table.add_row("Last activity", stats.last_activity or "-")
    console.print(table)


def cmd_topics(db_path: str, user_id: str):
    topics = get_topic_stats(db_path, user_id)
    if not topics:
        console.print("[yellow]Answer some questions first.[/yellow]")
        return
    table = Table(title="Mastery by Topic")
    table.add_column("Academy")
    table.add_column("Topic", style="cyan")
    table.add_column("Accuracy", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Mastery")
    for t in topics:
        color = get_mastery_color(t.mastery)
        table.add_row(
            t.academy_name,
            t.topic_name,
            f"{t.percentage}%",
            f"{t.answered}/{t.total_in_topic}",
            str(len(t.failed_question_ids)),
            f"[{color}]{t.mastery}[/{color}]",
        )
    console.print(table)


def cmd_ranking(db_path: str, user_id: str):
    rankings = get_rankings(db_path)
    table = Table(title="Ranking")
    table.add_column("#", justify="right")
    table.add_column("User", style="cyan")
    table.add_column("Points", justify="right")
    table.add_column("Sessions", justify="right")
    table.add_column("Accuracy", justify="right")
    for r in rankings:
        name = f"[bold]{r.username}[/bold]" if r.user_id == user_id else r.username
        table.add_row(str(r.position), name, str(r.points), str(r.completed_sessions), f"{r.accuracy}%")
    console.print(table)
    position = find_rank(rankings, user_id)
    if position:
        console.print(f"\n  Your position: [bold]{position}[/bold] of {len(rankings)}")


def cmd_smart(db_path: str, controller: QuizController):
    enabled = not controller.smart_selection
    controller.set_smart_selection(enabled)
    set_smart_selection(db_path, enabled)
    console.print(f"Smart selection {'[green]on[/green]' if enabled else '[yellow]off[/yellow]'}")


def cmd_reset(db_path: str, user_id: str):
    console.print("\n[bold]Reset topic progress[/bold]")
    academy = _pick(list_academies(db_path), "academy")
    if not academy:
        return
    topic = _pick(list_topics(db_path, academy["id"]), "topic")
    if not topic:
        return
    if not Confirm.ask(f"Forget your answers and failed questions for {topic['name']}?", default=False):
        return
    count = reset_topic_progress(db_path, user_id, topic["id"])
    if count:
        console.print(f"[green]Progress reset for {topic['name']} ({count} questions).[/green]")
    else:
        console.print("[yellow]That topic has no questions.[/yellow]")


def cmd_import(db_path: str):
    file_path = Prompt.ask("Question bank file (.json, .yaml)")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    counts = import_question_bank(db_path, file_path)
    console.print(
        f"[green]Imported {counts['questions']} questions in {counts['topics']} topic(s).[/green]"
    )


def choose_user(db_path: str) -> str:
    user_id = Prompt.ask("Username", default=get_current_user(db_path) or "student").strip()
    ensure_profile(db_path, user_id)
    set_current_user(db_path, user_id)
    return user_id


def main():
    config = load_config()
    configure_logging(config.log_level, console)
    db_path = config.db_path
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()
    user_id = choose_user(db_path)
    config.smart_selection = get_smart_selection(db_path, config.smart_selection)
    context = QuizContext(user_id=user_id, config=config, notify=console_notifier(console))
    controller = QuizController(context, SqliteBackend(db_path, config.points_per_correct))

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="test").strip().lower()
        try:
            if choice == "test":
                cmd_test(db_path, controller)
            elif choice == "practice":
                cmd_practice(controller)
            elif choice == "stats":
                cmd_stats(db_path, user_id)
            elif choice == "topics":
                cmd_topics(db_path, user_id)
            elif choice == "ranking":
                cmd_ranking(db_path, user_id)
            elif choice == "smart":
                cmd_smart(db_path, controller)
            elif choice == "reset":
                cmd_reset(db_path, user_id)
            elif choice == "import":
                cmd_import(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you next time![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
