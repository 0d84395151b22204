"""Typer CLI application for the adaptive quiz."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, Prompt
from rich.table import Table

from adaptive_quiz.agents.evolution import evolve_session
from adaptive_quiz.agents.generator import seed_topic_questions
from adaptive_quiz.config.settings import get_settings
from adaptive_quiz.engine.provider import provide_question
from adaptive_quiz.engine.tracker import end_session, start_session
from adaptive_quiz.errors import QuizError
from adaptive_quiz.graph.workflow import compile_workflow, submit_answer
from adaptive_quiz.models.quiz import Question, QuestionType, QuizSession, Topic
from adaptive_quiz.storage import QuizStore, create_db_engine, create_session_factory, init_db

app = typer.Typer(
    name="adaptive-quiz",
    help="Adaptive quiz with AI-generated questions",
    add_completion=False,
)

console = Console()

QUIT_WORDS = {":q", "quit", "exit"}


def get_store() -> QuizStore:
    """Open the configured database, creating missing tables."""
    engine = create_db_engine()
    init_db(engine)
    return QuizStore(create_session_factory(engine))


def fail(error: Exception) -> None:
    """Report an error to the user and exit."""
    console.print(f"[red]Error:[/red] {error}", style="bold")
    raise typer.Exit(code=1)


@app.command()
def profile(
    user: str = typer.Option(..., "--user", "-u", help="Authenticated user identity"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Create the profile for a user identity."""
    try:
        created = get_store().create_profile(user, name)
    except QuizError as e:
        fail(e)
    console.print(f"[green]✓[/green] Profile {created.display_name} ({created.id})")


@app.command("create-topic")
def create_topic(
    user: str = typer.Option(..., "--user", "-u", help="Authenticated user identity"),
    title: str = typer.Option(..., "--title", "-t", help="Topic title"),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Topic description"
    ),
    public: bool = typer.Option(True, "--public/--private", help="Topic visibility"),
    seed: bool = typer.Option(
        True, "--seed/--no-seed", help="Generate starter questions with AI"
    ),
) -> None:
    """
    Create a topic, optionally with AI-generated starter questions.

    Example:
        adaptive-quiz create-topic -u alice -t "SQL Fundamentals" -d "Joins and aggregates"
    """
    store = get_store()
    try:
        owner = store.get_profile(user)
        topic = store.create_topic(
            Topic(
                title=title,
                description=description,
                is_public=public,
                created_by=owner.id,
            )
        )
    except (QuizError, ValueError) as e:
        fail(e)

    console.print(f"[green]✓[/green] Created topic [bold]{topic.title}[/bold] ({topic.id})")

    if seed:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("[cyan]Generating starter questions...", total=None)
            created = seed_topic_questions(store, topic)
            progress.update(task, description="[green]Starter questions ready")
        console.print(f"  {len(created)} starter question(s) generated")


@app.command("edit-topic")
def edit_topic(
    topic_id: str = typer.Argument(..., help="Topic id"),
    user: str = typer.Option(..., "--user", "-u", help="Authenticated user identity"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    public: Optional[bool] = typer.Option(None, "--public/--private"),
) -> None:
    """Edit the title, description or visibility of a topic you own."""
    store = get_store()
    try:
        owner = store.get_profile(user)
        topic = store.update_topic(
            topic_id, owner.id, title=title, description=description, is_public=public
        )
    except (QuizError, ValueError) as e:
        fail(e)
    console.print(f"[green]✓[/green] Updated topic [bold]{topic.title}[/bold]")


@app.command()
def topics(
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="Also list this user's private topics"
    ),
) -> None:
    """List the topics available to quiz on."""
    store = get_store()
    try:
        viewer_id = store.get_profile(user).id if user else None
        available = store.list_topics(viewer_id)
    except QuizError as e:
        fail(e)
    display_topics(available)


@app.command()
def quiz(
    topic_id: str = typer.Argument(..., help="Topic id to quiz on"),
    user: str = typer.Option(..., "--user", "-u", help="Authenticated user identity"),
    question_type: Optional[QuestionType] = typer.Option(
        None,
        "--type",
        help="Question type to request when new questions are generated",
        case_sensitive=False,
    ),
) -> None:
    """
    Take an adaptive quiz. Difficulty follows your accuracy.

    Enter an empty answer or :q to end the quiz.
    """
    store = get_store()
    try:
        session = start_session(store, user, topic_id)
    except QuizError as e:
        fail(e)

    workflow = compile_workflow(store)

    while True:
        try:
            with console.status("[cyan]Loading question..."):
                question = provide_question(store, session, question_type=question_type)
        except QuizError as e:
            console.print(f"[red]Error:[/red] Failed to load question: {e}")
            break

        display_question(question, session)
        user_answer = Prompt.ask("[bold]Your answer[/bold]", default="").strip()
        if not user_answer or user_answer.lower() in QUIT_WORDS:
            break

        try:
            with console.status("[cyan]Grading..."):
                final_state = submit_answer(
                    store, session, question, user_answer, workflow=workflow
                )
        except QuizError as e:
            console.print(f"[red]Error:[/red] {e}")
            break

        session = final_state["session"]
        display_result(final_state)

        if not Confirm.ask("Next question?", default=True):
            break

    try:
        session = end_session(store, session)
    except QuizError as e:
        fail(e)
    display_session_summary(session)


@app.command()
def history(
    user: str = typer.Option(..., "--user", "-u", help="Authenticated user identity"),
    limit: int = typer.Option(10, "--limit", "-l", min=1, max=100),
) -> None:
    """Show your most recent quiz sessions."""
    store = get_store()
    try:
        owner = store.get_profile(user)
        sessions = store.list_sessions(owner.id, limit=limit)
        titles = {t.id: t.title for t in store.list_topics(owner.id)}
    except QuizError as e:
        fail(e)

    table = Table(title="Recent Sessions", border_style="cyan")
    table.add_column("Session", style="dim")
    table.add_column("Topic", style="white")
    table.add_column("Difficulty", style="cyan")
    table.add_column("Score", style="white")
    table.add_column("Status", style="white")
    for s in sessions:
        table.add_row(
            s.id,
            titles.get(s.topic_id, s.topic_id),
            s.current_difficulty.value,
            f"{s.correct_answers}/{s.total_questions} ({s.accuracy:.0%})",
            "[green]active[/green]" if s.is_active else "done",
        )
    console.print(table)


@app.command()
def evolve(
    session_id: str = typer.Argument(..., help="Session to analyze"),
    user: str = typer.Option(..., "--user", "-u", help="Authenticated user identity"),
    recent: int = typer.Option(10, "--recent", "-r", min=1, help="Answers to analyze"),
) -> None:
    """Ask the AI how your session should evolve and apply its decision."""
    store = get_store()
    try:
        owner = store.get_profile(user)
        session = store.get_session(session_id, owner.id)
        with console.status("[cyan]Analyzing your progress..."):
            updated, decision = evolve_session(store, session, recent_limit=recent)
    except QuizError as e:
        fail(e)

    lines = [
        f"[bold]Action:[/bold] {decision.action.value}",
        f"[bold]Why:[/bold] {decision.reasoning}",
        f"[bold]Difficulty:[/bold] {updated.current_difficulty.value}",
    ]
    if decision.focus_area:
        lines.append(f"[bold]Focus:[/bold] {decision.focus_area}")
    if decision.suggested_topic:
        lines.append(f"[bold]Try next:[/bold] {decision.suggested_topic}")
    if decision.message_to_user:
        lines.append(f"\n{decision.message_to_user}")
    console.print(Panel("\n".join(lines), title="Topic Evolution", border_style="cyan"))


@app.command()
def info() -> None:
    """Display information about the adaptive quiz."""
    settings = get_settings()
    info_text = f"""
[bold cyan]Adaptive Quiz[/bold cyan]
Version: 0.1.0

[bold]How it works:[/bold]
  • Stored questions are reused before new ones are generated
  • Open-ended answers get AI tutor feedback
  • After {settings.adapt_min_answers} answers, accuracy above {settings.adapt_raise_threshold:.0%} raises difficulty
    and accuracy below {settings.adapt_lower_threshold:.0%} lowers it

[bold]Model:[/bold] {settings.model_name} ({settings.llm_provider})
[bold]Database:[/bold] {settings.database_url}
    """
    console.print(Panel(info_text, title="Adaptive Quiz Info", border_style="cyan"))


def display_topics(available: list[Topic]) -> None:
    """Display topics as a table."""
    table = Table(title="Topics", border_style="cyan")
    table.add_column("Id", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Visibility", style="white")
    for topic in available:
        table.add_row(
            topic.id,
            topic.title,
            topic.description or "",
            "public" if topic.is_public else "private",
        )
    console.print(table)


def display_question(question: Question, session: QuizSession) -> None:
    """Display the current question with session progress."""
    header = (
        f"Question {session.total_questions + 1} • "
        f"{session.current_difficulty.value} difficulty • "
        f"{session.correct_answers}/{session.total_questions} correct"
    )
    body = question.question_text
    if question.options:
        body += "\n\n" + "\n".join(f"  • {option}" for option in question.options)
    elif question.question_type == QuestionType.TRUE_FALSE:
        body += "\n\n  • true\n  • false"
    console.print()
    console.print(Panel(body, title=header, subtitle=question.question_type.value))


def display_result(state) -> None:
    """Display grading feedback for the last answer."""
    grade = state["grade"]
    question = state["question"]
    if grade.is_correct:
        console.print("[green bold]Correct![/green bold]")
    else:
        console.print("[red bold]Incorrect[/red bold]")
        console.print(f"The correct answer was: [bold]{question.correct_answer}[/bold]")
    if question.rationale:
        console.print(f"[dim]{question.rationale}[/dim]")
    if grade.feedback:
        console.print(Panel(grade.feedback, title="AI Tutor", border_style="magenta"))
    if state["difficulty_changed"]:
        console.print(
            f"[yellow]Difficulty changed: {state['previous_difficulty'].value} → "
            f"{state['session'].current_difficulty.value}[/yellow]"
        )


def display_session_summary(session: QuizSession) -> None:
    """Display the final score for a session."""
    table = Table(title="Quiz Summary", border_style="green")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Questions", str(session.total_questions))
    table.add_row("Correct", str(session.correct_answers))

    score = session.accuracy
    score_str = f"{score:.0%}"
    if score >= 0.7:
        score_str = f"[green]{score_str}[/green]"
    elif score >= 0.5:
        score_str = f"[yellow]{score_str}[/yellow]"
    else:
        score_str = f"[red]{score_str}[/red]"
    table.add_row("Accuracy", score_str)
    table.add_row("Final difficulty", session.current_difficulty.value)

    console.print()
    console.print(table)


@app.callback()
def callback() -> None:
    """
    Adaptive Quiz - AI-generated questions that follow your level.
    """
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


if __name__ == "__main__":
    app()
