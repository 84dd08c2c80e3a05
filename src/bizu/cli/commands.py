"""CLI commands for Bizu.

Commands:
- serve: run the generation proxy and data API
- quiz: interactive quiz, result saved to the stats
- ask: one tutor turn, history kept in the store
- materials: list, generate, open or clear study materials
- routine, routine-show, routine-delete: weekly study routine
- radar: exam news radar
- stats: study stats and recent quizzes

Generation commands call the proxy through GenerationClient, so a server
(``bizu serve``) must be reachable at ``api_client.base_url``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from bizu.config.app_config import load_app_config
from bizu.core.materials import StudyMaterial
from bizu.core.quiz_generator import OPTIONS_PER_QUESTION, Question, normalize_difficulty, score_quiz
from bizu.core.radar import INITIAL_NEWS
from bizu.core.routine_planner import StudyRoutine
from bizu.core.tutor import ChatMessage
from bizu.db.store import DEFAULT_USER_ID, StorageError, StudyStore, create_store
from bizu.llm.proxy_client import GenerationClient, GenerationError, GenerationRequestError

app = typer.Typer(
    name="bizu",
    help="Bizu: AI study companion for Brazilian public exams.",
    no_args_is_help=True,
)

console = Console()

USER_OPTION = typer.Option(DEFAULT_USER_ID, "--user", "-u", help="User id owning the data")

OPTION_LETTERS = "ABCD"


def _get_store(user_id: str) -> StudyStore:
    """Open the configured store, or exit with the configuration error."""
    try:
        return create_store(load_app_config().storage, user_id=user_id)
    except StorageError as e:
        console.print(f"[red]✗ Armazenamento indisponível: {e}[/red]")
        raise typer.Exit(code=1)


@contextmanager
def _storage_errors() -> Iterator[None]:
    """Turn a failing store call into a red message and exit 1."""
    try:
        yield
    except StorageError as e:
        console.print(f"[red]✗ Erro de armazenamento: {e}[/red]")
        raise typer.Exit(code=1)


def _get_client() -> GenerationClient:
    return GenerationClient.from_app_config()


def _generate(client: GenerationClient, what: str, call: Any, *args: Any, **kwargs: Any) -> Any:
    """Run a generation helper, turning failures into a red message and exit 1."""
    console.print(f"[blue]{what}...[/blue]")
    try:
        return call(*args, **kwargs)
    except GenerationRequestError as e:
        console.print(f"[red]✗ Requisição rejeitada ({e.status_code}): {e.message}[/red]")
        raise typer.Exit(code=1)
    except GenerationError as e:
        console.print(f"[red]✗ Serviço de IA indisponível: {e}[/red]")
        raise typer.Exit(code=1)
    finally:
        client.close()


def _print_stats(store: StudyStore) -> None:
    stats = store.get_user_stats()
    console.print(
        f"[dim]Questões:[/dim] {stats.total_questions}  "
        f"[dim]Acertos:[/dim] {stats.total_correct}  "
        f"[dim]Desempenho:[/dim] {stats.performance}%  "
        f"[dim]Sequência:[/dim] {stats.current_streak} dia(s)"
    )


# =============================================================================
# SERVE
# =============================================================================


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default from config)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the generation proxy and data API."""
    import uvicorn

    server = load_app_config().server
    uvicorn.run(
        "bizu.web.api:app",
        host=host or server.host,
        port=port or server.port,
        reload=reload,
    )


# =============================================================================
# QUIZ
# =============================================================================


def _ask_option(question: Question) -> int:
    """Show options A-D and loop until a valid letter or number."""
    for idx, opt in enumerate(question.options):
        console.print(f"  {OPTION_LETTERS[idx]}) {opt}")

    while True:
        raw = typer.prompt("Resposta (A-D)").strip().upper()
        if len(raw) == 1 and raw in OPTION_LETTERS[:OPTIONS_PER_QUESTION]:
            return OPTION_LETTERS.index(raw)
        if raw.isdigit() and 1 <= int(raw) <= OPTIONS_PER_QUESTION:
            return int(raw) - 1
        console.print("[yellow]⚠ Responda com A, B, C ou D[/yellow]")


@app.command()
def quiz(
    topic: str = typer.Argument(..., help="Subject, e.g. 'Direito Constitucional'"),
    n: int = typer.Option(5, "-n", help="Number of questions (1-20)"),
    difficulty: str = typer.Option("Médio", "-d", "--difficulty", help="Fácil, Médio or Difícil"),
    user_id: str = USER_OPTION,
) -> None:
    """Take an interactive quiz; the result updates your stats.

    Example:
        bizu quiz "Direito Administrativo" -n 5 -d Difícil
    """
    difficulty = normalize_difficulty(difficulty)
    store = _get_store(user_id)
    client = _get_client()

    raw_questions = _generate(
        client,
        f"Gerando {n} questões sobre {topic} ({difficulty})",
        client.generate_quiz,
        topic,
        difficulty,
        n,
    )
    questions = [Question.from_dict(q) for q in raw_questions]
    if not questions:
        console.print("[red]✗ Nenhuma questão gerada[/red]")
        raise typer.Exit(code=1)

    answers: dict[str, int] = {}
    for i, question in enumerate(questions, 1):
        console.print(f"\n[blue]Questão {i}/{len(questions)}[/blue]")
        console.print(f"[bold]{question.text}[/bold]")
        choice = _ask_option(question)
        answers[question.id] = choice

        if choice == question.correct_answer_index:
            console.print("[green]✓ Correto![/green]")
        else:
            correct = OPTION_LETTERS[question.correct_answer_index]
            console.print(f"[red]✗ Errado.[/red] Resposta: {correct}")
        if question.explanation:
            console.print(f"[dim]{question.explanation}[/dim]")

    score = score_quiz(questions, answers)
    console.print(
        Panel(
            f"Acertos: [bold]{score}/{len(questions)}[/bold]",
            title=f"[bold]{topic}[/bold]",
            expand=False,
        )
    )

    try:
        store.save_quiz_result(topic, len(questions), score)
    except StorageError as e:
        console.print(f"[red]✗ Erro guardando resultado: {e}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Resultado salvo")
    with _storage_errors():
        _print_stats(store)


# =============================================================================
# TUTOR
# =============================================================================


@app.command()
def ask(
    message: str = typer.Argument(..., help="Question for BizuBot"),
    new: bool = typer.Option(False, "--new", help="Clear the conversation first"),
    user_id: str = USER_OPTION,
) -> None:
    """Ask BizuBot; the conversation is kept between calls."""
    store = _get_store(user_id)
    with _storage_errors():
        if new:
            store.clear_chat_history()
        history = [m.to_history_entry() for m in store.get_chat_history()]

    client = _get_client()
    text = _generate(client, "BizuBot está pensando", client.ask_tutor, history, message)

    with _storage_errors():
        store.save_chat_message(ChatMessage(role="user", text=message))
        store.save_chat_message(ChatMessage(role="model", text=text))

    console.print(Panel(Markdown(text), title="[bold]BizuBot[/bold]", expand=False))


# =============================================================================
# MATERIALS
# =============================================================================


def _print_materials(materials: list[StudyMaterial]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim", max_width=10)
    table.add_column("Título")
    table.add_column("Área")
    table.add_column("Tipo")
    table.add_column("Duração")
    table.add_column("Conteúdo", justify="center")

    for m in materials:
        table.add_row(
            m.id[:8],
            m.title,
            m.category,
            m.type,
            m.duration,
            "✓" if m.content else "",
        )
    console.print(table)


def _find_material(materials: list[StudyMaterial], prefix: str) -> StudyMaterial:
    matches = [m for m in materials if m.id.startswith(prefix)]
    if not matches:
        console.print(f"[red]✗ Material não encontrado: {prefix}[/red]")
        raise typer.Exit(code=1)
    if len(matches) > 1:
        console.print(f"[red]✗ Prefixo ambíguo: {prefix}[/red]")
        for m in matches:
            console.print(f"  - {m.id} {m.title}")
        raise typer.Exit(code=1)
    return matches[0]


@app.command()
def materials(
    generate: int = typer.Option(0, "--generate", "-g", help="Generate N new materials (1-10)"),
    topic: str | None = typer.Option(None, "--topic", "-t", help="Topic for generated materials"),
    open_id: str | None = typer.Option(None, "--open", "-o", help="Show content (id or prefix)"),
    refresh: bool = typer.Option(False, "--refresh", help="Regenerate content with --open"),
    clear: bool = typer.Option(False, "--clear", help="Delete all materials"),
    user_id: str = USER_OPTION,
) -> None:
    """List, generate, open or clear study materials."""
    store = _get_store(user_id)
    with _storage_errors():
        _run_materials(store, generate, topic, open_id, refresh, clear)


def _run_materials(
    store: StudyStore,
    generate: int,
    topic: str | None,
    open_id: str | None,
    refresh: bool,
    clear: bool,
) -> None:
    if clear:
        store.clear_all_materials()
        console.print("[green]✓[/green] Biblioteca limpa")
        return

    if generate:
        client = _get_client()
        raw = _generate(
            client,
            f"Gerando {generate} materiais",
            client.generate_materials,
            generate,
            topic,
        )
        new_materials = [StudyMaterial.from_dict(m) for m in raw]
        store.save_materials_batch(new_materials)
        console.print(f"[green]✓[/green] {len(new_materials)} materiais adicionados")

    if open_id:
        material = _find_material(store.get_all_materials(), open_id)
        if not material.content or refresh:
            client = _get_client()
            material.content = _generate(
                client,
                f"Escrevendo conteúdo de '{material.title}'",
                client.generate_material_content,
                {"title": material.title, "category": material.category, "type": material.type},
            )
            store.save_material(material)
        console.print(Panel(Markdown(material.content), title=f"[bold]{material.title}[/bold]"))
        return

    all_materials = store.get_all_materials()
    if not all_materials:
        console.print("[yellow]Nenhum material. Use --generate N para criar.[/yellow]")
        return
    _print_materials(all_materials)


# =============================================================================
# ROUTINE
# =============================================================================


def _print_routine(routine: StudyRoutine) -> None:
    console.print(
        Panel(
            f"[dim]Foco:[/dim] {routine.target_exam}\n"
            f"[dim]Horas/dia:[/dim] {routine.hours_per_day:g}\n"
            f"[dim]Criada em:[/dim] {routine.created_at[:10]}",
            title="[bold]Rotina de estudos[/bold]",
            expand=False,
        )
    )

    table = Table(show_header=True, header_style="bold", show_lines=True)
    table.add_column("Dia")
    table.add_column("Foco")
    table.add_column("Tarefas")
    for day in routine.week_schedule:
        tasks = "\n".join(
            f"{t.subject}: {t.activity} ({t.duration})" for t in day.tasks
        )
        table.add_row(day.day, day.focus, tasks)
    console.print(table)


@app.command(name="routine")
def routine_generate(
    target_exam: str = typer.Argument(..., help="Target exam, e.g. 'Polícia Federal'"),
    subjects: str = typer.Option(..., "--subjects", "-s", help="Key subjects, comma separated"),
    hours: float = typer.Option(4, "--hours", help="Net study hours per day (1-16)"),
    user_id: str = USER_OPTION,
) -> None:
    """Generate and save a new weekly routine (replaces the current one)."""
    store = _get_store(user_id)
    client = _get_client()
    raw = _generate(
        client,
        f"Montando rotina para {target_exam}",
        client.generate_routine,
        target_exam,
        hours,
        subjects,
    )

    routine = StudyRoutine.from_dict(raw)
    with _storage_errors():
        store.save_study_routine(routine)
    console.print("[green]✓[/green] Rotina salva")
    _print_routine(routine)


@app.command(name="routine-show")
def routine_show(user_id: str = USER_OPTION) -> None:
    """Show the saved routine."""
    store = _get_store(user_id)
    with _storage_errors():
        routine = store.get_study_routine()
    if routine is None:
        console.print("[yellow]Nenhuma rotina salva. Use 'bizu routine'.[/yellow]")
        raise typer.Exit(code=1)
    _print_routine(routine)


@app.command(name="routine-delete")
def routine_delete(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    user_id: str = USER_OPTION,
) -> None:
    """Delete the saved routine."""
    if not yes and not typer.confirm("Apagar a rotina atual?"):
        raise typer.Exit(code=0)
    store = _get_store(user_id)
    with _storage_errors():
        store.delete_study_routine()
    console.print("[green]✓[/green] Rotina apagada")


# =============================================================================
# RADAR
# =============================================================================


@app.command()
def radar(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Ask the AI for updates"),
) -> None:
    """Show the exam news radar."""
    items = [item.to_dict() for item in INITIAL_NEWS]

    if refresh:
        client = _get_client()
        existing = [f"{i['institution']} - {i['title']}" for i in items]
        result = _generate(client, "Atualizando radar", client.update_radar, existing)
        if isinstance(result, dict) and result.get("no_updates"):
            console.print("[green]✓[/green] Nenhuma novidade desde a última atualização")
        elif isinstance(result, list):
            items = result

    table = Table(show_header=True, header_style="bold")
    table.add_column("Órgão")
    table.add_column("Cargo")
    table.add_column("Previsão")
    table.add_column("Status")
    table.add_column("Salário")
    table.add_column("Banca")
    for i in items:
        table.add_row(
            i.get("institution", ""),
            i.get("title", ""),
            i.get("forecast", ""),
            i.get("status", ""),
            i.get("salary", ""),
            i.get("board", ""),
        )
    console.print(table)


# =============================================================================
# STATS
# =============================================================================


@app.command()
def stats(
    limit: int = typer.Option(10, "--limit", "-n", help="Recent quizzes to show"),
    user_id: str = USER_OPTION,
) -> None:
    """Show study stats and recent quizzes."""
    store = _get_store(user_id)
    with _storage_errors():
        user_stats = store.get_user_stats()
        history = store.list_quiz_history(limit=limit)

    console.print(
        Panel(
            f"[dim]Questões respondidas:[/dim] {user_stats.total_questions}\n"
            f"[dim]Acertos:[/dim] {user_stats.total_correct}\n"
            f"[dim]Desempenho:[/dim] {user_stats.performance}%\n"
            f"[dim]Sequência:[/dim] {user_stats.current_streak} dia(s)\n"
            f"[dim]Último estudo:[/dim] {user_stats.last_study_date or '-'}\n"
            f"[dim]Armazenamento:[/dim] {store.backend}",
            title="[bold]Estatísticas[/bold]",
            expand=False,
        )
    )

    if not history:
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Data")
    table.add_column("Tema")
    table.add_column("Acertos", justify="right")
    for r in history:
        table.add_row(r.date[:10], r.topic, f"{r.score}/{r.total_questions}")
    console.print(table)


if __name__ == "__main__":
    app()
