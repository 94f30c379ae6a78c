"""
Command Line Interface

CLI for the consultation transcription and prescription report pipeline.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

app = typer.Typer(
    name="medscribe",
    help="Consultation transcription and prescription report generation",
    add_completion=False,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_app_config(config: Optional[Path]):
    from medscribe.pipeline.config import AppConfig, load_config

    base = load_config(config) if config else None
    return AppConfig.from_env(base)


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Consultation transcription and prescription report generation."""
    _setup_logging(verbose)


@app.command()
def languages() -> None:
    """List supported consultation languages."""
    from medscribe.transcription.languages import DEFAULT_LANGUAGE_CODE, list_languages

    table = Table(title="Supported languages")
    table.add_column("Code")
    table.add_column("Language")
    table.add_column("Native")
    table.add_column("Speech locale")
    for lang in list_languages():
        code = f"{lang.code} (default)" if lang.code == DEFAULT_LANGUAGE_CODE else lang.code
        table.add_row(code, lang.name, lang.native_name, lang.speech_code)
    console.print(table)


@app.command()
def replay(
    script: Path = typer.Argument(..., help="YAML or JSON provider event script"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language code"),
) -> None:
    """Replay a recorded recognizer event script through the session controller."""
    from medscribe.transcription.provider import ManualScheduler
    from medscribe.transcription.scripted import ScriptedSpeechService, load_script
    from medscribe.transcription.session_controller import TranscriptionController
    from medscribe.transcription.transcript_types import TranscriptLog

    if not script.exists():
        console.print(f"[red]Error: File not found: {script}[/red]")
        raise typer.Exit(1)

    app_config = _load_app_config(config)
    speech_script = load_script(script)
    scheduler = ManualScheduler()
    service = ScriptedSpeechService()
    log = TranscriptLog()

    start_time = datetime(2000, 1, 1, tzinfo=timezone.utc)
    controller = TranscriptionController(
        service,
        language_code=language or speech_script.language or app_config.transcription.default_language,
        on_transcription=log.append,
        scheduler=scheduler,
        config=app_config.transcription.controller_config(),
        clock=lambda: datetime.fromtimestamp(start_time.timestamp() + scheduler.now, timezone.utc),
    )

    service.schedule(
        speech_script,
        scheduler,
        commands={"start": controller.start, "stop": controller.stop},
    )
    if not any(event.type == "start" for event in speech_script.events):
        controller.start()

    settle = app_config.transcription.restart_delay_seconds * 2
    scheduler.advance(speech_script.duration + settle)

    table = Table(title="Transcript")
    table.add_column("#", justify="right")
    table.add_column("At (s)", justify="right")
    table.add_column("Language")
    table.add_column("Text")
    for i, entry in enumerate(log, 1):
        offset = entry.timestamp.timestamp() - start_time.timestamp()
        table.add_row(str(i), f"{offset:.2f}", entry.language_code, entry.text)
    console.print(table)

    state = controller.state
    console.print(f"\nStatus: [bold]{state.status.value}[/bold]  Listening: {state.listening}")
    console.print(f"Recognizer starts: {service.start_calls}  Entries: {len(log)}  Words: {log.word_count}")
    if state.last_error:
        console.print(f"[red]Error: {state.last_error.message}[/red]")
    controller.close()


@app.command()
def generate(
    transcript_file: Path = typer.Argument(..., help="Transcript text file, one segment per line"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    fmt: str = typer.Option("text", "--format", "-f", help="Output format: text, html, pdf"),
    language: str = typer.Option("en", "--language", "-l", help="Consultation language code"),
    name: str = typer.Option("", "--name", help="Patient name"),
    age: str = typer.Option("", "--age", help="Patient age"),
    gender: str = typer.Option("", "--gender", help="male, female, child-male, child-female, other"),
    address: str = typer.Option("", "--address", help="Patient address"),
    occupation: str = typer.Option("", "--occupation", help="Patient occupation"),
    blood_pressure: str = typer.Option("", "--bp", help="Blood pressure (mmHg)"),
    pulse: str = typer.Option("", "--pulse", help="Pulse (bpm)"),
    temperature: str = typer.Option("", "--temperature", help="Temperature (°F)"),
    spo2: str = typer.Option("", "--spo2", help="SpO2 (%)"),
    weight: str = typer.Option("", "--weight", help="Weight (kg)"),
    height: str = typer.Option("", "--height", help="Height (cm)"),
    respiratory_rate: str = typer.Option("", "--rr", help="Respiratory rate (/min)"),
    remote: bool = typer.Option(False, "--remote", help="Use the configured backend URL"),
) -> None:
    """Generate a prescription report from a transcript file."""
    from medscribe.errors import MedScribeError
    from medscribe.export import EXPORT_FORMATS
    from medscribe.pipeline.session import ConsultationSession
    from medscribe.report.client import (
        ChatCompletionClient,
        PrescriptionClient,
        PrescriptionService,
    )
    from medscribe.transcription.transcript_types import TranscriptEntry

    if not transcript_file.exists():
        console.print(f"[red]Error: File not found: {transcript_file}[/red]")
        raise typer.Exit(1)
    if fmt not in EXPORT_FORMATS:
        console.print(f"[red]Error: Unknown format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}[/red]")
        raise typer.Exit(1)
    if fmt == "pdf" and output is None:
        console.print("[red]Error: --output is required for PDF[/red]")
        raise typer.Exit(1)

    try:
        app_config = _load_app_config(config)
        if remote:
            client = PrescriptionClient(app_config.generation.client_config())
        else:
            client = PrescriptionService(ChatCompletionClient(app_config.generation.chat_config()))

        session = ConsultationSession(None, client, config=app_config)
        session.set_language(language)
        session.update_patient(
            name=name, age=age, gender=gender, address=address, occupation=occupation
        )
        session.update_vitals(
            blood_pressure=blood_pressure,
            pulse=pulse,
            temperature=temperature,
            spo2=spo2,
            weight=weight,
            height=height,
            respiratory_rate=respiratory_rate,
        )

        now = datetime.now(timezone.utc)
        lines = [line.strip() for line in transcript_file.read_text(encoding="utf-8").splitlines()]
        for i, line in enumerate(text for text in lines if text):
            session.transcript.append(
                TranscriptEntry(
                    id=f"trans-{int(now.timestamp() * 1000)}-{i + 1}",
                    text=line,
                    timestamp=now,
                    language_code=language,
                )
            )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Generating prescription...", total=None)
            report = session.generate_report()

        rendered = session.export_report(fmt, output)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except MedScribeError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    if output:
        console.print(f"[green]Output saved to: {output}[/green]")
    else:
        console.print(rendered, markup=False, highlight=False)

    console.print(
        f"\n[dim]{len(report.medications)} medications, "
        f"{len(report.investigations)} investigations[/dim]"
    )


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Run the report generation API server."""
    import uvicorn

    from medscribe import server

    server.configure(_load_app_config(config))
    console.print(f"Starting MedScribe API server on port {port}")
    console.print(f"Docs available at: http://localhost:{port}/docs")
    uvicorn.run(server.app, host=host, port=port)


@app.command()
def version() -> None:
    """Show version information."""
    from medscribe import __version__

    console.print(f"medscribe version {__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
