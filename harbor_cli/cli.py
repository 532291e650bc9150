"""
harbor-cli command line entry point.

Parses arguments, loads configuration, wires the services together and maps
every failure kind to its exit code.
"""

import argparse
import asyncio
import os
from pathlib import Path

import structlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .constants import EXIT_OK, EXIT_UNEXPECTED
from .core.config_loader import HarborConfig, load_config
from .core.exceptions import HarborError
from .core.logging_config import resolve_log_dir, setup_logging
from .core.prompts import RichPromptProvider
from .core.runtime import ContainerRuntime
from .core.subprocess_manager import SubprocessManager
from .models.enums import DatabaseType, DeploymentMode, RunState, Severity, StackKind, StepStatus
from .models.pipeline import PipelineRun, RunError
from .services.diagnostics import DiagnosticInspector, DiagnosticReport
from .services.generation import GenerationResult, GenerationService
from .services.migration import MigrationPipeline
from .services.notify import DEFAULT_MESSAGE, DEFAULT_SUBJECT, SmtpNotifier

console = Console()
logger = structlog.get_logger()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

STATUS_STYLES = {
    StepStatus.SUCCEEDED: "[green]✅ succeeded[/green]",
    StepStatus.SKIPPED: "[dim]⏭️  skipped[/dim]",
    StepStatus.WARNING: "[yellow]⚠️  warning[/yellow]",
    StepStatus.FAILED: "[red]❌ failed[/red]",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="harbor-cli",
        description="Containerize a project and migrate it to a staging host",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="Project configuration file (default: harbor.yml)")
    parser.add_argument("--log-level", default=None, choices=LOG_LEVELS, help="File logging level")
    sub = parser.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", help="Generate Dockerfile and docker-compose.yml")
    gen.add_argument("--stack", choices=[k.value for k in StackKind], help="Skip detection")
    gen.add_argument("--output", default=None, help="Output directory (default: project directory)")
    gen.add_argument("--force", action="store_true", help="Overwrite existing files without asking")
    gen.add_argument("--port", default=None, help="Port the app listens on")
    gen.add_argument("--entrypoint", default=None, help="App entrypoint")

    mig = sub.add_parser("migrate", help="Build, publish, snapshot data and deploy to staging")
    mig.add_argument("--image", required=True, help="Image reference, e.g. username/app:latest")
    mig.add_argument("--vps", default=None, help="user@host for manual remote deployment")
    mig.add_argument(
        "--db-type",
        choices=[d.value for d in DatabaseType],
        default=DatabaseType.NONE.value,
        help="Database to dump before deploying",
    )
    mig.add_argument("--db-name", default=None, help="Database name to dump")
    mig.add_argument("--force", action="store_true", help="Skip confirmations")

    trb = sub.add_parser("troubleshoot", help="Diagnose a container")
    trb.add_argument("--container", default=None, help="Container name or id")
    trb.add_argument("--no-logs", action="store_true", help="Do not fetch recent logs")

    ntf = sub.add_parser("notify", help="Send an email notification")
    ntf.add_argument("--to", default=None, help="Recipient email address")
    ntf.add_argument("--subject", default=DEFAULT_SUBJECT, help="Email subject")
    ntf.add_argument("--message", default=DEFAULT_MESSAGE, help="Email body")

    return parser


def _render_error(error: HarborError | RunError) -> None:
    body = Text(error.message, style="bold red")
    if error.output:
        body.append("\n\n" + error.output.strip()[-2000:], style="dim")
    if error.hint:
        body.append(f"\n\n💡 {error.hint}", style="yellow")
    console.print(Panel(body, title=f"❌ {error.kind}", border_style="red"))


# --- generate ----------------------------------------------------------------


def _render_generation(result: GenerationResult) -> None:
    profile = result.profile
    origin = "detected" if result.detected else "selected"
    tbl = Table(show_header=False, box=None)
    tbl.add_row("stack", f"{profile.kind.value} ({origin})")
    tbl.add_row("port", profile.port)
    tbl.add_row("entrypoint", profile.entrypoint)
    for artifact in result.artifacts:
        note = " [yellow](overwritten)[/yellow]" if artifact.path in result.overwritten else ""
        tbl.add_row("wrote", f"{artifact.path}{note}")
    console.print(Panel(tbl, title="✅ Files generated", border_style="green"))
    console.print("Next: review the files, then run `harbor-cli migrate --image <user>/<app>:latest`")


def _cmd_generate(args: argparse.Namespace, config: HarborConfig) -> int:
    service = GenerationService(RichPromptProvider(console))
    result = service.generate(
        Path(args.output or config.project_dir),
        stack=StackKind(args.stack) if args.stack else None,
        force=args.force,
        port=args.port,
        entrypoint=args.entrypoint,
        project_dir=config.project_dir,
    )
    _render_generation(result)
    return EXIT_OK


# --- migrate -----------------------------------------------------------------


def _render_run(run: PipelineRun) -> None:
    tbl = Table(title=f"Migration of {run.image_ref}", show_header=True)
    tbl.add_column("step")
    tbl.add_column("status")
    tbl.add_column("details")
    for record in run.steps:
        tbl.add_row(record.step.value, STATUS_STYLES[record.status], record.message)
    console.print(tbl)

    for warning in run.warnings:
        console.print(f"[yellow]⚠️  {warning}[/yellow]")

    outcome = run.deployment
    if outcome is not None and outcome.mode is DeploymentMode.MANUAL:
        steps = "\n".join(f"{i}. {line}" for i, line in enumerate(outcome.instructions, start=1))
        console.print(Panel(steps, title=f"Manual deployment to {outcome.target}", border_style="cyan"))
    elif outcome is not None:
        console.print(f"[green]🚀 Staging is running locally ({' '.join(outcome.command)})[/green]")

    if run.error is not None:
        _render_error(run.error)
    elif run.state is RunState.SUCCEEDED:
        console.print("[bold green]✅ Migration complete[/bold green]")


async def _migrate(args: argparse.Namespace, config: HarborConfig) -> PipelineRun:
    runtime = ContainerRuntime(config)
    try:
        pipeline = MigrationPipeline(config, RichPromptProvider(console), SubprocessManager(), runtime)
        return await pipeline.run(
            args.image,
            db_type=DatabaseType(args.db_type),
            vps_target=args.vps,
            force=args.force,
            db_name=args.db_name,
        )
    finally:
        runtime.close()


def _cmd_migrate(args: argparse.Namespace, config: HarborConfig) -> int:
    run = asyncio.run(_migrate(args, config))
    _render_run(run)
    return run.exit_code


# --- troubleshoot ------------------------------------------------------------


def _render_report(report: DiagnosticReport) -> None:
    snapshot = report.snapshot
    tbl = Table(show_header=False, box=None)
    tbl.add_row("name", snapshot.name)
    tbl.add_row("id", snapshot.short_id)
    tbl.add_row("image", snapshot.image)
    status_style = "green" if snapshot.running else "red"
    tbl.add_row("status", f"[{status_style}]{snapshot.status}[/{status_style}]")
    ports = ", ".join(
        f"{port} -> {', '.join(bindings) or 'not published'}" for port, bindings in snapshot.ports.items()
    )
    tbl.add_row("ports", ports or "none")
    if snapshot.restart_count:
        tbl.add_row("restarts", str(snapshot.restart_count))
    console.print(Panel(tbl, title="🔍 Container", border_style="blue"))

    if report.logs_fetched:
        logs = "\n".join(snapshot.log_tail) or "(no log output)"
        console.print(Panel(Text(logs), title="Recent logs", border_style="dim"))

    if report.healthy:
        console.print("[green]✅ No common issues detected[/green]")
        return

    for diagnosis in report.diagnoses:
        icon, style = ("❌", "red") if diagnosis.severity is Severity.ERROR else ("⚠️ ", "yellow")
        console.print(f"[{style}]{icon} {diagnosis.message}[/{style}]")
        for remedy in diagnosis.remedies:
            console.print(f"   → {remedy}")


async def _troubleshoot(args: argparse.Namespace, config: HarborConfig) -> DiagnosticReport:
    runtime = ContainerRuntime(config)
    try:
        inspector = DiagnosticInspector(config, runtime, RichPromptProvider(console))
        return await inspector.troubleshoot(
            args.container, include_logs=False if args.no_logs else None
        )
    finally:
        runtime.close()


def _cmd_troubleshoot(args: argparse.Namespace, config: HarborConfig) -> int:
    report = asyncio.run(_troubleshoot(args, config))
    _render_report(report)
    return EXIT_OK


# --- notify ------------------------------------------------------------------


def _cmd_notify(args: argparse.Namespace, config: HarborConfig) -> int:
    recipient = args.to or RichPromptProvider(console).text("Recipient email?")
    console.print(f"Sending email to {recipient}...")
    notifier = SmtpNotifier(config.notifications)
    asyncio.run(notifier.send(recipient, args.subject, args.message))
    console.print(f'[green]✅ Email sent. Check the inbox for "{args.subject}".[/green]')
    return EXIT_OK


COMMANDS = {
    "generate": _cmd_generate,
    "migrate": _cmd_migrate,
    "troubleshoot": _cmd_troubleshoot,
    "notify": _cmd_notify,
}


def _setup_logging_system(args: argparse.Namespace, config: HarborConfig | None) -> None:
    """Console-only logging until the configuration is known, then console + file."""
    if config is None:
        setup_logging(log_dir=None, log_level=args.log_level or os.getenv("HARBOR_LOG_LEVEL", "INFO"))
        return

    settings = config.logging
    if args.log_level:
        settings.log_level = args.log_level
    setup_logging(
        log_dir=resolve_log_dir(settings.log_dir),
        log_level=settings.log_level,
        console_log_level=settings.console_log_level,
        max_file_size_mb=settings.max_file_size_mb,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = _build_parser().parse_args(argv)
    _setup_logging_system(args, None)

    try:
        config = load_config(args.config)
        _setup_logging_system(args, config)
        logger.info("Command started", command=args.cmd, project_dir=config.project_dir)
        exit_code = COMMANDS[args.cmd](args, config)
    except HarborError as e:
        logger.error("Command failed", command=args.cmd, kind=e.kind, error=e.message)
        _render_error(e)
        return e.exit_code
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        return EXIT_UNEXPECTED
    except Exception as e:
        logger.exception("Unexpected error", command=args.cmd)
        console.print(f"[red]❌ Unexpected error: {e}[/red]")
        return EXIT_UNEXPECTED

    logger.info("Command finished", command=args.cmd, exit_code=exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
