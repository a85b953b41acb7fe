from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
import uvicorn
from dotenv import load_dotenv

from .config import AppConfig
from .container import Container
from .cli_formatter import format_local_analysis, local_analysis_to_dict
from .main import analyze_workflow
from .server import create_app
from ..infra.webhook_signature import compute_signature

load_dotenv()

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Workflow YAML file, e.g., .github/workflows/deploy.yml"),
    allow_local_actions: bool = typer.Option(
        False, "--allow-local-actions", help="Approve even when local actions are used"
    ),
    workflow_path: str | None = typer.Option(
        None, "--workflow-path", help="Workflow path as GitHub reports it (defaults to FILE)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
):
    """Analyze a workflow file for local action usage without contacting GitHub."""
    if not file.is_file():
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(code=1)

    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        typer.echo(f"Error: Cannot read {file}: {e}", err=True)
        raise typer.Exit(code=1)

    analysis = analyze_workflow(
        text,
        allow_local_actions,
        workflow_path=workflow_path or str(file),
    )

    if analysis.report.parse_error is not None:
        typer.echo(f"Error analyzing workflow: {analysis.report.parse_error}", err=True)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps(local_analysis_to_dict(analysis), ensure_ascii=False, indent=2))
    else:
        typer.echo(format_local_analysis(analysis, source=str(file)))


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default from config)"),
):
    """Run the deployment protection rule webhook server."""
    config = AppConfig()

    if not config.github.webhook_secret:
        typer.echo(
            "Error: Webhook secret required via LOCAL_ACTION_CHECKER_GITHUB__WEBHOOK_SECRET",
            err=True,
        )
        raise typer.Exit(code=2)

    if not config.github.app_id or not (config.github.private_key or config.github.private_key_path):
        typer.echo(
            "Error: GitHub App credentials required via LOCAL_ACTION_CHECKER_GITHUB__APP_ID "
            "and LOCAL_ACTION_CHECKER_GITHUB__PRIVATE_KEY (or __PRIVATE_KEY_PATH)",
            err=True,
        )
        raise typer.Exit(code=2)

    container = Container()
    container.config.from_pydantic(config)
    container.init_resources()

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    typer.echo(f"Local Action Checker listening on {bind_host}:{bind_port}")
    typer.echo(f"Webhook endpoint: http://{bind_host}:{bind_port}/")
    typer.echo(f"Local actions allowed: {config.policy.allow_local_actions}")

    try:
        uvicorn.run(create_app(container), host=bind_host, port=bind_port, log_config=None)
    finally:
        # Always shutdown resources to close file handles
        container.shutdown_resources()


@app.command()
def sign(
    file: Path | None = typer.Argument(None, help="Payload file. Reads stdin when omitted."),
):
    """Print the signature header value for a webhook payload.

    Useful for sending hand-crafted deliveries to a running server:

      local-action-checker sign payload.json
      curl -H "X-Hub-Signature-256: <value>" --data-binary @payload.json ...
    """
    config = AppConfig()

    if not config.github.webhook_secret:
        typer.echo(
            "Error: Webhook secret required via LOCAL_ACTION_CHECKER_GITHUB__WEBHOOK_SECRET",
            err=True,
        )
        raise typer.Exit(code=2)

    if file is None:
        body = sys.stdin.buffer.read()
    elif file.is_file():
        body = file.read_bytes()
    else:
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(code=1)

    signature = compute_signature(body, config.github.webhook_secret)
    typer.echo(signature)


if __name__ == "__main__":
    app()
