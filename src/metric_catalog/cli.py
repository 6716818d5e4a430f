"""Typer CLI for the metric catalog."""

import asyncio

import typer
from rich.console import Console

app = typer.Typer(name="metric-catalog", help="Metric catalog: governed metric definitions and usage")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the metric catalog API server."""
    import uvicorn
    from metric_catalog.app import create_app

    console.print(f"[bold green]Starting metric catalog on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("init-db")
def init_db():
    """Create all tables in the configured database."""
    from metric_catalog.common.config import get_settings
    from metric_catalog.common.database import DatabaseManager

    async def _run() -> None:
        db = DatabaseManager(get_settings())
        await db.init()
        await db.create_all()
        await db.close()

    asyncio.run(_run())
    console.print("[bold green]Tables created[/bold green]")


@app.command("check-expression")
def check_expression(
    expression: str = typer.Argument(..., help="Metric expression to validate"),
    source: str = typer.Option(None, "--source", help="Data source id"),
):
    """Run the configured expression validator (no DB required)."""
    from metric_catalog.common.config import get_settings
    from metric_catalog.expressions.validator import build_expression_validator

    validator = build_expression_validator(get_settings())
    result = asyncio.run(validator.validate(expression, source))

    if result.ok:
        console.print(f"[bold green]VALID[/bold green]: {result.message}")
    else:
        console.print(f"[bold red]INVALID[/bold red]: {result.message}")
        raise typer.Exit(1)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check metric catalog server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
