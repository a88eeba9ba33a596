"""Main CLI application module."""

import typer

from src.roster.runtime.context import get_config

from .user_commands import users_app

# Create the main CLI application
app = typer.Typer(
    help="📋 Roster CLI - run the roster API and manage the roster file",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(users_app, name="users")


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, help="Host to bind (defaults to config)"),
    port: int | None = typer.Option(None, help="Port to bind (defaults to config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
) -> None:
    """🚀 Start the roster API server."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "src.roster.api.http.app:app",
        host=host or config.app.host,
        port=port or config.app.port,
        reload=reload,
        access_log=False,  # request logging middleware covers access logs
    )


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
