import asyncio

import typer
import uvicorn

from backend.app.config import settings

app = typer.Typer(help="IdeaFlow - innovation portal backend")


@app.command()
def start(
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """Start the IdeaFlow API server."""
    typer.echo(f"Starting IdeaFlow on {settings.host}:{settings.port}...")
    uvicorn.run(
        "backend.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("init-db")
def init_db() -> None:
    """Create tables and seed default categories."""
    from backend.app.db import init_db as _init_db

    asyncio.run(_init_db())
    typer.echo(f"Database ready at {settings.database_url}")


@app.command("create-user")
def create_user(
    name: str,
    email: str,
    role: list[str] = typer.Option(["user"], "--role", "-r", help="Repeat for several roles"),
) -> None:
    """Register a user and print their id (use it as X-User-Id)."""
    from pydantic import ValidationError as PydanticValidationError

    from backend.app.db import async_session
    from backend.app.db import init_db as _init_db
    from backend.app.errors import OperationError
    from backend.app.schemas.user import UserCreate
    from backend.app.services.users import create_user as _create_user

    try:
        data = UserCreate(name=name, email=email, roles=role)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        typer.echo(f"Invalid {error['loc'][0]}: {error['msg']}", err=True)
        raise typer.Exit(1) from exc

    async def _run() -> str:
        await _init_db()
        async with async_session() as session:
            user = await _create_user(session, data.name, data.email, data.roles)
            await session.commit()
            return user.id

    try:
        user_id = asyncio.run(_run())
    except OperationError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(1) from exc
    typer.echo(user_id)


if __name__ == "__main__":
    app()
