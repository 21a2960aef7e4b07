"""authcore CLI tool (authctl)."""

import os

import typer

app = typer.Typer(name="authctl", help="authcore CLI")
db_app = typer.Typer(help="Database management commands")
sessions_app = typer.Typer(help="Session maintenance commands")
app.add_typer(db_app, name="db")
app.add_typer(sessions_app, name="sessions")


@db_app.command("create")
def db_create():
    """Create all tables that do not exist yet."""
    from authcore.core.config import settings
    from authcore.db.base import Base
    from authcore.db.session import engine
    import authcore.models  # noqa: F401

    if settings.DATABASE_URL.startswith("sqlite:///"):
        db_path = settings.DATABASE_URL.replace("sqlite:///", "", 1)
        if db_path and db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    Base.metadata.create_all(bind=engine)
    typer.echo("✅ Tables created (or already exist)")


@db_app.command("seed-admin")
def db_seed_admin():
    """Create the admin user from ADMIN_EMAIL / ADMIN_PASSWORD."""
    from authcore.core.config import settings
    from authcore.db.seeds.seed_admin import seed_admin
    from authcore.db.session import SessionLocal

    db = SessionLocal()
    try:
        created = seed_admin(db)
    finally:
        db.close()
    if created:
        typer.echo(f"✅ Created admin: {settings.ADMIN_EMAIL}")
    else:
        typer.echo(f"ℹ️  Admin '{settings.ADMIN_EMAIL}' already exists, skipping.")


@sessions_app.command("purge")
def sessions_purge():
    """Delete inactive and expired sessions now."""
    from authcore.db.session import SessionLocal
    from authcore.tasks.celery_app import purge_sessions

    db = SessionLocal()
    try:
        removed = purge_sessions(db)
    finally:
        db.close()
    typer.echo(f"✅ Removed {removed} dead session(s)")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the FastAPI server."""
    import uvicorn
    uvicorn.run("authcore.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
