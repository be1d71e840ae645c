"""
Newsdesk Backend — Maintenance CLI
====================================

Usage:
    newsdesk init-db
    newsdesk create-admin [--email E] [--password P] [--name N]
    newsdesk backfill-images

Each command opens its own session, commits on success and disposes the
engine before exiting.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import click
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.config import settings
from newsdesk.database import async_session_factory, create_all, dispose_engine
from newsdesk.exceptions import NewsdeskError
from newsdesk.services.auth_service import auth_service
from newsdesk.services.content_store import build_content_store
from newsdesk.services.image_backfill import BackfillReport, ImageBackfillService

T = TypeVar("T")


def run_in_session(work: Callable[[AsyncSession], Awaitable[T]]) -> T:
    async def runner() -> T:
        try:
            async with async_session_factory() as session:
                result = await work(session)
                await session.commit()
                return result
        finally:
            await dispose_engine()

    return asyncio.run(runner())


@click.group()
def cli() -> None:
    """Newsdesk backend maintenance commands."""


@cli.command("init-db")
def init_db() -> None:
    """Create all tables directly from the models (development only; use alembic in production)."""

    async def runner() -> None:
        try:
            await create_all()
        finally:
            await dispose_engine()

    asyncio.run(runner())
    click.secho("✓ Tables created", fg="green")


@cli.command("create-admin")
@click.option("--email", default=settings.admin_email, show_default=True, help="Admin email")
@click.option("--password", default=settings.admin_password, help="Admin password")
@click.option("--name", default=settings.admin_name, show_default=True, help="Display name")
def create_admin(email: str, password: str, name: str) -> None:
    """Create an admin account unless the email is already registered."""
    try:
        created = run_in_session(
            lambda session: auth_service.ensure_admin(session, email, password, name)
        )
    except NewsdeskError as e:
        raise click.ClickException(e.message)

    if created:
        click.secho(f"✓ Admin {email} created", fg="green")
    else:
        click.echo(f"Admin {email} already exists, nothing to do")


@cli.command("backfill-images")
def backfill_images() -> None:
    """Embed stored upload files into documents whose image refs lack base64Data."""
    service = ImageBackfillService(build_content_store())
    report: BackfillReport = run_in_session(service.backfill)

    click.echo(f"  Blogs updated:       {report.blogs_updated}")
    click.echo(f"  Categories updated:  {report.categories_updated}")
    click.echo(f"  Images embedded:     {report.images_embedded}")
    if report.images_missing:
        click.secho(f"  Images missing:      {report.images_missing}", fg="yellow")


if __name__ == "__main__":
    cli()
