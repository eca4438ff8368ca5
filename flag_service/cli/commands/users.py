"""User management commands."""

import sys

import click
from pydantic import ValidationError

from flag_service.cli.utils import coro, error, info, success


@click.group(name="users")
def users() -> None:
    """User management commands."""


@users.command(name="create-admin")
@click.option("--name", prompt=True, help="Display name")
@click.option("--email", prompt=True, help="Admin email address")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Admin password",
)
@coro
async def create_admin(name: str, email: str, password: str) -> None:
    """Create a user with the admin role.

    The HTTP API never grants admin at registration, so the first admin
    is bootstrapped here.
    """
    from flag_service.core.exceptions import ConflictException
    from flag_service.features.users.models import ROLE_ADMIN
    from flag_service.features.users.schemas import UserCreate
    from flag_service.features.users.service import UserService
    from flag_service.infra.database import get_async_session

    try:
        data = UserCreate(name=name, email=email, password=password)
    except ValidationError as e:
        for err in e.errors():
            error(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        sys.exit(1)

    info(f"Creating admin: {data.email}")

    async with get_async_session() as session:
        try:
            user = await UserService(session).register(data, role=ROLE_ADMIN)
        except ConflictException as e:
            error(e.detail)
            sys.exit(1)

    success("Admin created successfully!")
    click.echo(f"  ID:    {user.id}")
    click.echo(f"  Email: {user.email}")
    click.secho(f"  Role:  {user.role}", fg="cyan", bold=True)
