"""
Operator commands, run with `flask --app storefront.app <command>`.
"""

import click

from storefront.extensions import db
from storefront.models import User


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("check-user-role")
    @click.argument("email")
    def check_user_role(email):
        """Print a user's role and verification state."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo(f"User not found: {email}", err=True)
            raise SystemExit(1)
        click.echo(f"User found: {user.email}")
        click.echo(f"  role:           {user.role}")
        click.echo(f"  email_verified: {user.email_verified}")
        click.echo(f"  banned:         {user.banned}")
        if not user.is_admin:
            click.echo(f"To promote: flask set-admin {user.email}")

    @app.cli.command("set-admin")
    @click.argument("email")
    def set_admin(email):
        """Promote a user to admin."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo(f"User not found: {email}", err=True)
            raise SystemExit(1)
        user.role = "admin"
        db.session.commit()
        click.echo(f"{user.email} is now an admin.")
