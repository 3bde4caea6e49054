import click
from werkzeug.security import generate_password_hash

from library_api.extensions import db
from library_api.models.user import ROLE_ADMIN, ROLES, User
from library_api.repositories.user_repo import UserRepo
from library_api.utils.validators import ContactValidator, PasswordValidator


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create database tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("create-user")
    @click.option("--name", required=True)
    @click.option("--email", required=True)
    @click.option("--password", required=True, prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--role", type=click.Choice(ROLES), default=ROLE_ADMIN, show_default=True)
    def create_user(name, email, password, role):
        """Create an account, typically the first librarian or admin."""
        email = ContactValidator.normalize_email(email)
        if not ContactValidator.is_valid_email(email):
            raise click.BadParameter("invalid email address", param_hint="--email")
        if not PasswordValidator.is_valid(password):
            raise click.BadParameter(
                f"password must be at least {PasswordValidator.MIN_LENGTH} characters", param_hint="--password"
            )
        if UserRepo.get_by_email(email):
            raise click.ClickException(f"{email} is already registered")

        user = UserRepo.create(User(
            name=name.strip(),
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
        ))
        click.echo(f"Created {role} account #{user.id} ({user.email}).")
