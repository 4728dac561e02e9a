# campus_teranga/cli.py
# Управление пользователями из консоли: создание admin/super_admin,
# смена роли, список аккаунтов, сброс пароля.
import typer
from email_validator import validate_email
from tabulate import tabulate

from campus_teranga.core import security
from campus_teranga.core.errors import DuplicateKeyError
from campus_teranga.db.base import Base
from campus_teranga.db.session import SessionLocal, engine
from campus_teranga.models.user import RoleEnum, User
from campus_teranga.schemas.auth import check_full_name, check_password_strength, check_phone
from campus_teranga.services import audit
from campus_teranga.services import users as user_service

cli = typer.Typer(help="Campus Teranga: управление пользователями")


def _check_email(value: str) -> str:
    return validate_email(value, check_deliverability=False).normalized.lower()


def _validated(check, value):
    try:
        return check(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


@cli.callback()
def init_db() -> None:
    Base.metadata.create_all(bind=engine)


@cli.command()
def create(
    full_name: str = typer.Argument(..., help="Имя и фамилия"),
    phone_number: str = typer.Argument(..., help="Телефон для входа"),
    role: RoleEnum = typer.Option(RoleEnum.admin, help="Роль нового пользователя"),
    email: str = typer.Option(None, help="Email (необязательно)"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Создать пользователя с заданной ролью (по умолчанию admin)."""
    full_name = _validated(check_full_name, full_name)
    phone_number = _validated(check_phone, phone_number)
    if email:
        email = _validated(_check_email, email)
    password = _validated(check_password_strength, password)
    with SessionLocal() as db:
        try:
            user = user_service.create_user(
                db,
                full_name=full_name,
                phone_number=phone_number,
                password=password,
                email=email,
                role=role,
            )
        except DuplicateKeyError as e:
            typer.echo(f"❌ {e.message}")
            raise typer.Exit(1)
        typer.echo(f"✅ Created {user.role.value} {user.phone_number} (id={user.id})")


@cli.command(name="set-role")
def set_role(phone_number: str, role: RoleEnum):
    """Сменить роль пользователя (запись попадает в журнал)."""
    phone_number = _validated(check_phone, phone_number)
    with SessionLocal() as db:
        user = user_service.get_by_phone(db, phone_number)
        if user is None:
            typer.echo("❌ User not found")
            raise typer.Exit(1)
        user = user_service.update_role(db, user.id, role, actor=None)
        typer.echo(f"👤 {user.phone_number} is now {user.role.value}")


@cli.command()
def passwd(
    phone_number: str,
    password: str = typer.Option(..., prompt="New password", hide_input=True, confirmation_prompt=True),
):
    """Сменить пароль пользователя."""
    phone_number = _validated(check_phone, phone_number)
    password = _validated(check_password_strength, password)
    with SessionLocal() as db:
        user = user_service.get_by_phone(db, phone_number)
        if user is None:
            typer.echo("❌ User not found")
            raise typer.Exit(1)
        user.password_hash = security.get_password_hash(password)
        audit.record(db, audit.USER_PASSWORD_CHANGED, user, details={"via": "cli"})
        db.commit()
        typer.echo("🔑 Password changed")


@cli.command(name="list")
def list_users(role: RoleEnum = typer.Option(None, help="Фильтр по роли")):
    """Список пользователей (без хешей паролей)."""
    with SessionLocal() as db:
        query = db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        rows = [
            (u.id, u.full_name, u.phone_number, u.email or "", u.role.value, "yes" if u.is_active else "no")
            for u in query.order_by(User.created_at.asc()).all()
        ]
    typer.echo(tabulate(rows, headers=["id", "full name", "phone", "email", "role", "active"]))


if __name__ == "__main__":
    cli()
