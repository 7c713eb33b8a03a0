"""CLI for the ``gibrocash`` package.

A Typer console over the screen controllers. Each command builds an
:class:`~gibrocash.context.AppContext` (restoring any persisted session),
drives one screen and prints it with :mod:`gibrocash.views`. Environment
variables (notably ``GIBROCASH_API_BASE_URL``) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs.

Exit status is 0 on success and 1 when the screen ended with an error banner,
a form error, or a forced logout.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from dotenv import load_dotenv
from rich.console import Console, RenderableType

from .context import AppContext, create_context
from .errors import AuthError, ConfigurationError
from .logging_setup import configure_logging
from .metrics import format_kes
from .models import TERMINAL_PROPOSAL_STATUSES, ImprestAccount, User
from .screens import (
    SESSION_EXPIRED_MESSAGE,
    DashboardScreen,
    ImprestsScreen,
    ProposalsScreen,
    Screen,
    TransactionsScreen,
    UsersScreen,
    available_screens,
)
from .settings import read_log_level
from .term_ui import confirm, select_option
from .views import (
    receipt_panel,
    render_dashboard,
    render_imprests,
    render_proposals,
    render_transactions,
    render_users,
)

app = typer.Typer(
    name="gibrocash",
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Imprest (petty-cash) dashboard for the GibroCash API. "
        "Loads GIBROCASH_API_BASE_URL from a local .env before running."
    ),
)
console = Console()
err_console = Console(stderr=True)

ScreenT = TypeVar("ScreenT", bound=Screen)


# ---- Session plumbing --------------------------------------------------------


class _Run:
    """One command invocation: the app context plus forced-logout tracking."""

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx
        self.expired = False
        ctx.session.on_logout(self._on_logout)

    def _on_logout(self, reason: str) -> None:
        if reason.startswith("unauthorized"):
            self.expired = True

    def screen(self, cls: type[ScreenT]) -> ScreenT:
        return cls(self.ctx.gateway, self.ctx.session)

    def check_expired(self) -> None:
        if self.expired:
            err_console.print(f"[red]{SESSION_EXPIRED_MESSAGE}[/red]")
            raise typer.Exit(1)

    def show(self, screen: Screen, renderable: RenderableType) -> None:
        """Print ``renderable``; exit 1 when the screen ended in an error."""

        self.check_expired()
        console.print(renderable)
        if screen.error or screen.form_error:
            raise typer.Exit(1)


@contextmanager
def _open(*, require_login: bool = True) -> Iterator[_Run]:
    try:
        ctx = create_context()
    except ConfigurationError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    with ctx:
        run = _Run(ctx)
        if require_login and not ctx.session.is_authenticated:
            err_console.print("[yellow]Not logged in.[/yellow] Run `gibrocash login` first.")
            raise typer.Exit(1)
        yield run
        run.check_expired()


def _imprest_label(account: ImprestAccount) -> str:
    return f"{account.display_name or 'Imprest'} #{account.id}"


def _user_label(user: User) -> str:
    return f"{user.name or 'User'} ({user.phone or 'no phone'}) #{user.id}"


def _pick_id(labels: dict[str, object], message: str) -> object:
    if not labels:
        return None
    choice = select_option(list(labels), default=next(iter(labels), ""), message=message)
    if choice is None:
        raise typer.Exit(1)
    return labels[choice]


# ---- Account -----------------------------------------------------------------


@app.command()
def login(
    phone: Annotated[str, typer.Option(prompt="Phone number", help="Registered phone number")],
    password: Annotated[
        str, typer.Option(prompt=True, hide_input=True, help="Account password")
    ],
) -> None:
    """Log in and persist the session for later commands."""

    with _open(require_login=False) as run:
        try:
            session = run.ctx.session.login(phone, password)
        except AuthError as e:
            err_console.print(f"[red]Login failed:[/red] {e}")
            raise typer.Exit(1) from None
        role = "admin" if session.is_admin else "staff"
        console.print(f"[green]Logged in as[/green] {session.name or session.phone} ({role})")


@app.command()
def logout() -> None:
    """Forget the persisted session."""

    with _open(require_login=False) as run:
        run.ctx.session.logout()
        console.print("Logged out.")


@app.command()
def whoami() -> None:
    """Show the current identity and the screens available to it."""

    with _open() as run:
        current = run.ctx.session.current
        if current is None:
            raise typer.Exit(1)
        console.print(f"[bold]{current.name or ''}[/bold]  {current.phone or ''}")
        console.print(f"Designation: {current.designation or 'N/A'}")
        screens = ", ".join(cls.title for cls in available_screens(current))
        console.print(f"Screens: {screens}")


# ---- Dashboard & imprests ----------------------------------------------------


@app.command()
def dashboard(
    imprest: Annotated[
        str | None, typer.Option("--imprest", help="Show transactions of this imprest ID")
    ] = None,
    transaction: Annotated[
        str | None, typer.Option("--transaction", help="Show the receipt of this transaction")
    ] = None,
) -> None:
    """Imprest overview (with admin totals) and per-imprest transactions."""

    with _open() as run:
        screen = run.screen(DashboardScreen)
        screen.load()
        if imprest is not None and not screen.error:
            screen.select_imprest(imprest)
            if transaction is not None and not screen.error:
                screen.select_transaction(transaction)
        run.show(screen, render_dashboard(screen))


@app.command()
def imprests() -> None:
    """List imprest accounts with balance, usage and status."""

    with _open() as run:
        screen = run.screen(ImprestsScreen)
        screen.load()
        run.show(screen, render_imprests(screen))


@app.command("create-imprest")
def create_imprest(
    name: Annotated[str, typer.Option(prompt="Imprest name", help="Display name")],
    amount: Annotated[str, typer.Option(prompt="Amount (KES)", help="Amount to allocate")],
    assignee: Annotated[
        str | None, typer.Option("--assignee", help="User ID to assign (prompted when omitted)")
    ] = None,
    imprest_type: Annotated[
        str, typer.Option("--type", help="company imprest, directors advance or loan")
    ] = "company imprest",
) -> None:
    """Create an imprest account (administrators only)."""

    with _open() as run:
        screen = run.screen(ImprestsScreen)
        screen.load()
        if not screen.can_create:
            screen.form_error = "Only administrators can create imprests."
            run.show(screen, render_imprests(screen))
        if screen.error:
            run.show(screen, render_imprests(screen))

        assignee_id: object = assignee
        if assignee_id is None:
            assignee_id = _pick_id(
                {_user_label(u): u.id for u in screen.users}, "Assign to (Tab to complete): "
            )
        if screen.create_imprest(
            name=name, amount=amount, assignee_id=assignee_id, imprest_type=imprest_type
        ):
            console.print(f"[green]Created imprest[/green] {name}")
        run.show(screen, render_imprests(screen))


# ---- Transactions ------------------------------------------------------------


def _transactions_screen(run: _Run, imprest: str | None) -> TransactionsScreen:
    screen = run.screen(TransactionsScreen)
    screen.load()
    if imprest is not None and not screen.error:
        screen.select_imprest(imprest)
    return screen


@app.command()
def transactions(
    imprest: Annotated[
        str | None, typer.Option("--imprest", help="Imprest ID (defaults to the first)")
    ] = None,
) -> None:
    """List the transactions of an imprest account."""

    with _open() as run:
        screen = _transactions_screen(run, imprest)
        run.show(screen, render_transactions(screen))


@app.command("add-transaction")
def add_transaction(
    item: Annotated[str, typer.Option(prompt="Item", help="Item description")],
    unit_price: Annotated[str, typer.Option(prompt="Unit price (KES)", help="Price per unit")],
    quantity: Annotated[str, typer.Option(help="Quantity (whole number)")] = "1",
    vat: Annotated[str, typer.Option(help="VAT charged (KES)")] = "0",
    receipt: Annotated[
        Path | None,
        typer.Option(help="Receipt image or PDF to upload", dir_okay=False, exists=False),
    ] = None,
    imprest: Annotated[
        str | None, typer.Option("--imprest", help="Imprest ID (prompted when omitted)")
    ] = None,
) -> None:
    """Record an expense against an imprest, optionally uploading a receipt."""

    with _open() as run:
        screen = _transactions_screen(run, imprest)
        if screen.error:
            run.show(screen, render_transactions(screen))
        if imprest is None and len(screen.imprests) > 1:
            chosen = _pick_id(
                {_imprest_label(a): a.id for a in screen.imprests}, "Imprest (Tab to complete): "
            )
            screen.select_imprest(chosen)

        console.print(f"Total: {format_kes(screen.preview_total(quantity, unit_price, vat))}")
        if screen.add_transaction(
            item=item,
            unit_price=unit_price,
            item_quantity=quantity,
            vat_charged=vat,
            receipt=receipt,
        ):
            console.print(f"[green]Recorded[/green] {item}")
        run.show(screen, render_transactions(screen))


@app.command("delete-transaction")
def delete_transaction(
    transaction_id: Annotated[str, typer.Argument(help="Transaction ID")],
    imprest: Annotated[
        str | None, typer.Option("--imprest", help="Imprest the transaction belongs to")
    ] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation")] = False,
) -> None:
    """Delete a transaction after confirmation."""

    with _open() as run:
        screen = _transactions_screen(run, imprest)
        if not yes and not confirm(f"Delete transaction {transaction_id}?"):
            console.print("Canceled.")
            return
        if screen.delete_transaction(transaction_id):
            console.print(f"[green]Deleted transaction[/green] {transaction_id}")
        run.show(screen, render_transactions(screen))


@app.command()
def receipt(
    transaction_id: Annotated[str, typer.Argument(help="Transaction ID")],
    imprest: Annotated[
        str | None, typer.Option("--imprest", help="Imprest the transaction belongs to")
    ] = None,
) -> None:
    """Show where a transaction's receipt can be viewed."""

    with _open() as run:
        screen = _transactions_screen(run, imprest)
        if not screen.error:
            screen.select_transaction(transaction_id)
        if screen.error:
            run.show(screen, render_transactions(screen))
        run.show(
            screen,
            receipt_panel(screen.receipt, error=screen.image_error, loading=screen.loading_image),
        )
        if screen.image_error:
            raise typer.Exit(1)


# ---- Proposals ---------------------------------------------------------------


def _parse_item(raw: str) -> dict[str, str]:
    parts = raw.rsplit(":", 2)
    if len(parts) != 3:
        raise typer.BadParameter(f"expected NAME:QUANTITY:PRICE, got {raw!r}", param_hint="--item")
    name, qty, price = parts
    return {"name": name, "quantity": qty, "price": price}


@app.command()
def proposals(
    show: Annotated[str | None, typer.Option("--show", help="Proposal ID to expand")] = None,
) -> None:
    """List proposals, optionally expanding one with its line items."""

    with _open() as run:
        screen = run.screen(ProposalsScreen)
        screen.load()
        if show is not None and not screen.error:
            screen.view(show)
        run.show(screen, render_proposals(screen))


@app.command("create-proposal")
def create_proposal(
    title: Annotated[str, typer.Option(prompt="Title", help="What the spend is for")],
    item: Annotated[
        list[str] | None,
        typer.Option("--item", help="Line item as NAME:QUANTITY:PRICE (repeatable)"),
    ] = None,
) -> None:
    """Submit a proposal for approval."""

    items = [_parse_item(s) for s in (item or [])]
    with _open() as run:
        screen = run.screen(ProposalsScreen)
        if screen.create_proposal(title=title, items=items):
            console.print(f"[green]Submitted proposal[/green] {title}")
        run.show(screen, render_proposals(screen))


@app.command("set-proposal-status")
def set_proposal_status(
    proposal_id: Annotated[str, typer.Argument(help="Proposal ID")],
    status: Annotated[
        str | None, typer.Argument(help="approved, partial or rejected (prompted when omitted)")
    ] = None,
) -> None:
    """Approve, partially approve or reject a pending proposal (administrators only)."""

    with _open() as run:
        screen = run.screen(ProposalsScreen)
        screen.load()
        if not screen.error:
            screen.view(proposal_id)
        if screen.error:
            run.show(screen, render_proposals(screen))
        if status is None:
            status = select_option(sorted(TERMINAL_PROPOSAL_STATUSES), message="New status: ")
            if status is None:
                raise typer.Exit(1)
        if screen.update_status(proposal_id, status):
            console.print(f"[green]Proposal {proposal_id} is now[/green] {status.lower()}")
        run.show(screen, render_proposals(screen))


# ---- Users -------------------------------------------------------------------


@app.command()
def users() -> None:
    """List registered users (administrators only)."""

    with _open() as run:
        screen = run.screen(UsersScreen)
        screen.load()
        run.show(screen, render_users(screen))


@app.command("create-user")
def create_user(
    name: Annotated[str, typer.Option(prompt="Full name", help="User's name")],
    phone: Annotated[str, typer.Option(prompt="Phone number", help="Kenyan phone number")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True)],
    confirm_password: Annotated[
        str, typer.Option(prompt="Confirm password", hide_input=True)
    ],
    designation: Annotated[str, typer.Option(help="STAFF or ADMIN")] = "STAFF",
) -> None:
    """Register a new user (administrators only)."""

    with _open() as run:
        screen = run.screen(UsersScreen)
        if screen.create_user(
            user_name=name,
            phone_no=phone,
            password=password,
            confirm_password=confirm_password,
            designation=designation,
        ):
            console.print(f"[green]Created user[/green] {name}")
        run.show(screen, render_users(screen))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(read_log_level())


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    app()
