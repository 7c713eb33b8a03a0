"""Rich renderers for the screen controllers.

Each ``render_*`` function turns a loaded screen into a single renderable.
Nothing here fetches or mutates; the CLI calls a screen's ``load`` (or an
action) and then prints the result of the matching renderer.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .metrics import (
    balance,
    balance_class,
    format_date,
    format_kes,
    format_percent,
    progress_width,
    proposal_status_class,
    status_class,
    sum_debits,
    utilization_percent,
)
from .models import AdminTotals, ImprestAccount, Proposal, ReceiptImage, Transaction, User
from .screens import (
    DashboardScreen,
    ImprestsScreen,
    ProposalsScreen,
    TransactionsScreen,
    UsersScreen,
)
from .screens.common import same_id

STATUS_STYLES = {
    "closed": "dim",
    "depleted": "bold red",
    "low": "yellow",
    "active": "green",
}
PROPOSAL_STYLES = {
    "approved": "green",
    "rejected": "red",
    "partial": "cyan",
    "pending": "yellow",
}
BALANCE_STYLES = {"positive": "green", "negative": "red"}


def error_banner(message: str) -> Panel:
    return Panel(Text(message, style="bold"), title="Error", border_style="red")


def _with_banner(screen_error: str, *parts: RenderableType) -> Group:
    items: list[RenderableType] = []
    if screen_error:
        items.append(error_banner(screen_error))
    items.extend(parts)
    return Group(*items)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def totals_panel(summary: AdminTotals) -> Panel:
    grid = Table.grid(padding=(0, 3))
    grid.add_column()
    grid.add_column(justify="right")
    grid.add_row("Total allocated", format_kes(summary.total_allocated))
    grid.add_row("Total used", format_kes(summary.total_used))
    remaining = summary.remaining
    grid.add_row(
        "Remaining",
        Text(format_kes(remaining), style=BALANCE_STYLES[balance_class(remaining)]),
    )
    return Panel(grid, title="Summary", border_style="blue")


def imprest_table(imprests: Sequence[ImprestAccount], *, title: str = "Imprests") -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Source")
    table.add_column("Allocated", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Balance", justify="right")
    table.add_column("Usage", min_width=12)
    table.add_column("%", justify="right")
    table.add_column("Status")
    table.add_column("Created")

    for account in imprests:
        remaining = balance(account)
        status = status_class(account)
        table.add_row(
            str(account.id),
            account.display_name or "",
            account.source or "",
            format_kes(account.allocated_amount),
            format_kes(account.used_amount),
            Text(format_kes(remaining), style=BALANCE_STYLES[balance_class(remaining)]),
            ProgressBar(total=100, completed=float(progress_width(account)), width=12),
            format_percent(utilization_percent(account)),
            Text(status, style=STATUS_STYLES[status]),
            format_date(account.created_at),
        )
    if not imprests:
        table.caption = "No imprest accounts found."
    return table


def transactions_table(
    transactions: Sequence[Transaction],
    *,
    title: str = "Transactions",
    selected_id=None,
) -> Table:
    table = Table(title=title, show_footer=bool(transactions))
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Item", footer="Total debits")
    table.add_column("Qty", justify="right")
    table.add_column("Unit price", justify="right")
    table.add_column("VAT", justify="right")
    table.add_column("Total", justify="right", footer=format_kes(sum_debits(transactions)))
    table.add_column("Receipt", justify="center")
    table.add_column("Date")

    for txn in transactions:
        table.add_row(
            str(txn.id),
            txn.item or "",
            f"{txn.quantity.normalize():f}",
            format_kes(txn.unit_price),
            format_kes(txn.vat_charged),
            format_kes(txn.total_price),
            "yes" if txn.receipt_image_id is not None else "",
            format_date(txn.created_at, with_time=True),
            style="reverse" if same_id(txn.id, selected_id) else None,
        )
    if not transactions:
        table.caption = "No transactions recorded."
    return table


def receipt_panel(receipt: ReceiptImage | None, *, error: str = "", loading: bool = False) -> Panel:
    if loading:
        body = Text("Loading receipt…", style="dim")
    elif error:
        body = Text(error, style="red")
    elif receipt is None:
        body = Text("No receipt attached.", style="dim")
    else:
        kind = "PDF" if receipt.is_pdf else "Image"
        body = Text.assemble((f"{kind}: ", "bold"), (receipt.url, Style(link=receipt.url)))
    return Panel(body, title="Receipt", border_style="magenta")


def proposals_table(proposals: Sequence[Proposal]) -> Table:
    table = Table(title="Proposals")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Amount", justify="right")
    table.add_column("Status")
    table.add_column("Created")
    for p in proposals:
        cls = proposal_status_class(p.status)
        table.add_row(
            str(p.id),
            p.title or "",
            format_kes(p.total_amount),
            Text(p.status, style=PROPOSAL_STYLES[cls]),
            format_date(p.created_at),
        )
    if not proposals:
        table.caption = "No proposals yet."
    return table


def proposal_detail(proposal: Proposal, *, actions: Sequence[str] = ()) -> Panel:
    items = Table(show_edge=False)
    items.add_column("Item")
    items.add_column("Qty", justify="right")
    items.add_column("Unit price", justify="right")
    items.add_column("Total", justify="right")
    for line in proposal.line_items:
        items.add_row(
            line.item_name or "",
            f"{line.quantity.normalize():f}",
            format_kes(line.unit_total_price),
            format_kes(line.total_price),
        )

    cls = proposal_status_class(proposal.status)
    header = Text.assemble(
        ("Status: ", "bold"),
        (proposal.status, PROPOSAL_STYLES[cls]),
        "   ",
        ("Amount: ", "bold"),
        format_kes(proposal.total_amount),
        "   ",
        ("Created: ", "bold"),
        format_date(proposal.created_at, with_time=True),
    )
    parts: list[RenderableType] = [header, items]
    if actions:
        parts.append(Text("Actions: " + ", ".join(actions), style="dim"))
    return Panel(Group(*parts), title=proposal.title or f"Proposal {proposal.id}")


def users_table(users: Sequence[User]) -> Table:
    table = Table(title="Users")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Phone")
    table.add_column("Role")
    table.add_column("Created")
    for u in users:
        table.add_row(str(u.id), u.name or "", u.phone or "", u.role, format_date(u.created_at))
    if not users:
        table.caption = "No users found."
    return table


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------


def render_dashboard(screen: DashboardScreen) -> Group:
    parts: list[RenderableType] = []
    if screen.summary is not None:
        parts.append(totals_panel(screen.summary))
    parts.append(imprest_table(screen.imprests, title="Imprest accounts"))
    if screen.selected_imprest is not None:
        parts.append(
            transactions_table(
                screen.transactions,
                title=f"Transactions: {screen.selected_imprest.display_name or screen.selected_imprest.id}",
                selected_id=getattr(screen.selected_transaction, "id", None),
            )
        )
    if screen.selected_transaction is not None:
        parts.append(
            receipt_panel(screen.receipt, error=screen.image_error, loading=screen.loading_image)
        )
    return _with_banner(screen.error, *parts)


def render_imprests(screen: ImprestsScreen) -> Group:
    parts: list[RenderableType] = [imprest_table(screen.imprests)]
    if screen.form_error:
        parts.append(Text(screen.form_error, style="red"))
    return _with_banner(screen.error, *parts)


def render_transactions(screen: TransactionsScreen) -> Group:
    parts: list[RenderableType] = []
    imprest = screen.selected_imprest
    if imprest is None:
        parts.append(Text("No imprest account selected.", style="dim"))
    else:
        parts.append(imprest_table([imprest], title="Selected imprest"))
        parts.append(
            transactions_table(
                screen.transactions,
                selected_id=getattr(screen.selected_transaction, "id", None),
            )
        )
    if screen.selected_transaction is not None:
        parts.append(
            receipt_panel(screen.receipt, error=screen.image_error, loading=screen.loading_image)
        )
    if screen.form_error:
        parts.append(Text(screen.form_error, style="red"))
    return _with_banner(screen.error, *parts)


def render_proposals(screen: ProposalsScreen) -> Group:
    parts: list[RenderableType] = [proposals_table(screen.proposals)]
    if screen.selected is not None:
        actions = (
            ["approved", "partial", "rejected"] if screen.can_transition(screen.selected) else []
        )
        parts.append(proposal_detail(screen.selected, actions=actions))
    if screen.form_error:
        parts.append(Text(screen.form_error, style="red"))
    return _with_banner(screen.error, *parts)


def render_users(screen: UsersScreen) -> Group:
    parts: list[RenderableType] = []
    if not screen.error:
        parts.append(users_table(screen.users))
    if screen.form_error:
        parts.append(Text(screen.form_error, style="red"))
    return _with_banner(screen.error, *parts)


__all__ = [
    "error_banner",
    "imprest_table",
    "proposal_detail",
    "proposals_table",
    "receipt_panel",
    "render_dashboard",
    "render_imprests",
    "render_proposals",
    "render_transactions",
    "render_users",
    "totals_panel",
    "transactions_table",
    "users_table",
]
