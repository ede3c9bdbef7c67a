# cli.py
import sys
import time
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from marketplace import settings
from marketplace.controller import StorefrontController
from marketplace.core import (
    CATEGORY_FILTERS, EMOJIS, PAYMENT_METHODS, CheckoutDetails, LoginCredentials,
    ProductDraft, SignupCredentials, build_draft, draft_from_product
)
from marketplace.database import DurableState, FileStorage
from marketplace.errors import StoreError
from marketplace.log import setup_logging
from marketplace.models import CartItem, Product
from marketplace.notifications import Notifier

console = Console()

status_message = "Ready"

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})

CATEGORY_VALUES = [v for v, _ in CATEGORY_FILTERS]


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Product], title: str = "📦 Products Catalog"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=20)
    table.add_column("", width=3)
    table.add_column("Name", style="bold", width=20)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Category", width=12)
    table.add_column("Description", width=30)

    for p in products:
        table.add_row(p.id, p.emoji, p.name, f"${p.price:.2f}", p.category, p.description)
    console.print(table)


def show_cart(ctl: StorefrontController):
    items: List[CartItem] = ctl.cart_items()
    totals = ctl.compute_totals()

    title = Text()
    title.append("🛒 Shopping Cart - ", style="bold")
    title.append(f"{totals.item_count} item(s)", style="bold cyan")
    title.append(f" - Total: ${totals.total_price:.2f}", style="bold green")

    if not items:
        console.print(Panel("Your cart is empty 🛍️", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("Product", style="bold", width=30)
    table.add_column("Qty", justify="right", width=8)
    table.add_column("Price", justify="right", width=12)
    table.add_column("Subtotal", justify="right", width=12)

    for it in items:
        table.add_row(
            f"{it.emoji} {it.name}",
            str(it.quantity),
            f"${it.price:.2f}",
            f"${it.line_total:.2f}"
        )

    console.print(Panel(table, title=title, border_style="blue"))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# Action wrapper
# ---------------------------
def try_action(fn, *args, success_msg: Optional[str] = None, delay: float = 0.0, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner, optionally holding the
    spinner for `delay` seconds first. StoreErrors become a red status.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            if delay:
                time.sleep(delay)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except StoreError as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


def validated(model_cls, **fields):
    """Build a form draft up front so errors show before any spinner."""
    return try_action(build_draft, model_cls, **fields)


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer(ctl: StorefrontController):
    products = ctl.list_products()
    names = [p.name for p in products]
    ids = [p.id for p in products]
    return WordCompleter([n for n in (names + ids) if n], ignore_case=True)


def resolve_product_id(ctl: StorefrontController, raw: str) -> str:
    raw = raw.strip()
    for p in ctl.list_products():
        if raw in (p.id, p.name):
            return p.id
    return raw


def get_cart_completer(ctl: StorefrontController):
    items = ctl.cart_items()
    return WordCompleter([i.id for i in items] + [i.name for i in items], ignore_case=True)


def resolve_cart_id(ctl: StorefrontController, raw: str) -> str:
    raw = raw.strip()
    for i in ctl.cart_items():
        if raw in (i.id, i.name):
            return i.id
    return raw


# ---------------------------
# Layout and Header
# ---------------------------
def create_header(ctl: StorefrontController):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    user = f"[bold cyan]({ctl.session.user_initial})[/bold cyan] {ctl.username}" if ctl.username else "[dim]guest[/dim]"
    header.add_row(
        "🛍️ Open Marketplace",
        user,
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers with autocomplete
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_product_draft(start: Optional[ProductDraft] = None) -> Optional[ProductDraft]:
    start = start or ProductDraft.model_construct(name="", price="", emoji=EMOJIS[0], category="electronics", description="")
    name = prompt_with_autocomplete("Product name", default=start.name)
    price = Prompt.ask("💰 Price in dollars", default=start.price or None)
    emoji = prompt_with_autocomplete(
        f"Icon ({' '.join(EMOJIS)})", completer=WordCompleter(list(EMOJIS)), default=start.emoji
    )
    category = prompt_with_autocomplete(
        "🏷️ Category", completer=WordCompleter(CATEGORY_VALUES[1:]), default=start.category
    )
    description = prompt_with_autocomplete("Description", default=start.description)
    return validated(
        ProductDraft, name=name, price=price or "", emoji=emoji.strip(),
        category=category.strip(), description=description
    )


# ---------------------------
# Screens
# ---------------------------
def auth_screen(ctl: StorefrontController):
    choice = prompt_with_autocomplete(
        "\n[l]ogin, [s]ignup or [q]uit?", completer=WordCompleter(["l", "s", "q"])
    ).strip().lower()

    if choice in ("l", "login"):
        username = prompt_with_autocomplete("Username")
        password = prompt("Password ", is_password=True)
        creds = validated(LoginCredentials, username=username, password=password)
        if creds:
            try_action(ctl.login, creds, delay=settings.AUTH_DELAY_SECONDS, success_msg=f"Welcome back, {creds.username}")

    elif choice in ("s", "signup"):
        username = prompt_with_autocomplete("Username")
        email = prompt_with_autocomplete("Email")
        password = prompt("Password ", is_password=True)
        confirm = prompt("Confirm password ", is_password=True)
        creds = validated(SignupCredentials, username=username, email=email, password=password, confirm=confirm)
        if creds:
            try_action(ctl.signup, creds, delay=settings.AUTH_DELAY_SECONDS, success_msg=f"Welcome, {creds.username}")

    elif choice in ("q", "quit", "exit"):
        quit_app(ctl)


def shop_screen(ctl: StorefrontController):
    if ctl.notification:
        console.print(Panel.fit(f"[bold green]{ctl.notification}[/bold green]", title="✅ Success"))

    menu_table = Table.grid(padding=(0, 2))
    menu_table.add_column("Key", style="bold cyan", width=4)
    menu_table.add_column("Option", width=30)
    menu_table.add_column("Key", style="bold cyan", width=4)
    menu_table.add_column("Option", width=30)

    options = [
        ("1", "📦 List products", "6", "🛒 Add to cart"),
        ("2", "🔍 Filter by category", "7", "🔢 Change quantity"),
        ("3", "➕ Add product", "8", "➖ Remove from cart"),
        ("4", "✏️ Edit product", "9", "🧾 View cart"),
        ("5", "🗑️ Delete product", "10", "✅ Checkout"),
        ("o", "🚪 Logout", "q", "👋 Quit"),
    ]
    for row in options:
        menu_table.add_row(*row)

    console.print(Panel(menu_table, title=f"📋 Menu - {len(ctl.catalog)} products", border_style="yellow"))

    choice = prompt_with_autocomplete(
        "\nChoose an option",
        completer=WordCompleter([str(i) for i in range(1, 11)] + ["o", "q", "quit", "exit"])
    ).strip()

    if choice == "1":
        show_products(ctl.list_products())

    elif choice == "2":
        labels = ", ".join(f"{v} ({label})" for v, label in CATEGORY_FILTERS)
        console.print(f"[dim]{labels}[/dim]")
        category = prompt_with_autocomplete("Category", completer=WordCompleter(CATEGORY_VALUES), default="all").strip()
        show_products(ctl.list_products(category), title=f"📦 {category}")

    elif choice == "3":
        draft = ask_product_draft()
        if draft:
            product = try_action(ctl.add_product, draft, success_msg=f"Product '{draft.name}' added")
            if product:
                show_products([product])

    elif choice == "4":
        pid = resolve_product_id(ctl, prompt_with_autocomplete("Product to edit", completer=get_product_completer(ctl)))
        current = try_action(ctl.get_product, pid)
        if current:
            draft = ask_product_draft(draft_from_product(current))
            if draft:
                product = try_action(ctl.update_product, pid, draft, success_msg=f"Product {pid} updated")
                if product:
                    show_products([product])

    elif choice == "5":
        pid = resolve_product_id(ctl, prompt_with_autocomplete("Product to delete", completer=get_product_completer(ctl)))
        if Confirm.ask(f"Delete product {pid}?"):
            if try_action(ctl.delete_product, pid):
                console.print(show_status(f"Product {pid} deleted"))
            else:
                console.print(show_status(f"No product {pid}", False))

    elif choice == "6":
        pid = resolve_product_id(ctl, prompt_with_autocomplete("Product to add", completer=get_product_completer(ctl)))
        item = try_action(ctl.add_to_cart, pid)
        if item:
            console.print(show_status(f"{item.name} x{item.quantity} in cart"))
            show_cart(ctl)

    elif choice == "7":
        pid = resolve_cart_id(ctl, prompt_with_autocomplete("Cart item", completer=get_cart_completer(ctl)))
        qty = IntPrompt.ask("New quantity (0 removes)", default=1)
        try_action(ctl.set_quantity, pid, qty)
        show_cart(ctl)

    elif choice == "8":
        pid = resolve_cart_id(ctl, prompt_with_autocomplete("Cart item", completer=get_cart_completer(ctl)))
        try_action(ctl.remove_from_cart, pid)
        show_cart(ctl)

    elif choice == "9":
        show_cart(ctl)

    elif choice == "10":
        show_cart(ctl)
        methods = list(PAYMENT_METHODS)
        console.print("[dim]" + ", ".join(f"{k} ({v})" for k, v in PAYMENT_METHODS.items()) + "[/dim]")
        method = prompt_with_autocomplete("Payment method", completer=WordCompleter(methods), default=methods[0]).strip()
        details = validated(
            CheckoutDetails,
            payment_method=method,
            full_name=Prompt.ask("Full name"),
            email=Prompt.ask("Email"),
            address=Prompt.ask("Address"),
        )
        if not details:
            return
        confirmation = try_action(ctl.checkout, details.payment_method)
        if confirmation:
            console.print(Panel.fit(f"[green]{confirmation.message}[/green]", title="✅ Order Confirmation"))

    elif choice.lower() == "o":
        if Confirm.ask("Log out? Your catalog and cart will be erased"):
            try_action(ctl.logout, success_msg="Logged out")

    elif choice.lower() in ("q", "quit", "exit"):
        quit_app(ctl)


def quit_app(ctl: StorefrontController):
    if Confirm.ask("Are you sure you want to quit?"):
        ctl.close()
        console.print(Panel.fit("[bold green]Thanks for shopping at Open Marketplace! 👋[/bold green]", title="Goodbye"))
        sys.exit(0)


# ---------------------------
# Main loop
# ---------------------------
def menu():
    setup_logging()
    storage = DurableState(FileStorage(settings.STORAGE_PATH), namespace=settings.NAMESPACE)
    ctl = StorefrontController(storage, Notifier(settings.NOTIFICATION_SECONDS))
    ctl.load()

    console.clear()

    while True:
        console.print(create_header(ctl))
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        if ctl.session.logged_in:
            shop_screen(ctl)
        else:
            auth_screen(ctl)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
