# cli.py - interactive point-of-sale terminal
import argparse
import sys
from datetime import datetime
from typing import List, Dict, Any, Optional

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

from sdk.cart import LocalCart
from sdk.posclient import PosClient, DEFAULT_BASE_URL

console = Console()
c: PosClient = PosClient(base_url=DEFAULT_BASE_URL)
cart: Optional[LocalCart] = None

# Global state for status messages and caching
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


def money(cents: Optional[int]) -> str:
    return f"${(cents or 0) / 100:.2f}"


def _unwrap_resp(resp: Any) -> Any:
    """
    If resp is a requests/httpx Response, decode its JSON; else return as-is.
    """
    if resp is None:
        return None
    if hasattr(resp, "status_code"):
        try:
            return resp.json()
        except ValueError:
            return {"detail": f"HTTP {resp.status_code}: {resp.text}"}
    return resp


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]], title: str = "📦 Inventory"):
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
    table.add_column("ID", style="dim", width=12)
    table.add_column("Barcode", width=14)
    table.add_column("Name", style="bold", width=20)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Stock", justify="right", width=8)
    table.add_column("Min", justify="right", width=6)
    table.add_column("Category", width=12)

    for p in products:
        stock_style = "red" if p.get("low_stock") else "white"
        table.add_row(
            p.get("id", "N/A")[:12],
            p.get("barcode", "N/A"),
            p.get("name", "N/A"),
            money(p.get("sale_price_cents")),
            f"[{stock_style}]{p.get('stock', 0)}[/{stock_style}]",
            str(p.get("min_stock", 0)),
            p.get("category") or "-"
        )
    console.print(table)


def show_cart(local_cart: LocalCart, seller_id: str):
    title = Text()
    title.append("🛒 Cart - ", style="bold")
    title.append(seller_id, style="bold cyan")
    title.append(f" - Total: {money(local_cart.total_cents)}", style="bold green")

    if not len(local_cart):
        console.print(Panel("Cart is empty 🛍️", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("Product", style="bold", width=30)
    table.add_column("Qty", justify="right", width=8)
    table.add_column("Price", justify="right", width=12)
    table.add_column("Subtotal", justify="right", width=12)

    for it in local_cart.items.values():
        table.add_row(
            it.get("name", "Unknown"),
            str(it["quantity"]),
            money(it["sale_price_cents"]),
            money(it["sale_price_cents"] * it["quantity"]),
        )

    console.print(Panel(table, title=title, border_style="blue"))


def show_receipt(sale: Dict[str, Any]):
    lines = [f"Sale: [bold]{sale.get('id', 'N/A')}[/bold]",
             f"Method: {sale.get('payment_method')}",
             f"Total: [bold]{money(sale.get('total_cents'))}[/bold]"]
    if sale.get("payment_method") == "cash":
        lines.append(f"Received: {money(sale.get('cash_received_cents'))}")
        lines.append(f"Change: [green]{money(sale.get('change_cents'))}[/green]")
    console.print(Panel.fit("\n".join(lines), title="🧾 Receipt", border_style="green"))


def show_sales(sales: List[Dict[str, Any]], seller_id: Optional[str] = None):
    if not sales:
        console.print("[italic yellow]No sales found[/italic yellow]")
        return

    table = Table(
        title=f"📋 Sales{' for ' + seller_id if seller_id else ''}",
        box=box.ROUNDED,
        header_style="bold yellow",
        title_style="bold yellow",
        show_lines=True
    )
    table.add_column("Sale ID", style="dim", width=14)
    table.add_column("Date", width=20)
    table.add_column("Seller", width=12)
    table.add_column("Method", width=10)
    table.add_column("Total", justify="right", width=12)
    table.add_column("Items", justify="right", width=8)

    for sale in sales:
        items_count = sum(int(it.get("quantity", 1)) for it in sale.get("products", []))
        table.add_row(
            sale.get("id", "N/A")[:12] + "...",
            str(sale.get("date", ""))[:19].replace("T", " "),
            sale.get("seller_id", "N/A"),
            sale.get("payment_method", "N/A"),
            money(sale.get("total_cents")),
            str(items_count)
        )

    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper with exception handling
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner and returns its result.
    Errors are shown in the status panel and turn into None.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


def refresh_products():
    global product_cache
    product_cache = try_api(c.list_products) or []
    return product_cache


def get_product_completer():
    if not product_cache:
        refresh_products()
    names = [p.get("name", "") for p in product_cache]
    ids = [p.get("id", "") for p in product_cache]
    barcodes = [p.get("barcode", "") for p in product_cache]
    return WordCompleter([n for n in (names + ids + barcodes) if n], ignore_case=True)


def find_cached_product(term: str) -> Optional[Dict[str, Any]]:
    for p in product_cache:
        if term in (p.get("id"), p.get("barcode"), p.get("name")):
            return p
    return None


# ---------------------------
# Layout and Header
# ---------------------------
def create_header(seller_id: str):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        f"🏪 pos-store - {seller_id}",
        "[bold blue]Point of Sale Terminal[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_money(message: str, default: float = 0.0) -> int:
    """Ask for an amount in dollars and return it in cents."""
    while True:
        raw = Prompt.ask(message, default=f"{default:.2f}")
        try:
            return int(round(float(raw) * 100))
        except ValueError:
            console.print("[red]Please enter a valid amount.[/red]")


# ---------------------------
# Actions
# ---------------------------
def scan_to_cart():
    barcode = prompt_with_autocomplete("🔎 Scan or type barcode").strip()
    if not barcode:
        return
    product = try_api(c.scan_barcode, barcode)
    if product is None:
        console.print(f"[red]No product with barcode {barcode}[/red]")
        return
    qty = IntPrompt.ask("Quantity", default=1)
    try:
        cart.add(product, qty)
    except ValueError as e:
        console.print(show_status(str(e), False))
        return
    console.print(show_status(f"Added {qty} x {product['name']}", True))


def checkout(seller_id: str):
    global status_message
    if not len(cart):
        console.print("[italic yellow]Cart is empty[/italic yellow]")
        return
    show_cart(cart, seller_id)
    method = Prompt.ask("Payment method", choices=["cash", "transfer"], default="cash")
    cash = None
    if method == "cash":
        cash = ask_money("💵 Cash received ($)", default=cart.total_cents / 100)

    raw = try_api(c.create_sale, seller_id, cart.lines(), method, cash)
    resp = _unwrap_resp(raw)
    if resp is None:
        return
    if hasattr(raw, "status_code") and raw.status_code == 201:
        status_message = f"Sale {resp['id']} completed"
        cart.clear()
        show_receipt(resp)
        refresh_products()
        return

    detail = resp.get("detail") if isinstance(resp, dict) else resp
    message = detail.get("message") if isinstance(detail, dict) else detail
    status_message = f"Error: {message}"
    console.print(Panel.fit(f"[red]Sale rejected:[/red] {message}", title="❌ Sale Failed"))


# ---------------------------
# Main menu
# ---------------------------
def menu(seller_id: str):
    global status_message, product_cache

    console.clear()
    console.print(create_header(seller_id))
    refresh_products()

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "7", "➖ Remove from cart"),
            ("2", "🔍 Search products", "8", "🛒 View cart"),
            ("3", "➕ Register product", "9", "✅ Checkout"),
            ("4", "⚠️ Low stock", "10", "📋 My sales"),
            ("5", "🔎 Scan barcode", "11", "📝 Adjust stock"),
            ("6", "🛒 Add by name/ID", "12", "🔄 Reset store"),
            ("", "", "q", "👋 Quit")
        ]

        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 13)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                product_cache = products
                show_products(products)

        elif choice == "2":
            term = prompt_with_autocomplete("Enter name or barcode")
            res = try_api(c.search_products, term, success_msg=f"Search for '{term}' completed")
            if res is not None:
                show_products(res)

        elif choice == "3":
            barcode = prompt_with_autocomplete("Barcode")
            name = prompt_with_autocomplete("Product name")
            cost = ask_money("💰 Cost price ($)")
            price = ask_money("💰 Sale price ($)")
            stock = IntPrompt.ask("📦 Stock", default=0)
            category = prompt_with_autocomplete("🏷️ Category", default="general")
            resp = try_api(
                c.register_product, barcode, name, cost, price, stock, category,
                success_msg=f"Product '{name}' registered"
            )
            if resp:
                refresh_products()

        elif choice == "4":
            res = try_api(c.list_products, low_stock_only=True, success_msg="Low stock report loaded")
            if res is not None:
                show_products(res, title="⚠️ Below minimum stock")

        elif choice == "5":
            scan_to_cart()
            show_cart(cart, seller_id)

        elif choice == "6":
            term = prompt_with_autocomplete("Product name, ID or barcode", completer=get_product_completer())
            product = find_cached_product(term.strip())
            if product is None:
                console.print(f"[red]Unknown product: {term}[/red]")
            else:
                qty = IntPrompt.ask("Quantity", default=1)
                try:
                    cart.add(product, qty)
                    show_cart(cart, seller_id)
                except ValueError as e:
                    console.print(show_status(str(e), False))

        elif choice == "7":
            term = prompt_with_autocomplete("Product name, ID or barcode", completer=get_product_completer())
            product = find_cached_product(term.strip())
            pid = product["id"] if product else term.strip()
            if Confirm.ask("Remove entire item from cart?"):
                cart.remove(pid)
            else:
                cart.remove(pid, IntPrompt.ask("Quantity to remove", default=1))
            show_cart(cart, seller_id)

        elif choice == "8":
            show_cart(cart, seller_id)

        elif choice == "9":
            checkout(seller_id)

        elif choice == "10":
            sales = try_api(c.list_sales, seller_id, success_msg=f"Sales loaded for {seller_id}")
            if sales is not None:
                show_sales(sales, seller_id)

        elif choice == "11":
            term = prompt_with_autocomplete("Product name, ID or barcode", completer=get_product_completer())
            product = find_cached_product(term.strip())
            if product is None:
                console.print(f"[red]Unknown product: {term}[/red]")
            else:
                stock = IntPrompt.ask("New stock", default=product.get("stock", 0))
                resp = try_api(c.update_product, product["id"], stock=stock,
                               success_msg=f"Stock of {product['name']} set to {stock}")
                if resp:
                    refresh_products()

        elif choice == "12":
            if Confirm.ask("[red]This will clear all data. Continue?[/red]"):
                try_api(c.reset, success_msg="Store reset successfully")
                cart.clear()
                product_cache = []

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Till closed. 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


def main(argv=None):
    global c, cart
    parser = argparse.ArgumentParser(description="pos-store terminal")
    parser.add_argument("--seller", help="Seller identifier recorded on every sale")
    parser.add_argument("--api", default=DEFAULT_BASE_URL, help="Base URL of the pos-store API")
    args = parser.parse_args(argv)

    c = PosClient(base_url=args.api)
    cart = LocalCart()
    seller_id = args.seller or Prompt.ask("Seller ID")
    menu(seller_id)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n[bold red]Unexpected error: {e}[/bold red]")
        sys.exit(1)
