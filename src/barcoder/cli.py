"""Command-line interface for Barcoder."""

from __future__ import annotations

import asyncio
import json
from typing import List, Optional

import typer

from barcoder.barcode import barcode_format, is_valid_barcode
from barcoder.composition import Services, build_services
from barcoder.config import get_settings
from barcoder.logging_utils import configure_logging
from barcoder.models.shopping import ShoppingList
from barcoder.replay.sequencer import ReplaySequencer, StepResult
from barcoder.scanning import submit_scan

app = typer.Typer(help="Scan shopping lists and replay them at the checkout.")
lists_app = typer.Typer(help="Create, inspect and delete shopping lists.")
cards_app = typer.Typer(help="Manage saved membership cards.")
app.add_typer(lists_app, name="lists")
app.add_typer(cards_app, name="cards")


def _services() -> Services:
    return build_services()


def _require_list(services: Services, list_id: str) -> ShoppingList:
    shopping_list = services.lists.get_list(list_id)
    if shopping_list is None:
        typer.secho(f"List {list_id} not found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return shopping_list


def _print_list(services: Services, shopping_list: ShoppingList) -> None:
    typer.echo(f"{shopping_list.name} ({shopping_list.id})")
    for item in shopping_list.items:
        product = services.products.peek(item.barcode)
        label = f"  {item.barcode} x{item.quantity}"
        if product is not None and product.name:
            label += f"  {product.name}"
        if item.defect:
            label += "  [defect]"
        typer.echo(label)
    typer.echo(f"{shopping_list.unique_count} unique · {shopping_list.total_quantity} total")


@app.callback()
def main_callback() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


@app.command()
def validate(code: str) -> None:
    """Check the barcode's digits and check digit."""

    if is_valid_barcode(code):
        typer.echo(f"{code}: valid {barcode_format(code)}")
        return
    typer.echo(f"{code}: invalid")
    raise typer.Exit(code=1)


@lists_app.command("new")
def lists_new(name: str) -> None:
    """Create an empty list and print its id."""

    shopping_list = _services().lists.create_list(name)
    typer.echo(shopping_list.id)


@lists_app.command("all")
def lists_all() -> None:
    for shopping_list in _services().lists.all_lists():
        typer.echo(
            f"{shopping_list.id}  {shopping_list.name}  "
            f"{shopping_list.unique_count} unique · {shopping_list.total_quantity} total"
        )


@lists_app.command("show")
def lists_show(
    list_id: str,
    as_json: bool = typer.Option(False, "--json", help="Print the stored JSON record."),
) -> None:
    services = _services()
    shopping_list = _require_list(services, list_id)
    if as_json:
        typer.echo(json.dumps(shopping_list.model_dump(mode="json", by_alias=True), indent=2))
        return
    _print_list(services, shopping_list)


@lists_app.command("delete")
def lists_delete(list_id: str) -> None:
    _services().lists.delete_list(list_id)


@app.command()
def scan(list_id: str, barcodes: List[str] = typer.Argument(..., help="Barcodes to add.")) -> None:
    """Add one scan per barcode; invalid codes are reported and skipped."""

    services = _services()
    _require_list(services, list_id)
    rejected = 0
    for raw in barcodes:
        result = submit_scan(services.lists, list_id, raw)
        if result.accepted:
            typer.echo(f"+ {result.barcode} ({result.format})")
        else:
            rejected += 1
            typer.secho(f"{raw}: {result.message}", fg=typer.colors.YELLOW, err=True)
    if rejected:
        raise typer.Exit(code=1)


@app.command()
def qty(
    list_id: str,
    barcode: str,
    by: int = typer.Option(..., "--by", help="Quantity change; the item is removed at zero."),
) -> None:
    """Change an item's quantity."""

    services = _services()
    _require_list(services, list_id)
    updated = services.lists.update_quantity(list_id, barcode, by)
    if updated is not None:
        _print_list(services, updated)


@app.command()
def remove(list_id: str, barcode: str) -> None:
    """Remove an item whatever its quantity."""

    services = _services()
    _require_list(services, list_id)
    services.lists.remove_item(list_id, barcode)


@app.command()
def defect(
    list_id: str,
    barcode: str,
    clear: bool = typer.Option(False, "--clear", help="Clear the flag instead of setting it."),
) -> None:
    """Flag an item the store scanner could not read."""

    services = _services()
    _require_list(services, list_id)
    services.lists.mark_defect(list_id, barcode, not clear)


@app.command()
def lookup(barcode: str) -> None:
    """Print cached or freshly fetched product metadata."""

    services = _services()
    info = asyncio.run(services.products.lookup(barcode))
    typer.echo(json.dumps(info.model_dump(by_alias=True)))


@app.command()
def replay(list_id: str) -> None:
    """Walk the list one barcode at a time: [n]ext, [p]revious, [d]efect, [q]uit."""

    services = _services()
    _require_list(services, list_id)
    sequencer = ReplaySequencer(services.lists, list_id)
    if not sequencer.sequence:
        typer.echo("No items to replay.")
        return

    while True:
        _show_step(services, sequencer)
        choice = typer.prompt("[n/p/d/q]", default="n").strip().lower()
        if choice == "q":
            break
        if choice == "p":
            sequencer.retreat()
        elif choice == "d":
            flagged = sequencer.toggle_defect()
            typer.echo("Marked defect." if flagged else "Defect cleared.")
        elif sequencer.advance() is StepResult.COMPLETED:
            typer.echo("Replay complete.")
            break
        sequencer.refresh()


def _show_step(services: Services, sequencer: ReplaySequencer) -> None:
    state = sequencer.snapshot()
    line = f"[{state.current_index + 1}/{state.length}] {state.barcode}"
    if state.quantity > 1:
        line += f"  ({state.occurrence} of {state.quantity})"
    product = services.products.peek(state.barcode) if state.barcode else None
    if product is not None and product.name:
        line += f"  {product.name}"
    if state.defect:
        line += "  [defect - skip at scanner]"
    typer.echo(line)


@cards_app.command("add")
def cards_add(name: str, barcode: str) -> None:
    card = _services().cards.add_card(name, barcode)
    typer.echo(card.id)


@cards_app.command("list")
def cards_list() -> None:
    for card in _services().cards.all_cards():
        typer.echo(f"{card.id}  {card.name}  {card.barcode}")


@cards_app.command("delete")
def cards_delete(card_id: str) -> None:
    _services().cards.delete_card(card_id)


@app.command()
def serve() -> None:
    """Run the HTTP API under uvicorn."""

    from barcoder.server.run import main as run_server

    run_server()


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the `barcoder` console script."""
    app(prog_name="barcoder", args=argv)


if __name__ == "__main__":
    main()
