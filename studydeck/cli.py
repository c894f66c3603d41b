"""CLI: command-line interface for studydeck."""

import argparse
import logging
import pathlib
import sys

from studydeck.app import App
from studydeck.errors import NoCardsProducedError, StudyDeckError
from studydeck.models import FieldMapping, ModelMapping, format_deck_title
from studydeck.package import short_name_for
from studydeck.scheduler import RATINGS

RATING_KEYS = {"1": "again", "2": "hard", "3": "good", "4": "easy"}


def _parse_indexes(text: str) -> list[int]:
    try:
        return [int(x) for x in text.split(",") if x.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected comma-separated field numbers, got {text!r}")


def _format_indexes(indexes: list[int]) -> str:
    return ",".join(str(i) for i in indexes) or "-"


def _resolve_deck(app: App, name: str):
    deck = app.deck_by_name(name)
    if deck is None:
        print(f"No deck named '{name}'.", file=sys.stderr)
    return deck


def cmd_import(args, app: App):
    path = pathlib.Path(args.path).resolve()
    print(f"Importing {path.name}...")
    try:
        result = app.import_package(path, use_saved_mapping=not args.naive)
    except NoCardsProducedError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(f"  (source cards: {e.source_total_cards}, notes: {e.source_total_notes})",
              file=sys.stderr)
        return 1
    title = format_deck_title(result.deck_name)
    print(f"Imported deck '{title}' with {result.card_count} cards.")
    if result.strategy == "naive" or result.card_count != result.source_total_cards:
        print(f"  source cards: {result.source_total_cards}, notes: {result.source_total_notes}, "
              f"extracted: {result.extracted_cards} ({result.strategy})")
    return 0


def cmd_inspect(args, app: App):
    path = pathlib.Path(args.path).resolve()
    snapshot = None if args.refresh else app.cached_inspection(short_name_for(path))
    if snapshot is None or not snapshot.models:
        snapshot = app.inspect_package(path)
    else:
        print("(cached inspection; use --refresh to rescan the package)")
    if not snapshot.models:
        print("No models found in this package.")
        return 0
    saved = app.field_mapping(snapshot.short_name)
    for mid, model in snapshot.models.items():
        print(f"Model {mid}: {model.name} ({model.note_count} notes)")
        selected = saved.models.get(mid) if saved else None
        for fld in model.fields:
            marker = ""
            if selected and fld.index in selected.front_indexes:
                marker = " [front]"
            elif selected and fld.index in selected.back_indexes:
                marker = " [back]"
            sample = fld.samples[0].replace("\n", " ") if fld.samples else ""
            if len(sample) > 120:
                sample = sample[:117] + "..."
            print(f"  {fld.index}. {fld.name}{marker}" + (f" ({sample})" if sample else ""))
    return 0


def cmd_map(args, app: App):
    selection = ModelMapping(front_indexes=args.front or [], back_indexes=args.back or [])
    if not selection.front_indexes and not selection.back_indexes:
        selection = app.default_selection(args.short_name, args.model)
        if selection is None:
            print("No fields selected and no inspected fields for this model; "
                  "run 'inspect' first. Mapping unchanged.")
            return 1
        print(f"Using default selection: front {_format_indexes(selection.front_indexes)}, "
              f"back {_format_indexes(selection.back_indexes)}")
    result = app.apply_mapping(args.short_name, FieldMapping(models={args.model: selection}))
    print("Field mapping saved for this deck.")
    if result is not None:
        print(f"Rebuilt deck '{format_deck_title(result.deck_name)}' with {result.card_count} cards.")
    return 0


def cmd_decks(args, app: App):
    decks = app.list_decks()
    if not decks:
        print("No decks. Import a package first.")
        return 0
    for deck in decks:
        print(f"  {format_deck_title(deck.name)}: {deck.card_count} cards")
    return 0


def cmd_delete(args, app: App):
    deck = _resolve_deck(app, args.name)
    if deck is None:
        return 1
    app.delete_deck(deck)
    print(f"Deleted deck '{format_deck_title(deck.name)}'.")
    return 0


def cmd_status(args, app: App):
    decks = app.list_decks()
    if not decks:
        print("No decks. Import a package first.")
        return 0
    for deck in decks:
        stats = app.store.deck_stats(deck.id)
        print(f"{format_deck_title(deck.name)}: {stats['total']} cards, "
              f"{stats['due']} due, {stats['new']} new")
    return 0


def cmd_review(args, app: App, input_fn=input):
    if args.name:
        deck = _resolve_deck(app, args.name)
        if deck is None:
            return 1
        deck_id = deck.id
    else:
        deck_id = app.last_deck_id() or app.store.ensure_sample_deck()
    app.remember_deck(deck_id)

    reviewed = 0
    while True:
        card = app.next_card(deck_id)
        if card is None:
            print("No cards due.")
            break
        print(f"\n{card.front}\n")
        try:
            input_fn("[Enter] show answer ")
        except EOFError:
            break
        print(f"{card.back}\n")
        previews = app.preview(card)
        print("  ".join(f"{key}) {rating} {previews[rating].label}"
                        for key, rating in RATING_KEYS.items()))
        try:
            choice = input_fn("Rating [1-4, q to quit]: ").strip().lower()
        except EOFError:
            break
        if choice == "q":
            break
        rating = RATING_KEYS.get(choice) or (choice if choice in RATINGS else None)
        if rating is None:
            print("Unknown rating, card skipped.")
            continue
        app.rate(card, rating)
        reviewed += 1
    print(f"Reviewed {reviewed} card(s).")
    return 0


def cmd_random(args, app: App):
    app.set_randomize_equal_due(args.state == "on")
    print(f"Random order among equally due cards: {args.state}")
    return 0


def main():
    parser = argparse.ArgumentParser(prog="studydeck",
                                     description="Study flashcards from exported packages")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging (-v info, -vv debug)")
    subparsers = parser.add_subparsers(dest="command")

    p_import = subparsers.add_parser("import", help="Import a package into a deck")
    p_import.add_argument("path", help="Package file (.apkg)")
    p_import.add_argument("--naive", action="store_true",
                          help="Ignore the saved field mapping and use templates/heuristics")

    p_inspect = subparsers.add_parser("inspect", help="Show models, fields and sample values")
    p_inspect.add_argument("path", help="Package file (.apkg)")
    p_inspect.add_argument("--refresh", action="store_true",
                           help="Rescan the package instead of using the cached inspection")

    p_map = subparsers.add_parser(
        "map", help="Choose front/back fields for a deck",
        epilog="Without --front and --back, field 1 goes on the front and the rest on the back.")
    p_map.add_argument("short_name", help="Deck short name (package name without extension)")
    p_map.add_argument("--model", required=True, help="Model id (see 'inspect')")
    p_map.add_argument("--front", type=_parse_indexes,
                       help="Comma-separated field numbers for the front")
    p_map.add_argument("--back", type=_parse_indexes,
                       help="Comma-separated field numbers for the back")

    subparsers.add_parser("decks", help="List decks with card counts")

    p_delete = subparsers.add_parser("delete", help="Delete a deck and its cards")
    p_delete.add_argument("name", help="Deck name")

    subparsers.add_parser("status", help="Show due and new counts per deck")

    p_review = subparsers.add_parser("review", help="Review due cards in the terminal")
    p_review.add_argument("name", nargs="?", help="Deck name (default: last studied)")

    p_random = subparsers.add_parser("random", help="Randomize order among equally due cards")
    p_random.add_argument("state", choices=["on", "off"])

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    app = App()
    if not app.data_dir.exists():
        app.data_dir.mkdir(parents=True, exist_ok=True)
        print(f"Created data directory: {app.data_dir}")

    commands = {
        "import": cmd_import,
        "inspect": cmd_inspect,
        "map": cmd_map,
        "decks": cmd_decks,
        "delete": cmd_delete,
        "status": cmd_status,
        "review": cmd_review,
        "random": cmd_random,
    }
    try:
        status = commands[args.command](args, app)
    except StudyDeckError as e:
        print(f"Error: {e}", file=sys.stderr)
        status = 1
    finally:
        app.close()
    sys.exit(status or 0)
