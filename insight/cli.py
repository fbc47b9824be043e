"""Command-line interface for Image Insight."""

import argparse
import json
import random
import sys
from datetime import datetime
from pathlib import Path

from tqdm import tqdm

from .config import load_config
from .core.analyzer import analyze_file
from .core.hashing import compute_file_hashes
from .core.metadata import extract_metadata
from .core.models import CATEGORY_LABELS, HistoryItem
from .core.validation import UploadValidationError, validate_upload
from .report.charts import save_chart_html
from .report.export import export_history_csv
from .report.pdf import generate_report
from .storage.history import HistoryStore
from .storage.settings import API_PROVIDERS, AppSettings, SettingsStore


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def read_image(path: Path) -> tuple[bytes, str]:
    """Read and validate an image file, exiting on failure."""
    if not path.is_file():
        print(f"Error: {path} does not exist")
        sys.exit(1)
    data = path.read_bytes()
    try:
        content_type = validate_upload(path.name, None, len(data))
    except UploadValidationError as e:
        print(f"Error: {path}: {e}")
        sys.exit(1)
    return data, content_type


def load_settings(args, config) -> AppSettings:
    """Stored settings, with the --provider flag applied on top."""
    settings = SettingsStore(config.db_path).load()
    if getattr(args, "provider", None):
        settings.api_provider = args.provider
    return settings


def make_rng(args):
    seed = getattr(args, "seed", None)
    return random.Random(seed) if seed is not None else None


def print_analysis(item: HistoryItem):
    result = item.analysis_result
    print(f"File:     {item.file_name} ({item.file_size} bytes)")
    print(f"Provider: {result.provider}")
    print(f"Overall AI likelihood: {result.overall}%")
    print("\nCategories:")
    for name, label in CATEGORY_LABELS.items():
        print(f"  {label:<20} {result.categories.get(name, 0):>3}%")

    for family, scores in result.families().items():
        detected = sorted(
            ((n, v) for n, v in scores.items() if v > 0), key=lambda e: e[1], reverse=True
        )
        if detected:
            print(f"\n{family.capitalize()}:")
            for name, value in detected:
                print(f"  {name:<28} {value:>3}%")

    if not item.metadata.is_empty():
        print("\nMetadata:")
        for key, value in item.metadata.to_dict().items():
            print(f"  {key:<14} {value}")

    if item.hashes:
        print("\nHashes:")
        for key, value in item.hashes.to_dict().items():
            print(f"  {key:<11} {value}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def analyze(args):
    """Analyze a single image."""
    config = load_config(args.config)
    settings = load_settings(args, config)
    path = Path(args.path)
    data, content_type = read_image(path)

    item = analyze_file(data, path.name, content_type, settings, config, make_rng(args))

    if args.json:
        payload = item.to_dict()
        payload.pop("preview", None)
        print(json.dumps(payload, indent=2))
    else:
        print_analysis(item)

    if args.save:
        item.notes = args.notes
        store = HistoryStore(config.db_path, max_items=config.max_history_items)
        item_id = store.save(item)
        if not args.json:
            print(f"\nSaved to history: {item_id}")


def batch(args):
    """Analyze every image in a directory."""
    config = load_config(args.config)
    settings = load_settings(args, config)
    rng = make_rng(args)

    path = Path(args.path)
    if not path.is_dir():
        print(f"Error: {path} is not a directory")
        sys.exit(1)

    pattern = "**/*" if args.recursive else "*"
    images = sorted(p for p in path.glob(pattern) if p.is_file())
    store = HistoryStore(config.db_path, max_items=config.max_history_items) if args.save else None

    rows = []
    failed = 0
    for filepath in tqdm(images, desc="Analyzing"):
        data = filepath.read_bytes()
        try:
            content_type = validate_upload(filepath.name, None, len(data))
        except UploadValidationError as e:
            tqdm.write(f"Skipped {filepath.name}: {e}")
            continue
        try:
            item = analyze_file(data, filepath.name, content_type, settings, config, rng)
        except Exception as e:
            tqdm.write(f"Warning: Could not analyze {filepath}: {e}")
            failed += 1
            continue
        if store:
            store.save(item)
        rows.append(item)

    if not rows and not failed:
        print(f"No supported images found in {path}")
        return

    print(f"\n{'File':<40} {'Overall':>8} {'GenAI':>6} {'Face':>6}")
    print("-" * 64)
    for item in rows:
        result = item.analysis_result
        print(f"{item.file_name[:40]:<40} {result.overall:>7}% "
              f"{result.categories['genai']:>5}% {result.categories['face_manipulation']:>5}%")
    print(f"\nAnalyzed {len(rows)} image(s), {failed} failed")
    if store:
        print(f"Saved to history. Total entries: {store.count()}")


def hash_file(args):
    """Print MD5, SHA256 and perceptual hashes of an image."""
    path = Path(args.path)
    read_image(path)
    hashes = compute_file_hashes(path, include_perceptual=not args.no_perceptual)
    for key, value in hashes.to_dict().items():
        print(f"{key:<11} {value}")


def metadata(args):
    """Print the EXIF metadata of an image."""
    data, _ = read_image(Path(args.path))
    result = extract_metadata(data)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return
    if result.is_empty():
        print("No EXIF metadata found")
        return
    for key, value in result.to_dict().items():
        print(f"{key:<14} {value}")


def report(args):
    """Analyze an image and write a PDF report (and optionally a chart)."""
    config = load_config(args.config)
    settings = load_settings(args, config)
    path = Path(args.path)
    data, content_type = read_image(path)

    item = analyze_file(data, path.name, content_type, settings, config, make_rng(args))

    output = Path(args.output or f"{path.stem}-report.pdf")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(generate_report(item.analysis_result, item.metadata, item.hashes, path.name))
    print(f"Report written to {output} (overall {item.analysis_result.overall}%)")

    if args.chart:
        save_chart_html(item.analysis_result, args.chart, path.name)
        print(f"Chart written to {args.chart}")


def history(args):
    """Inspect and manage the saved history."""
    config = load_config(args.config)
    store = HistoryStore(config.db_path, max_items=config.max_history_items)

    if args.action == "list":
        items = store.list_all()
        if not items:
            print("History is empty")
            return
        print(f"{'ID':<34} {'Date':<20} {'Overall':>8}  File")
        print("-" * 80)
        for item in items:
            result = item.analysis_result
            date = _format_ms(item.timestamp)
            print(f"{item.id:<34} {date:<20} {result.overall:>7}%  {item.file_name}")
        print(f"\nTotal: {len(items)} entr{'y' if len(items) == 1 else 'ies'}")

    elif args.action == "show":
        item = _require_item(store, args.id)
        print_analysis(item)
        if item.notes:
            print(f"\nNotes: {item.notes}")

    elif args.action == "delete":
        _require_item(store, args.id)
        store.delete(args.id)
        print(f"Deleted: {args.id}")

    elif args.action == "clear":
        deleted = store.clear()
        print(f"Deleted {deleted} entr{'y' if deleted == 1 else 'ies'}")

    elif args.action == "notes":
        _require_item(store, args.id)
        store.update_notes(args.id, args.text)
        print(f"Notes updated: {args.id}")

    elif args.action == "export":
        if args.format == "csv":
            content = export_history_csv(store.list_all())
        else:
            content = store.export_json()
        if args.output:
            Path(args.output).write_text(content)
            print(f"History exported to {args.output}")
        else:
            print(content)


def _require_item(store: HistoryStore, item_id: str) -> HistoryItem:
    item = store.get(item_id)
    if item is None:
        print(f"Error: No history entry with id {item_id}")
        sys.exit(1)
    return item


def _format_ms(timestamp_ms) -> str:
    if timestamp_ms is None:
        return "N/A"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def serve(args):
    """Run the API server."""
    from .server.run import main as run_server

    argv = ["--host", args.host, "--port", str(args.port)]
    if args.reload:
        argv.append("--reload")
    if args.config:
        argv += ["--config", args.config]
    run_server(argv)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Image Insight - estimate how likely an image is AI-generated",
        epilog="Environment variables: INSIGHT_DATA_DIR, INSIGHT_DB_PATH, INSIGHT_CONFIG, "
               "SIGHTENGINE_API_USER, SIGHTENGINE_API_SECRET",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="YAML config file (default: $INSIGHT_CONFIG)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_analysis_options(p):
        p.add_argument(
            "--provider", choices=API_PROVIDERS, default=None,
            help="Detection provider (default: stored setting)",
        )
        p.add_argument("--seed", type=int, default=None, help="Seed for the mock analysis")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a single image")
    analyze_parser.add_argument("path", help="Image file")
    add_analysis_options(analyze_parser)
    analyze_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    analyze_parser.add_argument("--save", action="store_true", help="Save the result to history")
    analyze_parser.add_argument("--notes", default=None, help="Notes to store with --save")
    analyze_parser.set_defaults(func=analyze)

    # Batch command
    batch_parser = subparsers.add_parser("batch", help="Analyze every image in a directory")
    batch_parser.add_argument("path", help="Directory of images")
    add_analysis_options(batch_parser)
    batch_parser.add_argument("--recursive", "-r", action="store_true", help="Include subdirectories")
    batch_parser.add_argument("--save", action="store_true", help="Save results to history")
    batch_parser.set_defaults(func=batch)

    # Hash command
    hash_parser = subparsers.add_parser("hash", help="Compute image hashes")
    hash_parser.add_argument("path", help="Image file")
    hash_parser.add_argument("--no-perceptual", action="store_true", help="Skip the perceptual hash")
    hash_parser.set_defaults(func=hash_file)

    # Metadata command
    metadata_parser = subparsers.add_parser("metadata", help="Show EXIF metadata")
    metadata_parser.add_argument("path", help="Image file")
    metadata_parser.add_argument("--json", action="store_true", help="Print as JSON")
    metadata_parser.set_defaults(func=metadata)

    # Report command
    report_parser = subparsers.add_parser("report", help="Write a PDF report for an image")
    report_parser.add_argument("path", help="Image file")
    add_analysis_options(report_parser)
    report_parser.add_argument("--output", "-o", default=None,
                               help="PDF path (default: <name>-report.pdf)")
    report_parser.add_argument("--chart", default=None, help="Also write an HTML score chart")
    report_parser.set_defaults(func=report)

    # History command
    history_parser = subparsers.add_parser("history", help="Manage saved analyses")
    history_sub = history_parser.add_subparsers(dest="action", required=True)
    history_sub.add_parser("list", help="List saved analyses")
    show_parser = history_sub.add_parser("show", help="Show one analysis")
    show_parser.add_argument("id")
    delete_parser = history_sub.add_parser("delete", help="Delete one analysis")
    delete_parser.add_argument("id")
    history_sub.add_parser("clear", help="Delete all analyses")
    notes_parser = history_sub.add_parser("notes", help="Set the notes of an analysis")
    notes_parser.add_argument("id")
    notes_parser.add_argument("text")
    export_parser = history_sub.add_parser("export", help="Export the history")
    export_parser.add_argument("--format", "-f", choices=["json", "csv"], default="json")
    export_parser.add_argument("--output", "-o", default=None, help="Output file (default: stdout)")
    history_parser.set_defaults(func=history)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=serve)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
