"""Command-line interface for receipt scanning and CSV export.

Provides subcommands to scan a single photo, process a folder of photos
into a CSV report, and parse saved OCR text without running OCR.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from tiquete_scan.extraction.field_extractor import FIELD_KEYS, FieldExtractor
from tiquete_scan.extraction.prefill import Empresa, build_draft, load_catalog
from tiquete_scan.ocr.receipt_scanner import ReceiptScanner
from tiquete_scan.utils.config import load_config
from tiquete_scan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.webp", "*.tiff", "*.tif")
_META_COLUMNS = [
    "filename",
    "status",
    "processing_time_s",
    "confidence",
    "empresa_id",
    "error",
]


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported receipt photos in a directory.

    Args:
        input_dir: Directory to scan for photos.

    Returns:
        Sorted list of image file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _load_catalog(path: Path | None) -> list[Empresa]:
    return load_catalog(path) if path else []


def process_folder(
    input_dir: Path,
    output_csv: Path,
    catalog_path: Path | None = None,
    auto_correct: bool = True,
    verbose: bool = False,
) -> dict[str, int]:
    """Scan all receipt photos in a folder and export results to CSV.

    Args:
        input_dir: Directory containing receipt photos.
        output_csv: Path for the output CSV file.
        catalog_path: Optional JSON company catalog for pre-selection.
        auto_correct: Whether to condition photos before OCR.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = load_config()
    scanner = ReceiptScanner(config)
    catalog = _load_catalog(catalog_path)

    files = _find_images(input_dir)
    if not files:
        logger.warning("No receipt photos found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d receipt photos to process", len(files))

    rows: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = scanner.scan(file_path, auto_correct=auto_correct)
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            rows.append(
                {"filename": file_path.name, "status": "failed", "error": str(exc)}
            )
            failed += 1
            continue

        draft = build_draft(result.data, catalog)
        row: dict[str, object] = {
            "filename": file_path.name,
            "status": "success",
            "processing_time_s": round(time.time() - start_time, 2),
            "confidence": round(result.data.confidence, 1),
            "empresa_id": draft.empresa_id,
            "error": None,
        }
        fields = result.data.to_dict()
        row.update({key: fields[key] for key in FIELD_KEYS.values()})
        rows.append(row)
        successful += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write one CSV row per receipt: meta columns, then the ticket fields."""
    if not rows:
        return

    columns = _META_COLUMNS + list(FIELD_KEYS.values())
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Scan Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def scan_single(
    file_path: Path,
    catalog_path: Path | None = None,
    auto_correct: bool = True,
    rotation: int = 0,
) -> dict[str, object]:
    """Scan a single receipt photo and return structured results.

    Args:
        file_path: Path to the receipt photo.
        catalog_path: Optional JSON company catalog for pre-selection.
        auto_correct: Whether to condition the photo before OCR.
        rotation: Clockwise rotation applied first, in degrees.

    Returns:
        Dictionary with filename, fields and the form draft.
    """
    scanner = ReceiptScanner(load_config())
    result = scanner.scan(file_path, auto_correct=auto_correct, rotation=rotation)
    draft = build_draft(result.data, _load_catalog(catalog_path))
    return {
        "filename": result.filename,
        "fields": result.data.to_dict(),
        "draft": draft.to_dict(),
        "missing_fields": draft.missing_fields(),
    }


def parse_text(text_path: Path, confidence: float = 0.0) -> dict[str, object]:
    """Run the field extractor on saved OCR text."""
    config = load_config()
    text = text_path.read_text(encoding="utf-8", errors="replace")
    return FieldExtractor(config.extraction).extract(text, confidence).to_dict()


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI application server."""
    import uvicorn

    from tiquete_scan.api.app import app

    uvicorn.run(app, host=host, port=port)


def _emit(result: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(result, indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(output_str)


def _require(path: Path, is_dir: bool = False) -> None:
    exists = path.is_dir() if is_dir else path.exists()
    if not exists:
        kind = "is not a directory" if is_dir else "does not exist"
        print(f"Error: {path} {kind}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Fruit receipt (tiquete) scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="Scan a single receipt photo")
    scan_parser.add_argument("file", type=Path, help="Receipt photo to scan")
    scan_parser.add_argument(
        "--no-auto-correct", action="store_true", help="Skip image conditioning"
    )
    scan_parser.add_argument(
        "--rotate", type=int, default=0, help="Clockwise rotation in degrees"
    )
    scan_parser.add_argument("--catalog", type=Path, help="Company catalog JSON")
    scan_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Scan a folder of photos")
    batch_parser.add_argument("input_dir", type=Path, help="Directory with photos")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument("--catalog", type=Path, help="Company catalog JSON")
    batch_parser.add_argument(
        "--no-auto-correct", action="store_true", help="Skip image conditioning"
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    parse_parser = subparsers.add_parser("parse", help="Parse saved OCR text")
    parse_parser.add_argument("text_file", type=Path, help="Text file with OCR output")
    parse_parser.add_argument(
        "--confidence", type=float, default=0.0, help="OCR confidence (0-100)"
    )
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)

    setup_logging(load_config().log_level)

    if args.command == "serve":
        serve(args.host, args.port)
    elif args.command == "scan":
        _require(args.file)
        result = scan_single(
            args.file, args.catalog, not args.no_auto_correct, args.rotate
        )
        _emit(result, args.output)
    elif args.command == "batch":
        _require(args.input_dir, is_dir=True)
        process_folder(
            args.input_dir,
            args.output,
            args.catalog,
            not args.no_auto_correct,
            args.verbose,
        )
    elif args.command == "parse":
        _require(args.text_file)
        _emit(parse_text(args.text_file, args.confidence), args.output)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
