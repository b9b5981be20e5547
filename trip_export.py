# Renders a trip result as copyable text or as a spreadsheet file.

import logging
from datetime import datetime
from pathlib import Path

from api_structures import TripResult
from trip_pricing import format_duration

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK = "\ufeff"
NOT_SPECIFIED = "Not specified"


def format_timestamp(moment: datetime) -> str:
    """Local, human-readable date and time, e.g. '19 Oct 2026, 14:05'."""
    return moment.astimezone().strftime("%d %b %Y, %H:%M")


def format_km(distance_km: float) -> str:
    # Whole distances print without a trailing '.0' (620, not 620.0).
    if float(distance_km).is_integer():
        return str(int(distance_km))
    return str(distance_km)


def trip_type(result: TripResult) -> str:
    return "Round trip" if result.round_trip else "One way"


def summary_text(result: TripResult) -> str:
    """The plain-text summary a user copies or the CLI prints."""
    if not result.ok:
        return (f"ERROR: {result.error_message}\n"
                f"Date: {format_timestamp(result.computed_at)}")

    return "\n".join([
        f"Trip: {result.origin} → {result.destination}",
        f"Type: {trip_type(result)}",
        f"Distance: {format_km(result.distance_km)} km",
        f"Estimated duration: {format_duration(result.duration_minutes)}",
        f"Price/km: {result.price_per_km:.2f} €",
        f"TOTAL PRICE: {result.total_price:.2f} €",
        f"Calculated: {format_timestamp(result.computed_at)}",
    ])


def spreadsheet_rows(result: TripResult) -> list[tuple[str, str]]:
    if not result.ok:
        return [
            ("Error", result.error_message),
            ("Origin entered", result.origin_input or NOT_SPECIFIED),
            ("Destination entered", result.destination_input or NOT_SPECIFIED),
            ("Calculated", format_timestamp(result.computed_at)),
        ]

    return [
        ("Origin", result.origin),
        ("Destination", result.destination),
        ("Trip type", trip_type(result)),
        ("Distance (km)", format_km(result.distance_km)),
        ("Estimated duration", format_duration(result.duration_minutes)),
        ("Price per km (€)", f"{result.price_per_km:.2f}"),
        ("Total price (€)", f"{result.total_price:.2f}"),
        ("Calculated", format_timestamp(result.computed_at)),
        ("Error", "None"),
    ]


def _quote(cell: str) -> str:
    return '"' + cell.replace('"', '""') + '"'


def spreadsheet_bytes(result: TripResult) -> bytes:
    """
    Tab-separated 'Field'/'Value' table with every cell quoted, prefixed
    with a UTF-8 byte-order mark so spreadsheet programs detect the encoding.
    """
    rows = [("Field", "Value")] + spreadsheet_rows(result)
    content = "\n".join("\t".join(_quote(cell) for cell in row) for row in rows)
    return (BYTE_ORDER_MARK + content).encode("utf-8")


def export_filename(result: TripResult) -> str:
    return f"trip_{result.computed_at.date().isoformat()}.xls"


def write_export(result: TripResult, directory: str | Path = ".") -> Path:
    """Writes the spreadsheet export into a directory and returns its path."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / export_filename(result)
    path.write_bytes(spreadsheet_bytes(result))
    logger.info("Exported trip result to %s", path)
    return path
