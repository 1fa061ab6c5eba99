# =============================================================================
# haccp_core/reports/layout.py
# Row and section builders shared by the PDF reports
# =============================================================================
"""
Everything here is pure: collections in, rows of strings out. The PDF
builders only place these rows on pages, so report content can be tested
without parsing PDFs.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from haccp_core.domain import (
    CheckItem,
    DailyLog,
    HaccpCategory,
    InventoryItem,
    StockMovement,
    TraceabilityRecord,
)
from haccp_core.domain.constants import TEMPERATURE_CHECKS_PER_DAY, category_label
from haccp_core.errors import ReportError

T = TypeVar("T")

STATUS_DONE = "VALIDE"
STATUS_MISSING = "NON FAIT"
HISTORY_CONFORMING = "CONFORME"
HISTORY_INCOMPLETE = "INCOMPLET"
TEMPERATURES_OK = "OK"
TEMPERATURES_MISSING = "MANQUANT"
EMPTY_CELL = "-"

MORNING = "Matin"
EVENING = "Soir"

# "Frigo Bar - Soir (+2°C/+4°C)" -> "Frigo Bar", "Soir"
_SLOT_SUFFIX = re.compile(r"\s*-\s*(Matin|Soir)\b.*$", re.IGNORECASE)

FRENCH_MONTHS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]
FRENCH_MONTHS_SHORT = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]
FRENCH_WEEKDAYS = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]
FRENCH_WEEKDAYS_SHORT = ["lun.", "mar.", "mer.", "jeu.", "ven.", "sam.", "dim."]


# =============================================================================
# FORMATTING
# =============================================================================

def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO timestamp (a trailing Z is accepted) or None."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def format_time(timestamp: Optional[str]) -> str:
    parsed = parse_timestamp(timestamp)
    return parsed.strftime("%H:%M") if parsed else EMPTY_CELL


def format_value(item: CheckItem) -> str:
    if item.value is None or item.value == "":
        return EMPTY_CELL
    value = f"{item.value:g}" if isinstance(item.value, float) else str(item.value)
    if item.category == HaccpCategory.TEMPERATURE:
        return f"{value} °C"
    return value


def status_text(completed: bool) -> str:
    return STATUS_DONE if completed else STATUS_MISSING


def long_french_date(day: str) -> str:
    """'2024-06-01' -> 'samedi 1 juin 2024'"""
    d = date.fromisoformat(day[:10])
    return f"{FRENCH_WEEKDAYS[d.weekday()]} {d.day} {FRENCH_MONTHS[d.month - 1]} {d.year}"


def short_french_date(day: str) -> str:
    """'2024-06-01' -> 'sam. 1 juin 2024'"""
    d = date.fromisoformat(day[:10])
    return f"{FRENCH_WEEKDAYS_SHORT[d.weekday()]} {d.day} {FRENCH_MONTHS_SHORT[d.month - 1]} {d.year}"


def format_day(day: str) -> str:
    """'2024-06-01' -> '01/06/2024'; anything unparseable is returned as is."""
    try:
        return date.fromisoformat(day[:10]).strftime("%d/%m/%Y")
    except ValueError:
        return day


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


# =============================================================================
# DAILY LOG
# =============================================================================

@dataclass(frozen=True)
class TemperatureRow:
    item_id: str
    location: str
    slot: str
    status: str
    value: str
    time: str

    @property
    def cells(self) -> List[str]:
        return [self.location, self.slot, self.status, self.value, self.time]


@dataclass(frozen=True)
class GeneralRow:
    item_id: str
    category: str
    label: str
    status: str
    value: str
    time: str

    @property
    def cells(self) -> List[str]:
        return [self.category, self.label, self.status, self.value, self.time]


@dataclass(frozen=True)
class DailyLogLayout:
    temperature_rows: List[TemperatureRow]
    general_rows: List[GeneralRow]

    @property
    def item_ids(self) -> List[str]:
        return [row.item_id for row in self.temperature_rows] + [row.item_id for row in self.general_rows]


def split_location(label: str) -> Tuple[str, str]:
    """Location and slot of a temperature label; slot is '' when absent."""
    match = _SLOT_SUFFIX.search(label)
    if not match:
        return label.strip(), ""
    return label[: match.start()].strip(), match.group(1).capitalize()


def temperature_rows(items: Iterable[CheckItem]) -> List[TemperatureRow]:
    """
    One row per reading, grouped by location in first-seen order with the
    morning reading before the evening one.
    """
    groups: Dict[str, List[Tuple[str, CheckItem]]] = {}
    for item in items:
        location, slot = split_location(item.label)
        groups.setdefault(location, []).append((slot, item))

    slot_order = {MORNING: 0, "": 1, EVENING: 2}
    rows = []
    for location, readings in groups.items():
        for slot, item in sorted(readings, key=lambda reading: slot_order[reading[0]]):
            rows.append(
                TemperatureRow(
                    item_id=item.id,
                    location=location,
                    slot=slot or EMPTY_CELL,
                    status=status_text(item.completed),
                    value=format_value(item),
                    time=format_time(item.timestamp),
                )
            )
    return rows


def general_rows(items: Iterable[CheckItem]) -> List[GeneralRow]:
    return [
        GeneralRow(
            item_id=item.id,
            category=category_label(item.category),
            label=item.label,
            status=status_text(item.completed),
            value=format_value(item),
            time=format_time(item.timestamp),
        )
        for item in items
    ]


def daily_log_layout(log: DailyLog) -> DailyLogLayout:
    """Split a log into the temperature block and the general block."""
    temperatures = [item for item in log.items if item.category == HaccpCategory.TEMPERATURE]
    others = [item for item in log.items if item.category != HaccpCategory.TEMPERATURE]
    return DailyLogLayout(temperature_rows(temperatures), general_rows(others))


# =============================================================================
# HISTORY
# =============================================================================

@dataclass(frozen=True)
class HistoryRow:
    date: str
    completed: int
    total: int
    conforming: bool
    temperatures_ok: bool

    @property
    def cells(self) -> List[str]:
        return [
            short_french_date(self.date),
            f"{self.completed} / {self.total}",
            HISTORY_CONFORMING if self.conforming else HISTORY_INCOMPLETE,
            TEMPERATURES_OK if self.temperatures_ok else TEMPERATURES_MISSING,
        ]


def history_row(log: DailyLog) -> HistoryRow:
    temperatures_done = sum(
        1 for item in log.items if item.category == HaccpCategory.TEMPERATURE and item.completed
    )
    return HistoryRow(
        date=log.date,
        completed=log.completed_count,
        total=log.total_count,
        conforming=all(item.completed for item in log.items),
        temperatures_ok=temperatures_done >= TEMPERATURE_CHECKS_PER_DAY,
    )


def history_rows(logs: Iterable[DailyLog]) -> List[HistoryRow]:
    return [history_row(log) for log in logs]


def history_period(logs: Sequence[DailyLog]) -> str:
    dates = sorted(log.date for log in logs)
    return f"du {dates[0]} au {dates[-1]}"


# =============================================================================
# TRACEABILITY
# =============================================================================

def records_for_month(records: Iterable[TraceabilityRecord], month: str) -> List[TraceabilityRecord]:
    """Records captured during `month` ('YYYY-MM'), order preserved."""
    return [record for record in records if record.date.startswith(month)]


def month_label(month: str) -> str:
    """'2024-06' -> 'juin 2024'"""
    match = re.fullmatch(r"(\d{4})-(\d{2})", month.strip())
    if match is None or not 1 <= int(match.group(2)) <= 12:
        raise ReportError(f"Mois invalide : {month!r}", details={"month": month})
    return f"{FRENCH_MONTHS[int(match.group(2)) - 1]} {int(match.group(1))}"


def group_by_day(records: Iterable[TraceabilityRecord]) -> Dict[str, List[TraceabilityRecord]]:
    """Records grouped by capture day, most recent day first."""
    groups: Dict[str, List[TraceabilityRecord]] = {}
    for record in records:
        groups.setdefault(record.day, []).append(record)
    return {day: groups[day] for day in sorted(groups, reverse=True)}


def traceability_rows(records: Iterable[TraceabilityRecord]) -> List[List[str]]:
    return [
        [
            format_day(record.day),
            record.item_name,
            record.lot_number,
            format_day(record.expiry_date),
            "Oui" if record.has_photo else "Non",
        ]
        for record in records
    ]


# =============================================================================
# STOCK
# =============================================================================

def stock_rows(inventory: Iterable[InventoryItem]) -> List[List[str]]:
    return [
        [
            item.name,
            item.category,
            f"{item.current_quantity:g} {item.unit}",
            f"{item.min_threshold:g}",
            "ALERTE" if item.is_low_stock else "OK",
        ]
        for item in sorted(inventory, key=lambda item: item.name.lower())
    ]


def movement_rows(movements: Iterable[StockMovement]) -> List[List[str]]:
    rows = []
    for movement in movements:
        parsed = parse_timestamp(movement.date)
        rows.append([
            parsed.strftime("%d/%m/%Y %H:%M") if parsed else movement.date,
            movement.item_name,
            "Entrée" if movement.signed_quantity > 0 else "Sortie",
            f"{movement.quantity:g}",
            movement.reason,
        ])
    return rows


# =============================================================================
# PRODUCTION LABEL
# =============================================================================

def label_dates(produced_at: datetime, shelf_life_days: int) -> Tuple[str, str]:
    """('Fabriqué le' text, DLC text)."""
    expiry = produced_at + timedelta(days=shelf_life_days)
    return (
        f"Fabriqué le : {produced_at.strftime('%d/%m/%y')} à {produced_at.strftime('%H:%M')}",
        f"DLC : {expiry.strftime('%d/%m/%y')}",
    )


def label_filename(recipe_name: str, produced_at: datetime) -> str:
    return f"Etiquette_{'_'.join(recipe_name.split())}_{produced_at.strftime('%d-%m-%y')}.pdf"
