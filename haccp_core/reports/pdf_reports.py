# =============================================================================
# haccp_core/reports/pdf_reports.py
# PDF documents of the HACCP register (reportlab)
# =============================================================================
"""
Report builders.

Each builder takes an already-loaded snapshot and returns a ReportFile; none
of them touches the repository. Documents are rendered in reportlab's
invariant mode, so the same input and `generated_at` give the same bytes.

Usage:
------
from haccp_core.reports import build_daily_log_report

report = build_daily_log_report(log)
st.download_button("PDF", report.content, file_name=report.filename, mime=report.mime)
"""

from __future__ import annotations
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from haccp_core.domain import DailyLog, InventoryItem, Recipe, StockMovement, TraceabilityRecord
from haccp_core.domain.constants import RESTAURANT_NAME
from haccp_core.errors import ReportError
from haccp_core.logging import get_logger

from . import layout
from .images import load_embeddable_image

logger = get_logger(__name__)

PDF_MIME = "application/pdf"

PAGE_MARGIN = 15 * mm
CONTENT_WIDTH = A4[0] - 2 * PAGE_MARGIN

HEADER_COLOR = colors.HexColor("#4338ca")
TEXT_COLOR = colors.HexColor("#2c3e50")
ALT_ROW_COLOR = colors.HexColor("#f8fafc")
DONE_COLOR = colors.HexColor("#166534")
MISSING_COLOR = colors.HexColor("#b91c1c")

# Photo pages: 2 columns x 3 rows
GRID_COLUMNS = 2
GRID_ROWS = 3
PHOTOS_PER_PAGE = GRID_COLUMNS * GRID_ROWS
PHOTO_BOX = (80 * mm, 62 * mm)

LABEL_SIZE = (60 * mm, 40 * mm)
STORAGE_NOTE = "À conserver entre 0°C et +4°C"

ImageLoader = Callable[[str], bytes]


@dataclass(frozen=True)
class ReportFile:
    """A generated document ready for download."""
    filename: str
    content: bytes
    mime: str = PDF_MIME
    warnings: tuple = ()


# =============================================================================
# SHARED PIECES
# =============================================================================

def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "HaccpTitle", parent=base["Heading1"], fontSize=20, textColor=TEXT_COLOR, spaceAfter=6
        ),
        "meta": ParagraphStyle(
            "HaccpMeta", parent=base["Normal"], fontSize=10, textColor=colors.HexColor("#646464"), leading=14
        ),
        "section": ParagraphStyle(
            "HaccpSection", parent=base["Heading2"], fontSize=13, textColor=TEXT_COLOR, spaceBefore=10, spaceAfter=6
        ),
        "cell": ParagraphStyle("HaccpCell", parent=base["Normal"], fontSize=9, leading=11),
        "caption": ParagraphStyle(
            "HaccpCaption", parent=base["Normal"], fontSize=8, leading=10, alignment=TA_CENTER
        ),
        "body": ParagraphStyle("HaccpBody", parent=base["Normal"], fontSize=11, textColor=TEXT_COLOR),
    }


def _render(story: list, title: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=title,
        author=RESTAURANT_NAME,
        invariant=1,
    )
    doc.build(story)
    return buffer.getvalue()


def _header(styles: dict, title: str, lines: Sequence[str]) -> list:
    story = [Paragraph(escape(title), styles["title"])]
    story.extend(Paragraph(escape(line), styles["meta"]) for line in lines)
    story.append(Spacer(1, 8 * mm))
    return story


def _table(header: List[str], rows: List[list], widths: List[float],
           status_column: Optional[int] = None, centered_from: int = 2) -> Table:
    table = Table([header] + rows, colWidths=widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 10),
        ("FONTSIZE", (0, 1), (-1, -1), 9),
        ("TEXTCOLOR", (0, 1), (-1, -1), TEXT_COLOR),
        ("ALIGN", (centered_from, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#d1d5db")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ALT_ROW_COLOR]),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]
    if status_column is not None:
        for index, row in enumerate(rows, start=1):
            done = row[status_column] in (layout.STATUS_DONE, layout.HISTORY_CONFORMING, layout.TEMPERATURES_OK)
            style.append(("TEXTCOLOR", (status_column, index), (status_column, index),
                          DONE_COLOR if done else MISSING_COLOR))
            style.append(("FONTNAME", (status_column, index), (status_column, index), "Helvetica-Bold"))
    table.setStyle(TableStyle(style))
    return table


def _wrap(text: str, styles: dict) -> Paragraph:
    return Paragraph(escape(text), styles["cell"])


def _generated_line(generated_at: datetime) -> str:
    return f"Généré le : {generated_at.strftime('%d/%m/%Y à %H:%M')}"


# =============================================================================
# DAILY LOG
# =============================================================================

def build_daily_log_report(
    log: DailyLog,
    restaurant_name: str = RESTAURANT_NAME,
    generated_at: Optional[datetime] = None,
) -> ReportFile:
    """Daily register: temperature block, general block, signature box."""
    generated_at = generated_at or datetime.now()
    styles = _styles()
    sections = layout.daily_log_layout(log)

    story = _header(styles, "REGISTRE SANITAIRE HACCP", [
        f"Établissement : {restaurant_name}",
        f"Date du relevé : {layout.long_french_date(log.date)}",
        _generated_line(generated_at),
    ])

    story.append(Paragraph("Relevés de températures", styles["section"]))
    if sections.temperature_rows:
        story.append(_table(
            ["Lieu", "Créneau", "Statut", "Valeur", "Heure"],
            [[_wrap(row.location, styles)] + row.cells[1:] for row in sections.temperature_rows],
            [60 * mm, 25 * mm, 30 * mm, 35 * mm, 30 * mm],
            status_column=2,
            centered_from=1,
        ))
    else:
        story.append(Paragraph("Aucun relevé de température prévu.", styles["meta"]))

    story.append(Paragraph("Contrôles généraux", styles["section"]))
    if sections.general_rows:
        story.append(_table(
            ["Catégorie", "Détail du Contrôle", "Statut", "Valeur", "Heure"],
            [[row.category, _wrap(row.label, styles)] + row.cells[2:] for row in sections.general_rows],
            [35 * mm, 70 * mm, 25 * mm, 30 * mm, 20 * mm],
            status_column=2,
        ))
    else:
        story.append(Paragraph("Aucun autre contrôle.", styles["meta"]))

    story.append(Spacer(1, 10 * mm))
    story.extend(_observations_and_signature(styles, log.signature))

    logger.info(f"Daily report built for {log.date}: "
                f"{len(sections.temperature_rows)} temperature rows, {len(sections.general_rows)} general rows")
    return ReportFile(
        filename=f"HACCP_{log.date}.pdf",
        content=_render(story, f"Registre HACCP {log.date}"),
    )


def _observations_and_signature(styles: dict, signature: Optional[str]) -> list:
    lines = Table([[""], [""]], colWidths=[CONTENT_WIDTH], rowHeights=[10 * mm, 10 * mm])
    lines.setStyle(TableStyle([
        ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#c8c8c8")),
    ]))

    box = Table([[signature or ""]], colWidths=[60 * mm], rowHeights=[25 * mm])
    box.setStyle(TableStyle([
        ("BOX", (0, 0), (-1, -1), 0.8, colors.HexColor("#646464")),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    signature_block = Table(
        [["", Paragraph("Signature du responsable du contrôle :", styles["cell"])], ["", box]],
        colWidths=[CONTENT_WIDTH - 65 * mm, 65 * mm],
    )
    signature_block.setStyle(TableStyle([("LEFTPADDING", (0, 0), (-1, -1), 0)]))

    return [
        Paragraph("Observations éventuelles :", styles["body"]),
        lines,
        Spacer(1, 8 * mm),
        signature_block,
    ]


# =============================================================================
# HISTORY
# =============================================================================

def build_history_report(
    logs: Sequence[DailyLog],
    restaurant_name: str = RESTAURANT_NAME,
    generated_at: Optional[datetime] = None,
) -> ReportFile:
    """
    One row per daily log.

    Raises:
        ReportError: when `logs` is empty
    """
    if not logs:
        raise ReportError("Aucun registre à exporter.")

    generated_at = generated_at or datetime.now()
    styles = _styles()
    rows = layout.history_rows(logs)

    story = _header(styles, "HISTORIQUE DES CONTRÔLES HACCP", [
        f"Établissement : {restaurant_name}",
        f"Période : {layout.history_period(logs)}",
        _generated_line(generated_at),
    ])
    table_rows = [row.cells for row in rows]
    table = _table(
        ["Date", "Contrôles effectués", "Statut global", "Temp. Matin/Soir"],
        table_rows,
        [55 * mm, 40 * mm, 45 * mm, 40 * mm],
        status_column=2,
        centered_from=1,
    )
    # Temperature column gets its own colouring
    table.setStyle(TableStyle([
        ("TEXTCOLOR", (3, index), (3, index),
         DONE_COLOR if row.temperatures_ok else MISSING_COLOR)
        for index, row in enumerate(rows, start=1)
    ]))
    story.append(table)

    return ReportFile(
        filename=f"HACCP_Historique_{generated_at.date().isoformat()}.pdf",
        content=_render(story, "Historique HACCP"),
    )


# =============================================================================
# TRACEABILITY
# =============================================================================

def build_traceability_report(
    records: Sequence[TraceabilityRecord],
    period_label: str,
    restaurant_name: str = RESTAURANT_NAME,
    generated_at: Optional[datetime] = None,
    image_loader: ImageLoader = load_embeddable_image,
) -> ReportFile:
    """
    Summary table, then the photos on a 2 x 3 grid per page.

    A photo that cannot be loaded is skipped and listed in `warnings`.

    Raises:
        ReportError: when `records` is empty
    """
    if not records:
        raise ReportError("Aucun enregistrement pour ce mois.")

    generated_at = generated_at or datetime.now()
    styles = _styles()

    story = _header(styles, period_label, [
        f"Établissement : {restaurant_name}",
        f"Enregistrements : {len(records)}",
        _generated_line(generated_at),
    ])
    story.append(_table(
        ["Date", "Produit", "Lot", "DLC", "Photo"],
        [
            [cells[0], _wrap(cells[1], styles), _wrap(cells[2], styles), cells[3], cells[4]]
            for cells in layout.traceability_rows(records)
        ],
        [25 * mm, 65 * mm, 40 * mm, 30 * mm, 20 * mm],
        centered_from=3,
    ))

    cells, warnings = _photo_cells(records, styles, image_loader)
    for page in layout.chunked(cells, PHOTOS_PER_PAGE):
        story.append(PageBreak())
        story.append(Paragraph(f"Photos - {escape(period_label)}", styles["section"]))
        grid = [row + [""] * (GRID_COLUMNS - len(row)) for row in layout.chunked(page, GRID_COLUMNS)]
        table = Table(grid, colWidths=[CONTENT_WIDTH / GRID_COLUMNS] * GRID_COLUMNS)
        table.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6 * mm),
        ]))
        story.append(table)

    logger.info(f"Traceability report '{period_label}': {len(records)} records, "
                f"{len(cells)} photos, {len(warnings)} skipped")
    return ReportFile(
        filename=f"HACCP_Tracabilite_{'_'.join(period_label.split())}.pdf",
        content=_render(story, period_label),
        warnings=tuple(warnings),
    )


def _photo_cells(
    records: Sequence[TraceabilityRecord],
    styles: dict,
    image_loader: ImageLoader,
) -> tuple:
    cells, warnings = [], []
    for record in records:
        if not record.has_photo:
            continue
        try:
            jpeg = image_loader(record.photo_url)
            width, height = ImageReader(io.BytesIO(jpeg)).getSize()
        except Exception as e:
            # ImageEmbedError for fetch/decode failures, reportlab errors for odd JPEGs
            logger.warning(f"Photo skipped for {record.item_name} ({record.id}): {e}")
            warnings.append(f"Photo illisible : {record.item_name} ({layout.format_day(record.day)})")
            continue

        scale = min(PHOTO_BOX[0] / width, PHOTO_BOX[1] / height)
        caption = (f"{escape(record.item_name)} - Lot {escape(record.lot_number)}<br/>"
                   f"Reçu le {layout.format_day(record.day)} - DLC {escape(layout.format_day(record.expiry_date))}")
        cells.append([
            Image(io.BytesIO(jpeg), width=width * scale, height=height * scale),
            Paragraph(caption, styles["caption"]),
        ])
    return cells, warnings


# =============================================================================
# STOCK
# =============================================================================

def build_stock_report(
    inventory: Sequence[InventoryItem],
    movements: Sequence[StockMovement] = (),
    restaurant_name: str = RESTAURANT_NAME,
    generated_at: Optional[datetime] = None,
) -> ReportFile:
    """Inventory levels with low-stock alerts, then the recent movements."""
    if not inventory:
        raise ReportError("Aucun produit en stock.")

    generated_at = generated_at or datetime.now()
    styles = _styles()
    low = sum(1 for item in inventory if item.is_low_stock)

    story = _header(styles, "ÉTAT DES STOCKS", [
        f"Établissement : {restaurant_name}",
        f"Produits : {len(inventory)} dont {low} sous le seuil",
        _generated_line(generated_at),
    ])
    rows = layout.stock_rows(inventory)
    table = _table(
        ["Produit", "Catégorie", "Quantité", "Seuil", "État"],
        [[_wrap(row[0], styles)] + row[1:] for row in rows],
        [60 * mm, 35 * mm, 35 * mm, 20 * mm, 30 * mm],
    )
    table.setStyle(TableStyle([
        ("TEXTCOLOR", (4, index), (4, index), MISSING_COLOR if row[4] == "ALERTE" else DONE_COLOR)
        for index, row in enumerate(rows, start=1)
    ]))
    story.append(table)

    if movements:
        story.append(Paragraph("Derniers mouvements", styles["section"]))
        story.append(_table(
            ["Date", "Produit", "Sens", "Quantité", "Motif"],
            [row[:4] + [_wrap(row[4], styles)] for row in layout.movement_rows(movements)],
            [35 * mm, 50 * mm, 20 * mm, 20 * mm, 55 * mm],
        ))

    return ReportFile(
        filename=f"HACCP_Stocks_{generated_at.date().isoformat()}.pdf",
        content=_render(story, "État des stocks"),
    )


# =============================================================================
# PRODUCTION LABEL
# =============================================================================

def build_production_label(
    recipe: Recipe,
    produced_at: Optional[datetime] = None,
    restaurant_name: str = RESTAURANT_NAME,
) -> ReportFile:
    """60 x 40 mm adhesive label with production date and DLC."""
    produced_at = produced_at or datetime.now()
    made_text, dlc_text = layout.label_dates(produced_at, recipe.shelf_life_days)
    width, height = LABEL_SIZE
    center = width / 2

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=LABEL_SIZE, invariant=1)
    pdf.setTitle(f"Étiquette {recipe.name}")
    pdf.setFillColor(colors.black)

    pdf.setFont("Helvetica-Bold", 8)
    pdf.drawCentredString(center, height - 5 * mm, restaurant_name.upper())
    pdf.line(5 * mm, height - 6 * mm, width - 5 * mm, height - 6 * mm)

    pdf.setFont("Helvetica-Bold", 10)
    y = height - 12 * mm
    for line in simpleSplit(recipe.name, "Helvetica-Bold", 10, 50 * mm)[:2]:
        pdf.drawCentredString(center, y, line)
        y -= 4 * mm

    pdf.setFont("Helvetica", 7)
    pdf.drawString(5 * mm, height - 20 * mm, made_text)

    pdf.setFont("Helvetica-Bold", 9)
    pdf.drawString(5 * mm, height - 26 * mm, dlc_text)

    allergens = ", ".join(recipe.allergens) if recipe.allergens else "aucun"
    pdf.setFont("Helvetica-Oblique", 6)
    y = height - 31 * mm
    for line in simpleSplit(f"Allergènes: {allergens}", "Helvetica-Oblique", 6, 50 * mm)[:2]:
        pdf.drawString(5 * mm, y, line)
        y -= 2.5 * mm

    pdf.setFont("Helvetica", 5)
    pdf.drawCentredString(center, height - 37.5 * mm, STORAGE_NOTE)

    pdf.showPage()
    pdf.save()

    logger.info(f"Production label for {recipe.name}: {dlc_text}")
    return ReportFile(
        filename=layout.label_filename(recipe.name, produced_at),
        content=buffer.getvalue(),
    )
