"""
Count Report PDF Generator
Generates the finalized count report: header, subtotals, check detail, cash summary and attestation
"""

import io
import logging
from decimal import Decimal
from typing import Optional
from xml.sax.saxutils import escape

import httpx
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import Batch, Church, DonationType
from ..shared.formatting import format_currency, format_long_date, to_decimal

logger = logging.getLogger(__name__)


def summarize_batch(batch: Batch) -> dict:
    """Cash, check and total amounts plus donation count for a batch"""
    cash = Decimal("0.00")
    check = Decimal("0.00")
    for donation in batch.donations:
        if donation.donation_type == DonationType.CHECK:
            check += to_decimal(donation.amount)
        else:
            cash += to_decimal(donation.amount)
    return {"cash": cash, "check": check, "total": cash + check, "count": len(batch.donations)}


def report_filename(batch: Batch) -> str:
    return f"{batch.date.strftime('%Y-%m-%d')} - Count Report - Detail.pdf"


def _donor_name(donation) -> str:
    return donation.member.full_name if donation.member else "Anonymous"


class CountReportPDFGenerator:
    """Generate the count report PDF for one batch"""

    def __init__(self, batch: Batch, church: Optional[Church]):
        self.batch = batch
        self.church = church

        self.page_width, self.page_height = letter
        self.margin = 0.75 * inch
        self.content_width = self.page_width - (2 * self.margin)

        self.brand_color = colors.HexColor("#2B6CB0")
        self.dark_gray = colors.HexColor("#1A202C")
        self.light_gray = colors.HexColor("#EDF2F7")

    def _fetch_logo(self) -> Optional[Image]:
        if not self.church or not self.church.logo_url:
            return None
        try:
            response = httpx.get(self.church.logo_url, timeout=5.0)
            response.raise_for_status()
            logo = Image(io.BytesIO(response.content))
            # Fit within 3in x 1.2in keeping aspect ratio
            scale = min(3 * inch / logo.imageWidth, 1.2 * inch / logo.imageHeight)
            logo.drawWidth = logo.imageWidth * scale
            logo.drawHeight = logo.imageHeight * scale
            return logo
        except Exception as e:
            logger.warning(f"⚠️ Could not load church logo for PDF, using name header: {e}")
            return None

    def _table_style(self, header: bool = True) -> TableStyle:
        commands = [
            ("FONT", (0, 0), (-1, -1), "Helvetica", 10),
            ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
            ("ALIGN", (-1, 0), (-1, -1), "RIGHT"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("LEFTPADDING", (0, 0), (-1, -1), 8),
            ("RIGHTPADDING", (0, 0), (-1, -1), 8),
            ("TOPPADDING", (0, 0), (-1, -1), 6),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ]
        if header:
            commands += [
                ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, self.light_gray]),
            ]
        return TableStyle(commands)

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating count report PDF for batch {self.batch.id}")
        buffer = io.BytesIO()

        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Count Report - {self.batch.name}",
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "ReportTitle", parent=styles["Heading1"], fontSize=18, alignment=1, spaceAfter=4
        )
        church_style = ParagraphStyle(
            "ChurchName", parent=styles["Heading1"], fontSize=24, alignment=1, spaceAfter=12
        )
        subtitle_style = ParagraphStyle(
            "Subtitle", parent=styles["Normal"], fontSize=12, alignment=1, textColor=colors.grey
        )
        heading_style = ParagraphStyle(
            "Section", parent=styles["Heading2"], fontSize=14, textColor=self.dark_gray,
            spaceBefore=16, spaceAfter=8,
        )

        story = []
        logo = self._fetch_logo()
        if logo is not None:
            story.append(logo)
            story.append(Spacer(1, 0.2 * inch))
        elif self.church and self.church.name:
            story.append(Paragraph(escape(self.church.name), church_style))

        story.append(Paragraph("Count Report", title_style))
        story.append(
            Paragraph(
                f"{escape(self.batch.name)} &bull; {format_long_date(self.batch.date)}", subtitle_style
            )
        )
        if self.batch.service:
            story.append(Paragraph(escape(self.batch.service), subtitle_style))
        story.append(Spacer(1, 0.3 * inch))

        summary = summarize_batch(self.batch)
        totals = Table(
            [
                ["Cash", f"${format_currency(summary['cash'])}"],
                ["Checks", f"${format_currency(summary['check'])}"],
                ["Total", f"${format_currency(summary['total'])}"],
                ["Donations", str(summary["count"])],
            ],
            colWidths=[self.content_width * 0.6, self.content_width * 0.4],
        )
        totals_style = self._table_style(header=False)
        totals_style.add("FONT", (0, 2), (-1, 2), "Helvetica-Bold", 11)
        totals.setStyle(totals_style)
        story.append(totals)

        checks = [d for d in self.batch.donations if d.donation_type == DonationType.CHECK]
        story.append(Paragraph("Checks", heading_style))
        if checks:
            rows = [["Donor", "Check #", "Amount"]]
            rows += [
                [_donor_name(d), d.check_number or "-", f"${format_currency(d.amount)}"] for d in checks
            ]
            check_table = Table(
                rows,
                colWidths=[self.content_width * 0.5, self.content_width * 0.2, self.content_width * 0.3],
                repeatRows=1,
            )
            check_table.setStyle(self._table_style())
            story.append(check_table)
        else:
            story.append(Paragraph("No check donations.", styles["Normal"]))

        cash = [d for d in self.batch.donations if d.donation_type != DonationType.CHECK]
        story.append(Paragraph("Cash", heading_style))
        if cash:
            rows = [["Donor", "Amount"]]
            rows += [[_donor_name(d), f"${format_currency(d.amount)}"] for d in cash]
            cash_table = Table(
                rows, colWidths=[self.content_width * 0.7, self.content_width * 0.3], repeatRows=1
            )
            cash_table.setStyle(self._table_style())
            story.append(cash_table)
        else:
            story.append(Paragraph("No cash donations.", styles["Normal"]))

        story.append(Paragraph("Attestation", heading_style))
        attestation_rows = [
            ["Counted by", self.batch.primary_attestor_name or "-", self._format_date(self.batch.primary_attestation_date)],
            ["Verified by", self.batch.secondary_attestor_name or "-", self._format_date(self.batch.secondary_attestation_date)],
        ]
        attestation = Table(
            attestation_rows,
            colWidths=[self.content_width * 0.25, self.content_width * 0.45, self.content_width * 0.3],
        )
        attestation.setStyle(self._table_style(header=False))
        story.append(attestation)

        doc.build(story, onFirstPage=self._add_page_number, onLaterPages=self._add_page_number)

        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Generated count report PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    @staticmethod
    def _format_date(value) -> str:
        return format_long_date(value) if value else "-"

    def _add_page_number(self, canvas_obj, doc):
        """Add page numbers to PDF"""
        canvas_obj.setFont("Helvetica", 9)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawRightString(
            self.page_width - self.margin, self.margin / 2, f"Page {canvas_obj.getPageNumber()}"
        )


def generate_count_report_pdf(batch: Batch, church: Optional[Church]) -> bytes:
    return CountReportPDFGenerator(batch, church).generate()
