"""
PDF Quote Generator for the AV Quote Engine

Renders a priced quote as a client-facing PDF.
"""

from io import BytesIO
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, HRFlowable
)
from reportlab.lib.enums import TA_CENTER, TA_LEFT

from quoting import Quote, QuoteSection, QuoteTotals


def format_currency(amount) -> str:
    return f"${float(amount):,.2f}"


class QuotePDFGenerator:
    """Generates PDF documents for AV quotes."""

    # Brand colors
    PRIMARY_COLOR = colors.HexColor('#2563EB')  # Blue
    SECONDARY_COLOR = colors.HexColor('#1F2937')  # Dark gray
    LIGHT_GRAY = colors.HexColor('#F3F4F6')
    BORDER_COLOR = colors.HexColor('#E5E7EB')

    STATUS_LABELS = {
        'draft': 'Draft',
        'quoting': 'Quoting',
        'client_review': 'Client Review',
        'approved': 'Approved',
        'ordered': 'Ordered',
    }

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='QuoteTitle',
            parent=self.styles['Heading1'],
            fontSize=24,
            textColor=self.SECONDARY_COLOR,
            spaceAfter=20,
            alignment=TA_LEFT
        ))

        self.styles.add(ParagraphStyle(
            name='QuoteSection',
            parent=self.styles['Heading2'],
            fontSize=14,
            textColor=self.SECONDARY_COLOR,
            spaceBefore=20,
            spaceAfter=10
        ))

        self.styles.add(ParagraphStyle(
            name='QuoteBody',
            parent=self.styles['Normal'],
            fontSize=10,
            textColor=self.SECONDARY_COLOR,
            spaceAfter=6
        ))

        self.styles.add(ParagraphStyle(
            name='QuoteSmall',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.gray,
            spaceAfter=4
        ))

        self.styles.add(ParagraphStyle(
            name='QuoteFooter',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.gray,
            alignment=TA_CENTER
        ))

    def generate_quote(
        self,
        quote: Quote,
        company_name: str = 'AV Quote Engine',
        project_name: Optional[str] = None,
        labor_hours: Optional[Decimal] = None
    ) -> BytesIO:
        """
        Generate a PDF for a quote.

        Labor hours default to the hours stored on the quote totals.

        Returns: BytesIO buffer containing the PDF
        """
        buffer = BytesIO()

        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch,
            title=f'Quote {quote.id}'
        )

        story = []
        story.extend(self._build_header(quote, company_name, project_name))
        story.extend(self._build_summary(quote, labor_hours))

        for section in quote.sections:
            story.extend(self._build_section_table(section))

        story.extend(self._build_totals(quote.totals))
        story.extend(self._build_footer(company_name))

        doc.build(story)
        buffer.seek(0)
        return buffer

    def _build_header(self, quote: Quote, company_name: str, project_name: Optional[str]) -> List:
        """Build the quote header."""
        elements = []

        elements.append(Paragraph(
            f'<b>{escape(company_name)}</b>',
            ParagraphStyle(
                name='Brand',
                fontSize=20,
                textColor=self.PRIMARY_COLOR,
                spaceAfter=5
            )
        ))

        elements.append(Spacer(1, 20))
        elements.append(Paragraph('<b>Quotation</b>', self.styles['QuoteTitle']))

        elements.append(Paragraph(
            f'<b>Project:</b> {escape(project_name or quote.project_id)}',
            self.styles['QuoteBody']
        ))

        elements.append(Paragraph(
            f'<b>Quote:</b> {escape(quote.id)} (version {quote.version})',
            self.styles['QuoteBody']
        ))

        elements.append(Paragraph(
            f'<b>Generated:</b> {datetime.now().strftime("%B %d, %Y at %I:%M %p")}',
            self.styles['QuoteBody']
        ))

        elements.append(Spacer(1, 10))
        elements.append(HRFlowable(
            width="100%",
            thickness=1,
            color=self.BORDER_COLOR,
            spaceAfter=20
        ))

        return elements

    def _build_summary(self, quote: Quote, labor_hours: Optional[Decimal]) -> List:
        """Build the quote summary section."""
        elements = []

        elements.append(Paragraph('Quote Summary', self.styles['QuoteSection']))

        status = quote.status.value
        item_count = sum(item.quantity for section in quote.sections for item in section.items)

        summary_data = [
            ['Room', quote.room_id],
            ['Status', self.STATUS_LABELS.get(status, status)],
            ['Line Items', str(item_count)],
        ]
        if labor_hours is None:
            labor_hours = quote.totals.labor_hours
        if labor_hours:
            summary_data.append(['Labor Hours', f'{float(labor_hours):,.1f}'])
        summary_data.append(['Quote Total', format_currency(quote.totals.total)])

        table = Table(summary_data, colWidths=[2*inch, 2.5*inch])
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (0, -1), self.LIGHT_GRAY),
            ('TEXTCOLOR', (0, 0), (-1, -1), self.SECONDARY_COLOR),
            ('ALIGN', (0, 0), (0, -1), 'LEFT'),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, -1), (1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('FONTSIZE', (1, -1), (1, -1), 14),
            ('TEXTCOLOR', (1, -1), (1, -1), self.PRIMARY_COLOR),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ('TOPPADDING', (0, 0), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, self.BORDER_COLOR),
        ]))

        elements.append(table)
        elements.append(Spacer(1, 20))

        return elements

    def _build_section_table(self, section: QuoteSection) -> List:
        """Build the line item table for one quote section."""
        elements = []

        elements.append(Paragraph(escape(section.name), self.styles['QuoteSection']))

        header = ['Item', 'Qty', 'Unit Price', 'Total']
        data = [header]

        for item in section.items:
            data.append([
                item.name or item.equipment_id,
                str(item.quantity),
                format_currency(item.unit_price),
                format_currency(item.total),
            ])

        data.append(['Section Subtotal', '', '', format_currency(section.subtotal)])

        table = Table(data, colWidths=[3.5*inch, 0.75*inch, 1.25*inch, 1.5*inch])
        table.setStyle(TableStyle([
            # Header
            ('BACKGROUND', (0, 0), (-1, 0), self.PRIMARY_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
            ('TOPPADDING', (0, 0), (-1, 0), 8),
            # Body
            ('TEXTCOLOR', (0, 1), (-1, -1), self.SECONDARY_COLOR),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 1), (-1, -1), 5),
            ('TOPPADDING', (0, 1), (-1, -1), 5),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('ALIGN', (0, 0), (0, -1), 'LEFT'),
            ('ROWBACKGROUNDS', (0, 1), (-1, -2), [colors.white, self.LIGHT_GRAY]),
            # Subtotal row
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('LINEABOVE', (0, -1), (-1, -1), 1, self.BORDER_COLOR),
            ('GRID', (0, 0), (-1, -2), 0.5, self.BORDER_COLOR),
        ]))

        elements.append(table)
        elements.append(Spacer(1, 10))

        return elements

    def _build_totals(self, totals: QuoteTotals) -> List:
        """Build the quote totals table."""
        elements = []

        elements.append(Spacer(1, 10))

        summary_data = [
            ['Equipment', format_currency(totals.equipment)],
            ['Labor', format_currency(totals.labor)],
            ['Subtotal', format_currency(totals.subtotal)],
            ['Tax', format_currency(totals.tax)],
            ['Total', format_currency(totals.total)],
        ]

        summary_table = Table(summary_data, colWidths=[2*inch, 1.5*inch])
        summary_table.setStyle(TableStyle([
            ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (-1, -1), self.SECONDARY_COLOR),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            # Grand total row
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, -1), (-1, -1), 12),
            ('TEXTCOLOR', (1, -1), (1, -1), self.PRIMARY_COLOR),
            ('LINEABOVE', (0, -1), (-1, -1), 1, self.BORDER_COLOR),
        ]))

        # Right-align the totals table
        wrapper = Table([[summary_table]], colWidths=[7*inch])
        wrapper.setStyle(TableStyle([
            ('ALIGN', (0, 0), (0, 0), 'RIGHT'),
        ]))

        elements.append(wrapper)
        elements.append(Spacer(1, 20))

        return elements

    def _build_footer(self, company_name: str) -> List:
        """Build the quote footer with terms."""
        elements = []

        elements.append(HRFlowable(
            width="100%",
            thickness=1,
            color=self.BORDER_COLOR,
            spaceBefore=20,
            spaceAfter=15
        ))

        terms = """
        <b>Terms:</b> Prices are based on current equipment costs and are subject to change
        until the quote is approved. Labor covers installation, programming, and system testing
        as listed. Taxes are calculated at the rate in effect on the date of this quote.
        """

        elements.append(Paragraph(terms.strip(), self.styles['QuoteSmall']))
        elements.append(Spacer(1, 15))
        elements.append(Paragraph(f'Prepared by {escape(company_name)}', self.styles['QuoteFooter']))

        return elements
