"""
Service de reçus PDF
Génère le bon de paiement imprimable d'un voucher
"""

import io
import logging
from datetime import datetime
from decimal import Decimal
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from ledger.services.numbering import format_invoice_number, format_voucher_number
from ledger.utils.helpers import parse_date, to_decimal

logger = logging.getLogger(__name__)


class ReceiptService:
    """Service pour générer les reçus de paiement"""

    def __init__(self, company_name="Ledger", currency="SAR"):
        self.company_name = company_name
        self.currency = currency
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Configure les styles personnalisés"""
        self.title_style = ParagraphStyle(
            'ReceiptTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            spaceAfter=6,
            alignment=TA_CENTER,
            textColor=colors.darkblue
        )

        self.subtitle_style = ParagraphStyle(
            'ReceiptSubtitle',
            parent=self.styles['Heading2'],
            fontSize=13,
            spaceAfter=12,
            alignment=TA_CENTER
        )

        self.label_style = ParagraphStyle(
            'ReceiptLabel',
            parent=self.styles['Normal'],
            fontSize=10,
            fontName='Helvetica-Bold'
        )

        self.value_style = ParagraphStyle(
            'ReceiptValue',
            parent=self.styles['Normal'],
            fontSize=10
        )

        self.footer_style = ParagraphStyle(
            'ReceiptFooter',
            parent=self.styles['Normal'],
            fontSize=8,
            alignment=TA_CENTER,
            textColor=colors.grey
        )

    def format_amount(self, amount) -> str:
        """1234.5 -> '1,234.50 SAR'"""
        value = to_decimal(amount).quantize(Decimal('0.01'))
        return f"{value:,.2f} {self.currency}"

    def _create_header(self, voucher):
        story = [
            Paragraph(escape(self.company_name.upper()), self.title_style),
            Paragraph("Bon de paiement", self.subtitle_style),
        ]
        number = format_voucher_number(voucher['voucher_number'])
        story.append(Paragraph(f"N° {number}", self.subtitle_style))
        story.append(Spacer(1, 10))
        return story

    def _create_details(self, voucher):
        voucher_date = parse_date(voucher['date']).strftime('%d/%m/%Y') if voucher.get('date') else ''
        invoice_number = voucher.get('invoice_number')

        rows = [
            ("Date", voucher_date),
            ("Reçu de", voucher.get('customer_name') or ''),
            ("Montant", self.format_amount(voucher['amount'])),
            ("Pour la facture", format_invoice_number(invoice_number) if invoice_number is not None else ''),
        ]
        data = [
            [Paragraph(label, self.label_style), Paragraph(escape(str(value)), self.value_style)]
            for label, value in rows
        ]

        table = Table(data, colWidths=[3.5 * cm, 6 * cm])
        table.setStyle(TableStyle([
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('BACKGROUND', (0, 0), (0, -1), colors.whitesmoke),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, -1), 8),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ]))
        return [table]

    def _create_footer(self):
        return [
            Spacer(1, 40),
            Paragraph("Signature du receveur: ______________________", self.value_style),
            Spacer(1, 20),
            Paragraph(
                f"Document généré le {datetime.now().strftime('%d/%m/%Y %H:%M')}",
                self.footer_style
            ),
        ]

    def render_voucher(self, voucher) -> bytes:
        """
        Génère le reçu PDF d'un voucher

        Args:
            voucher: Dictionnaire du voucher (voucher_number, date,
                customer_name, amount, invoice_number)

        Returns:
            bytes: Contenu PDF
        """
        try:
            buffer = io.BytesIO()
            doc = SimpleDocTemplate(
                buffer,
                pagesize=A5,
                title=format_voucher_number(voucher['voucher_number'])
            )

            story = []
            story.extend(self._create_header(voucher))
            story.extend(self._create_details(voucher))
            story.extend(self._create_footer())
            doc.build(story)

            pdf_data = buffer.getvalue()
            buffer.close()
            return pdf_data

        except Exception as e:
            logger.error(f"Erreur génération reçu {voucher.get('id')}: {str(e)}")
            raise

    def filename(self, voucher) -> str:
        return f"receipt-{format_voucher_number(voucher['voucher_number'])}.pdf"
