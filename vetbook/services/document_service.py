"""
Appointment Receipt Generator
QR verification codes and branded receipt PDFs for booked appointments
"""

import io
import logging
from typing import Optional

import qrcode
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import FRONTEND_URL
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)


class DocumentGenerationError(Exception):
    """Receipt PDF could not be produced"""


def build_verify_url(appointment_id) -> str:
    return f"{FRONTEND_URL}/verify?appointmentId={appointment_id}"


def generate_qr_code(data: str) -> Optional[bytes]:
    """Render data as a PNG QR code; returns None on failure"""
    try:
        logger.info("🔄 Generating QR code...")
        qr = qrcode.QRCode(version=1, box_size=10, border=5)
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
    except Exception as e:
        logger.error(f"❌ Error generating QR code: {e}")
        return None


class ReceiptPDFGenerator:
    """Generate the appointment confirmation receipt"""

    def __init__(self, details: dict, qr_png: Optional[bytes] = None):
        self.details = details
        self.qr_png = qr_png

        self.margin = 0.75 * inch
        self.brand_color = colors.HexColor("#4caf50")
        self.dark_gray = colors.HexColor("#1e293b")

    def _value(self, key: str, default: str = "N/A") -> str:
        value = self.details.get(key)
        if value in (None, ""):
            return default
        # Paragraph markup is XML-like, so free text must be escaped
        return sanitize_string(str(value))

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        appointment_id = self.details.get("appointment_id")
        logger.info(f"📄 Generating receipt PDF for appointment {appointment_id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Appointment Confirmation #{appointment_id}",
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "ReceiptTitle",
            parent=styles["Heading1"],
            fontSize=18,
            textColor=self.brand_color,
            spaceAfter=12,
            alignment=1,  # Center
        )
        heading_style = ParagraphStyle(
            "ReceiptHeading",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=self.dark_gray,
            spaceBefore=16,
            spaceAfter=8,
        )
        centered_style = ParagraphStyle(
            "ReceiptCentered",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            alignment=1,
        )

        story = [Paragraph("Appointment Confirmation", title_style)]

        clinic_rows = [
            ["Appointment ID:", self._value("appointment_id")],
            ["Clinic:", self._value("clinic_name")],
            ["Address:", self._value("clinic_address")],
        ]
        story.append(self._info_table(clinic_rows))

        story.append(Paragraph("Appointment Details", heading_style))
        detail_rows = [
            ["Owner:", self._value("owner_name")],
            ["Pet:", self._value("pet_name")],
            ["Date & Time:", self._value("date")],
            ["Service:", self._value("service_name")],
            ["Notes:", self._value("notes", "No additional notes provided.")],
        ]
        if self.details.get("price"):
            detail_rows.append(["Total:", self._value("price")])
        story.append(self._info_table(detail_rows))

        if self.qr_png:
            try:
                story.append(Spacer(1, 0.3 * inch))
                story.append(Image(io.BytesIO(self.qr_png), width=1.8 * inch, height=1.8 * inch))
                story.append(Paragraph("Scan the QR code for appointment details.", centered_style))
            except Exception as e:
                logger.error(f"❌ Error embedding QR code in PDF: {e}")
        else:
            logger.warning("⚠️ No QR code generated, skipping QR section")

        story.append(Spacer(1, 0.5 * inch))
        story.append(Paragraph("Thank you for booking with us!", centered_style))

        try:
            doc.build(story)
        except Exception as e:
            raise DocumentGenerationError(f"Error generating receipt PDF: {str(e)}") from e

        pdf_bytes = buffer.getvalue()
        if not pdf_bytes:
            raise DocumentGenerationError("PDF buffer is empty after generation")

        logger.info(f"✅ Receipt PDF generated ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _info_table(self, rows: list) -> Table:
        body_style = ParagraphStyle("ReceiptCell", fontSize=10, textColor=self.dark_gray)
        table = Table(
            [[label, Paragraph(value, body_style)] for label, value in rows],
            colWidths=[1.5 * inch, 5 * inch],
        )
        table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        return table


def create_receipt_pdf(details: dict, qr_png: Optional[bytes] = None) -> bytes:
    return ReceiptPDFGenerator(details, qr_png).generate()
