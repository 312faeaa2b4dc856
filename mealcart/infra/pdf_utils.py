import io
from typing import Mapping, Optional

from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

from mealcart.logic.shopping.exporters import to_printable
from mealcart.utilities.constants import EMPTY_LIST_MESSAGE


def generate_pdf_for_shopping_list(shopping_list, check_state: Optional[Mapping[str, bool]] = None) -> bytes:
    """Generate a PDF with one table per category: [ ] / Item / Quantity / Used in."""
    doc_data = to_printable(shopping_list, check_state)
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=A4,
        rightMargin=20, leftMargin=20, topMargin=20, bottomMargin=20
    )

    styles = getSampleStyleSheet()
    elements = [Paragraph(doc_data["title"], styles["Title"])]
    if doc_data["weekLabel"]:
        elements.append(Paragraph(f"Week of {doc_data['weekLabel']}", styles["Normal"]))
    elements.append(Spacer(1, 16))

    if not doc_data["categories"]:
        elements.append(Paragraph(EMPTY_LIST_MESSAGE, styles["Normal"]))

    for section in doc_data["categories"]:
        elements.append(Paragraph(section["category"], styles["Heading2"]))
        data = [["", "Item", "Quantity", "Used in"]]
        for item in section["items"]:
            data.append([
                "X" if item["checked"] else "",
                item["name"],
                f"{item['quantity']} {item['unit']}".strip(),
                Paragraph(", ".join(item["usedIn"]) or "-", styles["BodyText"]),
            ])

        table = Table(data, repeatRows=1, colWidths=[24, 170, 110, 250])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0,0), (-1,0), colors.HexColor("#4CAF50")),
            ("TEXTCOLOR", (0,0), (-1,0), colors.whitesmoke),
            ("ALIGN", (0,0), (0,-1), "CENTER"),
            ("VALIGN", (0,0), (-1,-1), "MIDDLE"),
            ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
            ("FONTSIZE", (0,0), (-1,0), 11),
            ("BOTTOMPADDING", (0,0), (-1,0), 8),
            ("GRID", (0,0), (-1,-1), 0.5, colors.grey),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 12))

    doc.build(elements)
    return buf.getvalue()
