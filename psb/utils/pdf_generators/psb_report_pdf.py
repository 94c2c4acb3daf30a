# psb/utils/pdf_generators/psb_report_pdf.py
import io
from datetime import datetime
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

from psb.schemas.psb.psb_analytics_schemas import PSBReport

TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f2937")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f3f4f6")]),
])

ROW_HEADERS = {
    "cluster": "Cluster",
    "technician": "Technician",
    "package": "Package",
}


def report_filename(report: PSBReport, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"psb_{report.report_type}_report_{now.strftime('%Y%m%d_%H%M%S')}.pdf"


def generate_report_pdf(report: PSBReport, generated_at: Optional[datetime] = None) -> bytes:
    """
    Render a PSB report (summary block, grouped rows, monthly trend) to PDF bytes.
    """
    generated_at = generated_at or datetime.now()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=report.title)
    styles = getSampleStyleSheet()
    story = []

    # -----------------------------
    # HEADER
    # -----------------------------
    story.append(Paragraph(f"<b>{report.title}</b>", styles["Title"]))
    story.append(Paragraph(f"Generated: {generated_at.strftime('%d-%m-%Y %H:%M')}", styles["Normal"]))
    story.append(Spacer(1, 15))

    # -----------------------------
    # SUMMARY
    # -----------------------------
    s = report.summary
    story.append(Paragraph("<b>Summary</b>", styles["Heading3"]))
    summary_table = Table([
        ["Metric", "Value"],
        ["Total Orders", s.total_orders],
        ["Completed", s.completed_orders],
        ["In Progress", s.in_progress_orders],
        ["Pending", s.pending_orders],
        ["Cancelled", s.cancelled_orders],
        ["Completion Rate", f"{s.completion_rate:.1f}%"],
    ], colWidths=[200, 120])
    summary_table.setStyle(TABLE_STYLE)
    story.append(summary_table)
    story.append(Spacer(1, 15))

    # -----------------------------
    # GROUPED ROWS
    # -----------------------------
    if report.report_type in ROW_HEADERS:
        story.append(Paragraph(f"<b>By {ROW_HEADERS[report.report_type]}</b>", styles["Heading3"]))
        if report.rows:
            data = [[ROW_HEADERS[report.report_type], "Orders", "Completed", "Rate"]]
            for row in report.rows:
                data.append([row.name, row.count, row.completed, f"{row.completion_rate:.1f}%"])
            table = Table(data, colWidths=[200, 80, 80, 80])
            table.setStyle(TABLE_STYLE)
            story.append(table)
        else:
            story.append(Paragraph("No data", styles["Normal"]))
        story.append(Spacer(1, 15))

    # -----------------------------
    # MONTHLY TREND
    # -----------------------------
    story.append(Paragraph("<b>Monthly Trend</b>", styles["Heading3"]))
    if report.monthly_trends:
        data = [["Month", "Orders", "Completed", "Pending"]]
        for t in report.monthly_trends:
            data.append([f"{t.month}/{t.year}", t.count, t.completed, t.count - t.completed])
        table = Table(data, colWidths=[120, 80, 80, 80])
        table.setStyle(TABLE_STYLE)
        story.append(table)
    else:
        story.append(Paragraph("No data", styles["Normal"]))

    doc.build(story)
    return buffer.getvalue()
