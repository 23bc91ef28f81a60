import datetime
import html
import logging
import re
from typing import Any, Dict, List, Optional

import markdown

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Template & styles
# -----------------------------------------------------------------------------
TEMPLATE_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{report_title}</title></head>
<body>
<div class="cover">
  <h1>{report_title}</h1>
  <p class="company">{company_name}</p>
  <p class="meta">Prepared for {prepared_for} &middot; {date}</p>
</div>
{content}
</body>
</html>
"""

STYLESHEET = """
@page { size: A4; margin: 2cm; }
body { font-family: Helvetica, Arial, sans-serif; color: #111827; font-size: 11pt; }
.cover { border-bottom: 2px solid #4f46e5; margin-bottom: 1.5em; }
.cover h1 { color: #4f46e5; margin-bottom: 0.2em; }
.meta { color: #6b7280; font-size: 9pt; }
h2 { color: #1f2937; border-bottom: 1px solid #e5e7eb; padding-bottom: 0.2em; }
table { border-collapse: collapse; width: 100%; margin: 0.5em 0 1.5em 0; }
th, td { border: 1px solid #e5e7eb; padding: 4px 8px; text-align: left; }
th { background: #f3f4f6; }
.score-high { color: #16a34a; } .score-mid { color: #ca8a04; } .score-low { color: #dc2626; }
"""


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------
def convert_markdown_to_html(markdown_text: str, section_number: int = 1) -> str:
    """
    Converts Markdown text into HTML while preserving tables and basic formatting.
    Each <table> gets a `section-N` class for styling.
    """
    html = markdown.markdown(
        markdown_text,
        extensions=[
            "tables",
            "sane_lists",
        ],
    )
    return html.replace("<table>", f'<table class="section-{section_number}">')


def score_class(score: int) -> str:
    """Colour band for a relationship score: >=80 high, >=60 mid, else low."""
    if score >= 80:
        return "score-high"
    if score >= 60:
        return "score-mid"
    return "score-low"


def _cell(value: Any) -> str:
    """Table-safe text: HTML-escaped, with pipes escaped for the Markdown table."""
    return html.escape(str(value)).replace("|", "\\|")


def _series_table(rows: List[Dict[str, Any]]) -> str:
    if not rows:
        return "_No data recorded yet._"
    lines = ["| Date | Count |", "|---|---|"]
    for row in rows:
        lines.append(f"| {row['date']} | {row['count']} |")
    return "\n".join(lines)


def _engagement_table(rows: List[Dict[str, Any]]) -> str:
    if not rows:
        return "_No investor engagement yet._"
    lines = ["| Investor | Score | Actions |", "|---|---|---|"]
    for row in rows:
        lines.append(
            f"| {_cell(row['name'])} | [score:{int(row['score'])}] | {int(row['actions'])} |"
        )
    return "\n".join(lines)


def build_analytics_sections(metrics: Dict[str, Any]) -> List[Dict[str, str]]:
    """Turn the founder analytics payload into titled Markdown sections."""
    summary = metrics.get("summary", {})
    summary_md = "\n".join([
        "| Metric | Value |",
        "|---|---|",
        f"| Total profile views | {summary.get('total_views', 0)} |",
        f"| Total document views | {summary.get('total_document_views', 0)} |",
        f"| Average engagement score | {summary.get('average_score', 0)} |",
        f"| Total investor actions | {summary.get('total_actions', 0)} |",
    ])
    return [
        {"title": "Summary", "content": summary_md},
        {"title": "Investor Profile Views", "content": _series_table(metrics.get("investor_views", []))},
        {"title": "Document Views", "content": _series_table(metrics.get("document_views", []))},
        {"title": "Investor Engagement", "content": _engagement_table(metrics.get("investor_engagement", []))},
    ]


def build_report_html(
    report_title: str,
    sections: List[Dict[str, str]],
    company_name: str = "",
    prepared_for: str = "",
    report_date: Optional[datetime.date] = None,
) -> str:
    sections_html = ""
    for i, section in enumerate(sections, start=1):
        content_html = convert_markdown_to_html(section["content"], i)
        # score placeholders become coloured spans
        content_html = re.sub(
            r"\[score:(\d+)\]",
            lambda m: f'<span class="{score_class(int(m.group(1)))}">{m.group(1)}</span>',
            content_html,
        )
        sections_html += f'<div class="section" id="section-{i}">\n'
        sections_html += f"<h2>{section['title']}</h2>\n{content_html}\n</div>\n"

    date_str = (report_date or datetime.date.today()).strftime("%b %d, %Y")
    return TEMPLATE_HTML.format(
        report_title=html.escape(report_title),
        company_name=html.escape(company_name),
        prepared_for=html.escape(prepared_for),
        date=date_str,
        content=sections_html,
    )


def render_pdf(report_html: str) -> bytes:
    # WeasyPrint loads its native pango/cairo libraries at import time
    from weasyprint import HTML, CSS

    return HTML(string=report_html).write_pdf(stylesheets=[CSS(string=STYLESHEET)])


def generate_analytics_pdf(
    metrics: Dict[str, Any],
    company_name: str,
    prepared_for: str,
) -> bytes:
    """Render the founder analytics dashboard to PDF bytes."""
    report_html = build_report_html(
        report_title="Investor Analytics Report",
        sections=build_analytics_sections(metrics),
        company_name=company_name,
        prepared_for=prepared_for,
    )
    pdf_bytes = render_pdf(report_html)
    logger.info("Generated analytics PDF for %s (%d bytes)", company_name, len(pdf_bytes))
    return pdf_bytes
