"""
Downloadable exports: a Word-compatible HTML document and a raw JSON snapshot.
"""

import html
import json
import re

from ..schemas.state import VillageInfo

from .compiler import ReportData

WORD_DOCUMENT_TEMPLATE = """<html xmlns:o="urn:schemas-microsoft-com:office:office" xmlns:w="urn:schemas-microsoft-com:office:word" xmlns="http://www.w3.org/TR/REC-html40">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: Arial, sans-serif; line-height: 1.5; }}
</style>
</head>
<body>
<pre style="white-space: pre-wrap;">{body}</pre>
</body>
</html>
"""


def _safe_name(name: str) -> str:
    cleaned = re.sub(r"[^\w\-]+", "_", name.strip())
    return cleaned.strip("_") or "Village"


def report_filename(village: VillageInfo) -> str:
    return f"{_safe_name(village.name)}_Final_Report.doc"


def snapshot_filename(village: VillageInfo) -> str:
    return f"{_safe_name(village.name)}_raw_data.json"


def render_word_document(report: str, village: VillageInfo) -> str:
    """Wrap the report text in an HTML document Word will open as .doc."""
    return WORD_DOCUMENT_TEMPLATE.format(
        title=html.escape(f"Final Report - {village.name}"),
        body=html.escape(report or ""),
    )


def export_snapshot(data: ReportData) -> str:
    """Serialize every phase's data as pretty-printed JSON."""
    return json.dumps(data.to_dict(), indent=2, ensure_ascii=False)
