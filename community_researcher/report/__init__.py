"""
Final report compilation, export and text formatting.
"""

from .compiler import REPORT_ERROR_TEXT, ReportCompiler, ReportData
from .export import export_snapshot, render_word_document, report_filename, snapshot_filename
from .formatting import (
    Block,
    BlockKind,
    SourceLine,
    clean_response_text,
    extract_report_content,
    extract_sources,
    parse_blocks,
)

__all__ = [
    "REPORT_ERROR_TEXT",
    "ReportCompiler",
    "ReportData",
    "export_snapshot",
    "render_word_document",
    "report_filename",
    "snapshot_filename",
    "Block",
    "BlockKind",
    "SourceLine",
    "clean_response_text",
    "extract_report_content",
    "extract_sources",
    "parse_blocks",
]
