"""
Bulk gift distribution: table ingestion and batch orchestration.
"""
from .csv_parser import CSV_TEMPLATE, ParseResult, entries_to_table, parse, parse_date, write_template
from .orchestrator import BatchOrchestrator, BatchReport, CancellationToken, summarize

__all__ = [
    'BatchOrchestrator',
    'BatchReport',
    'CSV_TEMPLATE',
    'CancellationToken',
    'ParseResult',
    'entries_to_table',
    'parse',
    'parse_date',
    'summarize',
    'write_template',
]
