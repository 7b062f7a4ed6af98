"""
Pipeline components: CSV lead import and the deal/client rule engine.

LeadImporter turns scraper exports into deduplicated leads; PipelineEngine
applies the lead -> deal -> client rules.
"""

from .csv_parser import ParsedCSV, parse_csv, parse_csv_line
from .engine import DealTransition, PipelineEngine, coerce_stage
from .importer import ImportPreview, ImportResult, LeadImporter, lead_from_row

__all__ = [
    # Import pipeline
    'LeadImporter',
    'ImportPreview',
    'ImportResult',
    'lead_from_row',
    'ParsedCSV',
    'parse_csv',
    'parse_csv_line',
    # Pipeline engine
    'PipelineEngine',
    'DealTransition',
    'coerce_stage',
]
