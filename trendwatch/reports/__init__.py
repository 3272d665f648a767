"""
Report exporters - JSON and CSV renderings of analytics state.
"""

from .exporter import CSV_COLUMNS, ExportFormat, metrics_to_csv, metrics_to_frame, parse_format, to_json

__all__ = ["CSV_COLUMNS", "ExportFormat", "metrics_to_csv", "metrics_to_frame", "parse_format", "to_json"]
