"""Session analytics and reporting service."""

from .main import AnalyticsService
from .session_aggregator import SessionAnalyticsAggregator
from .pdf_generator import PDFGenerator
from .csv_exporter import CSVExporter

__all__ = [
    "AnalyticsService", "SessionAnalyticsAggregator",
    "PDFGenerator", "CSVExporter"
]
