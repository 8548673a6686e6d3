"""
Bulk profile importers.
"""

from .csv_import import CsvImporter, CsvImportResult, RowError

__all__ = ["CsvImporter", "CsvImportResult", "RowError"]
