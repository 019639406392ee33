"""Invoice detail report importer.

Turns messy "Invoice Detail Report" text/spreadsheet exports into structured
invoice records (header + line items).
"""

__version__ = "0.1.0"
