"""Core (UI-agnostic) sheet charting logic.

This package contains:
- cell normalization (raw cell -> tagged Value)
- workbook loading and mtime-revalidated caching (XLSX/CSV -> rows)
- row filters, grouping and aggregation
- series assembly and chart specs (Chart.js-style config, Vega-Lite via Altair)
- CSV export of filtered rows
"""
