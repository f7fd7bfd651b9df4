# File: product_scout/report/__init__.py
"""product_scout.report: Экспорт результатов запуска (CSV, JSON и HTML) для CLI и тестов."""

from __future__ import annotations

from product_scout.report.csv_report import read_csv, render_csv
from product_scout.report.html_report import DEFAULT_TEMPLATE_DIR, render_html
from product_scout.report.json_report import render_json

__all__ = ["render_csv", "read_csv", "render_json", "render_html", "DEFAULT_TEMPLATE_DIR"]
