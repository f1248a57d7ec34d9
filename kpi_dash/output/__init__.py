# Path: kpi_dash/output/__init__.py
"""
Output Module for kpi_dash

Human-readable rendering of computed KPI rows.

Usage:
    from output import render_rows

    print(render_rows(results.values(), title='Kuzey Otomotiv 2025-03'))
"""

from .report_table import format_number, format_attainment, render_rows

__all__ = ['format_number', 'format_attainment', 'render_rows']
