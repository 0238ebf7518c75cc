"""
casualtymap package
===================

Search-and-filter engine behind the maritime casualty map dashboard.

- The session object (auth gate, load, filters, search, render payload) is in
  `casualtymap/engine.py`.
- CSV loading and per-record geometry are in `casualtymap/loader.py`.
- Filtering, vessel search and selection state live in `filters.py`,
  `search.py` and `selection.py`.
"""

__version__ = '0.1.0'
