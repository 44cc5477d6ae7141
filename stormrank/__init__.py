"""
stormrank package
=================

Storm Impact Ranking: cleans the historical storm-event log and ranks event
categories by damage, injuries and fatalities.

- Dataset loading is in `stormrank/loader.py`.
- The staged pipeline (normalize -> filter -> aggregate -> classify) is in
  `stormrank/pipeline.py`.
- The result table (sorting, top-k, export) is in `stormrank/engine.py`.
- The CLI entry point is in `stormrank/cli.py`.
"""

__version__ = '0.3.0'
