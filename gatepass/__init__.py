# =======================================================================================
# gatepass/__init__.py - Package Initialization
# =======================================================================================
"""
Gate Access Control - Scan Decision and Movement Ledger

Decides whether a scanned credential may pass the gate a controller is
standing at, and keeps an append-only record of every attempt together with
each person's current inside/outside state.
"""

__version__ = "1.0.0"
__author__ = "Gate Access Control Team"
