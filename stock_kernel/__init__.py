"""
Stock Kernel

Domain types and infrastructure for the inventory movement engine:
- Warehouse configuration and registry
- Per-product-per-warehouse stock ledger with lot buckets
- Movement records and kardex (audit) lines
- Typed error taxonomy and structured logging
- Reference SQLAlchemy persistence for ledger and kardex
"""

__version__ = "0.1.0"
