"""
Stock services -- imperative shell around the movement engine.

Services own the ORM mapping and call the pure engines; the caller owns
the transaction boundary.
"""

from stock_services.movement_service import StockMovementService

__all__ = ["StockMovementService"]
