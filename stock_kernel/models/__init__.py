"""ORM models for the stock kernel."""

from stock_kernel.models.kardex import KardexLineModel
from stock_kernel.models.stock_ledger import LotBucketModel, StockLedgerEntryModel
from stock_kernel.models.warehouse import WarehouseModel

__all__ = [
    "WarehouseModel",
    "StockLedgerEntryModel",
    "LotBucketModel",
    "KardexLineModel",
]
