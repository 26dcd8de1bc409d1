from app.models.ledger import ExpenseTransaction, InventoryTransaction, StockTransaction

__all__ = [
    "ExpenseTransaction",
    "InventoryTransaction",
    "StockTransaction",
]
