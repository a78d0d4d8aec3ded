from .base import BaseClient
from .transactions_client import TransactionsClient

__all__ = ["BaseClient", "TransactionsClient"]
