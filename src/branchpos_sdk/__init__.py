from .catalog import (
    ALL_CATEGORY,
    LOW_STOCK_THRESHOLD,
    CatalogProvider,
    StaticCatalog,
    filter_products,
    is_low_stock,
)
from .clients.transactions_client import TransactionsClient
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    NotFoundError,
    ServerError,
    TransactionNotFoundError,
    TransportError,
    ValidationError,
)
from .http_client import HttpClient
from .models import (
    ALL_CATEGORY_ID,
    Branch,
    Category,
    Product,
    Store,
    Transaction,
    TransactionDraft,
    TransactionItem,
    TransactionQuery,
    TransactionStatus,
)
from .repository import InMemoryTransactionRepository, TransactionRepository, now_millis
from .scope_store import SavedScope, ScopeStore
from .session import ApiSession
from .tracing import TraceContext

__all__ = [
    "ALL_CATEGORY",
    "ALL_CATEGORY_ID",
    "ApiError",
    "ApiSession",
    "Branch",
    "CatalogProvider",
    "Category",
    "ClientConfig",
    "ConfigError",
    "HttpClient",
    "InMemoryTransactionRepository",
    "LOW_STOCK_THRESHOLD",
    "NotFoundError",
    "Product",
    "SavedScope",
    "ScopeStore",
    "ServerError",
    "StaticCatalog",
    "Store",
    "TraceContext",
    "Transaction",
    "TransactionDraft",
    "TransactionItem",
    "TransactionNotFoundError",
    "TransactionQuery",
    "TransactionRepository",
    "TransactionStatus",
    "TransactionsClient",
    "TransportError",
    "ValidationError",
    "filter_products",
    "is_low_stock",
    "load_config",
    "now_millis",
]
