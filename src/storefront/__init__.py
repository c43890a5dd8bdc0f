"""Storefront: order and admin persistence with cross-environment sync.

Whole-collection JSON storage on a local directory or a remote blob
service, serialized read-modify-write per collection, and a secret-gated
pull protocol for copying hosted data into a local instance.
"""

__version__ = "0.1.0"

from storefront.admins import AdminDirectory
from storefront.catalog import ProductCatalog
from storefront.config import StorefrontConfig
from storefront.constants import Collection
from storefront.customers import Customer, CustomerView, aggregate
from storefront.errors import (
    AuthenticationError,
    CheckoutError,
    ConflictError,
    DuplicateEmail,
    EmptyCart,
    InvalidCredentials,
    MissingCustomerFields,
    MissingFields,
    NoValidItems,
    PasswordTooLong,
    StorageFailure,
    StorefrontError,
    SyncError,
    Unauthorized,
    ValidationError,
)
from storefront.gateway import CollectionGuard, PersistenceGateway
from storefront.models import AdminAccount, CustomerInfo, LineItem, Order, Product
from storefront.orders import OrderLedger
from storefront.record_store import RecordStore
from storefront.stores import BlobRecordStore, LocalRecordStore, select_store
from storefront.sync import SyncClient, SyncResult, export_snapshot, import_from_origin

__all__ = [
    "AdminAccount",
    "AdminDirectory",
    "AuthenticationError",
    "BlobRecordStore",
    "CheckoutError",
    "Collection",
    "CollectionGuard",
    "ConflictError",
    "Customer",
    "CustomerInfo",
    "CustomerView",
    "DuplicateEmail",
    "EmptyCart",
    "InvalidCredentials",
    "LineItem",
    "LocalRecordStore",
    "MissingCustomerFields",
    "MissingFields",
    "NoValidItems",
    "Order",
    "OrderLedger",
    "PasswordTooLong",
    "PersistenceGateway",
    "Product",
    "ProductCatalog",
    "RecordStore",
    "StorageFailure",
    "StorefrontConfig",
    "StorefrontError",
    "SyncClient",
    "SyncError",
    "SyncResult",
    "Unauthorized",
    "ValidationError",
    "aggregate",
    "export_snapshot",
    "import_from_origin",
    "select_store",
]
