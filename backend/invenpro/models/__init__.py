from .inventory import Product, StockMovement
from .documents import DocumentRecord, DocumentLine, DocumentSequence
from .partners import Partner
from .audit import AuditLogEntry
from .auth import Operator, SessionToken

__all__ = [
    'Product', 'StockMovement',
    'DocumentRecord', 'DocumentLine', 'DocumentSequence',
    'Partner',
    'AuditLogEntry',
    'Operator', 'SessionToken',
]
