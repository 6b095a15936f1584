"""Activity trail for document operations"""

from .service import log_activity, get_activity

__all__ = ["log_activity", "get_activity"]
