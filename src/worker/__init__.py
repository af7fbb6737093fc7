"""Background workers for the entitlement service"""
from .expiry_notifier import ExpiryNotifierWorker

__all__ = ["ExpiryNotifierWorker"]
