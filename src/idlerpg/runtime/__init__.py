"""Asyncio scheduling and persistence for battle sessions."""

from .scheduler import AsyncioTicker, ManualTicker, PersistenceWorker

__all__ = ["AsyncioTicker", "ManualTicker", "PersistenceWorker"]
