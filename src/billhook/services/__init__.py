"""Application services."""

from .clients import ClientRecords, ClientRecordService, client_key

__all__ = ["ClientRecords", "ClientRecordService", "client_key"]
