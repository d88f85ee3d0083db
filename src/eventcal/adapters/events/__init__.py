from .base import EventStoreClient, EventStoreClientError
from .http import HttpEventStoreClient

__all__ = ["EventStoreClient", "EventStoreClientError", "HttpEventStoreClient"]
