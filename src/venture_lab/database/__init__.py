"""Cosmos DB persistence layer."""

from venture_lab.database.client import CosmosClient

__all__ = ["CosmosClient"]
