"""
Cosmos DB Manager

Resolves credentials and connections for Mongo API and NoSQL API Azure Cosmos
DB accounts: connection string login or Azure identity with resource discovery
through Azure Resource Graph and the Cosmos DB management plane.
"""

__version__ = "0.1.0"
