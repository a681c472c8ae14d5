"""
Apps package - FastAPI services.

- edge_gateway: Client IP restoration behind the trusted proxy network
"""
