"""
API package for the PairChat server.

Contains the WebSocket endpoint and the health endpoint.
"""
