"""Application factory and lifecycle for the PairChat server."""
