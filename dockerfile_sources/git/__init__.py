"""Version-control adapters."""

from .materializer import GitMaterializer, MaterializeError, Materializer

__all__ = ["GitMaterializer", "MaterializeError", "Materializer"]
