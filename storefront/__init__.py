"""Entry point for the storefront FastAPI app."""
from storefront.app import create_app

__all__ = ["create_app"]
