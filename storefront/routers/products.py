"""Products accept JSON or multipart bodies; multipart may carry an ``image`` file."""
from storefront.domain.rules import PRODUCTS
from storefront.routers.records import build_router

router = build_router(PRODUCTS, "Product")
