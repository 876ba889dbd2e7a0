from storefront.domain.rules import CATEGORIES
from storefront.routers.records import build_router

router = build_router(CATEGORIES, "Category")
