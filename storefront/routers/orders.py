from storefront.domain.rules import ORDERS
from storefront.routers.records import build_router

router = build_router(ORDERS, "Order", added_message="created successfully")
