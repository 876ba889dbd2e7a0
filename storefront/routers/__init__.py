"""
FastAPI routers grouped by collection (products, categories, orders, contacts).

Each module exposes an APIRouter built by ``records.build_router`` and is
included by ``storefront.app``. Routers only translate HTTP into EntityStore
calls; the rules live in services/domain.
"""
