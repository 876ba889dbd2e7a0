"""Contact messages are submitted and deleted, never edited."""
from storefront.domain.rules import CONTACTS
from storefront.routers.records import build_router

router = build_router(CONTACTS, "Contact", added_message="submitted successfully", allow_update=False)
