from __future__ import annotations

from stock_ingest.parsing.registry import UPLOAD_TYPES

from .base import UploadHandler


def get_upload_handler(upload_type: str) -> UploadHandler:
    """Handler for `upload_type`. Raises `ValueError` for unknown types."""
    if upload_type == "items":
        from .items import ITEMS_HANDLER
        return ITEMS_HANDLER
    if upload_type == "opening_stock":
        from .opening_stock import OPENING_STOCK_HANDLER
        return OPENING_STOCK_HANDLER
    if upload_type == "grn":
        from .grn import GRN_HANDLER
        return GRN_HANDLER
    if upload_type == "issues":
        from .issues import ISSUES_HANDLER
        return ISSUES_HANDLER
    if upload_type == "suppliers":
        from .suppliers import SUPPLIERS_HANDLER
        return SUPPLIERS_HANDLER
    if upload_type == "vendor_prices":
        from .vendor_prices import VENDOR_PRICES_HANDLER
        return VENDOR_PRICES_HANDLER
    if upload_type == "item_pricing":
        from .item_pricing import ITEM_PRICING_HANDLER
        return ITEM_PRICING_HANDLER
    if upload_type == "reorder_rules":
        from .reorder_rules import REORDER_RULES_HANDLER
        return REORDER_RULES_HANDLER
    if upload_type == "bom":
        from .bom import BOM_HANDLER
        return BOM_HANDLER

    raise ValueError(f"Unknown upload_type: {upload_type} (expected one of: {', '.join(UPLOAD_TYPES)})")
