from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Mapping, Sequence, Union, get_args

from .types import NormalizedRecord, RowOutcome


# -- the upload types an ERP user can pick
UploadType = Literal[
    "items",
    "opening_stock",
    "grn",
    "issues",
    "suppliers",
    "vendor_prices",
    "item_pricing",
    "reorder_rules",
    "bom",
]

UPLOAD_TYPES: tuple[str, ...] = get_args(UploadType)

ParseResult = Union[NormalizedRecord, RowOutcome]     # a parsed record, or a failure outcome.

RowParseFn = Callable[..., ParseResult]


@dataclass(frozen=True)
class ProfileSpec:
    """Contains an upload type's input expectations."""
    upload_type: str
    template_headers: tuple[str, ...]               # column order of the downloadable template
    template_sample: Sequence[Mapping[str, str]]    # example rows shipped with the template
    parse_row: RowParseFn                           # `parse_row(raw, *, source_row=...)`

    def parse(self, raw: Mapping[str, Any], *, source_row: int) -> ParseResult:
        return self.parse_row(raw, source_row=source_row)


def get_profile_spec(upload_type: str) -> ProfileSpec:
    """
    A registry that assigns each upload type its parser and template. `FieldSpec` defines parsing rules inside the profile modules.
    """
    if upload_type == "items":
        from .profiles.items import ITEM_TEMPLATE_HEADERS, ITEM_TEMPLATE_SAMPLE, parse_item_row
        return ProfileSpec("items", ITEM_TEMPLATE_HEADERS, ITEM_TEMPLATE_SAMPLE, parse_item_row)

    if upload_type == "opening_stock":
        from .profiles.opening_stock import (
            OPENING_STOCK_TEMPLATE_HEADERS,
            OPENING_STOCK_TEMPLATE_SAMPLE,
            parse_opening_stock_row,
        )
        return ProfileSpec("opening_stock", OPENING_STOCK_TEMPLATE_HEADERS, OPENING_STOCK_TEMPLATE_SAMPLE, parse_opening_stock_row)

    if upload_type == "grn":
        from .profiles.grn import GRN_TEMPLATE_HEADERS, GRN_TEMPLATE_SAMPLE, parse_grn_row
        return ProfileSpec("grn", GRN_TEMPLATE_HEADERS, GRN_TEMPLATE_SAMPLE, parse_grn_row)

    if upload_type == "issues":
        from .profiles.issues import ISSUE_TEMPLATE_HEADERS, ISSUE_TEMPLATE_SAMPLE, parse_issue_row
        return ProfileSpec("issues", ISSUE_TEMPLATE_HEADERS, ISSUE_TEMPLATE_SAMPLE, parse_issue_row)

    if upload_type == "suppliers":
        from .profiles.suppliers import SUPPLIER_TEMPLATE_HEADERS, SUPPLIER_TEMPLATE_SAMPLE, parse_supplier_row
        return ProfileSpec("suppliers", SUPPLIER_TEMPLATE_HEADERS, SUPPLIER_TEMPLATE_SAMPLE, parse_supplier_row)

    if upload_type == "vendor_prices":
        from .profiles.vendor_prices import (
            VENDOR_PRICE_TEMPLATE_HEADERS,
            VENDOR_PRICE_TEMPLATE_SAMPLE,
            parse_vendor_price_row,
        )
        return ProfileSpec("vendor_prices", VENDOR_PRICE_TEMPLATE_HEADERS, VENDOR_PRICE_TEMPLATE_SAMPLE, parse_vendor_price_row)

    if upload_type == "item_pricing":
        from .profiles.item_pricing import (
            ITEM_PRICING_TEMPLATE_HEADERS,
            ITEM_PRICING_TEMPLATE_SAMPLE,
            parse_item_pricing_row,
        )
        return ProfileSpec("item_pricing", ITEM_PRICING_TEMPLATE_HEADERS, ITEM_PRICING_TEMPLATE_SAMPLE, parse_item_pricing_row)

    if upload_type == "reorder_rules":
        from .profiles.reorder_rules import (
            REORDER_RULE_TEMPLATE_HEADERS,
            REORDER_RULE_TEMPLATE_SAMPLE,
            parse_reorder_rule_row,
        )
        return ProfileSpec("reorder_rules", REORDER_RULE_TEMPLATE_HEADERS, REORDER_RULE_TEMPLATE_SAMPLE, parse_reorder_rule_row)

    if upload_type == "bom":
        from .profiles.bom import BOM_TEMPLATE_HEADERS, BOM_TEMPLATE_SAMPLE, parse_bom_row
        return ProfileSpec("bom", BOM_TEMPLATE_HEADERS, BOM_TEMPLATE_SAMPLE, parse_bom_row)

    raise ValueError(f"Unknown upload_type: {upload_type}")
