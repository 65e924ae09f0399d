from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from stock_ingest.config import UploadSettings
from stock_ingest.ingest.pipeline import run_upload
from stock_ingest.parsing.types import ErrorCode
from stock_ingest.uploads.items import generate_item_code

HEADER = "item_code,item_name,category_name,qualifier,gsm,size_mm,uom,usage_type\n"


def test_generate_item_code_skips_blank_parts() -> None:
    """`CAT_QUALIFIER_SIZE_GSM`, with blank parts left out."""
    assert generate_item_code(category_name="Adhesive", qualifier="adh", size_mm=None, gsm=Decimal("117")) == "ADH_ADH_117"
    assert generate_item_code(category_name="Film", qualifier=None, size_mm="1000 mm", gsm=Decimal("18.50")) == "FIL_1000MM_18P5"


def test_generated_code_keeps_decimal_gsm_apart() -> None:
    """GSM 18.5 and GSM 185 never share a code."""
    fractional = generate_item_code(category_name="Film", qualifier="X", size_mm=None, gsm=Decimal("18.5"))
    whole = generate_item_code(category_name="Film", qualifier="X", size_mm=None, gsm=Decimal("185"))

    assert fractional == "FIL_X_18P5"
    assert whole == "FIL_X_185"


def test_blank_item_code_is_generated(store, settings: UploadSettings) -> None:
    """Rows without a code get one built from category, qualifier, size and GSM."""
    cat = store.add_category("Adhesive")
    result = run_upload(store, upload_type="items", text=HEADER + ",Hot melt,adhesive,ADH,117 GSM,,kg,\n", settings=settings)

    assert result.error_count == 0
    assert store.items["ADH_ADH_117"]["category_id"] == cat


def test_generated_duplicate_code_is_rejected(store, settings: UploadSettings) -> None:
    """Two rows generating the same code: the second is a duplicate."""
    store.add_category("Adhesive")
    body = ",Hot melt,Adhesive,ADH,117,,kg,\n,Hot melt 2,Adhesive,ADH,117,,kg,\n"
    result = run_upload(store, upload_type="items", text=HEADER + body, settings=settings)
    assert [o.ok for o in result.outcomes] == [True, False]
    assert result.errors[0].code == ErrorCode.duplicate_key


def test_missing_category_created_once_when_enabled(store, settings: UploadSettings) -> None:
    """With creation on, a new category is made once and reused by later rows."""
    store.add_category("Adhesives")
    settings = replace(settings, create_missing_categories=True)
    body = "I1,Tape,Foo Bar,,,,pcs,\nI2,Tape 2,foo  bar,,,,pcs,\n"

    result = run_upload(store, upload_type="items", text=HEADER + body, settings=settings)

    assert result.error_count == 0
    assert sorted(store.categories.values()) == ["Adhesives", "Foo Bar"]
    assert store.items["I1"]["category_id"] == store.items["I2"]["category_id"]


def test_near_match_is_not_created(store, settings: UploadSettings) -> None:
    """A typo of an existing category is rejected with the suggestion, never created."""
    store.add_category("Adhesives")
    settings = replace(settings, create_missing_categories=True)
    result = run_upload(store, upload_type="items", text=HEADER + "I1,Glue,Adhesivs,,,,kg,\n", settings=settings)

    [failed] = result.errors
    assert failed.code == ErrorCode.unresolved_reference
    assert failed.suggestions == ("Adhesives",)
    assert list(store.categories.values()) == ["Adhesives"]


def test_dry_run_does_not_create_categories(store, settings: UploadSettings) -> None:
    """Dry runs resolve as if the category were created, without writing it."""
    settings = replace(settings, create_missing_categories=True)
    result = run_upload(
        store, upload_type="items", text=HEADER + "I1,Tape,Foo Bar,,,,pcs,\n", settings=settings, dry_run=True
    )
    assert result.error_count == 0
    assert store.categories == {}
    assert store.items == {}


def test_failed_item_write_leaves_no_category(store, settings: UploadSettings) -> None:
    """The category made for an item is written with it, or not at all."""
    settings = replace(settings, create_missing_categories=True)
    store.fail_writes_from = 1

    result = run_upload(store, upload_type="items", text=HEADER + "I1,Tape,Foo Bar,,,,pcs,\n", settings=settings)

    [failed] = result.errors
    assert failed.code == ErrorCode.write_failure
    assert store.categories == {}
    assert store.items == {}


def test_only_categories_of_written_items_exist(store, settings: UploadSettings) -> None:
    """Only categories whose item was written count as created."""
    settings = replace(settings, create_missing_categories=True)
    store.fail_writes_from = 2
    body = "I1,Tape,Foo Bar,,,,pcs,\nI2,Sleeve,Zinc Plate,,,,pcs,\n"

    result = run_upload(store, upload_type="items", text=HEADER + body, settings=settings)

    assert [o.ok for o in result.outcomes] == [True, False]
    assert list(store.categories.values()) == ["Foo Bar"]
    assert list(store.items) == ["I1"]
