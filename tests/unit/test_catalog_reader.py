"""
Unit tests for the extraction catalog reader service.

Tests cover CSV and Excel parsing, flexible columns and row validation.
"""

import pytest
import pandas as pd

from services.catalog_reader import ExtractionCatalogReader
from domain.exceptions import CatalogError


@pytest.fixture
def catalog_df():
    """Two products, one with an inactive type and blank bounds."""
    return pd.DataFrame({
        "Product ID": [12, 12, 12, 40],
        "Product Name": ["Full Arch Hybrid", "Full Arch Hybrid", "Full Arch Hybrid", "Zirconia Crown"],
        "Extraction Type": ["Missing teeth", "Implant", "Crooked", "Prepped"],
        "Default": ["Yes", "No", "No", "yes"],
        "Optional": ["No", "Yes", "Yes", None],
        "Status": ["Active", "Active", "Inactive", None],
        "Min Teeth": [1, None, None, None],
        "Max Teeth": [None, 2, None, None],
    })


@pytest.fixture
def csv_catalog(tmp_path, catalog_df):
    path = tmp_path / "catalog.csv"
    catalog_df.to_csv(path, index=False)
    return path


def test_reader_init_with_valid_file(csv_catalog):
    reader = ExtractionCatalogReader(csv_catalog)
    assert reader.file_path == csv_catalog


def test_reader_init_with_missing_file(tmp_path):
    with pytest.raises(CatalogError):
        ExtractionCatalogReader(tmp_path / "nope.csv")


def test_reader_init_with_invalid_extension(tmp_path):
    path = tmp_path / "catalog.txt"
    path.write_text("product_id,name\n1,Prepped\n")

    with pytest.raises(CatalogError):
        ExtractionCatalogReader(path)


def test_read_products_groups_rows(csv_catalog):
    """Test rows are grouped per product in file order."""
    products = ExtractionCatalogReader(csv_catalog).read_products()

    assert [p["product_id"] for p in products] == ["12", "40"]
    assert products[0]["product_name"] == "Full Arch Hybrid"
    assert [e["name"] for e in products[0]["extractions"]] == ["Missing teeth", "Implant", "Crooked"]


def test_read_products_normalizes_cells(csv_catalog):
    """Test flags, status and bounds use the product API conventions."""
    products = ExtractionCatalogReader(csv_catalog).read_products()
    missing, implant, crooked = products[0]["extractions"]
    [prepped] = products[1]["extractions"]

    assert missing["is_default"] == "Yes"
    assert missing["min_teeth"] == 1
    assert missing["max_teeth"] is None
    assert implant["is_optional"] == "Yes"
    assert implant["max_teeth"] == 2
    assert implant["is_required"] == "No"
    assert crooked["status"] == "Inactive"
    assert prepped["is_default"] == "Yes"
    assert prepped["status"] == "Active"


def test_read_catalog_from_excel(tmp_path, catalog_df):
    path = tmp_path / "catalog.xlsx"
    catalog_df.to_excel(path, index=False)

    catalog = ExtractionCatalogReader(path).read_catalog()

    assert set(catalog) == {"12", "40"}
    assert catalog["40"][0]["name"] == "Prepped"


def test_missing_required_columns(tmp_path):
    path = tmp_path / "catalog.csv"
    pd.DataFrame({"Colour": ["red"], "Default": ["Yes"]}).to_csv(path, index=False)

    with pytest.raises(CatalogError) as exc_info:
        ExtractionCatalogReader(path).read_products()

    assert "product_id" in exc_info.value.details["missing"]


def test_rows_without_product_id_are_skipped(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text("product_id,name,is_default\n12,Prepped,Yes\n,Implant,No\n")

    products = ExtractionCatalogReader(path).read_products()

    assert len(products) == 1
    assert [e["name"] for e in products[0]["extractions"]] == ["Prepped"]


def test_invalid_flag_raises_catalog_error(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text("product_id,name,is_default\n12,Prepped,maybe\n")

    with pytest.raises(CatalogError):
        ExtractionCatalogReader(path).read_products()


def test_out_of_range_bound_raises_catalog_error(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text("product_id,name,max_teeth\n12,Implant,40\n")

    with pytest.raises(CatalogError):
        ExtractionCatalogReader(path).read_products()


def test_find_column_prefers_exact_match(csv_catalog):
    reader = ExtractionCatalogReader(csv_catalog)

    assert reader._find_column(["Product Name", "name"], ["name"]) == "name"
    assert reader._find_column(["Product Name"], ["name"]) == "Product Name"
    assert reader._find_column(["Product Name"], ["name"], exclude=["Product Name"]) is None
