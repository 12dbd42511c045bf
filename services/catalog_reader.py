"""
Extraction Catalog Reader Service.

Reads product extraction catalogs exported from the product library
(one row per product and extraction type) from Excel or CSV files.

Uses pandas and openpyxl for spreadsheet processing.
"""

import logging
from pathlib import Path
from typing import List, Dict, Any, Optional, Sequence
import pandas as pd

from domain.exceptions import CatalogError, ValidationError
from domain.validators import (
    validate_file_path,
    normalize_flag,
    normalize_status,
    validate_count_bound,
    validate_extraction_type_name,
)

logger = logging.getLogger(__name__)


# Column name mappings for flexible matching
PRODUCT_ID_VARIANTS = ['product_id', 'product id', 'productid', 'product code']
PRODUCT_NAME_VARIANTS = ['product_name', 'product name', 'product']
NAME_VARIANTS = ['extraction_type', 'extraction type', 'extraction', 'name', 'status name']
COLOR_VARIANTS = ['color', 'colour']
CODE_VARIANTS = ['code', 'short code']
DEFAULT_VARIANTS = ['is_default', 'default']
REQUIRED_VARIANTS = ['is_required', 'required']
OPTIONAL_VARIANTS = ['is_optional', 'optional']
STATUS_VARIANTS = ['status', 'state', 'active']
MIN_TEETH_VARIANTS = ['min_teeth', 'min teeth', 'minimum teeth', 'min']
MAX_TEETH_VARIANTS = ['max_teeth', 'max teeth', 'maximum teeth', 'max']

SUPPORTED_EXTENSIONS = [".xlsx", ".xls", ".csv"]


class ExtractionCatalogReader:
    """
    Spreadsheet reader for product extraction catalogs.

    Output rows use the same keys as the product API so they can be fed
    straight into the selection store and the resolver.
    """

    def __init__(self, file_path: Path):
        """
        Initialize catalog reader.

        Args:
            file_path: Path to catalog file (.xlsx, .xls or .csv)

        Raises:
            CatalogError: If file is invalid or doesn't exist
        """
        try:
            self.file_path = validate_file_path(
                file_path,
                must_exist=True,
                allowed_extensions=SUPPORTED_EXTENSIONS,
            )
        except ValidationError as e:
            raise CatalogError(e.message, details=e.details)
        logger.info(f"Initialized catalog reader for: {self.file_path}")

    def _find_column(
        self,
        columns: List[str],
        search_terms: List[str],
        exclude: Sequence[str] = (),
    ) -> Optional[str]:
        """
        Find column name using flexible matching.

        Tries exact match first, then partial match (case-insensitive).
        Columns already claimed by another field are skipped.

        Args:
            columns: Available column names in DataFrame
            search_terms: List of possible column name variations to search for
            exclude: Columns already matched

        Returns:
            Matched column name, or None if not found
        """
        candidates = [col for col in columns if col not in exclude]

        # Try exact matches first
        for term in search_terms:
            for col in candidates:
                if term.lower() == str(col).strip().lower():
                    logger.debug(f"Found exact match: '{col}' for search term '{term}'")
                    return col

        # Then try partial matches
        for term in search_terms:
            for col in candidates:
                if term.lower() in str(col).lower():
                    logger.debug(f"Found partial match: '{col}' contains '{term}'")
                    return col

        return None

    def read_dataframe(self, sheet_name: Optional[str] = None) -> pd.DataFrame:
        """
        Read catalog file into pandas DataFrame.

        Args:
            sheet_name: Sheet to read (None = first sheet, ignored for CSV)

        Returns:
            DataFrame with cleaned data

        Raises:
            CatalogError: If file cannot be read
        """
        try:
            if self.file_path.suffix.lower() == ".csv":
                df = pd.read_csv(self.file_path)
            else:
                df = pd.read_excel(self.file_path, sheet_name=sheet_name or 0)
        except Exception as e:
            raise CatalogError(
                f"Could not read catalog file: {e}",
                details={"file": str(self.file_path), "error": str(e)},
            )

        df = self._clean_dataframe(df)
        logger.debug(f"Read {len(df)} rows from {self.file_path.name}")
        return df

    def _clean_dataframe(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Clean DataFrame by removing empty rows and standardizing columns.

        Args:
            df: Input DataFrame

        Returns:
            Cleaned DataFrame
        """
        # Remove completely empty rows
        df = df.dropna(how="all")

        # Strip whitespace from string columns
        for col in df.columns:
            if df[col].dtype == "object":
                df[col] = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)

        # Object dtype so NaN can become None in numeric columns too
        df = df.astype(object).where(pd.notnull(df), None)

        return df

    def _safe_str(self, value, default: str = "") -> str:
        """
        Convert value to string safely, handling None/NaN.

        Whole floats lose their ".0" (Excel stores ids as numbers).

        Examples:
            >>> _safe_str(None) → ""
            >>> _safe_str(12.0) → "12"
            >>> _safe_str("Prepped ") → "Prepped"
        """
        if value is None:
            return default
        if pd.isna(value):
            return default
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    def _safe_value(self, value):
        """None for missing cells, value otherwise."""
        if value is None or pd.isna(value):
            return None
        return value

    def read_products(self, sheet_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Read catalog grouped by product, in file order.

        Returns:
            List of {"product_id", "product_name", "extractions": [...]}

        Raises:
            CatalogError: If required columns are missing or a row is invalid
        """
        df = self.read_dataframe(sheet_name)
        columns = list(df.columns)

        logger.info(f"Available columns in catalog: {columns}")

        found: Dict[str, Optional[str]] = {}
        for field_name, variants in (
            ("product_id", PRODUCT_ID_VARIANTS),
            ("name", NAME_VARIANTS),
            ("product_name", PRODUCT_NAME_VARIANTS),
            ("is_default", DEFAULT_VARIANTS),
            ("is_required", REQUIRED_VARIANTS),
            ("is_optional", OPTIONAL_VARIANTS),
            ("status", STATUS_VARIANTS),
            ("min_teeth", MIN_TEETH_VARIANTS),
            ("max_teeth", MAX_TEETH_VARIANTS),
            ("color", COLOR_VARIANTS),
            ("code", CODE_VARIANTS),
        ):
            claimed = [col for col in found.values() if col]
            found[field_name] = self._find_column(columns, variants, exclude=claimed)

        missing_cols = [field for field in ("product_id", "name") if not found[field]]
        if missing_cols:
            raise CatalogError(
                f"Missing columns in catalog: {', '.join(missing_cols)}",
                details={
                    "file": str(self.file_path),
                    "missing": missing_cols,
                    "available": columns,
                },
            )

        logger.info(
            "Using columns - "
            + ", ".join(f"{field}: '{col or 'N/A'}'" for field, col in found.items())
        )

        products: Dict[str, Dict[str, Any]] = {}
        for idx, row in df.iterrows():
            product_id = self._safe_str(row.get(found["product_id"]))
            if not product_id:
                logger.warning(f"Skipping row {idx}: No product id")
                continue

            try:
                extraction = self._parse_row(row, found)
            except ValidationError as e:
                raise CatalogError(
                    f"Invalid catalog row {idx}: {e.message}",
                    details={"file": str(self.file_path), "row": idx, **e.details},
                )

            product = products.setdefault(
                product_id,
                {"product_id": product_id, "product_name": None, "extractions": []},
            )
            if found["product_name"] and not product["product_name"]:
                product["product_name"] = self._safe_str(row.get(found["product_name"])) or None
            product["extractions"].append(extraction)

        logger.info(f"Read {len(products)} product(s) from {self.file_path.name}")
        return list(products.values())

    def _parse_row(self, row: pd.Series, found: Dict[str, Optional[str]]) -> Dict[str, Any]:
        """Convert one row to a raw extraction dict (API key names)."""

        def cell(field_name: str):
            col = found.get(field_name)
            return self._safe_value(row.get(col)) if col else None

        return {
            "name": validate_extraction_type_name(self._safe_str(cell("name"))),
            "color": self._safe_str(cell("color")),
            "code": self._safe_str(cell("code")),
            "is_default": normalize_flag(cell("is_default")),
            "is_required": normalize_flag(cell("is_required")),
            "is_optional": normalize_flag(cell("is_optional")),
            "status": normalize_status(cell("status")),
            "min_teeth": validate_count_bound(cell("min_teeth"), "min_teeth"),
            "max_teeth": validate_count_bound(cell("max_teeth"), "max_teeth"),
        }

    def read_catalog(self, sheet_name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        """
        Read catalog as {product_id: [extraction dicts]}.

        Example:
            >>> reader = ExtractionCatalogReader(Path("catalog.csv"))
            >>> reader.read_catalog()["12"][0]["name"]
            'Missing teeth'
        """
        return {p["product_id"]: p["extractions"] for p in self.read_products(sheet_name)}
