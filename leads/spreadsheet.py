"""
Spreadsheet loading for lead uploads.

Reads CSV, TSV or Excel files into raw lead records keyed by the lead
field names the importer expects. Headers are matched against common
Portuguese and English spellings; unknown columns are carried through
under their original header and ignored by validation.

Usage:
    python -m leads.spreadsheet leads.xlsx --actor <user-id>
"""

import logging
import unicodedata
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from .models import RawLeadRecord

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Common column name variations seen in uploaded spreadsheets
COLUMN_MAPPINGS = {
    # Entry date variations
    "entrydate": "entryDate",
    "entry_date": "entryDate",
    "date": "entryDate",
    "data": "entryDate",
    "data_entrada": "entryDate",
    "data_de_entrada": "entryDate",

    # Name variations
    "name": "name",
    "nome": "name",
    "full_name": "name",
    "nome_completo": "name",

    # Email variations
    "email": "email",
    "e_mail": "email",
    "email_address": "email",

    # Phone variations
    "phone": "phone",
    "telefone": "phone",
    "celular": "phone",
    "whatsapp": "phone",
    "phone_number": "phone",

    # State variations
    "state": "state",
    "estado": "state",
    "uf": "state",

    # Campaign variations
    "campaign": "campaign",
    "campanha": "campaign",

    # Tag variations
    "tags": "tags",
    "etiquetas": "tags",

    # Source variations
    "source": "source",
    "origem": "source",
    "studio": "source",

    # Status variations
    "status": "status",
    "situacao": "status",

    # Notes variations
    "notes": "notes",
    "observacoes": "notes",
    "obs": "notes",
}


class UnsupportedFileTypeError(ValueError):
    """Raised when the upload is not a CSV/TSV/Excel file."""


def _normalize_header(header: str) -> str:
    text = unicodedata.normalize("NFKD", str(header)).encode("ascii", "ignore").decode("ascii")
    return text.lower().strip().replace(" ", "_").replace("-", "_")


def map_headers(headers: List[str], custom_mappings: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Map spreadsheet headers to lead field names."""
    mappings = {**COLUMN_MAPPINGS}
    if custom_mappings:
        mappings.update({_normalize_header(k): v for k, v in custom_mappings.items()})

    header_map = {}
    for header in headers:
        header_map[header] = mappings.get(_normalize_header(header), str(header))
    return header_map


def _read_dataframe(path: Path, sheet_name: Union[str, int] = 0) -> pd.DataFrame:
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        return pd.read_csv(
            path,
            sep="\t" if suffix == ".tsv" else ",",
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",  # Handles BOM from Excel exports
        )

    if suffix in {".xls", ".xlsx", ".xlsm"}:
        return pd.read_excel(path, sheet_name=sheet_name, dtype=str, keep_default_na=False)

    raise UnsupportedFileTypeError(f"Unsupported file type '{suffix}'")


def load_spreadsheet(
    path: PathLike,
    sheet_name: Union[str, int] = 0,
    column_mapping: Optional[Dict[str, str]] = None
) -> List[RawLeadRecord]:
    """
    Load raw lead records from a spreadsheet.

    Blank cells are dropped from each record and fully blank rows are
    skipped, so a missing value reaches validation as an absent field.

    Args:
        path: CSV/TSV/XLSX file
        sheet_name: Sheet to read from Excel workbooks
        column_mapping: Extra header -> field mappings

    Returns:
        One dict per non-empty row, in file order
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spreadsheet not found: {path}")

    dataframe = _read_dataframe(path, sheet_name=sheet_name)
    header_map = map_headers(list(dataframe.columns), column_mapping)

    records: List[RawLeadRecord] = []
    for row in dataframe.to_dict(orient="records"):
        record = {}
        for header, value in row.items():
            if value is None or pd.isna(value):
                continue
            text = str(value).strip()
            if text:
                record[header_map[header]] = text
        if record:
            records.append(record)

    logger.info("Loaded %s lead rows from %s", len(records), path.name)
    return records


# CLI interface
if __name__ == "__main__":
    import argparse

    from database import AuditLogger, get_client

    from .config import ImportConfig
    from .importer import LeadImporter
    from .validation import LeadValidationError, validate_lead

    parser = argparse.ArgumentParser(description="Import leads from a spreadsheet")
    parser.add_argument("filepath", help="Path to CSV/XLSX file")
    parser.add_argument("--actor", default=None, help="User id recorded in the audit trail")
    parser.add_argument("--batch-size", type=int, default=None, help="Leads per insert call")
    parser.add_argument("--dry-run", action="store_true", help="Only validate, don't import")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    rows = load_spreadsheet(args.filepath)
    config = ImportConfig.from_env()
    if args.batch_size:
        config.batch_size = args.batch_size

    if args.dry_run:
        invalid = 0
        for row_num, row in enumerate(rows, start=2):  # Row 1 is the header
            try:
                validate_lead(row, config.default_campaign)
            except LeadValidationError as e:
                invalid += 1
                print(f"  Row {row_num}: {e.reason}")
        print(f"{len(rows) - invalid} valid rows, {invalid} invalid rows")
    else:
        store = get_client()
        importer = LeadImporter(store, AuditLogger(store, config.audit_table), config)
        result = importer.import_leads(rows, actor_id=args.actor)

        print(result.summary())

        if result.errors:
            print("\nFirst 5 errors:")
            for error in result.errors[:5]:
                print(f"  {error['error']}")
