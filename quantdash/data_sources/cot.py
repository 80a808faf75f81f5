"""
CFTC Commitment of Traders (COT) reports.

Weekly legacy futures-only positioning from the CFTC public reporting
(Socrata) API. Commercials, non-commercials (large speculators) and
non-reportables (small speculators) are kept as long / short legs; nets
are derived by COTRecord.
"""

from typing import Any, Dict, List, Optional
from quantdash.entities import COTRecord
from quantdash.errors import DataError, InvalidArgumentError
from quantdash.data_sources.http import JSONClient
from quantdash.logging_config import get_logger

CFTC_BASE_URL = "https://publicreporting.cftc.gov/resource"

DATASETS = {
    "legacy_futures": "6dca-aqww",
    "disaggregated": "72hh-3qpy",
    "financial": "gpe5-46if",
}

# Contract market codes
COT_CONTRACTS = {
    # Currencies
    "EUR": "099741",
    "GBP": "096742",
    "JPY": "097741",
    "CHF": "092741",
    "CAD": "090741",
    "AUD": "232741",
    # Commodities
    "GOLD": "088691",
    "SILVER": "084691",
    "CRUDE_OIL": "067651",
    "NATURAL_GAS": "023651",
    # Indices
    "SP500": "13874A",
    "NASDAQ": "20974P",
    "VIX": "1170E1",
    # Bonds
    "TREASURY_10Y": "043602",
    "TREASURY_2Y": "042601",
}

# About three years of weekly reports
DEFAULT_LIMIT = 156

log = get_logger(__name__)


def resolve_contract(contract: str) -> str:
    """Map a contract key (e.g., "EUR") to its market code; codes pass through."""
    key = contract.strip().upper()
    if key in COT_CONTRACTS:
        return COT_CONTRACTS[key]
    if key in COT_CONTRACTS.values():
        return key
    raise InvalidArgumentError(f"unknown COT contract: {contract}")


def _position(row: Dict[str, Any], column: str) -> int:
    """Parse a position count; missing or non-numeric fields count as 0."""
    try:
        return int(float(row.get(column) or 0))
    except (TypeError, ValueError):
        return 0


def parse_cot_row(row: Dict[str, Any]) -> COTRecord:
    """
    Convert one legacy-report row into a COTRecord.

    Raises:
        DataError: If the row has no report date
    """
    report_date = row.get("report_date_as_yyyy_mm_dd")
    if not report_date:
        raise DataError(f"COT row without report date: {row}")
    return COTRecord(
        date=str(report_date)[:10],
        commercial_long=_position(row, "comm_positions_long_all"),
        commercial_short=_position(row, "comm_positions_short_all"),
        large_spec_long=_position(row, "noncomm_positions_long_all"),
        large_spec_short=_position(row, "noncomm_positions_short_all"),
        small_spec_long=_position(row, "nonrept_positions_long_all"),
        small_spec_short=_position(row, "nonrept_positions_short_all"),
    )


def get_cot_records(
    contract: str,
    limit: int = DEFAULT_LIMIT,
    client: Optional[JSONClient] = None
) -> List[COTRecord]:
    """
    Fetch the most recent COT reports for a contract.

    Postconditions:
        - Returns at most `limit` records in chronological order

    Args:
        contract: Contract key from COT_CONTRACTS or a raw market code
        limit: Number of weekly reports (default 156)
        client: JSONClient for the CFTC API (one is created if omitted)

    Returns:
        List of COTRecord, oldest first

    Raises:
        DataError: If the request fails or the payload is not a list
    """
    code = resolve_contract(contract)
    owned = client is None
    client = client or JSONClient(CFTC_BASE_URL)
    try:
        rows = client.get(
            f"/{DATASETS['legacy_futures']}.json",
            {
                "cftc_contract_market_code": code,
                "$limit": limit,
                "$order": "report_date_as_yyyy_mm_dd DESC",
            },
        )
    finally:
        if owned:
            client.close()

    if not isinstance(rows, list):
        raise DataError(f"Unexpected COT payload for {contract}: {type(rows).__name__}")

    # Newest first on the wire
    records = [parse_cot_row(row) for row in reversed(rows)]
    log.info("cot_records_loaded", contract=contract, code=code, reports=len(records))
    return records
