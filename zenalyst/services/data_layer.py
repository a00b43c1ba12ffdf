from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from zenalyst.config import Settings

from .aggregation import QuarterlyRecord, RevenueRecord
from .formatting import round_to

logger = logging.getLogger(__name__)

COUNTRY = "Country"
REGION = "Region"
CUSTOMER = "Customer Name"
YEARLY_REVENUE = "Yearly Revenue"
TOTAL_REVENUE = "Total Revenue"
Q3_REVENUE = "Quarter 3 Revenue"
Q4_REVENUE = "Quarter 4 Revenue"
VARIANCE = "Variance"
PERCENTAGE_VARIANCE = "Percentage of Variance"
BRIDGE_COLUMNS = {
    "new": "New Revenue",
    "expansion": "Expansion Revenue",
    "churned": "Churned Revenue",
    "contraction": "Contraction Revenue",
}

SOURCE_FILES = {
    "quarterly_revenue_collection": "A._Quarterly_Revenue_and_QoQ_growth.json",
    "revenue_bridge_collection": "B._Revenue_Bridge_and_Churned_Analysis.json",
    "countries_collection": "C._Country_wise_Revenue_Analysis.json",
    "regions_collection": "D._Region_wise_Revenue_Analysis.json",
    "customer_concentration_collection": "E._Customer_Concentration_Analysis.json",
}


class RecordNotFound(LookupError):
    """A single labelled document does not exist in its collection."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass
class RevenueSummary:
    total_q3_revenue: float
    total_q4_revenue: float
    total_variance: float


@dataclass
class BridgeTotals:
    new: float
    expansion: float
    churned: float
    contraction: float


def create_client(settings: Settings) -> MongoClient:
    return MongoClient(
        settings.mongodb_uri,
        maxPoolSize=settings.max_pool_size,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        socketTimeoutMS=settings.socket_timeout_ms,
    )


def _ensure_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    for col in columns:
        if col not in df.columns:
            df[col] = None
    return df


def _numeric(df: pd.DataFrame, col: str) -> pd.Series:
    # raises on non-numeric text and on booleans
    series = df[col]
    if is_bool_dtype(series) or series.map(lambda v: isinstance(v, (bool, np.bool_))).any():
        raise ValueError(f"Column '{col}' holds boolean values, expected numbers")
    return pd.to_numeric(series, errors="raise").astype(float)


def _labels(df: pd.DataFrame, col: str) -> list[str]:
    return [str(v) for v in df[col].fillna("")]


def _explicit_nulls(docs: list[dict], col: str) -> list[bool]:
    # a stored null means "no data"; an absent field does not
    return [col in doc and doc[col] is None for doc in docs]


def _revenue_records(docs: list[dict], label_col: str, value_col: str) -> list[RevenueRecord]:
    df = _ensure_columns(pd.DataFrame(docs), [label_col, value_col])
    values = _numeric(df, value_col).fillna(0.0)
    return [
        RevenueRecord(label=label, revenue=float(value), reported=not null)
        for label, value, null in zip(
            _labels(df, label_col), values, _explicit_nulls(docs, value_col)
        )
    ]


def _quarterly_records(df: pd.DataFrame) -> list[QuarterlyRecord]:
    cols = [Q3_REVENUE, Q4_REVENUE, VARIANCE, PERCENTAGE_VARIANCE]
    df = _ensure_columns(df, [CUSTOMER, *cols])
    q3, q4, var, pct = (_numeric(df, c).fillna(0.0) for c in cols)
    return [
        QuarterlyRecord(
            label=label,
            q3_revenue=float(a),
            q4_revenue=float(b),
            variance=float(c),
            percentage_variance=float(d),
        )
        for label, a, b, c, d in zip(_labels(df, CUSTOMER), q3, q4, var, pct)
    ]


class ReportingStore:
    """Read-only access to the analytics collections.

    One instance is built at start-up around a pymongo ``Database`` and shared
    by all requests. Every method issues a single query; driver errors
    propagate unchanged.
    """

    def __init__(self, db: Database, settings: Settings):
        self.db = db
        self.settings = settings

    def _documents(self, collection: str) -> list[dict]:
        docs = list(self.db[collection].find({}, {"_id": 0}))
        logger.debug("Fetched %d documents from %s", len(docs), collection)
        return docs

    def _frame(self, collection: str) -> pd.DataFrame:
        return pd.DataFrame(self._documents(collection))

    def _find_one(self, collection: str, query: dict) -> Optional[dict]:
        return self.db[collection].find_one(query, {"_id": 0})

    def ping(self) -> bool:
        try:
            self.db.command("ping")
        except PyMongoError as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
        return True

    # Collections as typed records

    def countries(self) -> list[RevenueRecord]:
        docs = self._documents(self.settings.countries_collection)
        return _revenue_records(docs, COUNTRY, YEARLY_REVENUE)

    def regions(self) -> list[RevenueRecord]:
        docs = self._documents(self.settings.regions_collection)
        return _revenue_records(docs, REGION, YEARLY_REVENUE)

    def customer_concentration(self) -> list[RevenueRecord]:
        docs = self._documents(self.settings.customer_concentration_collection)
        return _revenue_records(docs, CUSTOMER, TOTAL_REVENUE)

    def quarterly_revenue(self) -> list[QuarterlyRecord]:
        return _quarterly_records(self._frame(self.settings.quarterly_revenue_collection))

    # Single lookups

    def country(self, name: str) -> RevenueRecord:
        doc = self._find_one(self.settings.countries_collection, {COUNTRY: name})
        if doc is None:
            raise RecordNotFound("Country", f"Country '{name}' not found")
        return _revenue_records([doc], COUNTRY, YEARLY_REVENUE)[0]

    def region(self, name: str) -> RevenueRecord:
        doc = self._find_one(self.settings.regions_collection, {REGION: name})
        if doc is None:
            raise RecordNotFound("Region", f"Region '{name}' not found")
        return _revenue_records([doc], REGION, YEARLY_REVENUE)[0]

    def customer(self, name: str) -> QuarterlyRecord:
        doc = self._find_one(self.settings.quarterly_revenue_collection, {CUSTOMER: name})
        if doc is None:
            raise RecordNotFound("Customer", f"Customer '{name}' not found")
        return _quarterly_records(pd.DataFrame([doc]))[0]

    # Pre-aggregated totals

    def revenue_summary(self) -> RevenueSummary:
        doc = self._find_one(self.settings.revenue_summary_collection, {})
        if doc is None:
            raise RecordNotFound("Revenue summary", "Revenue summary not found")
        return RevenueSummary(
            total_q3_revenue=float(doc.get("totalQ3Revenue") or 0.0),
            total_q4_revenue=float(doc.get("totalQ4Revenue") or 0.0),
            total_variance=float(doc.get("totalVariance") or 0.0),
        )

    def quarterly_totals(self) -> Optional[tuple[float, float]]:
        df = self._frame(self.settings.quarterly_revenue_collection)
        if df.empty:
            return None
        df = _ensure_columns(df, [Q3_REVENUE, Q4_REVENUE])
        return (
            float(_numeric(df, Q3_REVENUE).fillna(0.0).sum()),
            float(_numeric(df, Q4_REVENUE).fillna(0.0).sum()),
        )

    def bridge_totals(self) -> Optional[BridgeTotals]:
        df = self._frame(self.settings.revenue_bridge_collection)
        if df.empty:
            return None
        df = _ensure_columns(df, BRIDGE_COLUMNS.values())
        sums = {
            key: float(_numeric(df, col).fillna(0.0).sum())
            for key, col in BRIDGE_COLUMNS.items()
        }
        return BridgeTotals(**sums)


def _records_for_insert(df: pd.DataFrame) -> list[dict]:
    # NaN becomes null, as in the source exports
    return df.astype(object).where(df.notna(), None).to_dict("records")


def load_sample_data(db: Database, settings: Settings, data_dir: Path) -> dict[str, int]:
    """Replace every collection with the JSON exports found in ``data_dir``."""
    missing = [name for name in SOURCE_FILES.values() if not (data_dir / name).exists()]
    if missing:
        raise FileNotFoundError(f"Source files not found under {data_dir}: {', '.join(missing)}")

    counts = {}
    quarterly_df = pd.DataFrame()
    for setting_name, filename in SOURCE_FILES.items():
        collection = getattr(settings, setting_name)
        df = pd.read_json(data_dir / filename, orient="records")
        if setting_name == "quarterly_revenue_collection":
            quarterly_df = df
        db[collection].delete_many({})
        if not df.empty:
            db[collection].insert_many(_records_for_insert(df))
        counts[collection] = len(df)
        logger.info("Loaded %d documents into %s", len(df), collection)

    quarterly_df = _ensure_columns(quarterly_df, [Q3_REVENUE, Q4_REVENUE])
    q3 = float(_numeric(quarterly_df, Q3_REVENUE).fillna(0.0).sum())
    q4 = float(_numeric(quarterly_df, Q4_REVENUE).fillna(0.0).sum())
    summary = {
        "totalQ3Revenue": round_to(q3, 2),
        "totalQ4Revenue": round_to(q4, 2),
        "totalVariance": round_to(q4 - q3, 2),
    }
    db[settings.revenue_summary_collection].delete_many({})
    db[settings.revenue_summary_collection].insert_one(summary)
    counts[settings.revenue_summary_collection] = 1
    return counts
