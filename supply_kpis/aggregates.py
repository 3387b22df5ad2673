"""
Grouped supplier, carrier, route and sales KPIs.

Every function takes the dataset as a DataFrame whose columns are the
dataset column names (see `records_to_frame`). NULL group keys form their
own group and aggregates skip NULL values, matching SQL GROUP BY.
"""
from dataclasses import dataclass
from typing import Iterable
import pandas as pd

from . import settings
from .schemas import NUMERIC_COLUMNS, SOURCE_COLUMNS, InventoryRecord
from .utils import round_half_up, safe_divide


RELIABLE = "Reliable"
MODERATE = "Moderate"
UNRELIABLE = "Unreliable"
HIGH_COST = "High Cost"
EFFICIENT = "Efficient"


@dataclass(frozen=True)
class GlobalBaselines:
    """Dataset-wide means the composite rules compare groups against."""

    mean_revenue: float | None
    mean_shipping_time: float | None
    mean_shipping_cost: float | None


def records_to_frame(records: Iterable[InventoryRecord]) -> pd.DataFrame:
    """Builds the analysis frame, one row per record, keeping dataset order."""
    rows = [record.model_dump(by_alias=True) for record in records]
    frame = pd.DataFrame(rows, columns=SOURCE_COLUMNS)
    for column in NUMERIC_COLUMNS:
        frame[column] = pd.to_numeric(frame[column], errors="coerce").astype("float64")
    return frame


def _mean(series: pd.Series) -> float | None:
    value = pd.to_numeric(series, errors="coerce").mean()
    return None if pd.isna(value) else float(value)


def round_column(series: pd.Series, places: int) -> pd.Series:
    return series.map(lambda value: round_half_up(value, places)).astype("float64")


def group_rows(frame: pd.DataFrame, keys: list[str]):
    return frame.groupby(keys, dropna=False, sort=True)


def global_baselines(frame: pd.DataFrame) -> GlobalBaselines:
    return GlobalBaselines(
        mean_revenue=_mean(frame["Revenue_generated"]),
        mean_shipping_time=_mean(frame["Shipping_times"]),
        mean_shipping_cost=_mean(frame["Shipping_costs"]),
    )


# --- Supplier performance ---


def supplier_lead_times(frame: pd.DataFrame) -> pd.DataFrame:
    """Average lead time per supplier and location."""
    result = (
        group_rows(frame, ["Supplier_name", "Location"])
        .agg(Avg_Lead_Time=("Lead_time", "mean"))
        .reset_index()
    )
    result["Avg_Lead_Time"] = round_column(result["Avg_Lead_Time"], 2)
    return result


def median_lead_time(lead_times: Iterable[float]) -> float | None:
    """
    Continuous 50th percentile: linear interpolation between the two middle
    order statistics when the count is even.
    """
    series = pd.Series(list(lead_times), dtype="float64").dropna()
    if series.empty:
        return None
    return float(series.quantile(0.5, interpolation="linear"))


def reliability_status(deviation: float | None) -> str:
    if deviation is not None and deviation < settings.RELIABLE_DEVIATION_MAX:
        return RELIABLE
    if deviation is not None and deviation < settings.MODERATE_DEVIATION_MAX:
        return MODERATE
    return UNRELIABLE


def supplier_reliability(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Scores each supplier/location by the mean absolute deviation of its lead
    times from the supplier's median lead time. The median is taken over all
    of the supplier's records, independent of location.
    """
    work = frame[["Supplier_name", "Location", "Lead_time"]].copy()
    work["Lead_time"] = pd.to_numeric(work["Lead_time"], errors="coerce")
    medians = (
        group_rows(work, ["Supplier_name"])["Lead_time"]
        .agg(median_lead_time)
        .rename("Median_Lead_Time")
        .reset_index()
    )
    # pandas merges NULL keys onto each other, so a NULL supplier keeps its median.
    work = work.merge(medians, on="Supplier_name", how="left")
    work["Deviation"] = (work["Lead_time"] - work["Median_Lead_Time"]).abs()

    result = (
        group_rows(work, ["Supplier_name", "Location", "Median_Lead_Time"])
        .agg(Avg_Lead_Time_Variance=("Deviation", "mean"))
        .reset_index()
    )
    result["Reliability_Status"] = [
        reliability_status(None if pd.isna(value) else float(value))
        for value in result["Avg_Lead_Time_Variance"]
    ]
    result["Avg_Lead_Time_Variance"] = round_column(result["Avg_Lead_Time_Variance"], 2)
    return result


def supplier_defect_rates(frame: pd.DataFrame) -> pd.DataFrame:
    """Production-weighted defect rate per supplier, 4 decimal places."""
    work = frame[["Supplier_name"]].copy()
    work["Production_volumes"] = pd.to_numeric(frame["Production_volumes"], errors="coerce")
    work["Defects"] = work["Production_volumes"] * pd.to_numeric(
        frame["Defect_rates"], errors="coerce"
    )

    result = (
        group_rows(work, ["Supplier_name"])
        .agg(
            Total_Defects=("Defects", lambda values: values.sum(min_count=1)),
            Total_Produced=("Production_volumes", lambda values: values.sum(min_count=1)),
        )
        .reset_index()
    )
    result["Defect_Rate"] = [
        round_half_up(safe_divide(defects, produced), 4)
        for defects, produced in zip(result["Total_Defects"], result["Total_Produced"])
    ]
    result["Defect_Rate"] = result["Defect_Rate"].astype("float64")
    return result


def supplier_cost_per_unit(frame: pd.DataFrame) -> pd.DataFrame:
    """Total manufacturing cost over total production volume, per supplier."""
    work = frame[["Supplier_name"]].copy()
    work["Manufacturing_costs"] = pd.to_numeric(frame["Manufacturing_costs"], errors="coerce")
    work["Production_volumes"] = pd.to_numeric(frame["Production_volumes"], errors="coerce")

    totals = (
        group_rows(work, ["Supplier_name"])
        .agg(
            manufacturing=("Manufacturing_costs", lambda values: values.sum(min_count=1)),
            produced=("Production_volumes", lambda values: values.sum(min_count=1)),
        )
        .reset_index()
    )
    totals["Cost_Per_Unit"] = [
        round_half_up(safe_divide(cost, produced), 2)
        for cost, produced in zip(totals["manufacturing"], totals["produced"])
    ]
    totals["Cost_Per_Unit"] = totals["Cost_Per_Unit"].astype("float64")
    return totals[["Supplier_name", "Cost_Per_Unit"]]


# --- Transport & shipping ---


def carrier_shipping_performance(frame: pd.DataFrame) -> pd.DataFrame:
    """Average shipping time and cost per carrier, with the shipment count."""
    result = (
        group_rows(frame, ["Shipping_carriers"])
        .agg(
            Avg_Time=("Shipping_times", "mean"),
            Avg_Cost=("Shipping_costs", "mean"),
            Shipments=("SKU", "size"),
        )
        .reset_index()
    )
    result["Avg_Time"] = round_column(result["Avg_Time"], 2)
    result["Avg_Cost"] = round_column(result["Avg_Cost"], 2)
    return result


def carrier_cost_status(carrier_mean_cost: float | None, global_mean_cost: float | None) -> str:
    if (
        carrier_mean_cost is not None
        and global_mean_cost is not None
        and carrier_mean_cost > global_mean_cost
    ):
        return HIGH_COST
    return EFFICIENT


def carrier_cost_flags(
    frame: pd.DataFrame, baselines: GlobalBaselines | None = None
) -> pd.DataFrame:
    """Flags carriers whose (rounded) average cost is above the global average."""
    baselines = baselines or global_baselines(frame)
    result = (
        group_rows(frame, ["Shipping_carriers"])
        .agg(Avg_Cost=("Shipping_costs", "mean"))
        .reset_index()
    )
    result["Avg_Cost"] = round_column(result["Avg_Cost"], 2)
    result["Cost_Status"] = [
        carrier_cost_status(None if pd.isna(cost) else cost, baselines.mean_shipping_cost)
        for cost in result["Avg_Cost"]
    ]
    return result


def route_efficiency(frame: pd.DataFrame) -> pd.DataFrame:
    result = (
        group_rows(frame, ["Routes", "Transportation_modes"])
        .agg(Avg_Route_Cost=("Costs", "mean"))
        .reset_index()
    )
    result["Avg_Route_Cost"] = round_column(result["Avg_Route_Cost"], 2)
    return result


# --- Sales & customers ---


def revenue_by_product_type(frame: pd.DataFrame) -> pd.DataFrame:
    return (
        group_rows(frame, ["Product_type"])
        .agg(
            Total_Revenue=("Revenue_generated", lambda values: values.sum(min_count=1)),
            Records=("SKU", "size"),
        )
        .reset_index()
    )


def revenue_by_demographic(frame: pd.DataFrame) -> pd.DataFrame:
    return (
        group_rows(frame, ["Customer_demographics"])
        .agg(
            Customers=("SKU", "size"),
            Revenue=("Revenue_generated", lambda values: values.sum(min_count=1)),
        )
        .reset_index()
    )


def top_selling_products(frame: pd.DataFrame, n: int = settings.TOP_N) -> pd.DataFrame:
    """The n best sellers by units sold; ties keep dataset order."""
    columns = ["SKU", "Product_type", "Number_of_products_sold", "Revenue_generated"]
    return (
        frame[columns]
        .sort_values("Number_of_products_sold", ascending=False, kind="stable", na_position="last")
        .head(n)
        .reset_index(drop=True)
    )
