"""
Composite insight rules combining two metrics.

Dataset-wide means are passed in explicitly as `GlobalBaselines`.
"""
import pandas as pd

from . import settings
from .aggregates import GlobalBaselines, group_rows, round_column, supplier_defect_rates
from .formulas import inventory_turnover
from .utils import is_missing

OVERSTOCK_RISK = "Overstock Risk"
HIGH_QUALITY_SLOW_SUPPLY = "High Quality, Slow Supply"
IMPROVE_DELIVERY = "Improve Delivery to High-Value Customers"
OK = "OK"


def _above(value, baseline) -> bool:
    return not is_missing(value) and not is_missing(baseline) and value > baseline


def overstock_risk(turnover: float | None, revenue: float | None, mean_revenue: float | None) -> str:
    """High revenue but stock turning over less than once."""
    low_turnover = not is_missing(turnover) and turnover < settings.LOW_TURNOVER_THRESHOLD
    if low_turnover and _above(revenue, mean_revenue):
        return OVERSTOCK_RISK
    return OK


def supplier_tradeoff(avg_lead_time: float | None, defect_rate: float | None) -> str:
    slow = _above(avg_lead_time, settings.SLOW_SUPPLY_LEAD_TIME)
    clean = not is_missing(defect_rate) and defect_rate < settings.HIGH_QUALITY_DEFECT_RATE
    if slow and clean:
        return HIGH_QUALITY_SLOW_SUPPLY
    return OK


def delivery_improvement(
    avg_revenue: float | None, avg_shipping_time: float | None, baselines: GlobalBaselines
) -> str:
    if _above(avg_revenue, baselines.mean_revenue) and _above(
        avg_shipping_time, baselines.mean_shipping_time
    ):
        return IMPROVE_DELIVERY
    return OK


def overstock_risk_report(frame: pd.DataFrame, baselines: GlobalBaselines) -> pd.DataFrame:
    """SKUs earning above-average revenue, with their turnover and risk status."""
    work = frame[["SKU", "Revenue_generated", "Stock_levels"]].copy()
    work["Turnover"] = [
        inventory_turnover(revenue, stock)
        for revenue, stock in zip(work["Revenue_generated"], work["Stock_levels"])
    ]
    work["Turnover"] = work["Turnover"].astype("float64")
    above_mean = [_above(revenue, baselines.mean_revenue) for revenue in work["Revenue_generated"]]
    work = work.loc[above_mean].copy()
    work["Status"] = [
        overstock_risk(
            None if pd.isna(turnover) else turnover, revenue, baselines.mean_revenue
        )
        for turnover, revenue in zip(work["Turnover"], work["Revenue_generated"])
    ]
    return work[["SKU", "Revenue_generated", "Turnover", "Status"]].reset_index(drop=True)


def supplier_tradeoff_report(frame: pd.DataFrame) -> pd.DataFrame:
    """Average lead time against defect rate, per supplier."""
    lead = (
        group_rows(frame, ["Supplier_name"])
        .agg(Avg_Lead_Time=("Lead_time", "mean"))
        .reset_index()
    )
    defects = supplier_defect_rates(frame)[["Supplier_name", "Defect_Rate"]]
    result = lead.merge(defects, on="Supplier_name", how="left")
    result["Insight"] = [
        supplier_tradeoff(
            None if pd.isna(lead_time) else lead_time,
            None if pd.isna(defect_rate) else defect_rate,
        )
        for lead_time, defect_rate in zip(result["Avg_Lead_Time"], result["Defect_Rate"])
    ]
    return result


def delivery_improvement_report(frame: pd.DataFrame, baselines: GlobalBaselines) -> pd.DataFrame:
    """Customer segments that spend more than average but wait longer than average."""
    result = (
        group_rows(frame, ["Customer_demographics"])
        .agg(
            Avg_Revenue=("Revenue_generated", "mean"),
            Avg_Shipping_Time=("Shipping_times", "mean"),
        )
        .reset_index()
    )
    result["Recommendation"] = [
        delivery_improvement(
            None if pd.isna(revenue) else revenue,
            None if pd.isna(shipping_time) else shipping_time,
            baselines,
        )
        for revenue, shipping_time in zip(result["Avg_Revenue"], result["Avg_Shipping_Time"])
    ]
    # Classification uses the unrounded means; only the displayed values are rounded.
    result["Avg_Revenue"] = round_column(result["Avg_Revenue"], 2)
    result["Avg_Shipping_Time"] = round_column(result["Avg_Shipping_Time"], 2)
    return result
