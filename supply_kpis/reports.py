"""
Ad-hoc, read-only KPI reports over the dataset.

Per-record reports go through the same formula functions the recompute
pipeline persists, so a report and the stored columns always agree.
"""
import pandas as pd

from . import aggregates, formulas, insights, settings

IDENTITY = ["SKU", "Product_type"]


def _per_record(frame: pd.DataFrame, name: str, func, *columns: str) -> pd.Series:
    values = [
        func(*(None if pd.isna(value) else value for value in row))
        for row in zip(*(frame[column] for column in columns))
    ]
    return pd.Series(values, index=frame.index, name=name, dtype="object")


def _numeric(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").astype("float64")


def eoq_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY].copy()
    report["Annual_Demand"] = frame["Number_of_products_sold"]
    report["Ordering_Cost"] = frame["Shipping_costs"]
    report["Holding_Cost"] = _numeric(
        _per_record(frame, "Holding_Cost", formulas.holding_cost, "Price")
    )
    report["EOQ"] = _numeric(
        _per_record(frame, "EOQ", formulas.eoq, "Number_of_products_sold", "Shipping_costs", "Price")
    )
    return report


def reorder_point_report(frame: pd.DataFrame) -> pd.DataFrame:
    sold_and_lead = ("Number_of_products_sold", "Lead_time")
    report = frame[IDENTITY].copy()
    report["Daily_Demand"] = _numeric(
        _per_record(frame, "Daily_Demand", formulas.daily_demand, "Number_of_products_sold")
    )
    report["Lead_time"] = frame["Lead_time"]
    report["Lead_Time_Demand"] = _numeric(
        _per_record(frame, "Lead_Time_Demand", formulas.lead_time_demand, *sold_and_lead)
    )
    report["Safety_Stock"] = _numeric(
        _per_record(frame, "Safety_Stock", formulas.safety_stock, *sold_and_lead)
    )
    report["Reorder_Point"] = _numeric(
        _per_record(frame, "Reorder_Point", formulas.reorder_point, *sold_and_lead)
    )
    return report


def inventory_turnover_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY + ["Revenue_generated", "Stock_levels"]].copy()
    report["Inventory_Turnover"] = _numeric(
        _per_record(
            frame, "Inventory_Turnover", formulas.inventory_turnover, "Revenue_generated", "Stock_levels"
        )
    )
    return report


def days_sales_of_inventory_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY].copy()
    report["Days_Sales_of_Inventory"] = _numeric(
        _per_record(
            frame,
            "Days_Sales_of_Inventory",
            formulas.days_sales_of_inventory,
            "Stock_levels",
            "Revenue_generated",
        )
    )
    return report


def low_stock_report(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Stock against the reorder point. Status compares against the unrounded
    reorder point, the same value the persisted Low_Stock_Status uses, so a
    row can show equal Stock_levels and Reorder_Point yet need a restock.
    """
    report = frame[IDENTITY + ["Stock_levels"]].copy()
    report["Reorder_Point"] = _numeric(
        _per_record(
            frame, "Reorder_Point", formulas.reorder_point, "Number_of_products_sold", "Lead_time"
        )
    )
    report["Status"] = _per_record(
        frame,
        "Status",
        formulas.low_stock_status,
        "Stock_levels",
        "Number_of_products_sold",
        "Lead_time",
    )
    return report


def overstock_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY + ["Stock_levels"]].copy()
    report["EOQ"] = _numeric(
        _per_record(frame, "EOQ", formulas.eoq, "Number_of_products_sold", "Shipping_costs", "Price")
    )
    report["Overstock_Status"] = [
        formulas.overstock_status(
            None if pd.isna(stock) else stock, None if pd.isna(eoq) else eoq
        )
        for stock, eoq in zip(report["Stock_levels"], report["EOQ"])
    ]
    return report


def shipping_cost_per_unit_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY].copy()
    report["Shipping_Cost_per_Unit"] = _numeric(
        _per_record(
            frame,
            "Shipping_Cost_per_Unit",
            formulas.shipping_cost_per_unit,
            "Shipping_costs",
            "Number_of_products_sold",
        )
    )
    return report


def price_band_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY + ["Price"]].copy()
    report["Price_Band"] = _per_record(frame, "Price_Band", formulas.price_band, "Price")
    report["Revenue_generated"] = frame["Revenue_generated"]
    return report


def profitability_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY + ["Revenue_generated"]].copy()
    report["Total_Cost"] = _numeric(
        _per_record(frame, "Total_Cost", formulas.total_cost, "Manufacturing_costs", "Shipping_costs")
    )
    report["Estimated_Profit"] = _numeric(
        _per_record(
            frame,
            "Estimated_Profit",
            formulas.profitability_estimate,
            "Revenue_generated",
            "Manufacturing_costs",
            "Shipping_costs",
        )
    )
    return report


def movement_report(frame: pd.DataFrame) -> pd.DataFrame:
    report = frame[IDENTITY + ["Stock_levels", "Number_of_products_sold"]].copy()
    report["Movement_Flag"] = _per_record(
        frame, "Movement_Flag", formulas.movement_flag, "Stock_levels", "Number_of_products_sold"
    )
    return report


def build_all_reports(records, top_n: int = settings.TOP_N) -> dict[str, pd.DataFrame]:
    """Every KPI report, keyed by a file-friendly name, in workbook order."""
    frame = aggregates.records_to_frame(records)
    baselines = aggregates.global_baselines(frame)

    return {
        "eoq": eoq_report(frame),
        "reorder_point": reorder_point_report(frame),
        "inventory_turnover": inventory_turnover_report(frame),
        "days_sales_of_inventory": days_sales_of_inventory_report(frame),
        "low_stock_alert": low_stock_report(frame),
        "overstock_flag": overstock_report(frame),
        "supplier_lead_time": aggregates.supplier_lead_times(frame),
        "supplier_reliability": aggregates.supplier_reliability(frame),
        "supplier_defect_rate": aggregates.supplier_defect_rates(frame),
        "supplier_cost_per_unit": aggregates.supplier_cost_per_unit(frame),
        "shipping_cost_per_unit": shipping_cost_per_unit_report(frame),
        "route_efficiency": aggregates.route_efficiency(frame),
        "carrier_performance": aggregates.carrier_shipping_performance(frame),
        "carrier_cost_flag": aggregates.carrier_cost_flags(frame, baselines),
        "revenue_by_product_type": aggregates.revenue_by_product_type(frame),
        "price_band": price_band_report(frame),
        "customer_segments": aggregates.revenue_by_demographic(frame),
        "top_selling_products": aggregates.top_selling_products(frame, top_n),
        "profitability": profitability_report(frame),
        "movement": movement_report(frame),
        "overstock_risk": insights.overstock_risk_report(frame, baselines),
        "supplier_tradeoff": insights.supplier_tradeoff_report(frame),
        "delivery_improvement": insights.delivery_improvement_report(frame, baselines),
    }
