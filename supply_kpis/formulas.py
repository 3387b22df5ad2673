"""
Per-record KPI formulas.

Every function is pure and takes plain numbers. A NULL input or a zero
denominator yields None, which reports render as a blank cell and the
store persists as NULL. Intermediate quantities stay unrounded; rounding
is applied only to the value a function returns.
"""
import math

from . import settings
from .schemas import DerivedFields, InventoryRecord
from .utils import is_missing, round_half_up, safe_divide

RESTOCK_NEEDED = "Restock Needed"
STOCK_SUFFICIENT = "Stock Sufficient"
OVERSTOCKED = "Overstocked"
OK = "OK"
SLOW_MOVER = "Overstocked / Slow Mover"
NORMAL = "Normal"


def _any_missing(*values) -> bool:
    return any(is_missing(value) for value in values)


# --- Inventory optimization ---


def holding_cost(price: float | None) -> float | None:
    """Yearly holding cost per unit, assumed to be a fixed share of the price."""
    if is_missing(price):
        return None
    return price * settings.HOLDING_COST_RATE


def eoq(sold: float | None, shipping_cost: float | None, price: float | None) -> float | None:
    """
    Economic Order Quantity: sqrt(2 * D * S / H), rounded to 2 places.
    D is annual units sold, S the ordering cost (shipping cost as proxy),
    H the holding cost.
    """
    if _any_missing(sold, shipping_cost):
        return None
    ratio = safe_divide(2 * sold * shipping_cost, holding_cost(price))
    if ratio is None or ratio < 0:
        return None
    return round_half_up(math.sqrt(ratio), 2)


def _daily_demand(sold: float | None) -> float | None:
    if is_missing(sold):
        return None
    return sold / settings.DAYS_PER_YEAR


def _lead_time_demand(sold: float | None, lead_time: float | None) -> float | None:
    daily = _daily_demand(sold)
    if daily is None or is_missing(lead_time):
        return None
    return daily * lead_time


def _reorder_point(sold: float | None, lead_time: float | None) -> float | None:
    demand = _lead_time_demand(sold, lead_time)
    if demand is None:
        return None
    return demand * (1 + settings.SAFETY_STOCK_RATE)


def daily_demand(sold: float | None) -> float | None:
    return round_half_up(_daily_demand(sold), 2)


def lead_time_demand(sold: float | None, lead_time: float | None) -> float | None:
    return round_half_up(_lead_time_demand(sold, lead_time), 2)


def safety_stock(sold: float | None, lead_time: float | None) -> float | None:
    demand = _lead_time_demand(sold, lead_time)
    if demand is None:
        return None
    return round_half_up(demand * settings.SAFETY_STOCK_RATE, 2)


def reorder_point(sold: float | None, lead_time: float | None) -> float | None:
    """Lead-time demand plus safety stock."""
    return round_half_up(_reorder_point(sold, lead_time), 2)


def inventory_turnover(revenue: float | None, stock: float | None) -> float | None:
    """Revenue over stock on hand; undefined when there is no stock."""
    return round_half_up(safe_divide(revenue, stock), 2)


def days_sales_of_inventory(
    stock: float | None, revenue: float | None, places: int = 2
) -> float | None:
    """(stock / revenue) * 365; undefined when there is no revenue."""
    ratio = safe_divide(stock, revenue)
    if ratio is None:
        return None
    return round_half_up(ratio * settings.DAYS_PER_YEAR, places)


def low_stock_status(
    stock: float | None, sold: float | None, lead_time: float | None
) -> str:
    """Compares stock with the unrounded reorder point."""
    rop = _reorder_point(sold, lead_time)
    if rop is not None and not is_missing(stock) and stock < rop:
        return RESTOCK_NEEDED
    return STOCK_SUFFICIENT


def overstock_status(stock: float | None, eoq_value: float | None) -> str:
    if _any_missing(stock, eoq_value):
        return OK
    if stock > settings.OVERSTOCK_EOQ_MULTIPLIER * eoq_value:
        return OVERSTOCKED
    return OK


def movement_flag(stock: float | None, sold: float | None) -> str:
    if _any_missing(stock, sold):
        return NORMAL
    if stock > sold * settings.SLOW_MOVER_MULTIPLIER:
        return SLOW_MOVER
    return NORMAL


# --- Logistics & sales ---


def shipping_cost_per_unit(shipping_cost: float | None, sold: float | None) -> float | None:
    return round_half_up(safe_divide(shipping_cost, sold), 2)


def total_cost(manufacturing_cost: float | None, shipping_cost: float | None) -> float | None:
    if _any_missing(manufacturing_cost, shipping_cost):
        return None
    return manufacturing_cost + shipping_cost


def profitability_estimate(
    revenue: float | None,
    manufacturing_cost: float | None,
    shipping_cost: float | None,
) -> float | None:
    """Revenue minus manufacturing and shipping costs."""
    cost = total_cost(manufacturing_cost, shipping_cost)
    if cost is None or is_missing(revenue):
        return None
    return revenue - cost


def price_band(price: float | None) -> str:
    # A NULL price falls through every comparison, as in a SQL CASE.
    if not is_missing(price):
        if price < settings.PRICE_BAND_LOW_MAX:
            return "Low"
        if price <= settings.PRICE_BAND_MEDIUM_MAX:
            return "Medium"
    return "High"


# --- Persisted projection ---


def compute_derived_fields(record: InventoryRecord) -> DerivedFields:
    """Evaluates every persisted KPI for one record."""
    sold = record.number_of_products_sold
    stock = record.stock_levels
    eoq_value = eoq(sold, record.shipping_costs, record.price)
    dsi = days_sales_of_inventory(stock, record.revenue_generated, places=0)

    return DerivedFields(
        eoq=eoq_value,
        reorder_point=reorder_point(sold, record.lead_time),
        inventory_turnover=inventory_turnover(record.revenue_generated, stock),
        days_sales_of_inventory=int(dsi) if dsi is not None else None,
        low_stock_status=low_stock_status(stock, sold, record.lead_time),
        overstock_status=overstock_status(stock, eoq_value),
        daily_demand=daily_demand(sold),
        lead_time_demand=lead_time_demand(sold, record.lead_time),
        safety_stock=safety_stock(sold, record.lead_time),
        movement_flag=movement_flag(stock, sold),
    )
