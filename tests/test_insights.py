import pytest

from conftest import make_record
from supply_kpis import insights
from supply_kpis.aggregates import GlobalBaselines, global_baselines, records_to_frame


class TestOverstockRisk:
    def test_low_turnover_and_high_revenue(self):
        assert insights.overstock_risk(0.8, 1500, 1000) == insights.OVERSTOCK_RISK

    def test_healthy_turnover(self):
        assert insights.overstock_risk(1.2, 1500, 1000) == insights.OK

    def test_revenue_not_above_mean(self):
        assert insights.overstock_risk(0.8, 1000, 1000) == insights.OK

    def test_undefined_turnover(self):
        assert insights.overstock_risk(None, 1500, 1000) == insights.OK

    def test_report_lists_only_above_average_revenue(self):
        frame = records_to_frame(
            [
                make_record("H1", Revenue_generated=1500, Stock_levels=1875),
                make_record("H2", Revenue_generated=1500, Stock_levels=1250),
                make_record("L1", Revenue_generated=500, Stock_levels=5000),
                make_record("L2", Revenue_generated=500, Stock_levels=5000),
            ]
        )

        report = insights.overstock_risk_report(frame, global_baselines(frame))

        assert list(report["SKU"]) == ["H1", "H2"]
        assert list(report["Turnover"]) == [0.8, 1.2]
        assert list(report["Status"]) == [insights.OVERSTOCK_RISK, insights.OK]


class TestSupplierTradeoff:
    @pytest.mark.parametrize(
        "lead_time, defect_rate, expected",
        [
            (26, 0.005, insights.HIGH_QUALITY_SLOW_SUPPLY),
            (25, 0.005, insights.OK),
            (26, 0.01, insights.OK),
            (26, None, insights.OK),
        ],
    )
    def test_rule(self, lead_time, defect_rate, expected):
        assert insights.supplier_tradeoff(lead_time, defect_rate) == expected

    def test_report(self):
        frame = records_to_frame(
            [
                make_record("S1", Supplier_name="Slow", Lead_time=30, Defect_rates=0.001),
                make_record("S2", Supplier_name="Slow", Lead_time=24, Defect_rates=0.003),
                make_record("S3", Supplier_name="Fast", Lead_time=5, Defect_rates=0.001),
            ]
        )

        report = insights.supplier_tradeoff_report(frame).set_index("Supplier_name")

        assert report.loc["Slow", "Avg_Lead_Time"] == 27
        assert report.loc["Slow", "Defect_Rate"] == 0.002
        assert report.loc["Slow", "Insight"] == insights.HIGH_QUALITY_SLOW_SUPPLY
        assert report.loc["Fast", "Insight"] == insights.OK


class TestDeliveryImprovement:
    def test_rule_uses_explicit_baselines(self):
        baselines = GlobalBaselines(mean_revenue=1000, mean_shipping_time=5, mean_shipping_cost=None)

        assert insights.delivery_improvement(1200, 6, baselines) == insights.IMPROVE_DELIVERY
        assert insights.delivery_improvement(1200, 5, baselines) == insights.OK
        assert insights.delivery_improvement(900, 9, baselines) == insights.OK

    def test_report(self):
        frame = records_to_frame(
            [
                make_record("D1", Customer_demographics="Female", Revenue_generated=3000, Shipping_times=9),
                make_record("D2", Customer_demographics="Male", Revenue_generated=1000, Shipping_times=2),
                make_record("D3", Customer_demographics="Male", Revenue_generated=2000, Shipping_times=1),
            ]
        )

        report = insights.delivery_improvement_report(frame, global_baselines(frame))
        report = report.set_index("Customer_demographics")

        assert report.loc["Female", "Recommendation"] == insights.IMPROVE_DELIVERY
        assert report.loc["Male", "Recommendation"] == insights.OK
        assert report.loc["Male", "Avg_Revenue"] == 1500.0
