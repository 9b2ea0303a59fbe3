"""
UI event handlers. Each one mutates the session state, recomputes the bill
and chart, optionally asks for advice, and returns a DashboardView that the
front-end can render as-is.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .ai_service import AdviceContext
from .billing import build_bill_overview, monthly_energy_usage
from .charts import VIEWS, aggregate, expand_to_month
from .config import DEFAULT_BUDGET
from .logger import get_logger
from .models import BillOverview, to_number

logger = get_logger(__name__)

STALE_NOTICE = "Appliances changed since these recommendations were generated. Regenerate to refresh them."


@dataclass
class DashboardView:
    overview: BillOverview
    usage_chart: List[float]
    solar_chart: List[float]
    view: str = "month"
    recommendations: Optional[str] = None
    is_ai_generated: bool = False
    needs_regeneration: bool = False
    notices: List[str] = field(default_factory=list)


def parse_budget(value, default=DEFAULT_BUDGET):
    budget = to_number(value, default=0.0)
    return budget if budget > 0 else default


class Dashboard:
    def __init__(self, state, gateway, budget=DEFAULT_BUDGET, view="month"):
        self.state = state
        self.gateway = gateway
        self.budget = parse_budget(budget)
        self.view = view if view in VIEWS else "month"
        self.recommendations = None

    # --- derived values ---

    def bill_overview(self):
        return build_bill_overview(
            self.state.get_appliances(),
            self.state.get_solar_data(),
            self.state.get_tariff_data(),
            self.budget,
        )

    def chart_series(self):
        usage = self.state.get_usage_data()
        if not usage:
            # No stored usage yet: derive a daily profile from the appliances once
            appliances = self.state.get_appliances()
            usage = monthly_energy_usage(appliances)
            if appliances:
                self.state.set_usage_data(usage)
        solar = self.state.get_solar_data() or []
        if self.view == "month":
            usage, solar = expand_to_month(usage), expand_to_month(solar)
        return aggregate(usage, self.view), aggregate(solar, self.view, is_solar=True)

    def render(self, notices=None):
        usage_chart, solar_chart = self.chart_series()
        recommendations = self.recommendations
        notices = list(notices or [])
        if recommendations and self.state.get_needs_regeneration():
            notices.append(STALE_NOTICE)
        return DashboardView(
            overview=self.bill_overview(),
            usage_chart=usage_chart,
            solar_chart=solar_chart,
            view=self.view,
            recommendations=recommendations,
            is_ai_generated=self.state.is_data_ai_generated(),
            needs_regeneration=self.state.get_needs_regeneration(),
            notices=notices,
        )

    def advice_context(self):
        return AdviceContext(
            appliances=self.state.get_appliances(),
            budget=self.budget,
            overview=self.bill_overview(),
            solar_data=self.state.get_solar_data(),
            usage_data=self.state.get_usage_data(),
            usage_mode=self.state.get_usage_mode(),
            tariff=self.state.get_tariff_data(),
        )

    # --- handlers ---

    def load_initial(self):
        """Render stored data, or generate demo data when anything critical is missing."""
        if not self.state.get_appliances() or self.state.get_solar_data() is None or self.state.get_usage_data() is None:
            logger.info("Generating new demo data...")
            return self.handle_ai_demo_data()
        logger.info("Loading existing data...")
        return self.render()

    def handle_ai_demo_data(self):
        generation = self.state.begin_request()
        data = self.gateway.fetch_synthetic_household_data()
        if not self.state.apply_household_data(data, generation):
            return self.render(["A newer request replaced this demo data."])
        logger.info(
            "Demo data applied: %d appliances, %d solar, %d usage values",
            len(data.appliances), len(data.solar_series), len(data.usage_series),
        )
        return self._refresh_recommendations(generation)

    def _refresh_recommendations(self, generation=None):
        generation = generation if generation is not None else self.state.begin_request()
        advice = self.gateway.fetch_advice(self.advice_context())
        if not self.state.is_current(generation):
            logger.info("Discarding recommendations from stale request %s", generation)
            return self.render(["Recommendations were superseded by a newer change."])
        self.recommendations = advice
        self.state.set_needs_regeneration(False)
        return self.render()

    def handle_ai_recommendations(self):
        return self._refresh_recommendations()

    def handle_budget_change(self, budget):
        self.budget = parse_budget(budget)
        # Fill any missing series so the chart has something to show
        data = None
        if not self.state.get_usage_data():
            data = self.gateway.generator.generate()
            self.state.set_usage_data(data.usage_series)
        if not self.state.get_solar_data():
            data = data or self.gateway.generator.generate()
            self.state.set_solar_data(data.solar_series)
        return self._refresh_recommendations()

    def handle_usage_mode_toggle(self, mode=None):
        if mode is None:
            mode = "24/7" if self.state.get_usage_mode() == "on-demand" else "on-demand"
        if not self.state.set_usage_mode(mode):
            return self.render([f"Unknown usage mode: {mode}"])
        logger.info("Usage mode changed to: %s", self.state.get_usage_mode())
        return self._refresh_recommendations()

    def handle_essential_toggle(self, appliance_id):
        updated = self.state.toggle_appliance_flag(appliance_id, "is_essential")
        if updated is None:
            return self.render([f"Appliance {appliance_id} not found"])
        logger.info("Toggled appliance %s to %s", updated.name,
                    "Essential" if updated.is_essential else "Non-Essential")
        # Bill overview only; recommendations are not regenerated
        return self.render()

    def handle_continuous_toggle(self, appliance_id):
        updated = self.state.toggle_appliance_flag(appliance_id, "is_continuously_on")
        if updated is None:
            return self.render([f"Appliance {appliance_id} not found"])
        logger.info("Toggled appliance %s to %s", updated.name,
                    "24/7" if updated.is_continuously_on else "On Demand")
        return self.render()

    def handle_view_toggle(self, view):
        if view not in VIEWS:
            return self.render([f"Unknown chart view: {view}"])
        self.view = view
        return self.render()

    def handle_tariff_save(self, new_tariff=None):
        self.state.set_tariff_data(new_tariff)
        return self._refresh_recommendations()
