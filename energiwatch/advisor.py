from .config import FIXED_TARIFF_RATE
from .models import appliances_from_dicts


class OfflineAdvisor:
    def __init__(self, appliances, overview, usage_mode="on-demand", tariff_rate=FIXED_TARIFF_RATE):
        """
        :param appliances: current appliance list (Appliance objects or dicts)
        :param overview: BillOverview for the current state and budget
        """
        self.appliances = appliances_from_dicts(appliances)
        self.overview = overview
        self.usage_mode = usage_mode
        self.tariff_rate = tariff_rate

    def get_advice(self):
        """Plain-text summary used when the AI recommendations cannot be fetched."""
        lines = [
            "Unable to generate AI recommendations at this time. Please try again later.",
            "",
            self.bill_summary(),
            f"Your fixed tariff rate is {self.tariff_rate * 100:.2f} sen per kilowatt hour.",
        ]
        for tip in (self.solar_summary(), self.biggest_consumer_tip(), self.always_on_tip()):
            if tip:
                lines.append(tip)
        return "\n".join(lines)

    def bill_summary(self):
        o = self.overview
        summary = f"Your current bill is estimated at RM{o.current_bill:.2f} with a target of RM{o.target_bill:.2f}."
        if o.target_bill <= 0:
            return summary
        if o.is_over_budget:
            return summary + f" That is {o.abs_percent_diff}% over budget."
        return summary + f" That is {o.abs_percent_diff}% under budget."

    def solar_summary(self):
        o = self.overview
        if o.solar_savings <= 0:
            return None
        status = "over" if o.is_over_budget_after_solar else "within"
        return (f"After solar savings of RM{o.solar_savings:.2f}, the bill drops to "
                f"RM{o.bill_after_solar:.2f}, {status} your budget.")

    def biggest_consumer_tip(self):
        if not self.appliances:
            return None
        top = max(self.appliances, key=lambda a: a.daily_kwh)
        monthly_cost = top.daily_kwh * 30 * self.tariff_rate
        return (f"{top.name} is your biggest consumer at about {top.daily_kwh * 30:.1f} kWh "
                f"(RM{monthly_cost:.2f}) a month.")

    def always_on_tip(self):
        always_on = [a.name for a in self.appliances if a.is_continuously_on and not a.is_essential]
        if not always_on:
            return None
        return f"Non-essential appliances running 24/7: {', '.join(always_on)}. Switching them off when idle saves money."
