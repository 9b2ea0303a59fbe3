"""
Gemini integration for EnergiWatch: demo household data and savings advice.

Calls go through the proxy (an HTTP endpoint when ENERGIWATCH_PROXY_URL is
set, otherwise the in-process GeminiProxy). Nothing here lets an AI failure
reach the caller: demo data falls back to the local generator and advice
falls back to the offline advisor.
"""
import json
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .advisor import OfflineAdvisor
from .config import DAYS_PER_MONTH, FIXED_TARIFF_RATE, Settings
from .generators import LocalDataGenerator, random_solar_series, random_usage_series
from .logger import get_logger, log_error
from .models import Appliance, BillOverview, HouseholdData, parse_appliances
from .proxy import GeminiProxy

logger = get_logger(__name__)

NO_RESPONSE = "No response."

HOUSEHOLD_PROMPT = """Generate a JSON object representing 30 days of data for a typical middle-income Malaysian household (e.g., 3-5 occupants). The data should include:
1.  'appliances': An array of 5 to 8 common household appliances. Each appliance object must have:
    *   'id': A unique string identifier (e.g., "appliance1").
    *   'name': A descriptive name (e.g., "Refrigerator", "Air Conditioner 1.5HP").
    *   'powerWatts': A realistic power consumption value in watts (e.g., Refrigerator: 100-200W, Air Conditioner 1.5HP: 1200-1500W, Ceiling Fan: 50-75W, Washing Machine: 400-500W, Water Heater: 2500-3500W). Ensure values are not zero.
    *   'typicalDailyHours': A realistic number for average daily hours of operation between 0 and 24 (e.g., Refrigerator: 24, Air Conditioner: 4-8).
    *   'isContinuouslyOn': A boolean, true if the appliance typically runs 24/7 (like a refrigerator).
    *   'isEssential': A boolean, true if the appliance is generally considered essential.
2.  'solarData': An array of exactly 30 numbers representing daily solar energy generation in kWh.
    *   Values should be realistic for a Malaysian residential solar panel system (typically between 0 kWh on very overcast days and 15 kWh on a very sunny day, averaging around 4-10 kWh).
    *   Vary the values daily to simulate weather changes. Not all values should be zero or the same.
    *   These are daily totals. Solar generation only occurs during daylight hours; DO NOT generate solar data that would imply generation during nighttime.
3.  'usageData': An array of exactly 30 numbers representing total daily household energy consumption in kWh.
    *   Values should be realistic for the described household, considering the appliances (typically between 10 kWh and 30 kWh).
    *   Vary the values daily.
    *   Ensure usage is generally higher than solar generation, but sometimes solar might cover a significant portion.
Return ONLY the JSON object, with no introductory text, explanations, or markdown formatting. The JSON should be directly parsable."""

ADVICE_PROMPT = """IMPORTANT: Ensure strict adherence to the following Markdown formatting:
- Use Markdown for formatting.
- Ensure there is a blank line between each section or headings or paragraph.
- Make sure there's bold headings, and use proper headings: # Heading 1 (h1) for the main title, ## Heading 2 (h2) for subheadings, ### Heading 3 (h3) for sub-subheadings, and #### Heading 4 (h4) for sub-sub-subheadings if needed.

Given the following Malaysian household energy data and bill overview in JSON:
{data}

Please analyse the data and provide detailed, actionable, and easy-to-understand recommendations to help the user save money on their electricity bills.

## Solar Analysis Requirements:
- Analyse the solar generation data (`solarData`) and its impact on the bill.
- Identify high and low production days and correlate them with likely weather.
- Calculate the percentage of household energy needs met by solar and highlight it.
- Reference `billOverview.solarSavings` and `billOverview.billAfterSolar` to quantify the financial benefit.
- Recommend when to run high-consumption appliances based on typical solar generation hours.
- If solar generation is far below consumption, mention system expansion.

## General Analysis Requirements:
- Compare "on demand" and "24/7" usage. Identify which appliances are always on and which are used on demand. The household's current usage mode is "{usage_mode}".
- Distinguish essential from non-essential appliances and suggest how to reduce or shift the non-essential and 24/7 ones.
- Recommend specific actions such as scheduling, reducing standby power, or switching off non-essential devices.
- Estimate potential savings where possible and explain the reasoning.
- Base all advice on the provided data; avoid generic tips.
- If the user is over budget, suggest ways to reduce their energy usage.
- If the user is under budget, say how much headroom they have.
- Use British English spelling.
- Use RM for Malaysian Ringgit amounts.
- Use kWh for kilowatt-hours.
- Keep the content under 500 words - IMPORTANT.

Here is an example of the desired formatting:

# Main Title

Some introductory text. Say how much the generated solar power saved your bills.

## Subheading

Some text under the subheading.

### Sub-subheading

Some text under the sub-subheading.

Another paragraph with a blank line before it.

Output only the advice text."""


class AIServiceError(Exception):
    """Base class for AI gateway failures."""


class AITransportError(AIServiceError):
    """The proxy could not be reached, or it (or the vendor) answered with an error."""


class AIResponseError(AIServiceError):
    """The model answered, but not with the JSON we asked for."""


@dataclass
class AdviceContext:
    appliances: List[Appliance]
    budget: float
    overview: BillOverview
    solar_data: Optional[List[float]] = None
    usage_data: Optional[List[float]] = None
    usage_mode: str = "on-demand"
    tariff: float = FIXED_TARIFF_RATE
    extra: dict = field(default_factory=dict)

    def to_prompt_data(self):
        data = {
            "appliances": [a.to_dict() for a in self.appliances],
            "budget": self.budget,
            "solarData": self.solar_data,
            "usageData": self.usage_data,
            # The model always sees the regulated rate
            "tariffData": FIXED_TARIFF_RATE,
            "usageMode": self.usage_mode or "on-demand",
            "billOverview": self.overview.to_dict(),
        }
        data.update(self.extra)
        return data


def extract_text(data):
    """First candidate's text from a Gemini response, or the placeholder."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return NO_RESPONSE
    return text if isinstance(text, str) and text else NO_RESPONSE


def extract_json_object(text):
    """
    Parse the JSON object in a model reply, tolerating prose or code fences
    around it. Everything from the first '{' to the last '}' is parsed.
    """
    if not isinstance(text, str):
        raise AIResponseError("Response is not text")
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise AIResponseError("No JSON object found in response")
    try:
        data = json.loads(text[start:end + 1])
    except ValueError as e:
        raise AIResponseError(f"Response JSON could not be parsed: {e}") from e
    if not isinstance(data, dict):
        raise AIResponseError("Response JSON is not an object")
    return data


def unwrap_payload(data):
    """Models sometimes nest everything under one key such as 'household'."""
    if not isinstance(data, dict):
        return data
    if isinstance(data.get("household"), dict):
        return data["household"]
    if "appliances" not in data:
        nested = [v for v in data.values() if isinstance(v, dict) and "appliances" in v]
        if len(nested) == 1:
            return nested[0]
    return data


def is_complete_series(values):
    if not isinstance(values, list) or len(values) != DAYS_PER_MONTH:
        return False
    return all(isinstance(v, (int, float)) and not isinstance(v, bool) and v >= 0 for v in values)


class AIGateway:
    def __init__(self, settings=None, session=None, proxy=None, generator=None):
        self.settings = settings or Settings()
        self.session = session or requests.Session()
        self.proxy = proxy
        if self.proxy is None and not self.settings.proxy_url:
            self.proxy = GeminiProxy(
                self.settings.api_key,
                session=self.session,
                fallback_models=self.settings.fallback_models,
                timeout=self.settings.request_timeout,
                default_model=self.settings.model,
            )
        self.generator = generator or LocalDataGenerator()

    # --- transport ---

    def _post(self, payload):
        if self.settings.proxy_url:
            try:
                response = self.session.post(
                    self.settings.proxy_url,
                    json=payload,
                    timeout=self.settings.request_timeout,
                )
            except requests.RequestException as e:
                raise AITransportError(f"Gemini API error: {e}") from e
            try:
                body = response.json()
            except ValueError:
                body = {}
            return response.status_code, body, response.reason
        status, body = self.proxy.handle_request("POST", payload)
        return status, body, ""

    def call_model(self, prompt, model_id=None):
        """
        Send one prompt through the proxy and return the reply text.
        Raises AITransportError on any HTTP, network or vendor error.
        """
        payload = {"prompt": prompt, "model": model_id or self.settings.model}
        status, body, reason = self._post(payload)

        if not 200 <= status < 300:
            message = None
            if isinstance(body, dict):
                message = body.get("message") or body.get("error")
            raise AITransportError(f"Gemini API error: {message or reason or status}")
        if isinstance(body, dict) and body.get("error"):
            raise AITransportError(f"Gemini API error: {body.get('message') or body['error']}")

        if isinstance(body, dict) and body.get("_modelUsed"):
            logger.info("Gemini answered with model %s", body["_modelUsed"])
        return extract_text(body)

    # --- demo data ---

    def fetch_synthetic_household_data(self):
        """
        Demo household from the model, repaired or replaced as needed.

        Always returns 30 solar and 30 usage values and at least one appliance.
        `source_is_ai` is only True when nothing had to be patched.
        """
        logger.debug("fetch_synthetic_household_data called")
        source_is_ai = True
        try:
            raw = self.call_model(HOUSEHOLD_PROMPT)
            logger.debug("Gemini raw response: %s", raw)
            data = extract_json_object(raw)
        except AIServiceError as e:
            log_error(f"[fetch_synthetic_household_data] Gemini failed, using local fallback. Error: {e}")
            data = None

        data = unwrap_payload(data)
        appliances = []
        if isinstance(data, dict):
            raw_appliances = data.get("appliances")
            if isinstance(raw_appliances, list):
                appliances, patched = parse_appliances(raw_appliances)
                if patched:
                    logger.warning(
                        "Appliance entries were repaired or dropped (%d of %d kept)",
                        len(appliances), len(raw_appliances),
                    )
                    source_is_ai = False

        solar = data.get("solarData") if isinstance(data, dict) else None
        valid = (
            bool(appliances)
            and isinstance(solar, list)
            and not all(v == 0 for v in solar)
        )
        if not valid:
            if data is not None:
                log_error(f"[fetch_synthetic_household_data] Gemini data invalid/empty, using local fallback. Data: {json.dumps(data, default=str)[:500]}")
            fallback = self.generator.generate()
            appliances = fallback.appliances
            data = {"solarData": fallback.solar_series, "usageData": fallback.usage_series}
            source_is_ai = False

        if not self._unique_ids(appliances):
            appliances = self._renumber(appliances)
            source_is_ai = False

        # Series are checked on their own: a good appliance list survives a short series
        solar_series = data.get("solarData")
        if not is_complete_series(solar_series):
            logger.warning("Solar series missing or incomplete, backfilling")
            solar_series = random_solar_series()
            source_is_ai = False
        usage_series = data.get("usageData")
        if not is_complete_series(usage_series):
            logger.warning("Usage series missing or incomplete, backfilling")
            usage_series = random_usage_series()
            source_is_ai = False

        return HouseholdData(
            appliances=appliances,
            solar_series=[float(v) for v in solar_series],
            usage_series=[float(v) for v in usage_series],
            tariff=FIXED_TARIFF_RATE,
            source_is_ai=source_is_ai,
        )

    @staticmethod
    def _unique_ids(appliances):
        ids = [a.id for a in appliances]
        return len(ids) == len(set(ids))

    @staticmethod
    def _renumber(appliances):
        renumbered = []
        for index, appliance in enumerate(appliances, start=1):
            appliance = appliance.copy()
            appliance.id = f"appliance{index}"
            renumbered.append(appliance)
        return renumbered

    # --- advice ---

    def build_advice_prompt(self, context):
        return ADVICE_PROMPT.format(
            data=json.dumps(context.to_prompt_data(), indent=2),
            usage_mode=context.usage_mode or "on-demand",
        )

    def fetch_advice(self, context):
        """Markdown advice from the model, or a plain-text local summary if it can't be reached."""
        try:
            return self.call_model(self.build_advice_prompt(context))
        except AIServiceError as e:
            logger.error("Error generating AI recommendations: %s", e)
            advisor = OfflineAdvisor(context.appliances, context.overview, context.usage_mode, context.tariff)
            return advisor.get_advice()
