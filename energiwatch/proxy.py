"""
Gemini proxy: holds the API key, tries the requested model and then the
fallback models in order, and reports which one answered.

Same contract as the HTTP endpoint the dashboard talks to:
    request  {"prompt": str, "model": str (optional)}
    200      vendor JSON plus "_modelUsed"
    4xx/5xx  {"error": str, "message": str, "details": ...}
"""
import requests

from .config import DEFAULT_MODEL, FALLBACK_MODELS, GEMINI_ENDPOINT
from .logger import get_logger

logger = get_logger(__name__)


def _error(status, error, message=None, details=None):
    body = {"error": error}
    if message is not None:
        body["message"] = message
    if details is not None:
        body["details"] = details
    return status, body


def _safe_json(response):
    try:
        return response.json()
    except ValueError:
        return {"message": response.text[:500]}


class GeminiProxy:
    def __init__(self, api_key, session=None, fallback_models=None, timeout=30.0,
                 default_model=DEFAULT_MODEL):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.fallback_models = list(FALLBACK_MODELS if fallback_models is None else fallback_models)
        self.timeout = timeout
        self.default_model = default_model

    def models_to_try(self, requested_model=None):
        models = [requested_model or self.default_model] + self.fallback_models
        ordered = []
        for model in models:
            if model and model not in ordered:
                ordered.append(model)
        return ordered

    def handle_request(self, method, payload):
        """
        Serve one proxy request.
        Returns: (status_code, body_dict)
        """
        if not self.api_key:
            logger.error("Gemini API key not configured")
            return _error(500, "API key not configured",
                          "The Gemini API key could not be found. Set GEMINI_API_KEY in secrets or environment.")

        if str(method).upper() != "POST":
            return _error(405, "Method not allowed")

        payload = payload if isinstance(payload, dict) else {}
        prompt = payload.get("prompt")
        if not prompt:
            return _error(400, "Prompt is required")

        models = self.models_to_try(payload.get("model"))
        logger.info("Will attempt models in this order: %s", ", ".join(models))

        # Sequential on purpose: one paid call at a time
        last_error = None
        for model in models:
            try:
                logger.info("Trying model: %s", model)
                response = self.session.post(
                    GEMINI_ENDPOINT.format(model=model),
                    headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key},
                    json={"contents": [{"parts": [{"text": prompt}]}]},
                    timeout=self.timeout,
                )
                logger.info("Gemini response status for %s: %s", model, response.status_code)

                if not response.ok:
                    last_error = _safe_json(response)
                    logger.warning("Model %s failed with status %s", model, response.status_code)
                    continue

                data = response.json()
                if isinstance(data, dict) and data.get("error"):
                    last_error = data["error"]
                    logger.warning("Model %s returned an error: %s", model, last_error)
                    continue
                if not isinstance(data, dict):
                    last_error = {"message": "Unexpected response body"}
                    continue

                logger.info("SUCCESS: using model %s", model)
                return 200, {**data, "_modelUsed": model}
            except (requests.RequestException, ValueError) as e:
                logger.warning("Error with model %s: %s", model, e)
                last_error = {"message": str(e)}

        logger.error("All models failed. Last error: %s", last_error)
        return _error(500, "Gemini API error", _error_message(last_error) or "All Gemini models failed", last_error)


def _error_message(error):
    # Gemini nests errors as {"error": {"message": ...}}
    if not isinstance(error, dict):
        return None
    if error.get("message"):
        return str(error["message"])
    return _error_message(error.get("error"))
