"""Google Ads REST API client."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import requests
from django.conf import settings

from apps.gads.diagnostics import DiagnosticLog
from apps.gads.services.actions import escape_gaql_string, extract_action_id
from apps.gads.stores import TOKEN_CACHE_KEY, KeyValueStore

from .errors import api_error_message, decode_json, partial_failure_message, token_error_message

logger = logging.getLogger("gads.client")

DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_API_BASE_URL = "https://googleads.googleapis.com/v23"
TOKEN_FAILURE = "Failed to obtain access token."


@dataclass(frozen=True)
class UploadResult:
    success: bool
    error: str = ""
    credential_error: bool = False


@dataclass(frozen=True)
class ConnectionResult:
    success: bool
    error: str = ""
    credential_error: bool = False
    debug: str = ""
    conversion_action_name: str = ""
    conversion_action_category: str = ""


@dataclass(frozen=True)
class CreateActionResult:
    success: bool
    error: str = ""
    credential_error: bool = False
    conversion_action_id: str = ""


@dataclass(frozen=True)
class ActionDetailsResult:
    success: bool
    error: str = ""
    conversion_action_name: str = ""
    conversion_action_category: str = ""


class GoogleAdsClient:
    """Offline conversion upload client speaking the Google Ads REST API.

    Every public operation returns a result object instead of raising; the
    ``credential_error`` flag tells callers whether the failure points at bad
    or missing credentials rather than a transient API problem.
    """

    TOKEN_TTL_MARGIN = 300

    def __init__(
        self,
        customer_id: str,
        developer_token: str,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        login_customer_id: str = "",
        conversion_action_id: str = "",
        *,
        token_store: KeyValueStore,
        log: DiagnosticLog | None = None,
        session: requests.Session | None = None,
        timeout: int | None = None,
    ) -> None:
        self.customer_id = customer_id
        self.developer_token = developer_token
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.login_customer_id = login_customer_id or ""
        self.conversion_action_id = conversion_action_id or ""
        self.token_store = token_store
        self.log = log
        self.session = session or requests.Session()
        self.timeout = timeout or getattr(settings, "GADS_HTTP_TIMEOUT", 30)
        self.token_url = getattr(settings, "GADS_TOKEN_URL", DEFAULT_TOKEN_URL)
        self.api_base_url = getattr(settings, "GADS_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/")
        self._last_refresh_error = ""
        self._last_refresh_debug = ""

    @property
    def last_refresh_error(self) -> str:
        return self._last_refresh_error

    @property
    def last_refresh_debug(self) -> str:
        return self._last_refresh_debug

    # ------------------------------------------------------------------
    # OAuth2
    # ------------------------------------------------------------------
    def get_access_token(self) -> str | None:
        cached = self.token_store.get(TOKEN_CACHE_KEY)
        if cached:
            return cached
        return self.refresh_access_token()

    def refresh_access_token(self) -> str | None:
        self._last_refresh_error = ""
        self._last_refresh_debug = ""

        try:
            response = self.session.post(
                self.token_url,
                data={
                    "grant_type": "refresh_token",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": self.refresh_token,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self._last_refresh_error = str(exc) or exc.__class__.__name__
            self._last_refresh_debug = f"Transport error: {self._last_refresh_error}"
            self._error(f"Token refresh failed — {self._last_refresh_error}")
            return None

        raw_body = response.text
        self._last_refresh_debug = f"HTTP {response.status_code}: {raw_body}"

        body = decode_json(raw_body)
        access_token = body.get("access_token")
        expires_in = body.get("expires_in")
        if not access_token or not expires_in:
            self._last_refresh_error = token_error_message(body)
            self._error(
                f"Token refresh failed — {self._last_refresh_error} "
                f"(client_id: {self.client_id}, client_secret: {DiagnosticLog.mask(self.client_secret)}, "
                f"refresh_token: {DiagnosticLog.mask(self.refresh_token)})"
            )
            return None

        try:
            lifetime = int(expires_in)
        except (TypeError, ValueError):
            lifetime = 0
        ttl = max(0, lifetime - self.TOKEN_TTL_MARGIN)
        self.token_store.set(TOKEN_CACHE_KEY, access_token, ttl=ttl)

        self._info(f"Token refresh successful — expires_in: {expires_in}s")
        return access_token

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def test_connection(self) -> ConnectionResult:
        """Verify credentials: OAuth2 first, then Ads API access for the action."""

        self._info("Test connection — phase 1: verifying OAuth2 credentials")
        token = self.refresh_access_token()
        if token is None:
            error = self._last_refresh_error or TOKEN_FAILURE
            self._error(f"Test connection — phase 1 failed: {error}")
            return ConnectionResult(
                success=False,
                error=error,
                credential_error=True,
                debug=self._last_refresh_debug,
            )
        self._info("Test connection — phase 1 passed: token refresh successful")

        if not self.conversion_action_id:
            return ConnectionResult(success=True)

        self._info(
            "Test connection — phase 2: verifying Google Ads API access for conversion action "
            f"{self.conversion_action_id}"
        )
        result = self._verify_google_ads_access(token)
        if result.success:
            self._info(f"Test connection — phase 2 passed: conversion action '{result.conversion_action_name}'")
        else:
            self._error(f"Test connection — phase 2 failed: {result.error}")
        return result

    def upload_click_conversion(
        self,
        gclid: str,
        conversion_action: str,
        conversion_datetime: str,
        conversion_value: float,
        currency_code: str,
    ) -> UploadResult:
        self._info(
            f"Uploading conversion — gclid: {gclid}, action: {conversion_action}, "
            f"value: {conversion_value} {currency_code}"
        )
        access_token = self.get_access_token()
        if access_token is None:
            error = self._last_refresh_error or TOKEN_FAILURE
            self._error(f"Conversion upload failed — gclid: {gclid}, error: {error}")
            return UploadResult(success=False, error=error, credential_error=True)

        body = {
            "conversions": [
                {
                    "gclid": gclid,
                    "conversionAction": conversion_action,
                    "conversionDateTime": conversion_datetime,
                    "conversionValue": float(conversion_value),
                    "currencyCode": currency_code,
                }
            ],
            "partialFailure": True,
        }
        url = f"{self.api_base_url}/customers/{self.customer_id}:uploadClickConversions"
        try:
            response = self._post_json(url, access_token, body)
        except requests.RequestException as exc:
            self._error(f"Conversion upload failed — gclid: {gclid}, error: {exc}")
            return UploadResult(success=False, error=str(exc))

        raw_body = response.text
        if response.status_code != 200:
            error = f"HTTP {response.status_code}: {raw_body}"
            self._error(f"Conversion upload failed — gclid: {gclid}, error: {error}")
            return UploadResult(success=False, error=error)

        failure = partial_failure_message(decode_json(raw_body))
        if failure is not None:
            self._error(f"Conversion partial failure — gclid: {gclid}, error: {failure}")
            return UploadResult(success=False, error=failure)

        self._info(f"Conversion uploaded — gclid: {gclid}")
        return UploadResult(success=True)

    def create_conversion_action(
        self,
        name: str,
        default_value: float,
        currency_code: str,
        category: str = "SUBMIT_LEAD_FORM",
    ) -> CreateActionResult:
        self._info(
            f"Creating conversion action — name: {name}, category: {category}, "
            f"value: {default_value} {currency_code}"
        )
        access_token = self.get_access_token()
        if access_token is None:
            error = self._last_refresh_error or TOKEN_FAILURE
            self._error(f"Create conversion action failed — {error}")
            return CreateActionResult(success=False, error=error, credential_error=True)

        existing = self._find_conversion_action_by_name(access_token, name)
        if existing is not None:
            self._error(f"Create conversion action failed — name '{name}' already exists with ID {existing['id']}")
            return CreateActionResult(
                success=False,
                error=f'A conversion action named "{name}" already exists (ID: {existing["id"]}).',
            )

        body = {
            "operations": [
                {
                    "create": {
                        "name": name,
                        "type": "UPLOAD_CLICKS",
                        "category": category,
                        "status": "ENABLED",
                        "valueSettings": {
                            "defaultValue": float(default_value),
                            "alwaysUseDefaultValue": True,
                            "defaultCurrencyCode": currency_code,
                        },
                    }
                }
            ]
        }
        url = f"{self.api_base_url}/customers/{self.customer_id}/conversionActions:mutate"
        try:
            response = self._post_json(url, access_token, body)
        except requests.RequestException as exc:
            self._error(f"Create conversion action failed — {exc}")
            return CreateActionResult(success=False, error=str(exc))

        raw_body = response.text
        decoded = decode_json(raw_body)
        if response.status_code != 200:
            error = api_error_message(decoded, response.status_code, raw_body)
            self._error(f"Create conversion action failed — {error}")
            return CreateActionResult(success=False, error=error, credential_error=True)

        results = decoded.get("results") or []
        first = results[0] if isinstance(results, list) and results and isinstance(results[0], dict) else {}
        action_id = extract_action_id(first.get("resourceName"))
        if not action_id:
            self._error(f"Create conversion action failed — unexpected response: {raw_body}")
            return CreateActionResult(
                success=False,
                error="Unexpected response: could not extract conversion action ID.",
            )

        self._info(f"Conversion action created — name: {name}, ID: {action_id}")
        return CreateActionResult(success=True, conversion_action_id=action_id)

    def fetch_conversion_action_details(self, conversion_action_id: str) -> ActionDetailsResult:
        self._info(f"Fetching conversion action details — ID: {conversion_action_id}")
        if not str(conversion_action_id).isdigit():
            return ActionDetailsResult(success=False, error="Conversion action ID must be numeric.")

        access_token = self.get_access_token()
        if access_token is None:
            error = self._last_refresh_error or TOKEN_FAILURE
            self._error(f"Fetch conversion action failed — {error}")
            return ActionDetailsResult(success=False, error=error)

        try:
            response = self._search(access_token, self._action_query(conversion_action_id))
        except requests.RequestException as exc:
            self._error(f"Fetch conversion action failed — {exc}")
            return ActionDetailsResult(success=False, error=str(exc))

        raw_body = response.text
        decoded = decode_json(raw_body)
        if response.status_code != 200:
            error = api_error_message(decoded, response.status_code, raw_body)
            self._error(f"Fetch conversion action failed — {error}")
            return ActionDetailsResult(success=False, error=error)

        action = self._first_action(decoded)
        if action is None:
            self._error(f"Fetch conversion action failed — ID {conversion_action_id} not found")
            return ActionDetailsResult(success=False, error=f"Conversion action {conversion_action_id} not found.")

        name = str(action.get("name", ""))
        category = str(action.get("category", ""))
        self._info(f"Conversion action fetched — name: {name}, category: {category}")
        return ActionDetailsResult(success=True, conversion_action_name=name, conversion_action_category=category)

    # --- internal helpers -------------------------------------------------

    def _verify_google_ads_access(self, access_token: str) -> ConnectionResult:
        try:
            response = self._search(access_token, self._action_query(self.conversion_action_id))
        except requests.RequestException as exc:
            return ConnectionResult(success=False, error=str(exc))

        raw_body = response.text
        decoded = decode_json(raw_body)
        debug = f"HTTP {response.status_code}: {raw_body}"

        # Non-200: invalid developer token, customer id or login customer id.
        if response.status_code != 200:
            return ConnectionResult(
                success=False,
                error=api_error_message(decoded, response.status_code, raw_body),
                credential_error=True,
                debug=debug,
            )

        action = self._first_action(decoded)
        if action is None:
            return ConnectionResult(
                success=False,
                error=(
                    f"Conversion action {self.conversion_action_id} not found in "
                    f"Google Ads account {self.customer_id}."
                ),
                credential_error=True,
                debug=debug,
            )

        return ConnectionResult(
            success=True,
            conversion_action_name=str(action.get("name", "")),
            conversion_action_category=str(action.get("category", "")),
        )

    def _find_conversion_action_by_name(self, access_token: str, name: str) -> dict[str, str] | None:
        query = (
            "SELECT conversion_action.id, conversion_action.name "
            "FROM conversion_action "
            f"WHERE conversion_action.name = '{escape_gaql_string(name)}'"
        )
        # Any failure here counts as "not found"; creation goes ahead.
        try:
            response = self._search(access_token, query)
        except requests.RequestException:
            logger.warning("gads_action_lookup_failed name=%s", name, exc_info=True)
            return None
        if response.status_code != 200:
            return None
        action = self._first_action(decode_json(response.text))
        if action is None:
            return None
        return {"id": str(action.get("id", "")), "name": str(action.get("name", ""))}

    @staticmethod
    def _action_query(conversion_action_id: str) -> str:
        return (
            "SELECT conversion_action.id, conversion_action.name, conversion_action.category "
            "FROM conversion_action "
            f"WHERE conversion_action.id = {conversion_action_id}"
        )

    @staticmethod
    def _first_action(body: dict[str, Any]) -> dict[str, Any] | None:
        results = body.get("results")
        if not results or not isinstance(results, list):
            return None
        first = results[0] if isinstance(results[0], dict) else {}
        action = first.get("conversionAction")
        return action if isinstance(action, dict) else None

    def _search(self, access_token: str, query: str) -> requests.Response:
        url = f"{self.api_base_url}/customers/{self.customer_id}/googleAds:search"
        return self._post_json(url, access_token, {"query": query})

    def _post_json(self, url: str, access_token: str, body: dict[str, Any]) -> requests.Response:
        logger.debug("gads_request url=%s", url)
        return self.session.post(
            url,
            headers=self.build_api_headers(access_token),
            data=json.dumps(body),
            timeout=self.timeout,
        )

    def build_api_headers(self, access_token: str) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "developer-token": self.developer_token,
        }
        # MCC accounts only; an empty header value is rejected by the API.
        if self.login_customer_id:
            headers["login-customer-id"] = self.login_customer_id
        return headers

    def _info(self, message: str) -> None:
        logger.debug(message)
        if self.log is not None:
            self.log.info(message)

    def _error(self, message: str) -> None:
        logger.warning(message)
        if self.log is not None:
            self.log.error(message)
