"""
HubSpot CRM client for contact lookup and upsert.
"""

from typing import Any, Dict, Optional
import logging
import os

import httpx

from app.exceptions import CRMError

logger = logging.getLogger("quote_leads")

HUBSPOT_BASE_URL = "https://api.hubapi.com"
CONTACTS_PATH = "/crm/v3/objects/contacts"


class HubSpotClient:
    """Thin client over the HubSpot contacts API.

    Each call is a single blocking round trip; retries are left to the caller.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = HUBSPOT_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """Initialize the client.

        Args:
            access_token: HubSpot private app token
            base_url: API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_env(cls) -> "HubSpotClient":
        """Build a client from HUBSPOT_* environment variables.

        Raises:
            CRMError: If HUBSPOT_ACCESS_TOKEN is not set
        """
        access_token = os.getenv("HUBSPOT_ACCESS_TOKEN")
        if not access_token:
            raise CRMError("HUBSPOT_ACCESS_TOKEN is not configured")
        return cls(
            access_token=access_token,
            base_url=os.getenv("HUBSPOT_BASE_URL", HUBSPOT_BASE_URL),
            timeout=float(os.getenv("HUBSPOT_TIMEOUT_SECONDS", "10")),
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send a JSON request and return the decoded body.

        Raises:
            CRMError: On transport errors, non-2xx responses or non-object bodies
        """
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"HubSpot request failed | method={method} | path={path} | error={e}")
            raise CRMError(f"HubSpot request failed: {e}", original_error=e) from e

        if response.is_error:
            raise CRMError(
                f"HubSpot error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise CRMError(f"HubSpot returned invalid JSON: {e}", response.status_code, e) from e

        if not isinstance(body, dict):
            raise CRMError(
                f"HubSpot returned unexpected body type: {type(body).__name__}",
                status_code=response.status_code,
            )
        return body

    @staticmethod
    def _contact_id(contact: Any) -> str:
        if not isinstance(contact, dict):
            raise CRMError("HubSpot response contact is not an object")
        contact_id = contact.get("id")
        if not contact_id:
            raise CRMError("HubSpot response missing contact id")
        return str(contact_id)

    def find_contact_by_email(self, email: str) -> Optional[str]:
        """Return the id of the contact with this email, or None."""
        payload = {
            "filterGroups": [
                {"filters": [{"propertyName": "email", "operator": "EQ", "value": email}]}
            ],
            "properties": ["email"],
            "limit": 1,
        }
        result = self._request("POST", f"{CONTACTS_PATH}/search", payload)
        results = result.get("results") or []
        if not isinstance(results, list):
            raise CRMError("HubSpot search results are not a list")
        if not results:
            return None
        return self._contact_id(results[0])

    def create_contact(self, properties: Dict[str, Optional[str]]) -> str:
        """Create a contact and return its id."""
        contact = self._request("POST", CONTACTS_PATH, {"properties": properties})
        return self._contact_id(contact)

    def update_contact(self, contact_id: str, properties: Dict[str, Optional[str]]) -> str:
        """Update a contact and return its id."""
        contact = self._request("PATCH", f"{CONTACTS_PATH}/{contact_id}", {"properties": properties})
        return self._contact_id(contact)
