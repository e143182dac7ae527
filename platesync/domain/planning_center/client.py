"""
Planning Center API client
OAuth2 code exchange, token refresh and paginated People fetches over httpx
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from ...config import PLANNING_CENTER_CLIENT_ID, PLANNING_CENTER_CLIENT_SECRET, PLANNING_CENTER_REDIRECT_URI

logger = logging.getLogger(__name__)

PLANNING_CENTER_API_BASE = "https://api.planningcenteronline.com"
PLANNING_CENTER_AUTH_URL = f"{PLANNING_CENTER_API_BASE}/oauth/authorize"
PLANNING_CENTER_TOKEN_URL = f"{PLANNING_CENTER_API_BASE}/oauth/token"
PEOPLE_URL = f"{PLANNING_CENTER_API_BASE}/people/v2/people?include=emails,phone_numbers&per_page=100"
MAX_PAGES = 50
REQUEST_TIMEOUT = 30.0


class PlanningCenterError(Exception):
    """Raised when the Planning Center API rejects a request"""


def is_configured() -> bool:
    return bool(PLANNING_CENTER_CLIENT_ID and PLANNING_CENTER_CLIENT_SECRET)


def build_authorize_url(state: str) -> str:
    params = {
        "client_id": PLANNING_CENTER_CLIENT_ID,
        "redirect_uri": PLANNING_CENTER_REDIRECT_URI,
        "response_type": "code",
        "scope": "people",
        "state": state,
    }
    return f"{PLANNING_CENTER_AUTH_URL}?{urlencode(params)}"


async def _token_request(data: dict) -> dict:
    payload = {
        "client_id": PLANNING_CENTER_CLIENT_ID,
        "client_secret": PLANNING_CENTER_CLIENT_SECRET,
        **data,
    }
    try:
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            response = await client.post(PLANNING_CENTER_TOKEN_URL, data=payload)
    except httpx.HTTPError as e:
        raise PlanningCenterError(f"Token request failed: {e}") from e

    if response.status_code != 200:
        logger.error(f"❌ Planning Center token request failed: {response.status_code} {response.text}")
        raise PlanningCenterError(f"Token request returned {response.status_code}")
    return response.json()


async def exchange_code(code: str) -> dict:
    return await _token_request(
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": PLANNING_CENTER_REDIRECT_URI,
        }
    )


async def refresh_tokens(refresh_token: str) -> dict:
    return await _token_request({"grant_type": "refresh_token", "refresh_token": refresh_token})


def _collect_contacts(included: list, kind: str, attribute: str) -> dict[str, list[str]]:
    contacts: dict[str, list[str]] = {}
    for item in included:
        if item.get("type") != kind:
            continue
        person = ((item.get("relationships") or {}).get("person") or {}).get("data") or {}
        value = (item.get("attributes") or {}).get(attribute)
        if person.get("id") and value:
            contacts.setdefault(person["id"], []).append(value)
    return contacts


async def fetch_people(access_token: str) -> list[dict]:
    """
    Fetch every person with their first email and phone number.

    Returns dicts with id, first_name, last_name, email and phone; people
    without both names are dropped.
    """
    people: list[dict] = []
    emails: dict[str, list[str]] = {}
    phones: dict[str, list[str]] = {}
    next_url: Optional[str] = PEOPLE_URL
    page = 0

    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
        while next_url and page < MAX_PAGES:
            page += 1
            try:
                response = await client.get(
                    next_url, headers={"Authorization": f"Bearer {access_token}"}
                )
            except httpx.HTTPError as e:
                raise PlanningCenterError(f"People request failed: {e}") from e

            if response.status_code != 200:
                logger.error(f"❌ Planning Center people page {page} failed: {response.status_code}")
                raise PlanningCenterError(f"People request returned {response.status_code}")

            body = response.json()
            people.extend(body.get("data") or [])
            included = body.get("included") or []
            for person_id, values in _collect_contacts(included, "Email", "address").items():
                emails.setdefault(person_id, []).extend(values)
            for person_id, values in _collect_contacts(included, "PhoneNumber", "number").items():
                phones.setdefault(person_id, []).extend(values)

            next_url = (body.get("links") or {}).get("next")

    logger.info(f"📥 Retrieved {len(people)} people from Planning Center in {page} page(s)")

    results = []
    for person in people:
        attributes = person.get("attributes") or {}
        if not attributes.get("first_name") or not attributes.get("last_name"):
            continue
        results.append(
            {
                "id": person.get("id"),
                "first_name": attributes["first_name"],
                "last_name": attributes["last_name"],
                "email": (emails.get(person.get("id")) or [None])[0],
                "phone": (phones.get(person.get("id")) or [None])[0],
            }
        )
    return results
