"""
companies_house.py — Company enrichment from the UK Companies House register.

Looks a lead's company up by name, fetches its registry profile and stores the
industry and size on a CompanyProfile linked from the lead. Without a
COMPANIES_HOUSE_API_KEY it returns mock data so the pipeline keeps working.
"""

import re
from typing import Optional

import httpx
from rapidfuzz import fuzz

import database
from config import COMPANIES_HOUSE_API_KEY
from errors import NotFoundError
from models import CompanyProfile
from monitoring import get_logger

logger = get_logger("companies_house")

API_BASE = "https://api.company-information.service.gov.uk"
REQUEST_TIMEOUT = 15.0
SEARCH_RESULTS = 5

# First two digits of a SIC code -> industry
SIC_INDUSTRIES = {
    "62": "Technology / Software",
    "63": "Technology / Data Services",
    "64": "Financial Services",
    "65": "Insurance",
    "66": "Financial Services",
    "70": "Management Consultancy",
    "72": "Scientific R&D",
    "73": "Advertising / Marketing",
    "74": "Professional Services",
    "82": "Business Support Services",
}

_LEGAL_SUFFIX_RE = re.compile(r"\b(ltd|limited|plc|llp|inc|co)\b\.?", re.IGNORECASE)


def _api_key() -> str:
    return COMPANIES_HOUSE_API_KEY


def _client() -> httpx.Client:
    # Companies House uses basic auth with the key as username and no password
    return httpx.Client(
        base_url=API_BASE,
        auth=(_api_key(), ""),
        timeout=REQUEST_TIMEOUT,
    )


def _mock_search_results(query: str) -> list[dict]:
    return [{
        "title": f"{query.upper()} LTD",
        "company_number": "12345678",
        "address_snippet": "London, United Kingdom",
        "company_status": "active",
    }]


def _mock_profile(company_number: str) -> dict:
    return {
        "company_name": "EXAMPLE COMPANY LTD",
        "company_number": company_number,
        "company_status": "active",
        "date_of_creation": "2020-01-01",
        "sic_codes": ["62020"],
        "registered_office_address": {
            "address_line_1": "123 Example Street",
            "locality": "London",
            "postal_code": "EC1A 1BB",
        },
    }


def search_companies(query: str, client: Optional[httpx.Client] = None) -> list[dict]:
    """Search the register by company name. Returns [] on API failure."""
    if not _api_key() and client is None:
        logger.warning("COMPANIES_HOUSE_API_KEY not set — using mock data")
        return _mock_search_results(query)

    owned = client is None
    client = client or _client()
    try:
        response = client.get("/search/companies", params={"q": query, "items_per_page": SEARCH_RESULTS})
        response.raise_for_status()
        return response.json().get("items") or []
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Companies House search failed for {query!r}: {e}")
        return []
    finally:
        if owned:
            client.close()


def get_company_profile(company_number: str, client: Optional[httpx.Client] = None) -> Optional[dict]:
    """Fetch a company profile by number. None when unknown or on API failure."""
    if not _api_key() and client is None:
        logger.warning("COMPANIES_HOUSE_API_KEY not set — using mock data")
        return _mock_profile(company_number)

    owned = client is None
    client = client or _client()
    try:
        response = client.get(f"/company/{company_number}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Companies House profile fetch failed for {company_number}: {e}")
        return None
    finally:
        if owned:
            client.close()


def map_sic_codes_to_industry(sic_codes: list[str]) -> str:
    for code in sic_codes:
        industry = SIC_INDUSTRIES.get(str(code)[:2])
        if industry:
            return industry
    return f"SIC: {sic_codes[0]}" if sic_codes else "Unknown"


def determine_company_size(profile: dict) -> str:
    """Rough size bucket. Filed accounts mark the company as established."""
    accounts = profile.get("accounts") or {}
    if accounts.get("accounting_reference_date"):
        return "Established"
    return "Unknown"


def format_address(address: dict) -> str:
    parts = [
        address.get("address_line_1"),
        address.get("address_line_2"),
        address.get("locality"),
        address.get("region"),
        address.get("postal_code"),
    ]
    return ", ".join(p for p in parts if p)


def _comparable(name: str) -> str:
    return " ".join(_LEGAL_SUFFIX_RE.sub(" ", name or "").lower().split())


def best_match(company_name: str, results: list[dict]) -> Optional[dict]:
    """Pick the search result whose title is closest to the company name. Ties keep search order."""
    if not results:
        return None
    target = _comparable(company_name)
    return max(results, key=lambda r: fuzz.token_sort_ratio(target, _comparable(r.get("title", ""))))


def enrich_company(company_name: str, client: Optional[httpx.Client] = None) -> dict:
    """Look a company up on the register and summarise what was found."""
    results = search_companies(company_name, client=client)
    match = best_match(company_name, results)
    if match is None:
        return {"found": False, "company_name": company_name, "message": "No matching company found"}

    profile = get_company_profile(match.get("company_number", ""), client=client)
    if not profile:
        return {
            "found": True,
            "company_name": match.get("title", company_name),
            "companies_house_id": match.get("company_number"),
            "address": match.get("address_snippet"),
        }

    sic_codes = profile.get("sic_codes") or []
    address = profile.get("registered_office_address")
    return {
        "found": True,
        "company_name": profile.get("company_name", company_name),
        "companies_house_id": profile.get("company_number"),
        "industry": map_sic_codes_to_industry(sic_codes),
        "size": determine_company_size(profile),
        "status": profile.get("company_status"),
        "incorporated_date": profile.get("date_of_creation"),
        "address": format_address(address) if address else None,
        "website": None,
        "sic_codes": sic_codes,
    }


def enrich_lead(lead_id: int, client: Optional[httpx.Client] = None) -> dict:
    """Enrich a stored lead's company, store the CompanyProfile and link it to the lead."""
    lead = database.get_lead(lead_id)
    if lead is None:
        raise NotFoundError(f"No lead with id {lead_id}")
    if not lead.company_name:
        logger.info(f"Lead {lead_id} has no company name, nothing to enrich")
        return {"found": False, "company_name": "", "message": "Lead has no company name"}

    enrichment = enrich_company(lead.company_name, client=client)
    if not enrichment["found"]:
        logger.info(f"No Companies House match for {lead.company_name!r}")
        return enrichment

    notes = []
    if enrichment.get("status"):
        notes.append(f"Status: {enrichment['status']}")
    if enrichment.get("address"):
        notes.append(f"Registered office: {enrichment['address']}")

    profile = database.upsert_company_profile(CompanyProfile(
        company_name=lead.company_name,
        companies_house_id=enrichment.get("companies_house_id"),
        industry=enrichment.get("industry"),
        size=enrichment.get("size"),
        website=enrichment.get("website"),
        notes="; ".join(notes) or None,
    ))
    database.link_lead_company(lead_id, profile.id)
    logger.info(
        f"Enriched lead {lead_id}: {lead.company_name} -> "
        f"{enrichment.get('companies_house_id')} ({enrichment.get('industry', 'Unknown')})"
    )

    enrichment["company_id"] = profile.id
    return enrichment
