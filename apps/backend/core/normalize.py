"""
Provider record normalization.

One pure transform per provider maps an API record onto CanonicalJob:
- provider-prefixed job_id (the dedupe key)
- missing optional fields become None
- salaries rounded to the nearest integer
- status always "pending", source always the provider name
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.models import CanonicalJob

DEFAULT_CURRENCY = "USD"
MAX_HIGHLIGHT_SKILLS = 5


def round_salary(value: Any) -> Optional[int]:
    """Round a salary to the nearest integer (halves round up). Zero/missing -> None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount == 0:
        return None
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _text(value: Any) -> Optional[str]:
    """Return a stripped string, or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _unique(items: Iterable[Any]) -> List[str]:
    seen = set()
    out: List[str] = []
    for item in items:
        text = _text(item)
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out


def external_job_id(provider: str, record: Dict[str, Any]) -> str:
    """Provider-prefixed id used for deduplication. JSearch ids are already unique."""
    if provider == "jsearch":
        return str(record.get("job_id"))
    return f"{provider}-{record.get('id')}"


def transform_jsearch_job(record: Dict[str, Any]) -> CanonicalJob:
    highlights = record.get("job_highlights") or {}
    qualifications = highlights.get("Qualifications") or []
    explicit_skills = record.get("job_required_skills") or []

    location_parts = [
        _text(record.get(key)) for key in ("job_city", "job_state", "job_country")
    ]
    location = ", ".join(part for part in location_parts if part) or None

    return CanonicalJob(
        job_id=external_job_id("jsearch", record),
        title=_text(record.get("job_title")) or "Untitled",
        company=_text(record.get("employer_name")) or "Unknown Company",
        location=location,
        salary_min=round_salary(record.get("job_min_salary")),
        salary_max=round_salary(record.get("job_max_salary")),
        salary_currency=_text(record.get("job_salary_currency")) or DEFAULT_CURRENCY,
        employment_type=_text(record.get("job_employment_type")),
        remote_allowed=bool(record.get("job_is_remote") or False),
        description=_text(record.get("job_description")),
        required_skills=_unique(list(explicit_skills) + list(qualifications[:MAX_HIGHLIGHT_SKILLS])),
        apply_url=_text(record.get("job_apply_link")) or "",
        source="jsearch",
        raw_data=record,
    )


def transform_adzuna_job(record: Dict[str, Any]) -> CanonicalJob:
    company = record.get("company") or {}
    location = record.get("location") or {}
    title = _text(record.get("title")) or "Untitled"
    location_name = _text(location.get("display_name"))

    remote = "remote" in title.lower() or (
        location_name is not None and "remote" in location_name.lower()
    )

    return CanonicalJob(
        job_id=external_job_id("adzuna", record),
        title=title,
        company=_text(company.get("display_name")) or "Unknown Company",
        location=location_name,
        salary_min=round_salary(record.get("salary_min")),
        salary_max=round_salary(record.get("salary_max")),
        salary_currency=DEFAULT_CURRENCY,
        employment_type=_text(record.get("contract_type")),
        remote_allowed=remote,
        description=_text(record.get("description")),
        required_skills=[],
        apply_url=_text(record.get("redirect_url")) or "",
        source="adzuna",
        raw_data=record,
    )


def transform_remotive_job(record: Dict[str, Any]) -> CanonicalJob:
    category = _text(record.get("category"))

    # Remotive salaries are free text ("$80k - $100k"), kept in raw_data only
    return CanonicalJob(
        job_id=external_job_id("remotive", record),
        title=_text(record.get("title")) or "Untitled",
        company=_text(record.get("company_name")) or "Unknown Company",
        location=_text(record.get("candidate_required_location")) or "Worldwide",
        salary_min=None,
        salary_max=None,
        salary_currency=DEFAULT_CURRENCY,
        employment_type=_text(record.get("job_type")),
        remote_allowed=True,
        description=_text(record.get("description")),
        required_skills=[category] if category else [],
        apply_url=_text(record.get("url")) or "",
        source="remotive",
        raw_data=record,
    )


def transform_remoteok_job(record: Dict[str, Any]) -> CanonicalJob:
    return CanonicalJob(
        job_id=external_job_id("remoteok", record),
        title=_text(record.get("position")) or "Untitled",
        company=_text(record.get("company")) or "Unknown Company",
        location=_text(record.get("location")) or "Remote",
        salary_min=round_salary(record.get("salary_min")),
        salary_max=round_salary(record.get("salary_max")),
        salary_currency=DEFAULT_CURRENCY,
        employment_type=None,
        remote_allowed=True,
        description=_text(record.get("description")),
        required_skills=_unique(record.get("tags") or []),
        apply_url=_text(record.get("apply_url")) or _text(record.get("url")) or "",
        source="remoteok",
        raw_data=record,
    )


TRANSFORMERS: Dict[str, Callable[[Dict[str, Any]], CanonicalJob]] = {
    "jsearch": transform_jsearch_job,
    "adzuna": transform_adzuna_job,
    "remotive": transform_remotive_job,
    "remoteok": transform_remoteok_job,
}


def transform_job(provider: str, record: Dict[str, Any]) -> CanonicalJob:
    """Dispatch to the provider's transform."""
    try:
        transformer = TRANSFORMERS[provider]
    except KeyError:
        raise ValueError(f"Unknown provider: {provider!r}")
    return transformer(record)
