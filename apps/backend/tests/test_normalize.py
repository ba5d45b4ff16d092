"""
Unit tests for core/normalize.py

Covers the per-provider transforms:
- provider-prefixed job_id
- missing optional fields become None
- salary rounding
- status/source stamping
"""

import pytest
from core.normalize import (
    round_salary,
    external_job_id,
    transform_job,
    transform_jsearch_job,
    transform_adzuna_job,
    transform_remotive_job,
    transform_remoteok_job,
)


MINIMAL_RECORDS = {
    "jsearch": {"job_id": "abc123"},
    "adzuna": {"id": "42"},
    "remotive": {"id": 7},
    "remoteok": {"id": "99"},
}


class TestRoundSalary:
    def test_rounds_to_nearest_integer(self):
        assert round_salary(85000.4) == 85000
        assert round_salary(85000.6) == 85001

    def test_halves_round_up(self):
        assert round_salary(99999.5) == 100000
        assert round_salary("120000.5") == 120001

    def test_zero_and_missing_are_none(self):
        assert round_salary(0) is None
        assert round_salary(None) is None
        assert round_salary("not a number") is None


class TestExternalJobId:
    def test_jsearch_id_used_as_is(self):
        assert external_job_id("jsearch", {"job_id": "xyz"}) == "xyz"

    @pytest.mark.parametrize("provider", ["adzuna", "remotive", "remoteok"])
    def test_other_providers_are_prefixed(self, provider):
        assert external_job_id(provider, {"id": 5}) == f"{provider}-5"


class TestMinimalRecords:
    @pytest.mark.parametrize("provider", sorted(MINIMAL_RECORDS))
    def test_minimal_record_never_raises(self, provider):
        """Every transform accepts a record with nothing but an id."""
        job = transform_job(provider, MINIMAL_RECORDS[provider])
        assert job.status == "pending"
        assert job.source == provider
        assert job.salary_min is None
        assert job.salary_max is None
        assert job.description is None

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError):
            transform_job("indeed", {"id": 1})


class TestJSearchTransform:
    def test_full_record(self):
        record = {
            "job_id": "js-1",
            "job_title": "Senior React Engineer",
            "employer_name": "Stripe",
            "job_city": "San Francisco",
            "job_state": "CA",
            "job_country": "US",
            "job_min_salary": 180000.7,
            "job_max_salary": 220000.2,
            "job_salary_currency": None,
            "job_employment_type": "FULLTIME",
            "job_is_remote": None,
            "job_description": "Build payments.",
            "job_required_skills": ["React", "TypeScript"],
            "job_highlights": {"Qualifications": ["React", "5+ years", "Node.js", "SQL", "AWS", "Go", "Rust"]},
            "job_apply_link": "https://stripe.com/jobs/1",
        }
        job = transform_jsearch_job(record)

        assert job.job_id == "js-1"
        assert job.location == "San Francisco, CA, US"
        assert job.salary_min == 180001
        assert job.salary_max == 220000
        assert job.salary_currency == "USD"
        assert job.remote_allowed is False
        # explicit skills first, then the first 5 qualifications, deduplicated
        assert job.required_skills == ["React", "TypeScript", "5+ years", "Node.js", "SQL", "AWS"]
        assert job.raw_data == record

    def test_location_none_when_no_parts(self):
        job = transform_jsearch_job({"job_id": "x", "job_city": "", "job_state": None})
        assert job.location is None


class TestAdzunaTransform:
    def test_remote_detected_from_title(self):
        job = transform_adzuna_job({
            "id": 1,
            "title": "Remote Python Developer",
            "company": {"display_name": "Acme"},
            "location": {"display_name": "New York"},
            "contract_type": "permanent",
        })
        assert job.job_id == "adzuna-1"
        assert job.company == "Acme"
        assert job.remote_allowed is True
        assert job.employment_type == "permanent"
        assert job.required_skills == []

    def test_missing_company(self):
        job = transform_adzuna_job({"id": 2, "title": "Engineer"})
        assert job.company == "Unknown Company"
        assert job.location is None
        assert job.remote_allowed is False


class TestRemotiveTransform:
    def test_defaults(self):
        job = transform_remotive_job({"id": 3, "title": "Designer", "company_name": "Doist", "category": "Design"})
        assert job.job_id == "remotive-3"
        assert job.location == "Worldwide"
        assert job.remote_allowed is True
        assert job.required_skills == ["Design"]


class TestRemoteOKTransform:
    def test_apply_url_falls_back_to_url(self):
        job = transform_remoteok_job({
            "id": "10",
            "position": "Backend Engineer",
            "company": "Remote Inc",
            "tags": ["python", "django"],
            "url": "https://remoteok.com/l/10",
            "salary_min": 90000.5,
        })
        assert job.title == "Backend Engineer"
        assert job.location == "Remote"
        assert job.apply_url == "https://remoteok.com/l/10"
        assert job.required_skills == ["python", "django"]
        assert job.salary_min == 90001
