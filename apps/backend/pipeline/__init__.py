"""
Fetch-and-store pipeline and PostgreSQL stores.

Provider records are deduplicated against the jobs table, normalized, and
batch-inserted; the stores also back the review queue and dashboards.
"""

__version__ = "1.0.0"
