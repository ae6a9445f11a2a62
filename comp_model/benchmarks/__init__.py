"""Internal (organization-level) benchmarks and their blend with survey data."""

from .internal import blend, percentiles_from_records, recommend_cf

__all__ = ["blend", "percentiles_from_records", "recommend_cf"]
