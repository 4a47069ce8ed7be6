"""Per-kind conversion of raw API objects into published records."""

from kubesnap.convert.pods import pod_from_api
from kubesnap.convert.rows import row_converter

__all__ = ["pod_from_api", "row_converter"]
