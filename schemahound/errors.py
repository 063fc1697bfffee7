"""Error taxonomy for resource graph normalization.

Every error here means the input graph broke a contract the upstream
compiler is expected to honour. Nothing is retried or recovered; errors
propagate to the caller, which is expected to halt.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class NormalizationError(Exception):
    """Base exception for normalization failures.

    Usage:
        raise NormalizationError("bad graph", resource="PostTable")
        raise MalformedKeySchema("no definition", details={"attribute": "id"})
    """

    def __init__(
        self,
        message: str,
        stack: Optional[str] = None,
        resource: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.stack = stack
        self.resource = resource
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly error record."""
        out: Dict[str, Any] = {"error": type(self).__name__, "message": self.message}
        if self.stack:
            out["stack"] = self.stack
        if self.resource:
            out["resource"] = self.resource
        if self.details:
            out["details"] = self.details
        return out

    def __str__(self) -> str:
        where = "/".join(p for p in (self.stack, self.resource) if p)
        return f"{self.message} ({where})" if where else self.message


class InvalidTemplate(NormalizationError):
    """Raised when an input record does not look like a template resource."""


class MalformedKeySchema(NormalizationError):
    """Raised when a key schema entry has no matching attribute definition."""


class UnsupportedResolverShape(NormalizationError):
    """Raised for resolvers that are not expressed as pipelines."""


class UnsupportedDataSourceType(NormalizationError):
    """Raised when a data source declares a type outside the known set."""

    def __init__(self, data_source_type: Any, **kwargs):
        super().__init__(f"Unsupported data source type: {data_source_type}", **kwargs)
        self.data_source_type = data_source_type


class UnresolvableFunctionTarget(NormalizationError):
    """Raised when a lambda data source's function name cannot be extracted."""


class UnresolvableEndpoint(NormalizationError):
    """Raised when an HTTP data source endpoint is not expressible as a string."""


class AmbiguousTemplateReference(NormalizationError):
    """Raised when a template direction declares both or neither of inline/file."""


class DanglingReference(NormalizationError):
    """Raised when an attribute lookup names a resource absent from the stack."""

    def __init__(self, target: str, **kwargs):
        super().__init__(f"Reference to unknown resource '{target}'", **kwargs)
        self.target = target
