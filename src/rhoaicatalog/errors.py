"""Domain errors for the RHOAI catalog builder."""


class CatalogBuilderError(RuntimeError):
    """Raised when the catalog build cannot continue safely."""


class UsageError(CatalogBuilderError):
    """Raised when command-line or config options are missing or conflicting."""
