"""Tenant-specific exceptions."""

from clubhub.core.errors import ServiceUnavailableError


class TenantDirectoryError(ServiceUnavailableError):
    """The tenant directory could not be written; no tenant was created."""

    message = "Tenant directory is unavailable"
    error_code = "tenant_directory_unavailable"
