from __future__ import annotations


class DomainError(Exception):
    """
    Predictable error raised by revalidation operations and mapped to an API
    response by `config.exception_handler`.
    """


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    """A content item or taxonomy term does not exist."""


class ServiceUnavailableError(DomainError):
    """Settings or audit-log storage could not be written."""


class ConfigurationError(DomainError):
    """
    Server-side setup is incomplete, e.g. no content index configured.
    """
