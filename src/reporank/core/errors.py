# src/reporank/core/errors.py
"""
Exception hierarchy for repository ranking runs.

ConfigurationError is fatal and raised before any repository is processed.
CollaboratorError and its subclasses are raised by the repository source and
the model client; the ranking pipeline recovers from them per repository.
"""


class RepoRankError(Exception):
    """Base class for all reporank errors."""


class ConfigurationError(RepoRankError):
    """Invalid criteria definitions or run configuration."""


class CollaboratorError(RepoRankError):
    """An external collaborator (GitHub, model API) failed for one request."""


class RepositorySourceError(CollaboratorError):
    """Listing repositories for an organization failed."""


class ReadmeNotFoundError(CollaboratorError):
    """The repository has no README or it could not be fetched."""


class ModelInvocationError(CollaboratorError):
    """The model API request failed or returned an unusable payload."""


class ToolNotUsedError(CollaboratorError):
    """The model answered without calling the requested tool."""
