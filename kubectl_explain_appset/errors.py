from typing import Any


class AppSetAnalyzerError(Exception):
    """
    Base class for all analyzer errors.
    """


class FetchError(AppSetAnalyzerError):
    """
    A Fetch Port call could not list documents.
    """


class RunCancelled(FetchError):
    """
    The run was cancelled or its deadline passed before a fetch was issued.
    """


class DocumentDecodeError(AppSetAnalyzerError):
    """
    A raw document does not have the shape of a Kubernetes object.
    """


class RunFailedError(AppSetAnalyzerError):
    """
    Parent documents could not be enumerated at all.

    Carries the result that is reported in place of findings.
    """

    def __init__(self, message: str, result: Any = None):
        super().__init__(message)
        self.result = result
