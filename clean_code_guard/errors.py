"""
Error taxonomy for Clean Code Guard.

Only InvalidReference reaches the caller of an assessment; every other error
is converted into a failed assessment record.
"""


class AssessmentError(Exception):
    """Base class for assessment errors."""


class InvalidReference(AssessmentError, ValueError):
    """The submitted repository string is not a usable forge URL."""


class RepositoryInaccessible(AssessmentError):
    """The repository is private or does not exist."""

    def __init__(self, message: str = "Repository is private or not accessible"):
        super().__init__(message)


class ForgeUnavailable(AssessmentError):
    """The repository snapshot could not be retrieved."""


class AnalyzerFailure(AssessmentError):
    """A single analyzer could not produce findings for its bucket."""

    def __init__(self, label: str, message: str):
        super().__init__(message)
        self.label = label


class AllAnalyzersFailed(AssessmentError):
    """Every attempted analyzer bucket failed."""

    def __init__(self, failures: list):
        # Items are report.BucketFailure tuples (label, file_count, reason)
        self.failures = list(failures)
        details = "; ".join(
            f"{failure.label}: {failure.reason}" for failure in self.failures
        )
        super().__init__(f"Local analysis failed: {details}")


class AssessmentCancelled(AssessmentError):
    """The assessment was aborted by its scheduler."""

    def __init__(self, message: str = "Assessment cancelled"):
        super().__init__(message)
