"""Error taxonomy shared by extraction, generation and storage."""


class ExamGenError(Exception):
    """Base class for user-facing errors.

    The message is shown to the user as-is, so keep it readable.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# Extraction


class InvalidFileTypeError(ExamGenError):
    """The uploaded file is not declared as a PDF."""


class MalformedDocumentError(ExamGenError):
    """The bytes could not be opened as a PDF document."""


class EmptyExtractedContent(ExamGenError):
    """Advisory: the document opened but yielded no text and no images.

    Never raised by the extractor. It is attached to the extraction result
    so the caller can warn without blocking further actions.
    """


# Generation


class RatioValidationError(ExamGenError):
    """Cognitive level percentages do not add up to 100."""


class MissingPrerequisiteError(ExamGenError):
    """A stage was started before the stage it depends on produced output."""


class StageInProgressError(ExamGenError):
    """A stage was started while another stage is still running."""


class ModelResponseError(ExamGenError):
    """The model replied with something that is not the expected JSON."""


class GenerationFailure(ExamGenError):
    """A generation stage failed.

    Wraps the external capability's error message when it has one.
    """

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage

    @classmethod
    def from_exception(cls, stage: str, exc: BaseException) -> "GenerationFailure":
        """Build a failure from an arbitrary exception.

        Args:
            stage: Stage name ("blueprint", "test" or "solution")
            exc: Error raised by the generation capability

        Returns:
            GenerationFailure carrying the original message, or a generic
            stage-specific message when the error has none
        """
        message = str(exc).strip()
        if not message:
            message = f"unknown error generating {stage}"
        return cls(stage, message)


# Storage


class StorageError(ExamGenError):
    """Base class for persisted-state errors."""


class StorageQuotaExceeded(StorageError):
    """The key-value store is out of capacity."""


class StorageWriteFailure(StorageError):
    """Writing to the key-value store failed for another reason."""


class StorageReadCorrupt(StorageError):
    """Persisted content could not be decoded."""
