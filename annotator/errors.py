# annotator/errors.py


class AnnotationError(Exception):
    """Base class for annotation failures."""


class ServiceAuthError(AnnotationError):
    """The service rejected the key or its request limit was reached.

    Terminal for the whole request: no further chunk is worth sending.
    """


class TransientServiceError(AnnotationError):
    """A single request failed at the network or protocol level."""
