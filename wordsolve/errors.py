"""Exception hierarchy for the solver core and the live loop."""


class WordsolveError(Exception):
    """Base exception for solver failures."""


class InvalidWordError(WordsolveError, ValueError):
    """Raised when a word or pattern is malformed (length, alphabet, case)."""


class CorpusExhausted(WordsolveError):
    """Raised when no tracked answer is consistent with the history."""


class ExtractionFailure(WordsolveError):
    """Raised by adapters that cannot read a row's feedback."""


class SessionFault(WordsolveError):
    """Raised when the automation session can no longer be used."""
