# app/errors.py


class TypeQuestError(Exception):
    """Base class for every error raised by the game."""


class CatalogLoadError(TypeQuestError):
    """Phrase or quest data could not be read or has the wrong shape."""


class EmptyCatalogError(TypeQuestError):
    """The phrase catalog loaded fine but holds nothing to type."""


class InvalidTransitionError(TypeQuestError):
    """An event arrived while the session was in the wrong status."""


class ConfigError(TypeQuestError):
    pass


class DatabaseError(TypeQuestError):
    pass
