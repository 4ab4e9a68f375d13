from typing import Optional, Sequence


class ArticleError(Exception):
    """Base class for failures that abort processing of a single document."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def with_source(self, source: Optional[str]) -> "ArticleError":
        if self.source is None and source:
            self.source = source
        return self

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class MalformedDocument(ArticleError):
    pass


class MissingRequiredField(ArticleError):
    def __init__(self, field: str, source: Optional[str] = None):
        super().__init__(f"missing required field '{field}'", source)
        self.field = field


class InvalidTimestamp(ArticleError):
    def __init__(self, field: str, value: object, source: Optional[str] = None, reason: str = ""):
        message = f"invalid timestamp for '{field}': {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, source)
        self.field = field
        self.value = value


class MissingAttribute(ArticleError):
    def __init__(self, directive: str, attribute: str, source: Optional[str] = None):
        super().__init__(f"directive '{directive}' requires attribute '{attribute}'", source)
        self.directive = directive
        self.attribute = attribute


class UnknownDirective(ArticleError):
    def __init__(self, name: str, source: Optional[str] = None):
        super().__init__(f"unknown directive '{name}'", source)
        self.name = name


class MalformedDirective(ArticleError):
    pass


class DuplicateSlug(ArticleError):
    def __init__(self, slug: str, sources: Sequence[Optional[str]] = ()):
        known = [s for s in sources if s]
        message = f"duplicate slug '{slug}'"
        if known:
            message = f"{message} (defined by {', '.join(known)})"
        super().__init__(message, known[-1] if known else None)
        self.slug = slug
        self.sources = tuple(sources)

    def __str__(self) -> str:
        return self.message
