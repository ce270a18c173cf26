import enum
from dataclasses import dataclass, field


class TranslationType(str, enum.Enum):
    FINISHED = "finished"
    UNFINISHED = "unfinished"
    VANISHED = "vanished"
    OBSOLETE = "obsolete"

    @classmethod
    def from_attribute(cls, value: str | None) -> "TranslationType":
        # A missing type attribute means the translation is approved
        if not value:
            return cls.FINISHED
        return cls(value)

    @property
    def attribute(self) -> str | None:
        if self is TranslationType.FINISHED:
            return None
        return self.value

    @property
    def obsolete(self) -> bool:
        return self in (TranslationType.VANISHED, TranslationType.OBSOLETE)

    @property
    def usable(self) -> bool:
        return self is TranslationType.FINISHED


@dataclass(frozen=True)
class Location:
    # A location without a filename refers to the previous file
    filename: str | None = None
    # Kept as written: absolute ("42"), relative ("+3") or missing
    line: str | None = None


@dataclass(frozen=True)
class Message:
    source: str
    locations: tuple[Location, ...] = ()
    comment: str = ""
    numerus: bool = False
    translation: str = ""
    numerus_forms: tuple[str, ...] = ()
    translation_type: TranslationType = TranslationType.FINISHED
    id: str | None = None
    extra_comment: str | None = None
    translator_comment: str | None = None
    old_source: str | None = None
    old_comment: str | None = None

    @property
    def finished(self) -> bool:
        return self.translation_type.usable


@dataclass(frozen=True)
class Context:
    name: str
    messages: tuple[Message, ...] = ()


class Severity(str, enum.Enum):
    WARNING = "warning"
    NOTICE = "notice"


@dataclass(frozen=True)
class Report:
    context: str
    warning: str
    source: str = ""
    comment: str = ""
    severity: Severity = Severity.WARNING


@dataclass(frozen=True)
class Catalog:
    language: str
    version: str = "2.1"
    source_language: str | None = None
    contexts: tuple[Context, ...] = ()
    # Load-time warnings; not part of the catalog contents
    issues: tuple[Report, ...] = field(default=(), compare=False)

    def context(self, name: str) -> Context | None:
        return next((x for x in self.contexts if x.name == name), None)

    def messages(self):
        for context in self.contexts:
            for message in context.messages:
                yield context, message


@dataclass
class CatalogFile:
    filename: str
    catalog: Catalog | None
    error: str | None = None


@dataclass(frozen=True)
class ContextStats:
    name: str
    total: int = 0
    finished: int = 0
    unfinished: int = 0
    obsolete: int = 0

    @property
    def percent(self) -> float:
        active = self.total - self.obsolete
        if not active:
            return 100.0
        return 100.0 * self.finished / active
