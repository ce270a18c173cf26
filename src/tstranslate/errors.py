class CatalogError(Exception):
    """Base class for catalog failures."""


class CatalogParseError(CatalogError):
    """The catalog document is malformed and cannot be loaded.

    ``element`` is the path of the offending element, e.g.
    ``TS/context[3]/message[12]``. ``position`` is the (line, column) of
    an XML syntax error when the XML parser reports one.
    """

    def __init__(
        self,
        message: str,
        *,
        element: str | None = None,
        position: tuple[int, int] | None = None,
        filename: str | None = None,
    ) -> None:
        self.message = message
        self.element = element
        self.position = position
        self.filename = filename
        super().__init__(str(self))

    def __str__(self) -> str:
        where = []
        if self.filename:
            where.append(self.filename)
        if self.position:
            where.append(f"line {self.position[0]}, column {self.position[1]}")
        if self.element:
            where.append(self.element)
        if not where:
            return self.message
        return f"{self.message} ({', '.join(where)})"


class PluralRuleError(CatalogError):
    """No plural rule is known for the requested locale."""
