from __future__ import annotations


class StatementParseError(ValueError):
    """Base class for fatal statement parsing failures."""


class UnsupportedFormatError(StatementParseError):
    pass


class StatementDecodeError(StatementParseError):
    """The CSV, spreadsheet or PDF library could not read the payload."""


class NoStatementDataError(StatementParseError):
    def __init__(self, columns: list[str], sample_descriptions: list[str]) -> None:
        self.columns = list(columns)
        self.sample_descriptions = list(sample_descriptions)
        column_text = ", ".join(self.columns) if self.columns else "none found"
        sample_text = ", ".join(self.sample_descriptions)
        super().__init__(
            "No data found in the statement.\n\n"
            f"Columns found: {column_text}\n\n"
            f"Sample descriptions: {sample_text}"
        )
