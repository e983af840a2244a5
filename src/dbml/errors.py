from typing import List, Sequence

from schema import ParseDiagnostic


class DbmlParseError(ValueError):
    """Raised in strict mode when DBML source produced diagnostics."""

    def __init__(self, diagnostics: Sequence[ParseDiagnostic]) -> None:
        self.diagnostics: List[ParseDiagnostic] = list(diagnostics)
        summary = "; ".join(str(d) for d in self.diagnostics[:3])
        if len(self.diagnostics) > 3:
            summary += f"; and {len(self.diagnostics) - 3} more"
        super().__init__(f"DBML parse failed with {len(self.diagnostics)} diagnostic(s): {summary}")


class DbmlCycleError(ValueError):
    """Raised when table relationships form a cycle and cannot be ordered."""

    def __init__(self, tables: Sequence[str]) -> None:
        self.tables: List[str] = list(tables)
        super().__init__(
            "Cannot order tables by dependency; relationship cycle among: "
            + ", ".join(self.tables)
        )
