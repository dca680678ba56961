"""
Run report: console lines, outcome counts and exit code.
"""
from pydantic import BaseModel, Field

from mongo_bootstrap.models.specs import ApplyResult, Outcome

EXIT_OK = 0
EXIT_INCOMPLETE = 1
EXIT_FATAL = 2

SYMBOLS = {
    Outcome.CREATED: "✓",
    Outcome.ALREADY_EXISTS: "ℹ",
    Outcome.CONFLICT: "⚠",
    Outcome.FAILED: "✗",
}


class BootstrapReport(BaseModel):
    """Results of one bootstrap run."""
    results: list[ApplyResult] = Field(default_factory=list, description="One result per declared object")

    def counts(self) -> dict[Outcome, int]:
        counts = {outcome: 0 for outcome in Outcome}
        for result in self.results:
            counts[result.outcome] += 1
        return counts

    @property
    def succeeded(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def exit_code(self) -> int:
        """0 only when every object was created or already existed."""
        return EXIT_OK if self.succeeded else EXIT_INCOMPLETE

    def lines(self) -> list[str]:
        """One line per object followed by a summary line."""
        lines = []
        for result in self.results:
            line = f"{SYMBOLS[result.outcome]} {result.kind.value:<10} {result.name}: {result.outcome.value}"
            if result.detail:
                line += f" ({result.detail})"
            lines.append(line)

        summary = ", ".join(f"{outcome.value}={count}" for outcome, count in self.counts().items())
        lines.append(f"Summary: {len(self.results)} objects, {summary}")
        return lines
