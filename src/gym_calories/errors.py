"""Error taxonomy for the calorie modeling pipeline."""

from typing import Optional, Sequence


class PipelineError(Exception):
    """Base class for errors that abort a modeling run.

    Carries the component that raised it and, where known, the offending
    column and row labels so the CLI can report one specific failure.
    """

    def __init__(self, message: str, component: Optional[str] = None,
                 column: Optional[str] = None, rows: Optional[Sequence] = None):
        self.component = component
        self.column = column
        self.rows = list(rows) if rows is not None else None
        super().__init__(message)

    def __str__(self):
        message = super().__str__()
        context = []
        if self.component:
            context.append(f"component={self.component}")
        if self.column:
            context.append(f"column={self.column}")
        if self.rows:
            shown = ", ".join(str(r) for r in self.rows[:5])
            more = f" (+{len(self.rows) - 5} more)" if len(self.rows) > 5 else ""
            context.append(f"rows=[{shown}]{more}")
        if context:
            return f"{message} [{'; '.join(context)}]"
        return message


class SchemaError(PipelineError):
    # Missing or mistyped column
    pass


class InsufficientDataError(PipelineError):
    # Too few rows for the requested split / fold count
    pass


class UnseenCategoryError(PipelineError):
    # Categorical value at prediction time that was never seen during fit
    pass


class DegenerateFoldError(PipelineError):
    # CV fold whose validation target has zero variance
    pass


class ConvergenceWarning(UserWarning):
    """Regularized solver stopped at its iteration budget; last iterate kept."""
