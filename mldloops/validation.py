"""
Model validation utilities.

Provides structural validation for MLD models, including:
- Symbol-table consistency (unique names, dense column indices)
- Matrix dimensions against the variable counts
- Row-descriptor coverage of the inequality and output rows
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from mldloops.model import COLUMN_KIND, MLDModel
from mldloops.types import ValueType, VariableKind


class ValidationSeverity(Enum):
    ERROR = "error"  # the transformation must not run on this model
    WARNING = "warning"


class ValidationCategory(Enum):
    """Which part of the model an issue was found in."""

    SYMBOL_TABLE = "symbol_table"
    INDEX = "index"
    DIMENSION = "dimension"
    ROW_INFO = "row_info"
    UNDEFINED_VARIABLE = "undefined_variable"


@dataclass
class ValidationIssue:
    severity: ValidationSeverity
    category: ValidationCategory
    message: str
    location: Optional[str] = None  # "matrix E1", "rowinfo.ineq[3]", a kind name, ...
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        where = f" at {self.location}" if self.location else ""
        return f"[{self.severity.value.upper()}] {self.category.value}: {self.message}{where}"


@dataclass
class ValidationResult:
    """Issues collected by validate_model(); the model is usable if there are no errors."""

    issues: list[ValidationIssue] = field(default_factory=list)

    def add(
        self,
        severity: ValidationSeverity,
        category: ValidationCategory,
        message: str,
        location: Optional[str] = None,
        **details,
    ) -> None:
        self.issues.append(ValidationIssue(severity, category, message, location, details))

    def _with_severity(self, severity: ValidationSeverity) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    @property
    def errors(self) -> list[ValidationIssue]:
        return self._with_severity(ValidationSeverity.ERROR)

    @property
    def warnings(self) -> list[ValidationIssue]:
        return self._with_severity(ValidationSeverity.WARNING)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        lines = [
            f"Validation Result: {'VALID' if self.is_valid else 'INVALID'}",
            f"  Errors: {len(self.errors)}",
            f"  Warnings: {len(self.warnings)}",
        ]
        lines.extend(f"  - {issue}" for issue in self.issues)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.summary()


_ERROR = ValidationSeverity.ERROR
_WARNING = ValidationSeverity.WARNING


def _check_symbols(model: MLDModel, result: ValidationResult) -> None:
    """Names must be unique."""
    seen: dict[str, int] = {}
    for sym in model.symtable:
        seen[sym.name] = seen.get(sym.name, 0) + 1
    for name, count in seen.items():
        if count > 1:
            result.add(
                _ERROR,
                ValidationCategory.SYMBOL_TABLE,
                f"Symbol '{name}' appears {count} times",
                location=f"symbol {name}",
                name=name,
                count=count,
            )


def _check_indices(model: MLDModel, result: ValidationResult) -> None:
    """Indices must be dense per kind, real members before binary ones."""
    for kind in VariableKind:
        if not kind.has_columns:
            continue
        syms = [s for s in model.symtable if s.kind == kind]
        missing = [s.name for s in syms if s.index is None]
        if missing:
            result.add(
                _ERROR,
                ValidationCategory.INDEX,
                f"{kind.name} variables without index: {', '.join(missing)}",
                location=kind.name,
            )
            continue

        indices = sorted(s.index for s in syms)
        if indices != list(range(len(syms))):
            result.add(
                _ERROR,
                ValidationCategory.INDEX,
                f"{kind.name} indices are not contiguous: {indices}",
                location=kind.name,
                indices=indices,
            )
            continue

        n_real = sum(1 for s in syms if s.type == ValueType.REAL)
        misplaced = [s.name for s in syms if (s.type == ValueType.REAL) != (s.index < n_real)]
        if misplaced:
            result.add(
                _ERROR,
                ValidationCategory.INDEX,
                f"{kind.name} variables out of real/binary order: {', '.join(misplaced)}",
                location=kind.name,
            )


def _check_dimensions(model: MLDModel, result: ValidationResult) -> None:
    """Every matrix must match the counts of its row and column spaces."""
    for mat_name, shape in model.expected_shapes().items():
        actual = getattr(model, mat_name).shape
        if actual != shape:
            kind = COLUMN_KIND[mat_name]
            result.add(
                _ERROR,
                ValidationCategory.DIMENSION,
                f"Matrix {mat_name} has shape {actual}, expected {shape}"
                + (f" ({kind.name} columns)" if kind is not None else ""),
                location=f"matrix {mat_name}",
                actual=actual,
                expected=shape,
            )


def _check_rowinfo(model: MLDModel, result: ValidationResult) -> None:
    """Row descriptors must cover the rows and name known symbols."""
    if len(model.rowinfo.ineq) != model.ne:
        result.add(
            _ERROR,
            ValidationCategory.ROW_INFO,
            f"{len(model.rowinfo.ineq)} inequality row descriptors for {model.ne} inequality rows",
            location="rowinfo.ineq",
        )

    if model.rowinfo.output and len(model.rowinfo.output) != model.ny:
        result.add(
            _ERROR,
            ValidationCategory.ROW_INFO,
            f"{len(model.rowinfo.output)} output row descriptors for {model.ny} outputs",
            location="rowinfo.output",
        )
    elif not model.rowinfo.output and model.ny > 0:
        result.add(
            _WARNING,
            ValidationCategory.ROW_INFO,
            f"No output row descriptors for {model.ny} outputs",
            location="rowinfo.output",
        )

    names = {sym.name for sym in model.symtable}
    for table in ("ineq", "output"):
        for r, row in enumerate(getattr(model.rowinfo, table)):
            for name in (row.defines, *row.depends):
                if name not in names:
                    result.add(
                        _WARNING,
                        ValidationCategory.UNDEFINED_VARIABLE,
                        f"Reference to undefined variable '{name}'",
                        location=f"rowinfo.{table}[{r}]",
                        variable=name,
                    )


def validate_model(
    model: MLDModel,
    check_symbols: bool = True,
    check_indices: bool = True,
    check_dimensions: bool = True,
    check_rowinfo: bool = True,
) -> ValidationResult:
    """
    Perform structural validation of an MLD model.

    Args:
        model: The model to validate
        check_symbols: Check for duplicate symbol names
        check_indices: Check that column indices are dense per kind
        check_dimensions: Check matrix shapes against variable counts
        check_rowinfo: Check row descriptors against rows and symbols

    Returns:
        ValidationResult containing all issues found
    """
    result = ValidationResult()

    if check_symbols:
        _check_symbols(model, result)

    if check_indices:
        _check_indices(model, result)

    if check_dimensions:
        _check_dimensions(model, result)

    if check_rowinfo:
        _check_rowinfo(model, result)

    return result
