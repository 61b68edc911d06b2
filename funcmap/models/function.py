"""Function inventory models.

Pydantic models for the records produced by function extraction. Field names
are snake_case; serialized output uses the camelCase aliases read by the
rendering layer.
"""

from pydantic import BaseModel, Field, field_serializer, model_validator

# Sentinels for missing names and annotations
ANONYMOUS = "anonymous"
ANY_TYPE = "any"
VOID_TYPE = "void"


class Parameter(BaseModel):
    """A declared parameter of a function."""

    name: str = Field(description="Parameter name as written (destructuring patterns verbatim)")
    type: str = Field(default=ANY_TYPE, description="Declared type annotation, or 'any'")

    model_config = {"frozen": True}


class LineRange(BaseModel):
    """Inclusive, 1-based line span of a function."""

    start: int = Field(ge=1, description="First line of the function")
    end: int = Field(ge=1, description="Last line of the function")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_order(self) -> "LineRange":
        if self.end < self.start:
            raise ValueError(f"line range end {self.end} precedes start {self.start}")
        return self


class FunctionRecord(BaseModel):
    """A function-like construct found in a source unit."""

    name: str = Field(description="Declared identifier, or 'anonymous'")
    parameters: list[Parameter] = Field(
        default_factory=list, description="Parameters in declaration order"
    )
    return_type: str = Field(
        default=VOID_TYPE, alias="returnType", description="Declared return type, or 'void'"
    )
    line_range: LineRange = Field(alias="lineRange", description="Line span of the function")
    source_text: str = Field(alias="sourceText", description="Literal source of the function")
    inner_functions: list["FunctionRecord"] = Field(
        default_factory=list,
        alias="innerFunctions",
        description="Functions nested directly inside this one",
    )
    called_functions: frozenset[str] = Field(
        default_factory=frozenset,
        alias="calledFunctions",
        description="Bare identifiers called anywhere within this function",
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @field_serializer("called_functions")
    def serialize_calls(self, calls: frozenset[str]) -> list[str]:
        return sorted(calls)

    def walk(self):
        """Yield this record and every nested record, parents first."""
        stack = [self]
        while stack:
            record = stack.pop()
            yield record
            stack.extend(reversed(record.inner_functions))


class SourceUnit(BaseModel):
    """A source file handed to the batch driver."""

    path: str = Field(description="Path the content was loaded from")
    content: str = Field(description="Source text")

    model_config = {"frozen": True}


class FileFunctions(BaseModel):
    """Analysis result for one source unit."""

    path: str = Field(description="Path of the analyzed unit")
    functions: list[FunctionRecord] = Field(
        default_factory=list, description="Top-level functions (containment roots)"
    )
    errors: list[str] = Field(
        default_factory=list, description="Problems that prevented analysis of this unit"
    )

    model_config = {"frozen": True}
