from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

class Metrics(BaseModel):
    loc: int = 0
    complexity: int = 0
    functions: int = 0

    # Trees from other producers may send null for the optional counts
    @field_validator("complexity", "functions", mode="before")
    @classmethod
    def null_is_zero(cls, value):
        return 0 if value is None else value

class Node(BaseModel):
    name: str
    path: str
    kind: Literal["file", "directory"]
    metrics: Metrics = Field(default_factory=Metrics)
    language: Optional[str] = None
    # None for files, a (possibly empty) list for directories
    children: Optional[List["Node"]] = None

class RectNode(BaseModel):
    path: str
    x: float
    y: float
    width: float
    height: float
    depth: int
    metrics: Metrics
    language: Optional[str] = None

class LayoutRequest(BaseModel):
    tree: Node
    width: float = Field(gt=0)
    height: float = Field(gt=0)

class Totals(BaseModel):
    files: int = 0
    lines: int = 0
    code: int = 0
    comments: int = 0

class LanguageTotals(Totals):
    name: str
    blanks: int = 0

class CategoryTotals(Totals):
    name: str

class AbcMetrics(BaseModel):
    a: int = 0
    b: int = 0
    c: int = 0
    magnitude: float = 0.0

class HalsteadMetrics(BaseModel):
    n1_ops_unique: int = 0
    n2_operands_unique: int = 0
    ops_total: int = 0
    operands_total: int = 0
    volume: float = 0.0
    difficulty: float = 0.0
    effort: float = 0.0

class AdvancedMetrics(BaseModel):
    comment_density_pct: float = 0.0
    cyclomatic_total: int = 0
    cyclomatic_density: float = 0.0
    abc: AbcMetrics = Field(default_factory=AbcMetrics)
    halstead: HalsteadMetrics = Field(default_factory=HalsteadMetrics)
    maintainability_index: float = 0.0

class MetricsSummary(BaseModel):
    totals: Totals = Field(default_factory=Totals)
    advanced: AdvancedMetrics = Field(default_factory=AdvancedMetrics)
    languages: List[LanguageTotals] = Field(default_factory=list)
    categories: List[CategoryTotals] = Field(default_factory=list)
    audit: Dict[str, int] = Field(default_factory=dict)

    model_config = {
        "frozen": True
    }

class ScanResult(BaseModel):
    tree: Node
    summary: MetricsSummary
