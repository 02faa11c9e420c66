"""Pydantic models for the analytics pipeline and its API"""
from typing import Optional, Dict, Any, List, Literal, Union
from pydantic import BaseModel, Field
from datetime import datetime


Record = Dict[str, Any]

DataSourceType = Literal["csv", "google_sheets", "postgresql", "api"]
ColumnType = Literal["string", "number", "date", "boolean"]
QueryType = Literal["metrics", "comparison", "trend", "distribution", "correlation"]
ChartType = Literal["bar", "line", "pie", "scatter", "area"]


# ============================================================================
# Data Sources
# ============================================================================

class DataSource(BaseModel):
    """A user's registered data source; config is validated by its adapter"""
    id: str
    userId: str
    name: str
    type: DataSourceType
    config: Dict[str, Any] = Field(default_factory=dict)
    isActive: bool = True
    lastSyncAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class CSVConfig(BaseModel):
    """Connection parameters for a CSV file"""
    file_path: str = Field(..., min_length=1, description="Path to the CSV file")
    has_header: bool = True
    delimiter: str = ","
    encoding: str = "utf-8"


class GoogleSheetsConfig(BaseModel):
    """Connection parameters for a spreadsheet"""
    spreadsheet_id: str = Field(..., min_length=1)
    range: str = "A:Z"
    api_key: Optional[str] = None
    access_token: Optional[str] = None


class APIConfig(BaseModel):
    """Connection parameters for a generic JSON API"""
    api_url: str = Field(..., min_length=1)
    api_key: Optional[str] = None
    method: Literal["GET", "POST"] = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


# ============================================================================
# Schema
# ============================================================================

class ColumnSchema(BaseModel):
    """A column with its inferred semantic type"""
    name: str
    type: ColumnType = "string"
    nullable: Optional[bool] = None
    sampleValues: Optional[List[Any]] = None


class Schema(BaseModel):
    """Derived, per-request description of a data source"""
    columns: List[ColumnSchema] = Field(default_factory=list)
    rowCount: Optional[int] = None
    tableName: Optional[str] = None
    tables: Optional[List[str]] = None

    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def columns_of_type(self, column_type: str) -> List[str]:
        return [column.name for column in self.columns if column.type == column_type]


class PostgreSQLConfig(BaseModel):
    """Connection parameters for a SQL database"""
    connection_string: str = Field(..., min_length=1, description="SQLAlchemy database URL")
    table_name: Optional[str] = None
    reference_schema: Optional[Schema] = Field(
        None,
        description="Static schema used when the live catalog is unreachable"
    )


# ============================================================================
# Structured Queries
# ============================================================================

class QueryFilter(BaseModel):
    """Single predicate applied to every row"""
    column: str
    operator: str = Field(
        ...,
        description="equals, contains, greater_than, less_than, greater_equal, less_equal, "
                    "starts_with, ends_with, date_after, date_before, date_equals, year_equals"
    )
    value: Any = None


class Aggregation(BaseModel):
    """Aggregate computed per group"""
    function: Literal["sum", "avg", "count", "max", "min"]
    column: str = "*"

    @property
    def output_name(self) -> str:
        return f"{self.function}_{self.column}"


class OrderBy(BaseModel):
    """Single-column ordering"""
    column: str
    direction: Literal["asc", "desc"] = "asc"


class StructuredQuery(BaseModel):
    """Backend-agnostic query for CSV and API sources"""
    select: List[str] = Field(default_factory=lambda: ["*"])
    filters: List[QueryFilter] = Field(default_factory=list)
    groupBy: Optional[List[str]] = None
    aggregations: List[Aggregation] = Field(default_factory=list)
    orderBy: Optional[OrderBy] = None
    limit: Optional[int] = None


BackendQuery = Union[StructuredQuery, str]


# ============================================================================
# Analysis
# ============================================================================

class QueryAnalysis(BaseModel):
    """Structured understanding of a natural language request"""
    intent: str
    entities: List[str] = Field(default_factory=list)
    queryType: QueryType = "metrics"
    timeframe: Optional[str] = None
    filters: Dict[str, Any] = Field(default_factory=dict)
    suggestedVisualization: ChartType = "bar"


class SQLValidationResult(BaseModel):
    """SQL safety validation result"""
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


# ============================================================================
# Chart Data
# ============================================================================

class Dataset(BaseModel):
    """One series of chart values"""
    label: str
    data: List[float] = Field(default_factory=list)
    backgroundColor: Union[str, List[str]] = ""
    borderColor: Union[str, List[str]] = ""
    borderWidth: int = 1
    fill: Optional[bool] = None
    tension: Optional[float] = None


class ChartData(BaseModel):
    """Canonical, renderer-independent chart structure"""
    type: str
    labels: List[str] = Field(default_factory=list)
    datasets: List[Dataset] = Field(default_factory=list)
    metrics: Dict[str, str] = Field(default_factory=dict)
    rawData: List[Record] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)


class ChartConfig(BaseModel):
    """Axis role bindings to column names of the transformed data"""
    xAxisDataKey: Optional[str] = None
    yAxisDataKey: Optional[str] = None
    dataKey: Optional[str] = None
    nameKey: Optional[str] = None


class Visualization(BaseModel):
    """Chart attached to a processed query"""
    type: str
    data: ChartData
    config: ChartConfig


class Insights(BaseModel):
    """Narrative content about a result"""
    summary: str
    keyInsights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


# ============================================================================
# Persistence
# ============================================================================

class PersistenceResult(BaseModel):
    """Outcome of the non-fatal persistence step"""
    status: Literal["ok", "degraded"]
    query_id: str
    visualization_id: Optional[str] = None
    reason: Optional[str] = None


# ============================================================================
# Request / Response Models
# ============================================================================

class ProcessQueryRequest(BaseModel):
    """Request to answer a natural language question"""
    userId: str
    conversationId: str
    naturalLanguageQuery: str = Field(..., min_length=1, description="User's natural language query")
    dataSourceId: Optional[str] = None


class ProcessedQuery(BaseModel):
    """Final result of the query pipeline"""
    queryId: str
    results: List[Record] = Field(default_factory=list)
    visualization: Optional[Visualization] = None
    insights: Insights
    analysis: Optional[QueryAnalysis] = None
    persistence: Optional[PersistenceResult] = None


class CreateDataSourceRequest(BaseModel):
    """Register a data source"""
    userId: str
    name: str
    type: DataSourceType
    config: Dict[str, Any] = Field(default_factory=dict)
    isActive: bool = True


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: Literal["healthy", "degraded", "unhealthy"]
    service: str
    version: str
    timestamp: str
    dependencies: Dict[str, str]
