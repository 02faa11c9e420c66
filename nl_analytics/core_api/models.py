"""Core API request/response models"""
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field

from ..models import ChartConfig, ChartData, QueryAnalysis


class ValidateSQLRequest(BaseModel):
    """Request to validate SQL query"""
    sql: str = Field(..., description="SQL query to validate")


class ValidateSQLResponse(BaseModel):
    """Response from SQL validation"""
    valid: bool
    errors: Optional[List[str]] = None
    warnings: Optional[List[str]] = None
    suggestions: Optional[List[str]] = None


class TransformChartRequest(BaseModel):
    """Request to shape records into chart data"""
    records: List[Dict[str, Any]] = Field(..., description="Uniform result records")
    chart_type: Optional[str] = Field(None, description="Requested chart type; detected when omitted")


class TransformChartResponse(BaseModel):
    """Chart data with its text summary"""
    chart_data: ChartData
    summary: str
    suggested_chart_type: str


class ChartConfigRequest(BaseModel):
    """Request to derive axis bindings"""
    chart_type: str = Field(..., description="bar, line, area, pie or scatter")
    records: List[Dict[str, Any]] = Field(default_factory=list)


class ChartConfigResponse(BaseModel):
    """Axis bindings with the records reshaped for the chart type"""
    config: ChartConfig
    data: List[Dict[str, Any]]


class AnalyzeRequest(BaseModel):
    """Request for keyword-based query analysis"""
    query: str = Field(..., min_length=1)


class AnalyzeResponse(BaseModel):
    """Local analysis with phrasing suggestions"""
    analysis: QueryAnalysis
    suggestions: List[str]
