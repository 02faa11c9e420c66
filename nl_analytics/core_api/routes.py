"""Core API routes - stateless pipeline building blocks"""
import logging
from fastapi import APIRouter, HTTPException

from .models import (
    ValidateSQLRequest, ValidateSQLResponse,
    TransformChartRequest, TransformChartResponse,
    ChartConfigRequest, ChartConfigResponse,
    AnalyzeRequest, AnalyzeResponse
)
from ..charts.config_generator import generate_chart_config, prepare_visualization_data, summarize_chart
from ..charts.transformer import suggest_chart_type, transform
from ..errors import TransformationError
from ..query.fallback import analyze_locally, suggest_improvements
from ..utils.validators import validate_sql_syntax

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/core/v1", tags=["Core API"])


@router.post("/validate-sql", response_model=ValidateSQLResponse)
async def validate_sql_endpoint(request: ValidateSQLRequest):
    """
    Check SQL against the read-only safety rules.

    Args:
        request: SQL validation request

    Returns:
        Validation result with errors, warnings, and suggestions
    """
    validation_result = validate_sql_syntax(request.sql)

    return ValidateSQLResponse(
        valid=validation_result.is_valid,
        errors=validation_result.errors if validation_result.errors else None,
        warnings=validation_result.warnings if validation_result.warnings else None,
        suggestions=validation_result.suggestions if validation_result.suggestions else None
    )


@router.post("/transform-chart", response_model=TransformChartResponse)
async def transform_chart_endpoint(request: TransformChartRequest):
    """
    Shape records into chart data.

    Args:
        request: Records and optional chart type

    Returns:
        Chart data, summary and the suggested chart type
    """
    try:
        chart_data = transform(request.records, request.chart_type)
    except TransformationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TransformChartResponse(
        chart_data=chart_data,
        summary=summarize_chart(chart_data),
        suggested_chart_type=suggest_chart_type(request.records)
    )


@router.post("/chart-config", response_model=ChartConfigResponse)
async def chart_config_endpoint(request: ChartConfigRequest):
    """Derive axis bindings for a chart type"""
    data = prepare_visualization_data(request.chart_type, request.records)
    return ChartConfigResponse(
        config=generate_chart_config(request.chart_type, data),
        data=data
    )


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_endpoint(request: AnalyzeRequest):
    """Keyword-based analysis of a query, without the AI collaborator"""
    return AnalyzeResponse(
        analysis=analyze_locally(request.query),
        suggestions=suggest_improvements(request.query)
    )
