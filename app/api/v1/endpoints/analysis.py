"""
Code Analysis Endpoint

Proxies code blocks to the AI provider so the key never reaches the browser.
"""

from fastapi import APIRouter, Depends

from app.api.deps import AuthenticatedUser, get_current_user
from app.schemas.chat import AnalyzeRequest, AnalyzeResponse, ApiResponse
from app.services.code_analyzer import CodeAnalyzer, get_code_analyzer

router = APIRouter()


@router.post("", response_model=ApiResponse[AnalyzeResponse], response_model_exclude_none=True)
async def analyze_code(
    request: AnalyzeRequest,
    analyzer: CodeAnalyzer = Depends(get_code_analyzer),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Explain a snippet and predict its output.

    Provider failures do not fail the request: the degraded analysis text is
    returned with ``success: true``.
    """
    analysis = await analyzer.analyze(request.code, request.language)
    return ApiResponse(
        success=True,
        data=AnalyzeResponse(output=analysis.output, explanation=analysis.explanation),
    )
