from fastapi import APIRouter, Depends, HTTPException

from contract_assistant.core.contract_analyzer import (
    ContractAnalyzer, fallback_analysis, load_analysis, save_analysis
)
from contract_assistant.schemas import AnalyzeContractRequest, ContractAnalysis
from contract_assistant.utils.logger import logger

router = APIRouter()


def get_contract_analyzer() -> ContractAnalyzer:
    return ContractAnalyzer()


@router.post("/analyze-contract", response_model=ContractAnalysis)
async def analyze_contract(request: AnalyzeContractRequest,
                           analyzer: ContractAnalyzer = Depends(get_contract_analyzer)):
    """
    Analyze contract text. Failures still answer 200 with a partial fallback result.
    """
    try:
        analysis = await analyzer.analyze(request.contract_content or "")
    except Exception as e:
        logger.error(f"Analysis error: {str(e)}", exc_info=True)
        return fallback_analysis(str(e))

    try:
        await save_analysis(analysis)
    except OSError as e:
        logger.warning(f"Could not store analysis {analysis.analysis_id}: {str(e)}")

    return analysis


@router.get("/analysis/{analysis_id}", response_model=ContractAnalysis)
async def get_analysis(analysis_id: str):
    """
    Retrieve a stored analysis
    """
    analysis = await load_analysis(analysis_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail={"error": "Analysis not found"})
    return analysis
