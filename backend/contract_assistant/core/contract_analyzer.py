"""
Contract analysis pipeline

Chunks the contract, runs several independent analysis passes over the
chunks, and reduces the passes into one result by median score and
majority vote on the extracted lists.
"""

import asyncio
import json
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import aiofiles

from contract_assistant.core.chunker import chunk_text, select_processable_chunks
from contract_assistant.core.consensus import (
    adjust_score, consensus_items, median_score, pick_representative
)
from contract_assistant.core.date_extractor import extract_important_dates, merge_dates
from contract_assistant.core.exceptions import LLMError
from contract_assistant.core.llm_client import call_openai_api
from contract_assistant.core.model_config import ANALYSIS_CONFIG, RATE_LIMIT_CONFIG, SERVER_CONFIG
from contract_assistant.core.prompts import get_chunk_analysis_prompts, get_synthesis_prompts
from contract_assistant.core.response_parser import (
    TIMEOUT_PLACEHOLDER, ChunkAnalysis, ParsedAnalysis, parse_chunk_analysis, parse_synthesis
)
from contract_assistant.core.risk_scorer import compute_composite_score, score_categories
from contract_assistant.schemas import ContractAnalysis
from contract_assistant.utils.logger import logger


@dataclass
class AnalysisPass:
    """One independent read of the contract"""
    pass_number: int
    parsed: ParsedAnalysis
    chunk_results: List[ChunkAnalysis] = field(default_factory=list)
    partial: bool = False


class ContractAnalyzer:
    """
    Runs the multi-pass analysis of a contract
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = {**ANALYSIS_CONFIG, **(config or {})}

    async def analyze(self, contract_content: str) -> ContractAnalysis:
        if not contract_content or not contract_content.strip():
            raise ValueError("Contract content is required")

        chunks = chunk_text(contract_content, self.config["max_chunk_size"])
        processable = select_processable_chunks(chunks, self.config["max_full_chunks"])
        skipped_chunks = len(processable) < len(chunks)

        num_analyses = max(1, int(self.config["num_analyses"]))
        logger.info(f"Analyzing contract: {len(contract_content)} chars, {len(chunks)} chunks, "
                    f"{len(processable)} processed, {num_analyses} passes")

        semaphore = asyncio.Semaphore(RATE_LIMIT_CONFIG["max_concurrent_requests"])
        results = await asyncio.gather(
            *(self._run_pass(pass_number, processable, semaphore) for pass_number in range(num_analyses)),
            return_exceptions=True
        )

        passes = []
        for pass_number, result in enumerate(results):
            if isinstance(result, AnalysisPass):
                passes.append(result)
            else:
                logger.error(f"Analysis pass {pass_number + 1} failed: {str(result)}")

        if not passes:
            raise LLMError("All analysis passes failed")

        analysis = self._reduce(passes, contract_content)
        analysis.is_partial_analysis = (
            skipped_chunks or any(p.partial for p in passes) or len(passes) < num_analyses
        )
        logger.info(f"Analysis {analysis.analysis_id} complete: risk score {analysis.risk_score}, "
                    f"{len(passes)}/{num_analyses} passes, partial={analysis.is_partial_analysis}")
        return analysis

    async def _analyze_chunk(self, chunk: str, index: int, total: int, pass_number: int,
                             semaphore: asyncio.Semaphore) -> Tuple[str, bool]:
        """Returns (analysis text, failed)"""
        system_prompt, user_prompt = get_chunk_analysis_prompts(chunk, index, total, pass_number)

        async with semaphore:
            try:
                response = await asyncio.wait_for(
                    call_openai_api(system_prompt, user_prompt, purpose="analysis"),
                    timeout=self.config["analysis_timeout"]
                )
            except asyncio.TimeoutError:
                logger.warning(f"Pass {pass_number + 1}: chunk {index + 1}/{total} timed out")
                return TIMEOUT_PLACEHOLDER, True
            except Exception as e:
                logger.warning(f"Pass {pass_number + 1}: chunk {index + 1}/{total} failed: {str(e)}")
                return TIMEOUT_PLACEHOLDER, True

        if not response:
            return TIMEOUT_PLACEHOLDER, True
        return response, False

    async def _run_pass(self, pass_number: int, chunks: List[str],
                        semaphore: asyncio.Semaphore) -> AnalysisPass:
        chunk_outputs = await asyncio.gather(*(
            self._analyze_chunk(chunk, index, len(chunks), pass_number, semaphore)
            for index, chunk in enumerate(chunks)
        ))

        texts = [text for text, _ in chunk_outputs]
        partial = any(failed for _, failed in chunk_outputs)
        if all(failed for _, failed in chunk_outputs):
            raise LLMError(f"Every chunk analysis failed in pass {pass_number + 1}")

        system_prompt, user_prompt = get_synthesis_prompts(texts, pass_number)
        async with semaphore:
            try:
                synthesis = await asyncio.wait_for(
                    call_openai_api(system_prompt, user_prompt, purpose="synthesis"),
                    timeout=self.config["analysis_timeout"]
                )
            except asyncio.TimeoutError:
                raise LLMError(f"Synthesis timed out in pass {pass_number + 1}")

        if not synthesis:
            raise LLMError(f"Synthesis returned no answer in pass {pass_number + 1}")

        chunk_results = [parse_chunk_analysis(text) for text in texts]
        parsed = parse_synthesis(synthesis, default_score=None)

        if parsed.risk_score is None:
            # Fall back to the average of the section-level risk levels
            chunk_scores = [c.risk_score for c in chunk_results if c.risk_score is not None]
            if chunk_scores:
                parsed.risk_score = round(sum(chunk_scores) / len(chunk_scores))

        return AnalysisPass(pass_number=pass_number, parsed=parsed,
                            chunk_results=chunk_results, partial=partial)

    def _reduce(self, passes: List[AnalysisPass], contract_content: str) -> ContractAnalysis:
        category_scores = score_categories(contract_content)
        heuristic = compute_composite_score(category_scores)

        median = median_score([p.parsed.risk_score for p in passes])
        if median is None:
            median = self.config["default_risk_score"]
        risk_score = adjust_score(
            median, heuristic, self.config["consensus_tolerance"], self.config["heuristic_weight"]
        )
        logger.info(f"Risk score: median {median}, heuristic {heuristic}, final {risk_score}")

        representative = pick_representative(passes, risk_score)

        def pass_items(analysis_pass: AnalysisPass, attribute: str, chunk_attribute: Optional[str]) -> List[str]:
            items = getattr(analysis_pass.parsed, attribute)
            if not items and chunk_attribute:
                items = [item for chunk in analysis_pass.chunk_results for item in getattr(chunk, chunk_attribute)]
            return items

        key_terms = consensus_items(
            [pass_items(p, "key_terms", "key_points") for p in passes], self.config["max_key_terms"]
        )
        issues = consensus_items(
            [pass_items(p, "issues", "issues") for p in passes], self.config["max_issues"]
        )
        recommendations = consensus_items(
            [pass_items(p, "recommendations", None) for p in passes], self.config["max_recommendations"]
        )

        limit = self.config["max_important_dates"]
        important_dates = extract_important_dates(contract_content, limit)
        reported_dates_text = "\n".join(
            chunk.dates_text for p in passes for chunk in p.chunk_results if chunk.dates_text
        )
        if reported_dates_text:
            important_dates = merge_dates(important_dates, extract_important_dates(reported_dates_text, limit), limit)

        return ContractAnalysis(
            summary=representative.parsed.summary,
            risk_score=risk_score,
            risk_explanation=representative.parsed.risk_explanation,
            key_terms=key_terms,
            potential_issues=issues,
            recommendations=recommendations,
            important_dates=important_dates,
            category_scores=category_scores,
            analysis_id=str(uuid.uuid4()),
            pass_count=len(passes)
        )


def fallback_analysis(error: str) -> ContractAnalysis:
    """Canned answer returned when the analysis could not be completed"""
    return ContractAnalysis(
        summary="Analysis partially completed due to timeout",
        risk_score=ANALYSIS_CONFIG["default_risk_score"],
        key_terms=["Analysis interrupted - Please try with a shorter contract"],
        potential_issues=["Unable to complete full analysis"],
        recommendations=["Consider breaking down the contract into smaller sections"],
        is_partial_analysis=True,
        error=error
    )


def _analyses_dir() -> str:
    return os.path.join(SERVER_CONFIG["storage_dir"], "analyses")


async def save_analysis(analysis: ContractAnalysis) -> Optional[str]:
    """Persist an analysis as JSON, returns the file path"""
    if not analysis.analysis_id:
        return None

    analyses_dir = _analyses_dir()
    os.makedirs(analyses_dir, exist_ok=True)

    file_path = os.path.join(analyses_dir, f"{analysis.analysis_id}.json")
    async with aiofiles.open(file_path, 'w') as f:
        await f.write(json.dumps(analysis.model_dump(mode="json", by_alias=True), indent=2))

    logger.info(f"Saved analysis {analysis.analysis_id} to {file_path}")
    return file_path


async def load_analysis(analysis_id: str) -> Optional[ContractAnalysis]:
    try:
        uuid.UUID(analysis_id)
    except ValueError:
        return None

    file_path = os.path.join(_analyses_dir(), f"{analysis_id}.json")
    if not os.path.exists(file_path):
        return None

    async with aiofiles.open(file_path, 'r') as f:
        content = await f.read()
    return ContractAnalysis.model_validate(json.loads(content))
