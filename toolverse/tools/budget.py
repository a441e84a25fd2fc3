"""
Budget planner - structured analysis with an ordered category breakdown
"""
from loguru import logger
from pydantic import ValidationError

from toolverse.errors import EmptyGenerationResult
from toolverse.gemini import GenerationClient
from toolverse.models import BudgetPlan
from toolverse.prompts import BUDGET_PROMPT, BUDGET_SCHEMA


async def plan_budget(client: GenerationClient, financial_data: str) -> BudgetPlan:
    """
    Ask for {analysis, categories} and validate the answer.

    Raises:
        EmptyGenerationResult: no data, or data not matching the schema
    """
    stage = "Budget planning"
    data = await client.generate_structured(
        BUDGET_PROMPT.format(financial_data=financial_data), BUDGET_SCHEMA, stage=stage
    )
    if not data.get("analysis"):
        raise EmptyGenerationResult("No data returned", stage)

    try:
        plan = BudgetPlan(analysis=data["analysis"], categories=data.get("categories") or [])
    except ValidationError as e:
        logger.warning(f"Budget response failed validation: {e}")
        raise EmptyGenerationResult("The budget response did not match the expected shape.", stage) from e

    logger.info(f"Budget plan with {len(plan.categories)} categories")
    return plan
