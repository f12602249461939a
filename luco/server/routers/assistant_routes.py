import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from luco.server.dependencies import get_assistant_service
from luco.services.llm.common import (
    IntegrationCodeRequest,
    IntegrationCodeResponse,
    RecommendationsRequest,
    RecommendationsResponse,
)
from luco.services.llm.hugging_face import HuggingFaceAssistantService

# Create a router for the LLM assistant
assistant_router = APIRouter()

Assistant = Annotated[HuggingFaceAssistantService, Depends(get_assistant_service)]


@assistant_router.post("/recommendations", response_model=RecommendationsResponse)
async def recommend_vouchers(request: RecommendationsRequest, assistant: Assistant):
    return await asyncio.to_thread(assistant.recommend_vouchers, request)


@assistant_router.post("/integration-code", response_model=IntegrationCodeResponse)
async def generate_integration_code(
    request: IntegrationCodeRequest, assistant: Assistant
):
    """Generate a client snippet for the payment API on the requested platform."""
    return await asyncio.to_thread(assistant.generate_integration_code, request)
