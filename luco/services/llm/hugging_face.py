import logging
from traceback import format_exc
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from huggingface_hub import InferenceClient
from pydantic import ValidationError

from config import HF_API_KEY, HF_MODEL_ID, PAYMENT_API_BASE_URL
from luco.services.llm.common import (
    IntegrationCodeRequest,
    IntegrationCodeResponse,
    Prompt,
    RecommendationsRequest,
    RecommendationsResponse,
    build_integration_code_prompt,
    build_recommendations_prompt,
    extract_json,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class HuggingFaceAssistantService:
    """Voucher recommendations and integration snippets via Hugging Face inference."""

    MAX_TOKENS = 1024
    TEMPERATURE = 0.4

    def __init__(
        self,
        api_key: Optional[str] = HF_API_KEY,
        model_id: str = HF_MODEL_ID,
        client: Optional[InferenceClient] = None,
    ):
        if not api_key and client is None:
            raise ValueError(
                "LUCO_HF_API_KEY environment variable is not set. Please set it in your .env file."
            )

        self.model_id = model_id
        self.client = client or InferenceClient(token=api_key)

    def _convert_prompt_to_messages(self, prompt: Prompt) -> List[Dict[str, str]]:
        """Convert a Prompt object to HuggingFace message format."""
        return [
            {"role": "system", "content": prompt.system_message},
            {"role": "user", "content": prompt.user_message},
        ]

    def _complete_json(self, prompt: Prompt) -> dict:
        try:
            response = self.client.chat.completions.create(
                model=self.model_id,
                messages=self._convert_prompt_to_messages(prompt),
                max_tokens=self.MAX_TOKENS,
                temperature=self.TEMPERATURE,
            )
        except Exception as e:
            logger.error(f"Error calling HuggingFace: {str(e)}\n{format_exc()}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="The assistant is currently unavailable",
            )

        content = response.choices[0].message.content or ""
        try:
            return extract_json(content)
        except ValueError as e:
            logger.error(f"Unparseable assistant response: {str(e)}\n{content}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="The assistant returned an invalid response",
            )

    def recommend_vouchers(
        self, request: RecommendationsRequest
    ) -> RecommendationsResponse:
        data = self._complete_json(build_recommendations_prompt(request))
        try:
            return RecommendationsResponse(**data)
        except ValidationError as e:
            logger.error(f"Invalid recommendations payload: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="The assistant returned an invalid response",
            )

    def generate_integration_code(
        self, request: IntegrationCodeRequest
    ) -> IntegrationCodeResponse:
        data = self._complete_json(
            build_integration_code_prompt(request, PAYMENT_API_BASE_URL)
        )
        try:
            return IntegrationCodeResponse(**data)
        except ValidationError as e:
            logger.error(f"Invalid integration code payload: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="The assistant returned an invalid response",
            )
