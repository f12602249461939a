import json
import re
from typing import List, Optional

from pydantic import BaseModel, Field

from luco.models.shared import VoucherCategory


class RecommendationsRequest(BaseModel):
    purchase_history: str = Field(..., min_length=1)
    voucher_categories: Optional[List[str]] = None


class RecommendationsResponse(BaseModel):
    recommended_vouchers: List[str]


class IntegrationCodeRequest(BaseModel):
    platform: str = Field(..., min_length=1, description="e.g. JavaScript, Python")
    description: str = Field(..., min_length=1)


class IntegrationCodeResponse(BaseModel):
    code_snippet: str
    explanation: str


class Prompt(BaseModel):
    system_message: str
    user_message: str


PAYMENT_API_REFERENCE = """**1. Identity Verification**
- Endpoint: `{base_url}/identity/msisdn` (POST)
- Headers: `Content-Type: application/json`, `accept: application/json`
- Body: `{{"msisdn": "+256708215305"}}` (international format with a '+')
- Success response: `{{"identityname": "...", "message": "...", "success": true}}`

**2. Request Payment**
- Endpoint: `{base_url}/api/v1/request_payment` (POST)
- Headers: `Content-Type: application/json`, `accept: application/json`
- Body: `{{"amount": "100", "number": "256708215305", "refer": "YOUR_UNIQUE_REFERENCE"}}` (number without '+')
- Success response: `{{"success": true, "message": "Payment initiated"}}`; keep the reference to query the status

**3. Check Payment Status**
- Endpoint: `{base_url}/api/v1/payment_webhook` (POST)
- Headers: `Content-Type: application/json`, `accept: application/json`
- Body: `{{"reference": "YOUR_UNIQUE_REFERENCE"}}`
- Success response: a JSON object with a `status` field ('succeeded', 'failed', 'pending')"""


def build_recommendations_prompt(request: RecommendationsRequest) -> Prompt:
    categories = request.voucher_categories or [c.value for c in VoucherCategory]
    return Prompt(
        system_message=(
            "You are an expert marketing assistant that recommends discount "
            "vouchers to customers. Reply with JSON only, in the form "
            '{"recommended_vouchers": ["<voucher id>", ...]}. '
            "Do not explain your reasoning."
        ),
        user_message=(
            "Based on the user's purchase history, determine which vouchers from "
            "the available categories would be most relevant to the user.\n\n"
            f"Purchase History: {request.purchase_history}\n"
            f"Voucher Categories: {', '.join(categories)}"
        ),
    )


def build_integration_code_prompt(
    request: IntegrationCodeRequest, base_url: str
) -> Prompt:
    return Prompt(
        system_message=(
            "You are an expert AI assistant that generates integration code for a "
            "mobile money payment platform. Here are the available API endpoints:\n\n"
            + PAYMENT_API_REFERENCE.format(base_url=base_url)
            + "\n\nReply with JSON only, in the form "
            '{"code_snippet": "...", "explanation": "..."}.'
        ),
        user_message=(
            f"Platform: {request.platform}\nDescription: {request.description}"
        ),
    )


def extract_json(text: str) -> dict:
    """Parse a JSON object from a model reply, tolerating markdown code fences."""
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1)

    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("No JSON object found in model response")
    return json.loads(text[start : end + 1])
