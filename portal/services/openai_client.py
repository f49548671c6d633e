# portal/services/openai_client.py
import json
import logging
import re
import secrets
import time
from typing import Any, Dict, List, Optional, Tuple

from openai import OpenAI

from portal.models import (
    TYPE_OTHER,
    TYPE_OTP,
    TYPE_PASSPORT,
    TYPE_VISA,
    normalize_type,
    today_iso,
)

log = logging.getLogger(__name__)

DEFAULT_MODEL = "openrouter/claude-sonnet-4"

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_FENCED_RE = re.compile(r"```\s*([\s\S]*?)\s*```")


def _extraction_system(today: str) -> str:
    return f"""You are a document processing AI for an investor portal. Extract relevant information from documents and return ONLY valid JSON format.

For Passport documents, return:
{{"type": "Passport", "documentId": "generated-unique-id", "passportNumber": "passport number from document", "fullName": "full name from passport", "expiryDate": "YYYY-MM-DD", "dateUploaded": "{today}"}}

For OTP documents, return:
{{"type": "OTP", "documentId": "generated-unique-id", "investorName": "investor name from document", "unitDetails": "unit description and details", "unitNumber": "unit number", "sqft": "area in square feet", "amount": 250000, "developer": "developer/project name", "dateUploaded": "{today}"}}

For Visa/EID documents, return:
{{"type": "Visa", "documentId": "generated-unique-id", "idNumber": "ID/visa number", "fullName": "full name from document", "expiryDate": "YYYY-MM-DD", "dateUploaded": "{today}"}}

For Other documents, return:
{{"type": "Other", "documentId": "generated-unique-id", "dateUploaded": "{today}"}}

Return ONLY the JSON object, no other text or formatting."""


_ASSISTANT_SYSTEM = (
    "You are an AI assistant for an investor portal focused on Dubai real estate investments. "
    "Prioritise Dubai property market trends, investment areas, legal requirements, visa and residency "
    "through property investment, developers and projects, rental yields and ROI, off-plan vs ready "
    "properties and RERA regulations. You can also help with general financial planning, portfolio "
    "diversification, economic trends and tax considerations for investors. The user is inside their "
    "investor portal managing Dubai properties, documents and payment schedules. Give practical, "
    "actionable, conversational answers and connect general questions back to their investment goals "
    "when relevant."
)


def parse_json_content(content: str) -> Dict[str, Any]:
    """Parse model output as JSON, unwrapping a ``` fenced block if present."""
    text = content or ""
    if "```json" in text:
        m = _FENCED_JSON_RE.search(text)
        if m:
            text = m.group(1)
    elif "```" in text:
        m = _FENCED_RE.search(text)
        if m:
            text = m.group(1)
    data = json.loads(text.strip())
    if not isinstance(data, dict):
        raise ValueError("AI returned JSON that is not an object")
    return data


def fallback_extraction(document_type: Optional[str]) -> Dict[str, Any]:
    """Deterministic "manual review" payload per type; OTP carries amount 0."""
    doc_id = str(int(time.time() * 1000))
    today = today_iso()
    canonical = normalize_type(document_type)
    if canonical == TYPE_PASSPORT:
        return {
            "type": TYPE_PASSPORT,
            "documentId": doc_id,
            "passportNumber": f"AI_FAILED_{secrets.token_hex(3)}",
            "fullName": "AI Processing Failed - Manual Review Required",
            "expiryDate": "2030-01-01",
            "dateUploaded": today,
        }
    if canonical == TYPE_OTP:
        return {
            "type": TYPE_OTP,
            "documentId": doc_id,
            "investorName": "AI Processing Failed - Manual Review Required",
            "unitDetails": "Manual review required",
            "sqft": "0",
            "amount": 0,
            "developer": "Manual review required",
            "dateUploaded": today,
        }
    if canonical == TYPE_VISA:
        return {
            "type": TYPE_VISA,
            "documentId": doc_id,
            "idNumber": f"AI_FAILED_{secrets.token_hex(3)}",
            "fullName": "AI Processing Failed - Manual Review Required",
            "expiryDate": "2025-01-01",
            "dateUploaded": today,
        }
    return {"type": TYPE_OTHER, "documentId": doc_id, "dateUploaded": today}


def is_fallback_extraction(data: Optional[Dict[str, Any]]) -> bool:
    if not data:
        return False
    markers = (str(data.get("fullName", "")), str(data.get("investorName", "")), str(data.get("unitDetails", "")))
    return any("Manual review required" in m or "Manual Review Required" in m for m in markers)


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        customer_id: Optional[str] = None,
        timeout: float = 30.0,
        client: Any = None,
    ):
        headers = {"customerId": customer_id} if customer_id else None
        self.client = client or OpenAI(
            api_key=api_key or "xxx",
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            default_headers=headers,
        )
        self.model = model or DEFAULT_MODEL

    def init_app(self, app) -> None:
        cfg = app.config
        self.model = cfg.get("AI_MODEL") or DEFAULT_MODEL
        self.client = cfg.get("LLM_CLIENT") or OpenAI(
            api_key=cfg.get("AI_API_KEY") or "xxx",
            base_url=cfg.get("AI_API_BASE_URL"),
            timeout=float(cfg.get("AI_TIMEOUT_SECONDS", 30)),
            max_retries=0,
            default_headers={"customerId": cfg["AI_CUSTOMER_ID"]} if cfg.get("AI_CUSTOMER_ID") else None,
        )
        app.extensions["llm"] = self

    # ----- Chat -----
    def chat(self, messages: List[Dict[str, Any]], temperature: Optional[float] = None, model: Optional[str] = None) -> str:
        kwargs: Dict[str, Any] = {"model": model or self.model, "messages": messages}
        if temperature is not None:
            kwargs["temperature"] = temperature
        resp = self.client.chat.completions.create(**kwargs)
        if not getattr(resp, "choices", None):
            raise ValueError("AI response missing choices")
        return resp.choices[0].message.content or ""

    def assistant_reply(self, message: str, context: Optional[str] = None) -> str:
        system = _ASSISTANT_SYSTEM + (f" Portfolio context: {context}" if context else "")
        return self.chat(
            messages=[{"role": "system", "content": system}, {"role": "user", "content": message}],
            temperature=0.4,
        )

    # ----- Document extraction -----
    def extract_document(self, file_data: str, document_type: Optional[str], file_name: str) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Returns (extracted, error). On any failure ``extracted`` is the
        per-type fallback and ``error`` says why.
        """
        messages = [
            {"role": "system", "content": _extraction_system(today_iso())},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": f"Extract information from this {document_type} document. Return only JSON."},
                    {"type": "file", "file": {"filename": file_name, "file_data": file_data}},
                ],
            },
        ]
        try:
            content = self.chat(messages)
            data = parse_json_content(content)
            log.info("Extracted %s fields from %s", data.get("type"), file_name)
            return data, None
        except Exception as e:
            log.error("AI processing failed for %s: %s", file_name, e)
            return fallback_extraction(document_type), str(e)
