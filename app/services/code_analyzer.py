"""
Code Analysis Service.

Sends a code snippet to a Gemini-style ``generateContent`` endpoint and splits
the answer into the expected output and an explanation.

Analysis is an optional enhancement of code blocks, so ``analyze`` never
raises: every failure comes back as a degraded ``CodeAnalysis`` whose text
says what went wrong (network, missing endpoint, bad credentials, other).
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings as app_settings

logger = logging.getLogger(__name__)


class CodeAnalyzerError(Exception):
    """Raised internally when the provider answers with something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class CodeAnalysis:
    output: str
    explanation: str


EMPTY_CODE_ANALYSIS = CodeAnalysis(
    output="No code provided",
    explanation="Please enter some code to analyze.",
)
NETWORK_ERROR_ANALYSIS = CodeAnalysis(
    output="Network Error: Unable to connect to AI service.",
    explanation="Please check your internet connection and try again.",
)
ENDPOINT_MISSING_ANALYSIS = CodeAnalysis(
    output="API Error: Service endpoint not found.",
    explanation="The AI analysis service is currently unavailable. Please try again later.",
)
AUTH_ERROR_ANALYSIS = CodeAnalysis(
    output="Authentication Error: Invalid API key.",
    explanation="The API key configuration needs to be updated.",
)
UNEXPECTED_FORMAT_EXPLANATION = "AI provided analysis but in unexpected format."
RAW_OUTPUT_PREVIEW_CHARS = 200

_OUTPUT_RE = re.compile(r"OUTPUT:\s*(.*?)(?=EXPLANATION:|\Z)", re.IGNORECASE | re.DOTALL)
_EXPLANATION_RE = re.compile(r"EXPLANATION:\s*(.*)\Z", re.IGNORECASE | re.DOTALL)

GENERATION_CONFIG = {
    "temperature": 0.3,
    "topK": 32,
    "topP": 1,
    "maxOutputTokens": 1024,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


def build_prompt(code: str, language: str) -> str:
    return f"""
Analyze this {language} code and provide:

1. EXPECTED OUTPUT: What this code would output when executed (if it's executable code). If it's not executable (like HTML/CSS), describe what it would create or display. If there are errors, mention them.

2. EXPLANATION: A brief, clear explanation of how the code works, what each main part does, and any important concepts used.

Please format your response as:
OUTPUT:
[the expected output or result description]

EXPLANATION:
[clear explanation of how the code works]

Here's the code:
```{language}
{code}
```
"""


def parse_analysis(text: str) -> CodeAnalysis:
    """Best-effort split of the model's prose into output and explanation."""
    output_match = _OUTPUT_RE.search(text)
    explanation_match = _EXPLANATION_RE.search(text)

    return CodeAnalysis(
        output=(
            output_match.group(1).strip()
            if output_match
            else text[:RAW_OUTPUT_PREVIEW_CHARS] + "..."
        ),
        explanation=(
            explanation_match.group(1).strip()
            if explanation_match
            else UNEXPECTED_FORMAT_EXPLANATION
        ),
    )


class CodeAnalyzer:
    """Client for the text-generation endpoint used by code blocks."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = app_settings.GEMINI_API_KEY if api_key is None else api_key
        self.api_url = api_url or app_settings.GEMINI_API_URL
        self.timeout = timeout or app_settings.AI_REQUEST_TIMEOUT
        self._transport = transport

    async def analyze(self, code: str, language: str) -> CodeAnalysis:
        """
        Analyze a snippet.

        Args:
            code: Source text of the code block
            language: Language name used in the prompt (e.g. "python")

        Returns:
            CodeAnalysis; degraded but valid on any failure
        """
        if not code.strip():
            return EMPTY_CODE_ANALYSIS

        if not self.api_key:
            logger.warning("No Gemini API key configured, skipping code analysis")
            return AUTH_ERROR_ANALYSIS

        try:
            text = await self._generate(build_prompt(code, language))
        except httpx.RequestError as e:
            logger.error(f"Code analysis request failed: {e!r}")
            return NETWORK_ERROR_ANALYSIS
        except CodeAnalyzerError as e:
            logger.error(f"Code analysis failed: {e}")
            if e.status_code == 404:
                return ENDPOINT_MISSING_ANALYSIS
            if e.status_code in (401, 403):
                return AUTH_ERROR_ANALYSIS
            return CodeAnalysis(
                output="Error: Unable to analyze code.",
                explanation=f"Analysis failed: {e}",
            )

        return parse_analysis(text)

    async def _generate(self, prompt: str) -> str:
        """Call the generateContent endpoint and return the first candidate's text."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.api_url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": GENERATION_CONFIG,
                    "safetySettings": SAFETY_SETTINGS,
                },
            )

        if response.status_code != 200:
            raise CodeAnalyzerError(
                f"API request failed: {response.status_code} - {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data: Dict[str, Any] = response.json()
        except ValueError:
            raise CodeAnalyzerError("Invalid JSON from AI service")

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates or not isinstance(candidates[0], dict):
            raise CodeAnalyzerError("No response from AI service")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = parts[0].get("text", "") if parts and isinstance(parts[0], dict) else ""
        if not text:
            raise CodeAnalyzerError("Empty response from AI service")

        return text


def get_code_analyzer() -> CodeAnalyzer:
    """FastAPI dependency; overridden in tests."""
    return CodeAnalyzer()
