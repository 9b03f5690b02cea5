"""Tests for the AI code analysis service."""

import httpx
import pytest

from app.services.code_analyzer import (
    AUTH_ERROR_ANALYSIS,
    EMPTY_CODE_ANALYSIS,
    ENDPOINT_MISSING_ANALYSIS,
    NETWORK_ERROR_ANALYSIS,
    UNEXPECTED_FORMAT_EXPLANATION,
    CodeAnalyzer,
    build_prompt,
    parse_analysis,
)

API_URL = "https://ai.example.test/v1/models/test:generateContent"


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_analyzer(handler, api_key="test-key"):
    requests = []

    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    analyzer = CodeAnalyzer(
        api_key=api_key,
        api_url=API_URL,
        transport=httpx.MockTransport(recording),
    )
    return analyzer, requests


class TestParseAnalysis:

    def test_both_sections(self):
        analysis = parse_analysis("OUTPUT:\nHello, AI!\n\nEXPLANATION:\nLogs a greeting.")
        assert analysis.output == "Hello, AI!"
        assert analysis.explanation == "Logs a greeting."

    def test_labels_are_case_insensitive(self):
        analysis = parse_analysis("output: 3\nexplanation: adds numbers")
        assert analysis.output == "3"
        assert analysis.explanation == "adds numbers"

    def test_unlabelled_text_falls_back(self):
        text = "x" * 300
        analysis = parse_analysis(text)
        assert analysis.output == "x" * 200 + "..."
        assert analysis.explanation == UNEXPECTED_FORMAT_EXPLANATION

    def test_prompt_mentions_language_and_code(self):
        prompt = build_prompt("print(1)", "python")
        assert "python" in prompt
        assert "print(1)" in prompt
        assert "OUTPUT:" in prompt and "EXPLANATION:" in prompt


class TestCodeAnalyzer:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "   \n\t"])
    async def test_blank_code_makes_no_request(self, code):
        analyzer, requests = make_analyzer(lambda r: httpx.Response(200, json=gemini_reply("")))
        assert await analyzer.analyze(code, "python") == EMPTY_CODE_ANALYSIS
        assert requests == []

    @pytest.mark.asyncio
    async def test_successful_analysis(self):
        analyzer, requests = make_analyzer(
            lambda r: httpx.Response(200, json=gemini_reply("OUTPUT: 2\nEXPLANATION: sums"))
        )

        analysis = await analyzer.analyze("print(1 + 1)", "python")

        assert (analysis.output, analysis.explanation) == ("2", "sums")
        [request] = requests
        assert request.url.params["key"] == "test-key"
        body = request.read().decode()
        assert '"temperature":0.3' in body.replace(" ", "")
        assert "print(1 + 1)" in body

    @pytest.mark.asyncio
    async def test_missing_key_skips_request(self):
        analyzer, requests = make_analyzer(lambda r: httpx.Response(200), api_key="")
        assert await analyzer.analyze("x = 1", "python") == AUTH_ERROR_ANALYSIS
        assert requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code, expected", [
        (404, ENDPOINT_MISSING_ANALYSIS),
        (401, AUTH_ERROR_ANALYSIS),
        (403, AUTH_ERROR_ANALYSIS),
    ])
    async def test_known_http_errors(self, status_code, expected):
        analyzer, _ = make_analyzer(lambda r: httpx.Response(status_code))
        assert await analyzer.analyze("x = 1", "python") == expected

    @pytest.mark.asyncio
    async def test_other_http_error(self):
        analyzer, _ = make_analyzer(lambda r: httpx.Response(500))
        analysis = await analyzer.analyze("x = 1", "python")
        assert analysis.output == "Error: Unable to analyze code."
        assert analysis.explanation.startswith("Analysis failed: ")
        assert "500" in analysis.explanation

    @pytest.mark.asyncio
    async def test_network_error(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        analyzer, _ = make_analyzer(unreachable)
        assert await analyzer.analyze("x = 1", "python") == NETWORK_ERROR_ANALYSIS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"candidates": []},
        {"candidates": ["oops"]},
        {"candidates": [{"content": {"parts": []}}]},
        gemini_reply(""),
    ])
    async def test_unusable_reply_degrades(self, payload):
        analyzer, _ = make_analyzer(lambda r: httpx.Response(200, json=payload))
        analysis = await analyzer.analyze("x = 1", "python")
        assert analysis.output == "Error: Unable to analyze code."
