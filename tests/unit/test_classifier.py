"""
Unit tests for the semantic classifier client.

HTTP traffic goes through httpx.MockTransport; no network access.
"""

import json

import httpx
import pytest

from shipcomply.crossborder.classifier import (
    ClassificationContext,
    DisabledClassifier,
    HttpSemanticClassifier,
    build_prompt,
    parse_labels,
)
from shipcomply.exceptions import ClassifierFailure


def model_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def classifier_for(handler, **kwargs) -> HttpSemanticClassifier:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpSemanticClassifier(base_url="https://model.test/v1beta", model="test-model", client=client, **kwargs)


class TestPrompts:
    """Tests for prompt construction"""

    def test_global_prompt(self):
        prompt = build_prompt(ClassificationContext(text="AK-47 parts"))

        assert 'Package contents: "AK-47 parts"' in prompt
        assert "international shipping" in prompt

    def test_country_prompt_uses_known_hint(self):
        prompt = build_prompt(ClassificationContext(text="wine", country_code="US", category_hints=("alcohol",)))

        assert "import into US" in prompt
        assert "agricultural products" in prompt

    def test_country_prompt_builds_hint_from_categories(self):
        context = ClassificationContext(text="wine", country_code="SA", category_hints=("alcohol", "pork"))
        prompt = build_prompt(context)

        assert "For SA, pay special attention to alcohol, pork." in prompt


class TestParseLabels:
    """Tests for reading model output"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ('["AK-47", "explosives"]', ["AK-47", "explosives"]),
            ("[]", []),
            ('Found these:\n```json\n["ammo"]\n```', ["ammo"]),
            ('["  ivory ", "", 42]', ["ivory"]),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_labels(text) == expected

    def test_unreadable_output(self):
        with pytest.raises(ClassifierFailure):
            parse_labels("Nothing dangerous here.")

    def test_deeply_nested_output(self):
        with pytest.raises(ClassifierFailure):
            parse_labels("[" * 100000 + "]" * 100000)


class TestHttpSemanticClassifier:
    """Tests for HttpSemanticClassifier"""

    def test_successful_detection(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=model_reply('["AK-47"]'))

        classifier = classifier_for(handler, api_key="secret")
        labels = classifier.detect(ClassificationContext(text="AK-47 parts"))

        assert labels == ["AK-47"]
        [request] = requests
        assert request.url.path == "/v1beta/models/test-model:generateContent"
        assert request.url.params["key"] == "secret"
        body = json.loads(request.content)
        assert "AK-47 parts" in body["contents"][0]["parts"][0]["text"]
        assert body["generationConfig"]["temperature"] == 0.2

    def test_blank_text_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert classifier_for(handler).detect(ClassificationContext(text="  ")) == []

    def test_non_200_status(self):
        classifier = classifier_for(lambda request: httpx.Response(503, text="busy"))

        with pytest.raises(ClassifierFailure, match="503"):
            classifier.detect(ClassificationContext(text="guns"))

    def test_unexpected_response_shape(self):
        classifier = classifier_for(lambda request: httpx.Response(200, json={"candidates": []}))

        with pytest.raises(ClassifierFailure, match="shape"):
            classifier.detect(ClassificationContext(text="guns"))

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ClassifierFailure, match="request failed"):
            classifier_for(handler).detect(ClassificationContext(text="guns"))

    def test_deeply_nested_reply_is_a_failure(self):
        nested = "[" * 100000 + "]" * 100000
        classifier = classifier_for(lambda request: httpx.Response(200, json=model_reply(nested)))

        with pytest.raises(ClassifierFailure):
            classifier.detect(ClassificationContext(text="firearms and explosives"))

    def test_invalid_url_is_a_failure(self):
        classifier = HttpSemanticClassifier(base_url="http://model.test:port", model="test-model")
        try:
            with pytest.raises(ClassifierFailure, match="request failed"):
                classifier.detect(ClassificationContext(text="guns"))
        finally:
            classifier.close()

    def test_classify_never_raises(self):
        classifier = classifier_for(lambda request: httpx.Response(500))
        assert classifier.classify(ClassificationContext(text="guns")) == []

    def test_classify_survives_unexpected_errors(self):
        def handler(request):
            raise RuntimeError("transport bug")

        assert classifier_for(handler).classify(ClassificationContext(text="guns")) == []

    def test_close_keeps_injected_client_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        HttpSemanticClassifier(client=client).close()

        assert not client.is_closed


class TestDisabledClassifier:
    """Tests for DisabledClassifier"""

    def test_detect_fails_fast(self):
        with pytest.raises(ClassifierFailure):
            DisabledClassifier().detect(ClassificationContext(text="guns"))

    def test_classify_returns_empty(self):
        assert DisabledClassifier().classify(ClassificationContext(text="guns")) == []
