import httpx
import pytest
import respx

from econtract_app.integrations.ocr import (
    READ_PATH,
    AzureReadClient,
    OCRError,
    OCRTimeout,
    UnconfiguredOCRClient,
    parse_read_result,
)

ENDPOINT = "https://vision.example.com"
OPERATION = f"{ENDPOINT}/vision/v3.2/read/analyzeResults/op-1"

RESULT = {
    "status": "succeeded",
    "analyzeResult": {
        "language": "ja",
        "readResults": [
            {
                "lines": [
                    {
                        "text": "業務委託契約書",
                        "boundingBox": [0, 0, 10, 0, 10, 5, 0, 5],
                        "words": [{"text": "業務委託契約書", "confidence": 0.98}],
                    },
                    {
                        "text": "甲：株式会社サンプル",
                        "words": [{"text": "甲：", "confidence": 0.9}, {"text": "株式会社サンプル"}],
                    },
                ]
            }
        ],
    },
}


def _client(**kw):
    kw.setdefault("sleep", lambda s: None)
    return AzureReadClient(ENDPOINT, "key", **kw)


@respx.mock
def test_submit_then_poll_until_succeeded():
    submit = respx.post(f"{ENDPOINT}{READ_PATH}").respond(202, headers={"Operation-Location": OPERATION})
    poll = respx.get(OPERATION).mock(
        side_effect=[
            httpx.Response(200, json={"status": "running"}),
            httpx.Response(200, json=RESULT),
        ]
    )
    result = _client().read_image(b"\x89PNG...")
    assert submit.called and poll.call_count == 2
    assert submit.calls[0].request.headers["Ocp-Apim-Subscription-Key"] == "key"
    assert submit.calls[0].request.headers["Content-Type"] == "application/octet-stream"
    assert result.text == "業務委託契約書\n甲：株式会社サンプル"
    assert len(result.lines) == 2
    assert result.lines[0].bounding_box[2] == 10
    assert result.confidence == pytest.approx((0.98 + 0.9 + 0.9) / 3)


@respx.mock
def test_result_is_cached_by_image_digest():
    submit = respx.post(f"{ENDPOINT}{READ_PATH}").respond(202, headers={"Operation-Location": OPERATION})
    respx.get(OPERATION).respond(json=RESULT)
    client = _client()
    first = client.read_image(b"same")
    second = client.read_image(b"same")
    assert first is second
    assert submit.call_count == 1


@respx.mock
def test_missing_operation_location():
    respx.post(f"{ENDPOINT}{READ_PATH}").respond(202)
    with pytest.raises(OCRError):
        _client().read_image(b"x")


@respx.mock
def test_failed_operation():
    respx.post(f"{ENDPOINT}{READ_PATH}").respond(202, headers={"Operation-Location": OPERATION})
    respx.get(OPERATION).respond(json={"status": "failed"})
    with pytest.raises(OCRError):
        _client().read_image(b"x")


@respx.mock
@pytest.mark.parametrize("body", [b"<html>busy</html>", b"[1, 2]"])
def test_malformed_poll_body(body):
    respx.post(f"{ENDPOINT}{READ_PATH}").respond(202, headers={"Operation-Location": OPERATION})
    respx.get(OPERATION).respond(200, content=body)
    with pytest.raises(OCRError):
        _client().read_image(b"x")


@respx.mock
def test_poll_budget_exhausted():
    sleeps = []
    respx.post(f"{ENDPOINT}{READ_PATH}").respond(202, headers={"Operation-Location": OPERATION})
    poll = respx.get(OPERATION).respond(json={"status": "running"})
    with pytest.raises(OCRTimeout):
        _client(max_polls=3, sleep=sleeps.append).read_image(b"x")
    assert poll.call_count == 3
    assert len(sleeps) == 2


@respx.mock
def test_http_errors_mapped():
    respx.post(f"{ENDPOINT}{READ_PATH}").respond(401)
    with pytest.raises(OCRError) as exc:
        _client().read_image(b"x")
    assert not isinstance(exc.value, OCRTimeout)

    respx.post(f"{ENDPOINT}{READ_PATH}").mock(side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(OCRTimeout):
        _client().read_image(b"y")


def test_unconfigured_client_raises():
    with pytest.raises(OCRError):
        UnconfiguredOCRClient().read_image(b"x")


def test_parse_empty_payload():
    result = parse_read_result({})
    assert result.text == ""
    assert result.confidence == 0.0
    assert result.language == "ja"
