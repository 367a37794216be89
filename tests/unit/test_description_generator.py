"""Unit tests for AI description generation (Anthropic client mocked)."""

import json
from unittest.mock import MagicMock

import pytest

from dropship.ai.description_generator import (
    GeneratedDescription,
    build_prompt,
    generate_description,
    parse_response,
)

RESPONSE_TEXT = """```json
{
  "description": "En presis trådløs mus for spill.",
  "bullets": ["Lav forsinkelse", " RGB-lys ", ""]
}
```"""


def _client(text=RESPONSE_TEXT):
    client = MagicMock()
    client.messages.create.return_value = MagicMock(content=[MagicMock(text=text)])
    return client


@pytest.mark.unit
def test_parse_response_strips_fences_and_blank_bullets():
    result = parse_response(RESPONSE_TEXT)

    assert result.description == "En presis trådløs mus for spill."
    assert result.bullets == ["Lav forsinkelse", "RGB-lys"]


@pytest.mark.unit
@pytest.mark.parametrize("text", ["Beklager, det kan jeg ikke.", '{"description": "", "bullets": []}'])
def test_parse_response_rejects_unusable_answers(text):
    with pytest.raises(ValueError):
        parse_response(text)


@pytest.mark.unit
def test_build_prompt_fills_defaults():
    prompt = build_prompt("Mus", None, None, "", "teknisk")

    assert "Navn: Mus" in prompt
    assert "Kategori: Ikke spesifisert" in prompt
    assert "Pris: Ikke spesifisert" in prompt
    assert "Stikkord" not in prompt
    assert "Tone: teknisk" in prompt

    assert "Pris: 199 kr" in build_prompt("Mus", "Gaming", 199, "DPI", "nøytral")


@pytest.mark.unit
def test_generate_description_caches_result(tmp_path):
    client = _client()

    first = generate_description("Mus", "temu/601099", price=199, client=client, cache_dir=str(tmp_path))
    second = generate_description("Mus", "temu/601099", client=client, cache_dir=str(tmp_path))

    assert first == second
    assert client.messages.create.call_count == 1

    cached = json.loads((tmp_path / "temu_601099_description.json").read_text(encoding="utf-8"))
    assert cached["bullets"] == ["Lav forsinkelse", "RGB-lys"]


@pytest.mark.unit
def test_generate_description_falls_back_on_api_error(tmp_path):
    client = MagicMock()
    client.messages.create.side_effect = RuntimeError("overloaded")

    result = generate_description(
        "Mus", "temu_1", fallback="Skrapt tekst", client=client, cache_dir=str(tmp_path)
    )

    assert result == GeneratedDescription("Skrapt tekst")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
def test_generate_description_requires_api_key(monkeypatch, tmp_path):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(ValueError, match="API key required"):
        generate_description("Mus", "temu_1", cache_dir=str(tmp_path))


@pytest.mark.unit
def test_generate_description_rejects_unknown_tone(tmp_path):
    with pytest.raises(ValueError, match="Unknown tone"):
        generate_description("Mus", "temu_1", tone="sarkastisk", client=_client(), cache_dir=str(tmp_path))


@pytest.mark.unit
def test_as_text_appends_bullets():
    text = GeneratedDescription("Beskrivelse.", ["En", "To"]).as_text()

    assert text == "Beskrivelse.\n\n- En\n- To"
