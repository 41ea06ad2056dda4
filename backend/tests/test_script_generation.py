import asyncio
import json

import pytest

from scriptdesk.errors import ProviderExhaustedError, ValidationError
from scriptdesk.services import script_generation as gen
from scriptdesk.services.ai_gateway import ProviderConfig


class _FakeGateway:
    def __init__(self, replies):
        self.replies = replies
        self.prompts = []
        self.structured = []

    async def generate(self, prompt, config, *, temperature=0.0, structured=False, json_schema=None):
        self.prompts.append(prompt)
        self.structured.append((structured, json_schema))
        for marker, reply in self.replies.items():
            if marker in prompt:
                return reply
        return ""


CONFIG = ProviderConfig(gemini_api_key="k")


def test_parse_timeline_keeps_only_chapter_lines():
    raw = "Here is your timeline:\n00:00 – Intro\n01:40 - The Crash\n\nnot a chapter\n12:05 – Aftermath "
    chapters = gen.parse_timeline(raw)
    assert [(c.time, c.description) for c in chapters] == [
        ("00:00", "Intro"),
        ("01:40", "The Crash"),
        ("12:05", "Aftermath"),
    ]


def test_load_json_array_accepts_fences_and_wrapped_lists():
    assert gen.load_json_array('```json\n[{"a": 1}]\n```') == [{"a": 1}]
    assert gen.load_json_array('{"chunks": [1, 2]}') == [1, 2]


@pytest.mark.parametrize("raw", ["", "not json", '{"a": 1}', "42"])
def test_load_json_array_rejects_non_arrays(raw):
    with pytest.raises(ValidationError):
        gen.load_json_array(raw)


def test_parse_script_chunks_drops_malformed_items():
    raw = json.dumps([
        {"content": "First sentence.", "keyword": "APOLLO 11"},
        {"content": "Missing keyword."},
        {"content": 3, "keyword": "X"},
        "junk",
        {"content": "Second.", "keyword": "MOON, LANDER"},
    ])
    chunks = gen.parse_script_chunks(raw)
    assert [c.keyword for c in chunks] == ["APOLLO 11", "MOON, LANDER"]


def test_parse_pacing_points_requires_score_in_range():
    raw = json.dumps([
        {"chunk": "calm", "intensity": 2},
        {"chunk": "peak", "intensity": 10},
        {"chunk": "too high", "intensity": 11},
        {"chunk": "zero", "intensity": 0},
        {"chunk": "text score", "intensity": "7"},
        {"chunk": "boolean", "intensity": True},
        {"intensity": 5},
    ])
    points = gen.parse_pacing_points(raw)
    assert [(p.chunk, p.intensity) for p in points] == [("calm", 2), ("peak", 10)]


def test_unparseable_structured_output_is_empty():
    assert gen.parse_pacing_points("I cannot do that") == []
    assert gen.parse_script_chunks(None) == []


async def test_title_summary_and_timeline():
    gateway = _FakeGateway({
        "title optimizer": "  A Great Title \n",
        "summarize scripts": "A summary.",
        "chapter timeline": "00:00 – Intro\n02:10 – Middle",
    })
    result = await gen.generate_title_summary_and_timeline(CONFIG, "one two three", gateway=gateway)

    assert result["ai_title"] == "A Great Title"
    assert result["summary"] == "A summary."
    assert [c.time for c in result["timeline"]] == ["00:00", "02:10"]
    assert any("Total script length: 3 words" in p for p in gateway.prompts)


async def test_title_summary_failure_cancels_pending_calls():
    cancelled = []

    class _Gateway:
        async def generate(self, prompt, config, **kwargs):
            if "title optimizer" in prompt:
                await asyncio.sleep(0)
                raise ProviderExhaustedError("quota exceeded")
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(prompt)
                raise
            return "late"

    with pytest.raises(ProviderExhaustedError):
        await gen.generate_title_summary_and_timeline(CONFIG, "one two three", gateway=_Gateway())

    assert len(cancelled) == 2


async def test_rewrite_uses_style_prompt_or_default():
    gateway = _FakeGateway({"ORIGINAL SCRIPT": "rewritten"})

    assert await gen.rewrite_script(CONFIG, "old text", gateway=gateway) == "rewritten"
    assert gen.DEFAULT_REWRITE_INSTRUCTION in gateway.prompts[-1]

    await gen.rewrite_script(CONFIG, "old text", "Make it noir.", gateway=gateway)
    assert gateway.prompts[-1].startswith("Make it noir.")
    assert gen.DEFAULT_REWRITE_INSTRUCTION not in gateway.prompts[-1]


async def test_script_from_outline_prepends_outline():
    gateway = _FakeGateway({"OUTLINE:": "full script"})
    assert await gen.generate_script_from_outline(CONFIG, "1. start", "Write it", gateway=gateway) == "full script"
    assert gateway.prompts[-1] == "OUTLINE:\n1. start\nWrite it"


async def test_keyword_split_is_structured():
    reply = json.dumps([{"content": "A.", "keyword": "ONE"}, {"content": "B."}])
    gateway = _FakeGateway({"SCRIPT:": reply})

    chunks = await gen.generate_keywords_and_split_script(CONFIG, "A. B.", gateway=gateway)

    assert [c.content for c in chunks] == ["A."]
    assert gateway.structured[-1] == (True, gen.KEYWORD_SCHEMA)


async def test_pacing_analysis_is_structured():
    gateway = _FakeGateway({"pacing analyst": '[{"chunk": "x", "intensity": 4.5}]'})
    points = await gen.analyze_script_pacing(CONFIG, "x", gateway=gateway)
    assert points[0].intensity == 4.5
    assert gateway.structured[-1] == (True, gen.PACING_SCHEMA)
