"""
Script generation features built on the provider gateway.

Plain-text features return the provider text as-is (stripped where noted).
Structured features (keyword split, pacing) ask for JSON and then validate
item by item: malformed output degrades to an empty or partial list instead
of failing the call.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Callable, TypeVar

from scriptdesk.errors import ValidationError
from scriptdesk.schemas import Chapter, PacingPoint, ScriptChunk
from scriptdesk.services.ai_gateway import ProviderConfig, ProviderGateway, get_provider_gateway

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHAPTER_RE = re.compile(r"^(\d{2}:\d{2})\s*[–-]\s*(.+)$")
FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

DEFAULT_REWRITE_INSTRUCTION = (
    "Rewrite the following script to improve its pacing, dialogue, and engagement. "
    "Keep the main plot and characters."
)

DEFAULT_KEYWORD_INSTRUCTION = """Split this script into chunks of 1-2 sentences. For each chunk, produce search keywords for B-roll footage:
- Use full, specific names of people, places, equipment or events rather than generic words
- Separate multiple keywords with commas
- Write keywords in UPPERCASE
- Use at most 2 keywords per chunk"""

TITLE_PROMPT = """You are an expert YouTube title optimizer.

TASK: Analyze the script below and write ONE optimized title.

REQUIREMENTS:
- Maximum length: 80 characters including spaces
- Include the main topic of the script
- Use compelling, action-oriented language, accurate to the content, without clickbait

Output only the title.

SCRIPT:
{script}"""

SUMMARY_PROMPT = """You summarize scripts of any genre.
Write one paragraph of at most 120 words covering the key events or topic, who or what was involved,
where and when it happened (if applicable) and its outcome or significance.
Use clear, neutral language. Do not quote dialogue and do not mention that this is a script or a summary.

SCRIPT:
{script}"""

TIMELINE_PROMPT = """You are a YouTube chapter timeline editor.
Read the script below and produce a chapter timeline, one chapter per line, in the format:
00:00 – Intro
01:40 – Chapter Title

Rules:
- Estimate duration at about 160 words per minute of speech
- 4 to 8 chapters, always starting with "00:00 – Intro"
- Chapters follow major story beats or topic shifts; titles are 4-8 words
- Output only the timeline

Total script length: {word_count} words

SCRIPT:
{script}"""

PACING_PROMPT = """You are a script pacing analyst. Map the emotional and action intensity of the script over time.
1. Divide the script into 10-15 meaningful chunks based on distinct beats or scenes.
2. Give each chunk an "intensity" score from 1 (quiet exposition) to 10 (climax, peak action or emotion).
3. Return the actual text of each chunk, not a summary.

Return a JSON array of objects with "chunk" and "intensity".

SCRIPT:
{script}"""

KEYWORD_SCHEMA = {
    "type": "ARRAY",
    "description": "Script chunks, each with its content and B-roll keywords.",
    "items": {
        "type": "OBJECT",
        "properties": {
            "content": {"type": "STRING", "description": "The content of the chunk (1-2 sentences)."},
            "keyword": {"type": "STRING", "description": "Keywords in UPPERCASE, comma-separated."},
        },
        "required": ["content", "keyword"],
    },
}

PACING_SCHEMA = {
    "type": "ARRAY",
    "description": "Pacing points, each with the chunk content and an intensity score.",
    "items": {
        "type": "OBJECT",
        "properties": {
            "chunk": {"type": "STRING", "description": "The actual content of the script chunk."},
            "intensity": {"type": "NUMBER", "description": "An intensity score from 1 to 10."},
        },
        "required": ["chunk", "intensity"],
    },
}


def word_count(text: str) -> int:
    return len(text.split())


def parse_timeline(raw: str) -> list[Chapter]:
    """Keep only lines shaped like ``MM:SS – Title``."""
    chapters = []
    for line in (raw or "").splitlines():
        match = CHAPTER_RE.match(line.strip())
        if match:
            chapters.append(Chapter(time=match.group(1), description=match.group(2).strip()))
    return chapters


def load_json_array(raw: str | None) -> list[Any]:
    """Parse provider output that should be a JSON array.

    Accepts a fenced code block and an object wrapping a single array
    (OpenRouter's json_object mode cannot return a bare array).
    """
    text = (raw or "").strip()
    if not text:
        raise ValidationError("AI returned an empty response")
    fenced = FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"AI returned invalid JSON: {exc.msg}") from exc
    if isinstance(data, dict):
        lists = [v for v in data.values() if isinstance(v, list)]
        if len(lists) == 1:
            data = lists[0]
    if not isinstance(data, list):
        raise ValidationError(f"AI returned {type(data).__name__}, expected an array")
    return data


def _is_chunk(item: Any) -> bool:
    return isinstance(item, dict) and isinstance(item.get("content"), str) and isinstance(item.get("keyword"), str)


def _is_pacing_point(item: Any) -> bool:
    if not isinstance(item, dict) or not isinstance(item.get("chunk"), str):
        return False
    intensity = item.get("intensity")
    # bool is an int subclass; true/false is not a score
    if isinstance(intensity, bool) or not isinstance(intensity, (int, float)):
        return False
    return 1 <= intensity <= 10


def parse_script_chunks(raw: str | None) -> list[ScriptChunk]:
    return _parse_items(raw, _is_chunk, lambda d: ScriptChunk(content=d["content"], keyword=d["keyword"]), "keyword split")


def parse_pacing_points(raw: str | None) -> list[PacingPoint]:
    return _parse_items(raw, _is_pacing_point, lambda d: PacingPoint(chunk=d["chunk"], intensity=d["intensity"]), "pacing")


def _parse_items(raw: str | None, is_valid: Callable[[Any], bool], build: Callable[[dict], T], label: str) -> list[T]:
    try:
        items = load_json_array(raw)
    except ValidationError as exc:
        logger.warning(f"[ai] {label}: discarding structured output: {exc.message}")
        return []
    valid = [build(item) for item in items if is_valid(item)]
    dropped = len(items) - len(valid)
    if dropped:
        logger.warning(f"[ai] {label}: dropped {dropped} of {len(items)} malformed items")
    return valid


async def generate_title_summary_and_timeline(
    config: ProviderConfig, script: str, *, gateway: ProviderGateway | None = None
) -> dict[str, Any]:
    gateway = gateway or get_provider_gateway()
    tasks = [
        asyncio.ensure_future(gateway.generate(TITLE_PROMPT.format(script=script), config)),
        asyncio.ensure_future(gateway.generate(SUMMARY_PROMPT.format(script=script), config)),
        asyncio.ensure_future(
            gateway.generate(TIMELINE_PROMPT.format(script=script, word_count=word_count(script)), config)
        ),
    ]
    try:
        ai_title, summary, raw_timeline = await asyncio.gather(*tasks)
    except Exception:
        # stop the siblings still in flight
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return {
        "ai_title": ai_title.strip(),
        "summary": summary.strip(),
        "timeline": parse_timeline(raw_timeline),
    }


async def rewrite_script(
    config: ProviderConfig,
    original_script: str,
    style_prompt: str | None = None,
    *,
    gateway: ProviderGateway | None = None,
) -> str:
    gateway = gateway or get_provider_gateway()
    instruction = style_prompt or DEFAULT_REWRITE_INSTRUCTION
    prompt = f"{instruction}\n\nReturn only the rewritten script content.\n\nORIGINAL SCRIPT:\n{original_script}"
    return await gateway.generate(prompt, config)


async def generate_outline(config: ProviderConfig, prompt: str, *, gateway: ProviderGateway | None = None) -> str:
    gateway = gateway or get_provider_gateway()
    return await gateway.generate(prompt, config)


async def generate_script_from_outline(
    config: ProviderConfig, outline: str, prompt: str, *, gateway: ProviderGateway | None = None
) -> str:
    gateway = gateway or get_provider_gateway()
    return await gateway.generate(f"OUTLINE:\n{outline}\n{prompt}", config)


async def generate_keywords_and_split_script(
    config: ProviderConfig,
    script: str,
    style_prompt: str | None = None,
    *,
    gateway: ProviderGateway | None = None,
) -> list[ScriptChunk]:
    gateway = gateway or get_provider_gateway()
    instruction = style_prompt or DEFAULT_KEYWORD_INSTRUCTION
    prompt = (
        f"{instruction}\n\n"
        'Return JSON array: [{"content": "chunk text", "keyword": "KEYWORDS"}]\n\n'
        f"SCRIPT:\n{script}"
    )
    raw = await gateway.generate(prompt, config, structured=True, json_schema=KEYWORD_SCHEMA)
    return parse_script_chunks(raw)


async def analyze_script_pacing(
    config: ProviderConfig, script: str, *, gateway: ProviderGateway | None = None
) -> list[PacingPoint]:
    gateway = gateway or get_provider_gateway()
    raw = await gateway.generate(PACING_PROMPT.format(script=script), config, structured=True, json_schema=PACING_SCHEMA)
    return parse_pacing_points(raw)
