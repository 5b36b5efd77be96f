"""Parsers for verse recommendations and explanations in model replies."""

import json
import re
from typing import Any

from aws_lambda_powertools import Logger
from pydantic import ValidationError

from shared.exceptions import VerseParseError
from shared.models import GeneratedVerse, Verse

from .models import VerseExplanation, VerseReply

logger = Logger(child=True)

# Pattern to find JSON code blocks in the response
JSON_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)

# Pattern to find a raw JSON object (models sometimes skip the code block)
RAW_JSON_PATTERN = re.compile(r"\{[\s\S]*\}")

# "John 3:16", "1 John 4:18", "Song of Solomon 2:4", "Psalms 23:1-3"
VERSE_REF_PATTERN = re.compile(
    r"^\s*(?P<book>(?:[1-3]\s*)?[A-Za-z가-힣][A-Za-z가-힣 .]*?)\s+"
    r"(?P<chapter>\d+)\s*:\s*(?P<verse>\d+)(?:\s*[-–]\s*\d+)?\s*$"
)


def parse_verse_ref(ref: str) -> tuple[str, int, int]:
    """Split a "Book chapter:verse" reference.

    A trailing range ("Psalms 23:1-3") is accepted; only its first verse
    is kept.

    Args:
        ref: Reference text

    Returns:
        Tuple of (book, chapter, verse)

    Raises:
        VerseParseError: If the reference is malformed
    """
    match = VERSE_REF_PATTERN.match(ref or "")
    if not match:
        raise VerseParseError(f"Malformed verse reference: {ref!r}", raw=ref)
    book = " ".join(match.group("book").split())
    return book, int(match.group("chapter")), int(match.group("verse"))


def _extract_json(response_text: str) -> dict[str, Any] | None:
    candidates = []

    match = JSON_BLOCK_PATTERN.search(response_text)
    if match:
        candidates.append(match.group(1))

    raw_match = RAW_JSON_PATTERN.search(response_text)
    if raw_match:
        candidates.append(raw_match.group())

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from verse reply: {e}")
            continue
        if isinstance(data, dict):
            return data
    return None


def _build_verse(reply: VerseReply) -> GeneratedVerse:
    if reply.verse_ref:
        book, chapter, verse = parse_verse_ref(reply.verse_ref)
    else:
        book, chapter, verse = reply.book, reply.chapter, reply.verse

    return GeneratedVerse(
        verse=Verse(
            book=book,
            chapter=chapter,
            verse=verse,
            text=reply.text.strip(),
            translation=reply.translation.strip(),
        ),
        reason=reply.reason.strip(),
    )


def parse_verse_response(response_text: str) -> GeneratedVerse:
    """Parse a model reply into a verse recommendation.

    Accepts a ```json fenced block or a bare JSON object. The object needs
    ``text`` and ``reason`` plus either ``verse_ref`` or
    ``book``/``chapter``/``verse``.

    Args:
        response_text: Raw reply text from the model

    Returns:
        GeneratedVerse built from the reply

    Raises:
        VerseParseError: If no valid verse can be extracted
    """
    if not response_text or not response_text.strip():
        raise VerseParseError("Empty reply from model", raw=response_text)

    data = _extract_json(response_text)
    if data is None:
        logger.warning("No JSON found in verse reply")
        raise VerseParseError("No JSON object in model reply", raw=response_text)

    try:
        reply = VerseReply.model_validate(data)
        return _build_verse(reply)
    except ValidationError as e:
        logger.warning(f"Failed to validate verse reply: {e}")
        raise VerseParseError("Model reply is missing verse fields", raw=response_text) from e


def parse_explanation_response(response_text: str) -> VerseExplanation:
    """Parse a model reply into a Korean explanation.

    The object needs ``korean`` and ``rationale``. A trailing period on the
    reference line is dropped.

    Raises:
        VerseParseError: If no valid explanation can be extracted
    """
    if not response_text or not response_text.strip():
        raise VerseParseError("Empty reply from model", raw=response_text)

    data = _extract_json(response_text)
    if data is None:
        logger.warning("No JSON found in explanation reply")
        raise VerseParseError("No JSON object in model reply", raw=response_text)

    try:
        explanation = VerseExplanation.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Failed to validate explanation reply: {e}")
        raise VerseParseError(
            "Model reply is missing explanation fields", raw=response_text
        ) from e

    korean = explanation.korean.strip()
    if explanation.paraphrase:
        korean = f"{explanation.korean_reference}\n{explanation.paraphrase}"
    return VerseExplanation(korean=korean, rationale=explanation.rationale.strip())
