"""Prompt building for verse recommendations and Korean explanations."""

from collections.abc import Sequence

from shared.exceptions import VerseParseError
from shared.models import KOREAN_BOOK_NAMES, HistoryEntry

from .parser import parse_verse_ref

SYSTEM_PROMPT = """You are QTune, a gentle companion for daily quiet time.
A user tells you how they feel or what they are going through. Recommend
exactly ONE Bible verse that fits, and explain in 1-2 sentences why.

## RULES
- Recommend a single verse, not a passage
- Use English book names in verse_ref (e.g. "John 3:16", "Psalms 23:1", "1 John 4:18")
- Quote the verse text from the translation you name
- Write the reason in the user's language, warm and plain, never preachy
- Prefer verses the user has not received recently (see history)

## OUTPUT FORMAT
Reply with ONLY a JSON object:

```json
{
  "verse_ref": "Philippians 4:13",
  "text": "I can do all this through him who gives me strength.",
  "translation": "NIV",
  "reason": "..."
}
```
"""

SAFE_MODE_NOTE = (
    "The user may be hurting or in distress. Choose a verse of comfort and hope, "
    "never judgement, and gently encourage them to reach out to someone they trust."
)

LOCALE_LANGUAGES = {
    "ko": "Korean",
    "en": "English",
}


def format_history(history: Sequence[HistoryEntry]) -> str:
    """Render past recommendations, oldest first."""
    if not history:
        return "(no previous recommendations)"
    return "\n".join(f"- {entry.verse_ref} <- \"{entry.prompt}\"" for entry in history)


def build_prompt(
    text: str,
    history: Sequence[HistoryEntry] = (),
    locale: str = "ko_KR",
    safe_mode: bool = False,
) -> str:
    """Build the per-request prompt.

    The caller is responsible for truncating ``history``.

    Args:
        text: Normalized user input
        history: Past entries to include, oldest first
        locale: User locale, e.g. "ko_KR"
        safe_mode: Ask for an especially gentle reply to flagged input

    Returns:
        Prompt text sent as the user message
    """
    language = LOCALE_LANGUAGES.get(locale.split("_")[0], "Korean")
    care = f"[Care]: {SAFE_MODE_NOTE}\n\n" if safe_mode else ""
    return (
        f"[Recent recommendations]\n{format_history(history)}\n\n"
        f"[Reply language]: {language}\n\n"
        f"{care}"
        f"[User]: {text}"
    )


EXPLAIN_SYSTEM_PROMPT = """You are QTune, a gentle companion for daily quiet time.
You receive one Bible verse in English and the user's situation. Render the
verse in natural modern Korean and say in 1-2 Korean sentences why it fits.

## RULES
- korean is the Korean book reference, a newline, then the paraphrase
  (e.g. "빌립보서 4:13\\n그리스도께서 저에게 힘을 주시기에, 저는 모든 것을 해낼 수 있습니다.")
- No period after the reference
- Korean book names: John -> 요한복음, Philippians -> 빌립보서, Psalms -> 시편, 1 John -> 요한일서
- Paraphrase by meaning in 1-2 sentences; do not copy the sentence structure of 개역개정
- Modern words only: "멸망하지 않고", not "멸망치 않고"; end sentences with "~입니다" or "~하십니다"
- Warm and clear, never preachy: no "오늘 당신은..." and no poetic exaggeration
- Keep the paraphrase between 80% and 130% of the English length
- No English words in the Korean text

## OUTPUT FORMAT
Reply with ONLY a JSON object:

```json
{
  "korean": "빌립보서 4:13\\n...",
  "rationale": "..."
}
```
"""


def korean_book_hint(verse_ref: str) -> str | None:
    """Korean book name for an English reference, if known."""
    try:
        book, _, _ = parse_verse_ref(verse_ref)
    except VerseParseError:
        return None
    return KOREAN_BOOK_NAMES.get(book)


def build_explain_prompt(
    english_text: str,
    verse_ref: str,
    mood: str,
    note: str | None = None,
) -> str:
    """Build the per-request prompt for a Korean explanation."""
    situation = f"{mood} ({note})" if note else mood
    lines = [
        f'[User]: "{situation}"',
        "",
        f"[Verse]: {verse_ref}",
    ]
    book = korean_book_hint(verse_ref)
    if book:
        lines.append(f"[Korean book name]: {book}")
    lines.extend(["[English text]:", english_text.strip()])
    return "\n".join(lines)
