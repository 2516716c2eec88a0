"""
Template query engine
Tokenizes and canonicalizes free-text queries, then filters, ranks and
paginates index records.
"""
import re
import unicodedata
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from template_index.models.template import FileRecord

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

MODE_ANY = "any"
MODE_ALL = "all"

STOPWORDS = frozenset([
    # English
    "a", "an", "the", "and", "or", "to", "for", "with", "of", "in", "on", "by",
    "from", "about", "into", "as", "at", "is", "are",
    # Portuguese
    "de", "do", "da", "das", "dos", "para", "com", "no", "na", "nos", "nas",
    "um", "uma", "como", "que", "o", "os", "e",
    # generic task words
    "setup", "build", "create", "make", "how", "guide", "tutorial", "example",
    "agent", "bot", "workflow", "flow",
])

# Generic brand/product words, dropped only from over-broad queries
SOFT_STOPWORDS = frozenset(["google", "ai", "openai", "gemini", "mistral", "assistant", "gpt"])

SYNONYMS: Dict[str, str] = {
    "gcal": "calendar",
    "calendario": "calendar",
    "cal": "calendar",
    "yt": "youtube",
    "ig": "instagram",
    "wa": "whatsapp",
    "x": "twitter",
}

_WHITESPACE = re.compile(r"\s+")
_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")


def normalize_text(value: str) -> str:
    """Lower-case, strip diacritics and collapse whitespace"""
    decomposed = unicodedata.normalize("NFD", value.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped).strip()


def canonicalize_token(token: str) -> str:
    normalized = normalize_text(token)
    return SYNONYMS.get(normalized, normalized)


def tokenize(query: str) -> List[str]:
    """Split a query into words made of Unicode letters and digits"""
    cleaned = "".join(ch if ch.isalnum() else " " for ch in query.lower())
    return [part for part in cleaned.split() if part]


def _dedupe(tokens: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(tokens))


def _is_usable(token: str) -> bool:
    return len(token) > 1 and token not in STOPWORDS


def reduce_tokens(raw_tokens: Sequence[str]) -> List[str]:
    """
    Canonicalize raw query words into the tokens used for matching.

    Stopwords and single characters are dropped. Queries with more than two
    tokens also lose soft stopwords, unless that would leave nothing, in
    which case the canonical tokens come back (still without stopwords).
    """
    canonical = [canonicalize_token(t) for t in raw_tokens]
    tokens = _dedupe([t for t in canonical if _is_usable(t)])

    if len(tokens) > 2:
        strong = [t for t in tokens if t not in SOFT_STOPWORDS]
        tokens = strong or tokens
    return tokens


def normalize_dir(dir_value: Optional[str]) -> str:
    """Normalize a directory filter: '/' separators, no trailing separator"""
    if not dir_value:
        return ""
    return re.sub(r"[\\/]+", "/", dir_value.strip()).rstrip("/")


def filter_by_dir(records: Sequence[FileRecord], dir_value: str) -> List[FileRecord]:
    prefix = dir_value + "/"
    return [r for r in records if r.relative_path.startswith(prefix) or r.category == dir_value]


def haystack(record: FileRecord) -> str:
    return normalize_text(f"{record.name} {record.relative_path} {record.category}")


def matches(tokens: Sequence[str], record: FileRecord, mode: str = MODE_ANY) -> bool:
    hay = haystack(record)
    if mode == MODE_ALL:
        return all(t in hay for t in tokens)
    return any(t in hay for t in tokens)


def score_record(tokens: Sequence[str], record: FileRecord, dir_value: str = "") -> int:
    """Weighted relevance of a record for the given tokens"""
    name_n = normalize_text(record.name)
    rel_n = normalize_text(record.relative_path)
    cat_n = normalize_text(record.category)
    phrase = normalize_text(" ".join(tokens))

    score = 0
    matched = 0
    for token in tokens:
        hit = False
        if token in name_n:
            score += 5
            hit = True
        if token in rel_n:
            score += 3
            hit = True
        if token in cat_n:
            score += 2
            hit = True
        if hit:
            matched += 1

    if matched == len(tokens):
        score += 3
    if phrase and phrase in name_n:
        score += 2
    if dir_value:
        dir_n = normalize_text(dir_value)
        if cat_n == dir_n:
            score += 4
        if rel_n.startswith(dir_n + "/"):
            score += 3
    return score


def strongest_token(tokens: Sequence[str]) -> str:
    for token in tokens:
        if token not in SOFT_STOPWORDS:
            return token
    return tokens[0]


class SearchResult(BaseModel):
    """Ranked records plus the tokens that produced them"""
    items: List[FileRecord] = Field(default_factory=list)
    tokens: List[str] = Field(default_factory=list)
    simplified_to: str = ""


class Page(BaseModel):
    """One pagination window over a result list"""
    items: List[FileRecord] = Field(default_factory=list)
    total: int = 0
    count: int = 0
    limit: int = DEFAULT_LIMIT
    offset: int = 0


def search(
    records: Sequence[FileRecord],
    q: Optional[str] = None,
    q_mode: Optional[str] = None,
    dir_value: Optional[str] = None,
) -> SearchResult:
    """
    Filter and rank records for a free-text query.

    Args:
        records: index records in index order
        q: raw query text
        q_mode: "all" requires every token, anything else means "any"
        dir_value: directory or category filter

    Returns:
        SearchResult: ranked records, tokens used and the fallback token if
        the full token set matched nothing
    """
    mode = MODE_ALL if (q_mode or "").strip().lower() == MODE_ALL else MODE_ANY
    dir_norm = normalize_dir(dir_value)

    filtered = list(records)
    if dir_norm:
        filtered = filter_by_dir(filtered, dir_norm)

    query = (q or "").strip()
    if not query:
        return SearchResult(items=filtered)

    tokens = reduce_tokens(tokenize(query))
    if not tokens:
        return SearchResult(items=filtered)

    found = [r for r in filtered if matches(tokens, r, mode)]

    simplified_to = ""
    if not found and len(tokens) > 1:
        simplified_to = strongest_token(tokens)
        found = [r for r in filtered if simplified_to in haystack(r)]

    # sorted() is stable: equal scores keep index order
    ranked = sorted(found, key=lambda r: score_record(tokens, r, dir_norm), reverse=True)
    return SearchResult(items=ranked, tokens=tokens, simplified_to=simplified_to)


def _parse_int(value, default: Optional[int]) -> Optional[int]:
    """Lenient integer parsing: leading digits count, anything else is the default"""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else default


def resolve_window(limit=None, offset=None, page=None, per_page=None) -> Dict[str, int]:
    """
    Compute the effective limit/offset from raw request parameters.

    per_page aliases limit. page selects offset (page - 1) * limit when no
    explicit offset is given. Limit is clamped to [1, 200], offset to >= 0.
    """
    raw_limit = limit if limit not in (None, "") else per_page
    safe_limit = min(max(_parse_int(raw_limit, DEFAULT_LIMIT), 1), MAX_LIMIT)

    parsed_offset = _parse_int(offset if offset != "" else None, None)
    if parsed_offset is None:
        page_number = _parse_int(page if page != "" else None, None)
        parsed_offset = (max(page_number, 1) - 1) * safe_limit if page_number else 0

    return {"limit": safe_limit, "offset": max(parsed_offset, 0)}


def paginate(items: Sequence[FileRecord], limit=None, offset=None) -> Page:
    window = resolve_window(limit=limit, offset=offset)
    start = window["offset"]
    sliced = list(items[start:start + window["limit"]])
    return Page(
        items=sliced,
        total=len(items),
        count=len(sliced),
        limit=window["limit"],
        offset=start,
    )
