"""Natural-language music search suggestions.

"songs like Doghouse", "chill trap", "artists similar to Playboi Carti" go to
Gemini with a JSON-only prompt. The answer is turned into search suggestions
the client runs against the Spotify catalog.

Hey future me - whenever the model can't answer (no key, timeout, quota, junk
JSON) we fall back to a keyword matcher so the endpoint always returns
something. A 403/404/429 from the API disables the model for the rest of the
process: those mean bad key, retired model or exhausted quota, and hammering
the API on every keystroke won't fix any of them.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from recordcrate.domain.exceptions import ConfigurationError, ExternalServiceError
from recordcrate.infrastructure.integrations.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

NL_KEYWORDS = re.compile(r"\b(like|similar|chill|vibe|mood|style|sound)\b", re.IGNORECASE)
CODE_FENCE = re.compile(r"```(?:json)?\s*|\s*```")

GENRES = (
    "rock",
    "pop",
    "hip-hop",
    "rap",
    "jazz",
    "classical",
    "electronic",
    "indie",
    "country",
    "r&b",
    "funk",
    "soul",
)
MOODS = (
    "sad",
    "happy",
    "chill",
    "energetic",
    "relaxing",
    "upbeat",
    "melancholy",
    "romantic",
    "angry",
)
DEFAULT_SEARCH_TERMS = ("popular", "new releases")
DISABLING_STATUS_CODES = frozenset({403, 404, 429})

PROMPT_TEMPLATE = """You are a music recommendation AI. The user searched for: "{query}"

Analyze this search and provide music recommendations. The query could be:
- "Songs similar to Doghouse" -> find similar tracks
- "Artists like Playboi Carti" -> find similar artists
- "Chill trap playlists" -> find albums/artists in that style
- Any free-form music search

Respond ONLY with valid JSON (no markdown, no extra text):
{{
  "interpretation": "What the user wants",
  "recommendations": [
    {{"type": "track", "name": "Track Name", "artist": "Artist Name", "reason": "Why this matches", "searchQuery": "track:Track Name artist:Artist Name"}},
    {{"type": "artist", "name": "Artist Name", "reason": "Why this matches", "searchQuery": "Artist Name"}},
    {{"type": "album", "name": "Album Name", "artist": "Artist Name", "reason": "Why this matches", "searchQuery": "album:Album Name artist:Artist Name"}}
  ],
  "additionalSearchTerms": ["genre", "mood"]
}}

Provide 4-5 popular recommendations that exist on Spotify.
"""


@dataclass
class Recommendation:
    type: str
    name: str
    reason: str
    search_query: str
    artist: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recommendation":
        name = str(data.get("name") or "").strip()
        artist = data.get("artist")
        return cls(
            type=str(data.get("type") or "track"),
            name=name,
            artist=str(artist) if artist else None,
            reason=str(data.get("reason") or ""),
            search_query=str(data.get("searchQuery") or name),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "reason": self.reason,
            "searchQuery": self.search_query,
        }
        if self.artist:
            data["artist"] = self.artist
        return data


@dataclass
class InterpretedQuery:
    """What the model (or the fallback) made of a query."""

    interpretation: str
    recommendations: list[Recommendation] = field(default_factory=list)
    additional_search_terms: list[str] = field(default_factory=list)
    from_model: bool = False


def is_natural_language_query(query: str) -> bool:
    """Two or more words, or a similarity/mood keyword."""
    trimmed = query.strip()
    return len(trimmed.split()) >= 2 or bool(NL_KEYWORDS.search(trimmed))


def parse_model_response(text: str) -> InterpretedQuery:
    """Parse the model's JSON answer, tolerating ```json fences.

    Raises:
        ValueError: not JSON, or not the expected object shape
    """
    cleaned = CODE_FENCE.sub("", text).strip()
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("model answer is not a JSON object")

    raw_recs = data.get("recommendations") or []
    if not isinstance(raw_recs, list):
        raise ValueError("recommendations is not a list")
    recommendations = [
        Recommendation.from_dict(r) for r in raw_recs if isinstance(r, dict)
    ]
    terms = data.get("additionalSearchTerms") or []
    return InterpretedQuery(
        interpretation=str(data.get("interpretation") or ""),
        recommendations=[r for r in recommendations if r.name],
        additional_search_terms=[str(t) for t in terms if t] if isinstance(terms, list) else [],
        from_model=True,
    )


def fallback_response(query: str) -> InterpretedQuery:
    """Deterministic keyword interpretation used when the model is unavailable."""
    lowered = query.lower()
    terms = [g for g in GENRES if g in lowered] + [m for m in MOODS if m in lowered]

    recommendations: list[Recommendation] = []
    if "blonde" in lowered and "frank ocean" in lowered:
        recommendations = [
            Recommendation(
                type="album",
                name="Channel Orange",
                artist="Frank Ocean",
                reason="Another acclaimed Frank Ocean album with similar R&B style",
                search_query="Frank Ocean Channel Orange",
            ),
            Recommendation(
                type="artist",
                name="The Weeknd",
                reason="Similar R&B and alternative sound",
                search_query="The Weeknd",
            ),
        ]
    elif terms:
        recommendations = [
            Recommendation(
                type="genre",
                name=f"{terms[0]} music",
                reason=f"Explore {terms[0]} genre based on your request",
                search_query=terms[0],
            )
        ]

    return InterpretedQuery(
        interpretation=f"Looking for music related to: {query}",
        recommendations=recommendations,
        additional_search_terms=terms or list(DEFAULT_SEARCH_TERMS),
    )


def generate_search_suggestions(response: InterpretedQuery) -> list[dict[str, str]]:
    """Turn an interpretation into runnable catalog searches."""
    suggestions: list[dict[str, str]] = []
    for rec in response.recommendations:
        display = f"{rec.name} by {rec.artist}" if rec.type == "album" and rec.artist else rec.name
        suggestions.append(
            {
                "type": rec.type,
                "query": rec.search_query,
                "displayText": display,
                "reason": rec.reason,
            }
        )
    for term in response.additional_search_terms:
        suggestions.append(
            {
                "type": "genre",
                "query": f'genre:"{term}"',
                "displayText": f"{term} music",
                "reason": f"Explore {term} genre",
            }
        )
    return suggestions


class NaturalLanguageSearchService:
    """Interprets free-form queries with Gemini, with a keyword fallback."""

    def __init__(self, gemini_client: GeminiClient) -> None:
        self._gemini = gemini_client
        self._enabled = gemini_client.is_configured
        if not self._enabled:
            logger.warning(
                "GEMINI_API_KEY not configured; natural-language search uses fallback mode"
            )

    @property
    def model_enabled(self) -> bool:
        return self._enabled

    async def process_query(self, query: str) -> InterpretedQuery:
        """Interpret ``query``; never raises for model trouble."""
        if not self._enabled:
            return fallback_response(query)

        try:
            text = await self._gemini.generate_json_text(PROMPT_TEMPLATE.format(query=query))
            return parse_model_response(text)
        except ExternalServiceError as e:
            if e.http_status in DISABLING_STATUS_CODES:
                logger.warning(
                    "Gemini returned %d; switching to fallback mode for this process",
                    e.http_status,
                )
                self._enabled = False
            else:
                logger.warning("Gemini unavailable for this request: %s", e.message)
        except ConfigurationError as e:
            logger.warning("Gemini not configured: %s", e.message)
            self._enabled = False
        except ValueError as e:
            logger.warning("Gemini answer was not usable JSON: %s", e)
        except Exception as e:
            # SDK internals can raise anything; the fallback answer still goes out
            logger.warning("Gemini call failed unexpectedly: %s", e, exc_info=True)
        return fallback_response(query)

    async def search(self, query: str) -> dict[str, Any]:
        """Full endpoint payload for a query."""
        if not is_natural_language_query(query):
            return {
                "isNaturalLanguage": False,
                "message": "Query appears to be a regular search term",
            }
        response = await self.process_query(query)
        return {
            "isNaturalLanguage": True,
            "originalQuery": query,
            "interpretation": response.interpretation,
            "recommendations": [r.to_dict() for r in response.recommendations],
            "searchSuggestions": generate_search_suggestions(response),
            "additionalSearchTerms": response.additional_search_terms,
            "usedModel": response.from_model,
        }
