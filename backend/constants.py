"""
BEHAVIOURAL CONSTANTS
---------------------
Single source of truth for the tunable invariants of the turn orchestrator.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
- Deployment-specific overrides live in config.AppConfig, which defaults to these values.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Conversation History
# =============================================================================

HISTORY_CAPACITY_DEFAULT: Final[int] = 20
HISTORY_SUMMARIZE_DEFAULT: Final[bool] = True

# Number of most recent history entries handed to a behavior per turn
RECENT_HISTORY_COUNT: Final[int] = 10

HISTORY_SUMMARY_TEMPLATE: Final[str] = (
    "[Previous conversation summary: {user_count} user messages, "
    "{assistant_count} assistant responses]"
)

# =============================================================================
# Retry Policy (generation step only)
# =============================================================================

MAX_RETRIES_DEFAULT: Final[int] = 2
RETRY_DELAY_S_DEFAULT: Final[float] = 1.0

# =============================================================================
# Backends
# =============================================================================

REQUEST_TIMEOUT_S_DEFAULT: Final[float] = 30.0

TTS_SPEED_MIN: Final[float] = 0.25
TTS_SPEED_MAX: Final[float] = 2.0
TTS_SPEED_DEFAULT: Final[float] = 1.0

# Local transcription input format (PCM16 mono)
AUDIO_SAMPLE_RATE_HZ: Final[int] = 16_000
AUDIO_SAMPLE_WIDTH_BYTES: Final[int] = 2

# =============================================================================
# Tutoring Defaults
# =============================================================================

TARGET_LANGUAGE_DEFAULT: Final[str] = "English"
SCENARIO_DEFAULT: Final[str] = "casual conversation"

# =============================================================================
# Word Reordering
# =============================================================================

# Shuffles are repeated until the order differs from the original, at most this often
SHUFFLE_MAX_ATTEMPTS: Final[int] = 20

# =============================================================================
# Spelling Game
# =============================================================================

# Used when generation fails or yields no usable word
SPELLING_FALLBACK_WORD: Final[str] = "HOUSE"

# Random distractor letters mixed into the scrambled tiles
SPELLING_EXTRA_LETTERS: Final[int] = 3
SPELLING_ALPHABET: Final[str] = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# One is picked at random per word
SPELLING_LENGTH_HINTS: Final[Tuple[str, ...]] = ("5 to 7 letters", "3 to 10 letters")

# =============================================================================
# Vision
# =============================================================================

VISION_TRIGGER_PHRASE_DEFAULT: Final[str] = "what is this"
VISION_TRIGGER_PHRASE_FALLBACK: Final[str] = "what's this"

# =============================================================================
# Prompts
# =============================================================================

DEFAULT_SYSTEM_PROMPT: Final[str] = (
    "You are a helpful language learning assistant. Provide clear, concise "
    "responses that help the user practice the language. Keep responses to "
    "1-2 sentences unless asked for more detail."
)

GRAMMAR_PROMPT_TEMPLATE: Final[str] = """You are a language tutor focused on grammar correction. The user is learning {language}.

Analyze the following text for grammatical errors:
'{text}'

If there are errors:
1. Provide the corrected version
2. Explain what was wrong
3. Be encouraging and constructive

If there are no errors, praise the user and confirm the grammar is correct.

Keep your response concise and clear."""

VOCABULARY_PROMPT_TEMPLATE: Final[str] = """You are a vocabulary tutor teaching {language}. The user wants to learn about: '{text}'

Provide:
1. A clear definition
2. 2-3 example sentences showing proper usage
3. Any relevant synonyms or related words
4. A tip to remember this word

Make it engaging and memorable. Keep your response concise but informative."""

PRACTICE_PROMPT_TEMPLATE: Final[str] = """You are a native speaker having a natural conversation in {language}.
Scenario: {scenario}

Respond naturally as if you're really in this situation. Use appropriate idioms and expressions for your role.
Keep the conversation flowing naturally. Match the user's language level - if they use simple language, respond simply.
Be friendly and encouraging."""

WORD_REORDERING_PROMPT: Final[str] = (
    "You create word-order puzzles for a language learner. Reply with exactly one "
    "short, grammatically correct sentence of 4 to 8 words related to what the user "
    "said. Output the sentence only, without quotes, numbering or explanation."
)

SPELLING_REQUEST: Final[str] = "Generate word"

SPELLING_PROMPT_TEMPLATE: Final[str] = (
    "You are a strict word generator. Provide a single random simple noun in {language}. "
    "The word must be {length} long. "
    "Output ONLY the word itself. No punctuation, no explanation."
)

OBJECT_TAGGING_PROMPT: Final[str] = (
    "You are a language tutor helping the user name the objects around them. "
    "Refer to the objects they mention, teach their names, and keep answers short."
)

PROMPT_SEPARATOR: Final[str] = "\n\n"

# Quote characters stripped from both ends of a generated puzzle sentence
PUZZLE_STRIP_CHARS: Final[Tuple[str, ...]] = ('"', "'", "“", "”")
