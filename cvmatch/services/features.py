"""
Text features used by the lexical matcher: language tag and skill set.

Tokenization is a plain lowercase whitespace split. Punctuation stays
attached to its token, so "Python," and "python" are different tokens, and
multi-word vocabulary terms such as "machine learning" never match a single
token.
"""
from typing import FrozenSet, List

from cvmatch.helpers.vocabulary import DEFAULT_VOCABULARY
from cvmatch.models.models import ControlledVocabulary

FRENCH_STOP_WORDS = frozenset(["le", "la", "les", "un", "une", "des", "et", "est", "dans", "pour"])
ENGLISH_STOP_WORDS = frozenset(["the", "a", "an", "and", "is", "in", "for", "to", "of", "with"])


def tokenize(text: str) -> List[str]:
    return text.lower().split()


def detect_language(text: str) -> str:
    """Return "French" when French stop words outnumber English ones, else "English"."""
    words = tokenize(text)
    french_count = sum(1 for w in words if w in FRENCH_STOP_WORDS)
    english_count = sum(1 for w in words if w in ENGLISH_STOP_WORDS)
    return "French" if french_count > english_count else "English"


def extract_skills(text: str, vocabulary: ControlledVocabulary = DEFAULT_VOCABULARY) -> FrozenSet[str]:
    """Return the vocabulary terms that occur as exact tokens in text."""
    words = set(tokenize(text))
    return frozenset(term for term in vocabulary.terms if term in words)
