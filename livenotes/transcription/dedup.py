"""Near-duplicate detection for transcript chunks and analyzer suggestions.

Two algorithms live here:

* Raw chunk dedup: overlapping capture windows tend to re-transcribe the same
  speech, so a candidate that is equal to, contained in, or contains an
  already accepted chunk (case-insensitive) is rejected.
* Suggestion canonicalization: analyzer calls over overlapping context
  re-surface the same question in slightly different words. Each suggestion
  is reduced to a canonical token sequence (accents, punctuation, polite
  boilerplate and stopwords removed) and kept only if its Jaccard similarity
  with every previously kept suggestion stays below a threshold.

The word lists are locale specific and injected through
`CanonicalizationLexicon`; the algorithm itself is language-agnostic.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Sequence, Set, Tuple

DEFAULT_SIMILARITY_THRESHOLD = 0.8

_TOKEN_SPLIT = re.compile(r"[\W_]+", re.UNICODE)
_TRAILING_PUNCTUATION = ".?! \t\n"


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize('NFD', text.lower())
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def normalize_text(text: str) -> str:
    """Lowercase, trim and strip diacritics."""
    return _fold(text.strip())


@dataclass(frozen=True)
class CanonicalizationLexicon:
    """Locale word lists used to build canonical forms.

    Attributes:
        prefixes: Boilerplate openings ("pourriez-vous", ...). At most one is
            stripped, the longest that matches. A prefix ending in a letter or
            digit only matches a whole word, and hyphens also match a space
            ("pourriez vous").
        stopwords: Tokens dropped from the canonical form.
    """
    prefixes: Tuple[str, ...]
    stopwords: FrozenSet[str]

    def __post_init__(self):
        # Word lists are compared against normalized text, so normalize them
        # the same way once. Longest prefix first.
        variants: Set[str] = set()
        for prefix in self.prefixes:
            variants.update(_prefix_variants(prefix))
        object.__setattr__(self, 'prefixes', tuple(sorted(variants, key=lambda p: (-len(p), p))))
        object.__setattr__(self, 'stopwords',
                           frozenset(normalize_text(w) for w in self.stopwords))


def _prefix_variants(prefix: str) -> Set[str]:
    folded = _fold(prefix.strip())
    if not folded:
        return set()
    if folded[-1].isalnum():
        folded += ' '
    return {folded, folded.replace('-', ' ')}


FRENCH_PREFIXES = (
    "pourriez-vous ",
    "pouvez-vous ",
    "pourrait-on ",
    "peut-on ",
    "est-ce que ",
    "est-ce qu'",
    "est-il possible de ",
    "est-il possible d'",
    "serait-il possible de ",
    "serait-il possible d'",
    "serait-il utile de ",
    "serait-il utile d'",
    "faudrait-il ",
    "faut-il ",
    "devrait-on ",
    "doit-on ",
    "merci de ",
    "il faudrait ",
    "il serait utile de ",
    "il serait bon de ",
)

FRENCH_STOPWORDS = frozenset("""
    le la les l un une des du de d au aux
    et ou mais donc car ni or
    a à en dans pour par sur sous avec sans entre vers chez
    ce cet cette ces ca ça cela ceci
    que qu qui quoi dont
    je j tu il elle on nous vous ils elles
    me m te t se s y lui leur leurs
    mon ma mes ton ta tes son sa ses notre nos votre vos
    ne n pas plus
    est sont etre être etait était ete été sera seront serait
    ai as avons avez ont avoir avait aurait
    peut peux pouvons pouvez peuvent pourrait pourriez pouvoir
    doit doivent devez devrait devoir faut faudrait falloir
    fait faire possible utile
""".split())

FRENCH_LEXICON = CanonicalizationLexicon(prefixes=FRENCH_PREFIXES, stopwords=FRENCH_STOPWORDS)


def is_duplicate_chunk(candidate: str, existing_texts: Iterable[str]) -> bool:
    """Check whether a freshly transcribed text repeats an accepted chunk.

    Args:
        candidate: Newly transcribed text
        existing_texts: Texts of every chunk accepted so far

    Returns:
        True if, ignoring case and surrounding whitespace, the candidate equals
        an existing text or either one contains the other
    """
    needle = candidate.lower().strip()
    for existing in existing_texts:
        other = existing.lower().strip()
        if needle == other or needle in other or other in needle:
            return True
    return False


def canonical_form(text: str, lexicon: CanonicalizationLexicon = FRENCH_LEXICON) -> str:
    """Reduce a suggestion to its canonical token sequence.

    Example:
        "Pourriez-vous clarifier le budget ?" -> "clarifier budget"
    """
    normalized = normalize_text(text).rstrip(_TRAILING_PUNCTUATION)

    for prefix in lexicon.prefixes:
        if normalized.startswith(prefix):
            normalized = normalized[len(prefix):]
            break

    tokens = [t for t in _TOKEN_SPLIT.split(normalized) if t and t not in lexicon.stopwords]
    return ' '.join(tokens)


def jaccard_similarity(first: str, second: str) -> float:
    """Intersection over union of the whitespace token sets of two canonical forms."""
    first_tokens: Set[str] = set(first.split())
    second_tokens: Set[str] = set(second.split())
    union = first_tokens | second_tokens
    if not union:
        return 0.0
    return len(first_tokens & second_tokens) / len(union)


def dedupe_suggestions(candidates: Sequence[str],
                       lexicon: CanonicalizationLexicon = FRENCH_LEXICON,
                       threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> List[str]:
    """Drop near-duplicate suggestions, keeping the first seen wording.

    Args:
        candidates: Suggestions in the order they were produced
        lexicon: Word lists used for canonicalization
        threshold: Similarity at or above which a candidate is a duplicate

    Returns:
        Original texts of the kept candidates, in input order
    """
    kept: List[str] = []
    kept_forms: List[str] = []

    for candidate in candidates:
        form = canonical_form(candidate, lexicon)
        if not form:
            continue
        if any(jaccard_similarity(form, other) >= threshold for other in kept_forms):
            continue
        kept.append(candidate.strip())
        kept_forms.append(form)

    return kept
