"""
Keyword-based topic classification for 3I/ATLAS articles.

HOW IT WORKS:
  1. title and body are joined and lowercased
  2. CATEGORY_RULES are tried top to bottom; a rule matches when any of its
     keywords appears as a substring
  3. The first matching rule decides the category, otherwise "other"

Rule order is part of the contract: an article that debunks a trajectory
rumor is a debunking article, not a trajectory article.
"""

from typing import Optional, Sequence, Tuple

from ..schemas import Category

# Ordered; first match wins.
CATEGORY_RULES: Sequence[Tuple[Tuple[str, ...], Category]] = (
    (("debunk", "false", "incorrect"), Category.DEBUNKING),
    (("timeline", "chronology", "sequence"), Category.TIMELINE_EVENT),
    (("china", "russia", "japan", "india", "international"), Category.INTERNATIONAL_PERSPECTIVE),
    (("trajectory", "orbit", "path"), Category.TRAJECTORY),
    (("composition", "chemical", "element"), Category.COMPOSITION),
    (("activity", "outgassing", "tail"), Category.ACTIVITY),
    (("government", "statement", "official"), Category.GOVERNMENT_STATEMENT),
    (("speculation", "theory", "claim"), Category.SPECULATION),
    (("discovery", "observation", "telescope"), Category.SCIENTIFIC_DISCOVERY),
)


def categorize(title: Optional[str], body: Optional[str]) -> Category:
    """Classify an article by title + body. Pure and deterministic."""
    text = f"{title or ''} {body or ''}".lower()
    for keywords, category in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return Category.OTHER
