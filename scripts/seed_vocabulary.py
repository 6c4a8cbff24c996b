"""Seed the words table with a starter set of advanced English vocabulary."""
from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

sys.path.append(str(Path(__file__).resolve().parent.parent))

from app.db.models.vocabulary import Word
from app.db.session import SessionLocal


SEED_WORDS: list[dict] = [
    {
        "id": "word-1",
        "word": "Serendipity",
        "pronunciation": "/ˌser.ənˈdɪp.ə.ti/",
        "definition": "The occurrence of pleasant things that happen by chance",
        "synonym": "Luck",
        "context_difference": "Serendipity implies a fortunate discovery made by accident, often with positive outcomes, while luck is more general.",
        "usages": [
            "Finding that rare book in the small bookstore was pure serendipity.",
            "Their meeting was serendipity, leading to a lifelong friendship.",
        ],
        "difficulty_level": 3,
        "category": "literary",
    },
    {
        "id": "word-2",
        "word": "Ubiquitous",
        "pronunciation": "/juːˈbɪk.wɪ.təs/",
        "definition": "Present, appearing, or found everywhere",
        "synonym": "Widespread",
        "context_difference": "Ubiquitous suggests something is everywhere simultaneously, while widespread indicates broad distribution.",
        "usages": [
            "Smartphones have become ubiquitous in modern society.",
            "The company's logo is ubiquitous across all their products.",
        ],
        "difficulty_level": 3,
        "category": "academic",
    },
    {
        "id": "word-3",
        "word": "Ephemeral",
        "pronunciation": "/ɪˈfem.ər.əl/",
        "definition": "Lasting for a very short time",
        "synonym": "Temporary",
        "context_difference": "Ephemeral emphasizes the fleeting nature, often with poetic connotations, while temporary is more neutral.",
        "usages": [
            "The beauty of cherry blossoms is ephemeral, lasting only a few weeks each spring.",
            "Social media trends are ephemeral, quickly replaced by new ones.",
        ],
        "difficulty_level": 3,
        "category": "literary",
    },
    {
        "id": "word-4",
        "word": "Pernicious",
        "pronunciation": "/pərˈnɪʃ.əs/",
        "definition": "Having a harmful effect, especially in a gradual or subtle way",
        "synonym": "Harmful",
        "context_difference": "Pernicious implies subtle, gradual harm that may not be immediately obvious, while harmful is more general.",
        "usages": [
            "The pernicious effects of misinformation spread slowly through social networks.",
            "His pernicious influence corrupted the entire organization.",
        ],
        "difficulty_level": 4,
        "category": "academic",
    },
    {
        "id": "word-5",
        "word": "Ineffable",
        "pronunciation": "/ɪˈnef.ə.bəl/",
        "definition": "Too great or extreme to be expressed or described in words",
        "synonym": "Indescribable",
        "context_difference": "Ineffable emphasizes something beyond verbal expression, often with spiritual or emotional depth.",
        "usages": [
            "The ineffable beauty of the sunset left them speechless.",
            "She felt an ineffable sense of peace after meditation.",
        ],
        "difficulty_level": 4,
        "category": "literary",
    },
    {
        "id": "word-6",
        "word": "Perspicacious",
        "pronunciation": "/ˌpɜː.spɪˈkeɪ.ʃəs/",
        "definition": "Having keen mental perception and understanding",
        "synonym": "Insightful",
        "context_difference": "Perspicacious emphasizes sharp intellectual perception, while insightful focuses on deep understanding.",
        "usages": [
            "The perspicacious analyst predicted the market crash months in advance.",
            "Her perspicacious observations revealed hidden patterns in the data.",
        ],
        "difficulty_level": 4,
        "category": "academic",
    },
    {
        "id": "word-7",
        "word": "Laconic",
        "pronunciation": "/ləˈkɒn.ɪk/",
        "definition": "Using very few words; concise to the point of seeming rude",
        "synonym": "Brief",
        "context_difference": "Laconic implies extreme brevity that may seem terse or abrupt, while brief simply means short.",
        "usages": [
            "His laconic response left no room for further discussion.",
            "The laconic style of the author appealed to readers who preferred minimalism.",
        ],
        "difficulty_level": 3,
        "category": "literary",
    },
    {
        "id": "word-8",
        "word": "Mellifluous",
        "pronunciation": "/məˈlɪf.lu.əs/",
        "definition": "Having a sweet, smooth, flowing sound",
        "synonym": "Harmonious",
        "context_difference": "Mellifluous specifically describes pleasant sounds, especially voices or music, while harmonious is broader.",
        "usages": [
            "The singer's mellifluous voice captivated the entire audience.",
            "The mellifluous tones of the violin filled the concert hall.",
        ],
        "difficulty_level": 3,
        "category": "literary",
    },
]


def seed_words(db: Session) -> int:
    """Insert the starter words when the table is empty; return rows added."""

    existing = int(db.scalar(select(func.count()).select_from(Word)) or 0)
    if existing:
        logger.info("Words table already populated", count=existing)
        return 0
    db.add_all(Word(**row) for row in SEED_WORDS)
    db.commit()
    logger.info("Seeded advanced words", count=len(SEED_WORDS))
    return len(SEED_WORDS)


if __name__ == "__main__":
    session = SessionLocal()
    try:
        added = seed_words(session)
    finally:
        session.close()
    print(f"Seeded {added} words")
