from app.db.models import Word
from scripts.seed_vocabulary import SEED_WORDS, seed_words


def test_seed_words_populates_empty_catalogue_once(db_session):
    assert seed_words(db_session) == len(SEED_WORDS)
    assert seed_words(db_session) == 0

    assert db_session.query(Word).count() == len(SEED_WORDS)
    serendipity = db_session.get(Word, "word-1")
    assert serendipity.word == "Serendipity"
    assert len(serendipity.usages) == 2
