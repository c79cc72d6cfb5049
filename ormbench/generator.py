"""Synthetic Book records with pseudo-random field values."""

import random
import time
from datetime import datetime, timezone

from ormbench.models import Book

TAG_COUNT = 10
AUTHOR_ID = 1

WORDS = (
    "alias", "amet", "aperiam", "architecto", "aspernatur", "atque", "autem",
    "beatae", "blanditiis", "commodi", "consequatur", "corporis", "culpa",
    "cupiditate", "debitis", "delectus", "deserunt", "dicta", "dignissimos",
    "distinctio", "dolor", "dolore", "dolorem", "doloremque", "ducimus", "earum",
    "eligendi", "enim", "eos", "error", "esse", "eum", "eveniet", "excepturi",
    "exercitationem", "expedita", "explicabo", "facere", "facilis", "fuga",
    "fugiat", "harum", "hic", "illo", "impedit", "incidunt", "inventore",
    "ipsa", "ipsum", "iste", "itaque", "iure", "labore", "laboriosam",
    "laudantium", "libero", "magnam", "maiores", "maxime", "minima", "modi",
    "molestiae", "mollitia", "natus", "necessitatibus", "nemo", "neque",
    "nesciunt", "nihil", "nisi", "nobis", "nostrum", "numquam", "obcaecati",
    "odio", "officia", "omnis", "optio", "pariatur", "perferendis",
    "perspiciatis", "placeat", "porro", "possimus", "praesentium", "provident",
    "quae", "quaerat", "quam", "quas", "quasi", "quibusdam", "quidem", "quis",
    "quo", "quod", "ratione", "recusandae", "reiciendis", "rem", "repellat",
    "repellendus", "reprehenderit", "repudiandae", "rerum", "saepe", "sapiente",
    "sequi", "similique", "sint", "sit", "soluta", "sunt", "suscipit",
    "tempora", "tempore", "temporibus", "tenetur", "totam", "ullam", "unde",
    "vel", "velit", "veniam", "veritatis", "vero", "vitae", "voluptas",
    "voluptate", "voluptatem", "voluptates", "voluptatibus", "voluptatum",
)


class RecordGenerator:
    """
    Produces a fresh Book per call.

    The generator is seeded once; without an explicit seed the current time
    is used, so two processes never produce the same stream.
    """

    def __init__(self, seed: int | None = None, author_id: int = AUTHOR_ID):
        self.seed = time.time_ns() if seed is None else seed
        self.author_id = author_id
        self._random = random.Random(self.seed)

    def word(self) -> str:
        return self._random.choice(WORDS)

    def words(self, n: int) -> str:
        return " ".join(self._random.choices(WORDS, k=n))

    def title(self) -> str:
        return " ".join(w.capitalize() for w in self._random.choices(WORDS, k=self._random.randint(1, 4)))

    def fill(self) -> Book:
        """Return a new record; the tags list is never shared between records."""
        return Book(
            title=self.title(),
            author_id=self.author_id,
            tags=[self.word() for _ in range(TAG_COUNT)],
            price=self._random.random(),
            publish_date=datetime.now(timezone.utc),
            text=self.words(10),
            text2=self.words(20),
            text3=self.words(30),
        )
