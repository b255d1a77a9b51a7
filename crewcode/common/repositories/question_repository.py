"""Question bank used to build coding tasks."""

from __future__ import annotations

import json
import logging
import random
from datetime import datetime
from typing import Any, Dict, List

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

QUESTION_FIELDS = ("question", "options", "answer", "category", "difficulty")


class QuestionRepository(BaseRepository):
    """Read access to the `questions` collection plus JSON seeding."""

    def __init__(self, db_controller) -> None:
        super().__init__(db_controller, "questions")

    def count(self) -> int:
        return self.collection.count_documents({})

    def import_from_json(self, questions: List[Dict[str, Any]]) -> int:
        """Replace the bank with ``questions``; returns the number stored."""
        documents = []
        for entry in questions:
            missing = [field for field in QUESTION_FIELDS if field not in entry]
            if missing:
                logger.warning("question_skipped missing=%s", ",".join(missing))
                continue
            document = {field: entry[field] for field in QUESTION_FIELDS}
            document["created_at"] = datetime.now()
            documents.append(document)
        if not documents:
            return 0
        self.collection.delete_many({})
        self.collection.insert_many(documents)
        return len(documents)

    def seed_from_file(self, json_path: str) -> int:
        """Load the packaged bank when the collection is empty."""
        if self.count():
            return 0
        with open(json_path, "r", encoding="utf-8") as handle:
            questions = json.load(handle)
        stored = self.import_from_json(questions)
        logger.info("question_bank_seeded count=%d path=%s", stored, json_path)
        return stored

    def get_random_questions(self, count: int) -> List[Dict[str, Any]]:
        """Draw ``count`` questions; repeats only when the bank is smaller than ``count``."""
        bank = [self._without_id(q) for q in self.collection.find({})]
        if not bank:
            return []
        if len(bank) >= count:
            return random.sample(bank, count)
        return random.choices(bank, k=count)
