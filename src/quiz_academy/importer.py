"""Import question banks from JSON or YAML files."""
import json
from datetime import datetime
from pathlib import Path

import yaml

from quiz_academy.db import get_connection, new_id
from quiz_academy.models import OPTION_LABELS, InvalidQuestion, QuizQuestion


def read_question_bank(file_path: str) -> dict:
    """Parse a bank file into ``{"academies": [...]}``."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        raise ValueError(f"Unsupported question bank format: {suffix or path.name}")
    if not isinstance(data, dict) or not isinstance(data.get("academies"), list):
        raise ValueError(f"{path.name}: expected an 'academies' list")
    return data


def _get_or_create(conn, table: str, name: str, academy_id: str | None = None) -> str:
    if table == "academies":
        row = conn.execute("SELECT id FROM academies WHERE name = ?", (name,)).fetchone()
    else:
        row = conn.execute(
            "SELECT id FROM topics WHERE academy_id = ? AND name = ?", (academy_id, name)
        ).fetchone()
    if row:
        return row["id"]
    new = new_id()
    now = datetime.now().isoformat()
    if table == "academies":
        conn.execute("INSERT INTO academies (id, name, created_at) VALUES (?, ?, ?)", (new, name, now))
    else:
        conn.execute(
            "INSERT INTO topics (id, academy_id, name, created_at) VALUES (?, ?, ?, ?)",
            (new, academy_id, name, now),
        )
    return new


def _build_question(raw: dict, academy_id: str, topic_id: str) -> QuizQuestion:
    options = {k.upper(): v for k, v in (raw.get("options") or {}).items()}
    unknown = set(options) - set(OPTION_LABELS)
    if unknown:
        raise InvalidQuestion(f"Unknown option labels {sorted(unknown)} in {raw.get('prompt')!r}")
    return QuizQuestion(
        id=raw.get("id") or new_id(),
        prompt=raw["prompt"],
        option_a=options.get("A", ""),
        option_b=options.get("B", ""),
        option_c=options.get("C"),
        option_d=options.get("D"),
        correct_label=str(raw["answer"]).strip().upper(),
        topic_id=topic_id,
        academy_id=academy_id,
        part=raw.get("part"),
    )


def import_question_bank(db_path: str, file_path: str) -> dict:
    """Insert every academy, topic and question of a bank file.

    Academies and topics are matched by name. All questions are validated
    before anything is written, so a bad question leaves the database as it was.
    """
    data = read_question_bank(file_path)
    conn = get_connection(db_path)
    counts = {"academies": 0, "topics": 0, "questions": 0}
    try:
        for academy in data["academies"]:
            academy_id = _get_or_create(conn, "academies", academy["name"])
            counts["academies"] += 1
            for topic in academy.get("topics", []):
                topic_id = _get_or_create(conn, "topics", topic["name"], academy_id)
                counts["topics"] += 1
                for raw in topic.get("questions", []):
                    q = _build_question(raw, academy_id, topic_id)
                    conn.execute(
                        """INSERT INTO questions
                        (id, academy_id, topic_id, part, prompt, option_a, option_b,
                         option_c, option_d, correct_label, created_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                        (q.id, q.academy_id, q.topic_id, q.part, q.prompt, q.option_a,
                         q.option_b, q.option_c, q.option_d, q.correct_label,
                         datetime.now().isoformat()),
                    )
                    counts["questions"] += 1
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return counts
