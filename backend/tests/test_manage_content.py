#!/usr/bin/env python3
"""
Content management CLI tests
"""

import importlib.util
import json
import os

import pytest

from grassroutes.crud.crud_lesson_content import lesson_content as crud_lesson_content
from grassroutes.crud.crud_question import question as crud_question

SCRIPT = os.path.join(os.path.dirname(__file__), "..", "scripts", "manage_content.py")


@pytest.fixture(scope="module")
def manage_content():
    spec = importlib.util.spec_from_file_location("manage_content", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_add_view_edit_delete_content(db, manage_content, capsys):
    assert manage_content.main(["content", "add", "--lesson", "4", "--type", "tip", "--title", "Tip", "--text", "Call early"]) == 0
    item = crud_lesson_content.get_by_lesson(db, lesson_id=4)[0]

    assert manage_content.main(["content", "view", "--lesson", "4"]) == 0
    assert "Call early" in capsys.readouterr().out

    assert manage_content.main(["content", "edit", str(item.id), "--order", "3"]) == 0
    db.refresh(item)
    assert item.content_order == 3

    assert manage_content.main(["content", "delete", str(item.id)]) == 0
    assert manage_content.main(["content", "delete", str(item.id)]) == 1


def test_clear_lesson_content(db, manage_content, capsys):
    for text in ("One", "Two"):
        manage_content.main(["content", "add", "--lesson", "6", "--text", text])
    manage_content.main(["content", "add", "--lesson", "7", "--text", "Keep"])

    assert manage_content.main(["content", "clear", "--lesson", "6"]) == 0
    assert "Deleted 2 content blocks of lesson 6." in capsys.readouterr().out
    assert crud_lesson_content.get_by_lesson(db, lesson_id=6) == []
    assert len(crud_lesson_content.get_by_lesson(db, lesson_id=7)) == 1


def test_add_and_edit_question(db, manage_content, capsys):
    assert manage_content.main([
        "questions", "add", "--module", "1-b-2", "--type", "mc", "--text", "Which branch writes laws?",
        "--answers", '["Congress", "Courts"]', "--correct", "Congress",
    ]) == 0
    question = crud_question.get_by_module(db, module="1-b-2")[0]
    assert question.answers == ["Congress", "Courts"]

    assert manage_content.main(["questions", "edit", str(question.id), "--source", "Constitution"]) == 0
    db.refresh(question)
    assert question.source == "Constitution"

    assert manage_content.main(["questions", "edit", "999", "--source", "x"]) == 1


def test_invalid_input_is_reported(db, manage_content, capsys):
    assert manage_content.main([
        "questions", "add", "--module", "9-z-9", "--text", "Bad module", "--correct", "x",
    ]) == 1
    assert manage_content.main([
        "questions", "add", "--module", "1-a-1", "--text", "Bad answers", "--answers", "{}", "--correct", "x",
    ]) == 1
    assert manage_content.main([
        "questions", "add", "--module", "1-a-1", "--type", "select", "--text", "No answers", "--correct", "x",
    ]) == 1
    assert "Error:" in capsys.readouterr().out
    assert crud_question.get_by_module(db, module="1-a-1") == []


def test_import_file(db, manage_content, tmp_path):
    data = {
        "lesson_content": [{"lesson_id": 5, "content_type": "paragraph", "content": "Read this"}],
        "questions": [{"module": "1-a-5", "type": "tf", "text": "True?", "answers": ["True", "False"], "correct_answer": "True"}],
    }
    path = tmp_path / "content.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    assert manage_content.main(["import", str(path)]) == 0
    assert len(crud_lesson_content.get_by_lesson(db, lesson_id=5)) == 1
    assert len(crud_question.get_by_module(db, module="1-a-5")) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
