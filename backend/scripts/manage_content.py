#!/usr/bin/env python3
# scripts/manage_content.py
"""
Manage lesson content and quiz questions from the command line.

    python scripts/manage_content.py content view --lesson 1
    python scripts/manage_content.py content add --lesson 1 --type tip --title Tip --text "..."
    python scripts/manage_content.py content edit 3 --order 2
    python scripts/manage_content.py content delete 3
    python scripts/manage_content.py content clear --lesson 1
    python scripts/manage_content.py questions view --module 1-a-1
    python scripts/manage_content.py questions add --module 1-a-1 --type mc --text "..." \
        --answers '["Yes", "No"]' --correct Yes
    python scripts/manage_content.py questions edit 12 --source "National Archives"
    python scripts/manage_content.py questions delete 12
    python scripts/manage_content.py import data.json
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

# Add the backend directory to the Python path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from pydantic import ValidationError
from sqlalchemy.orm import Session

from grassroutes.crud.crud_lesson_content import lesson_content as crud_lesson_content
from grassroutes.crud.crud_question import question as crud_question
from grassroutes.db.database import SessionLocal
from grassroutes.db.init_db import init_db
from grassroutes.schemas.content import (
    LessonContentCreate,
    LessonContentUpdate,
    QuestionCreate,
    QuestionUpdate,
)


def _parse_answers(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    answers = json.loads(raw)
    if not isinstance(answers, list):
        raise ValueError("answers must be a JSON array")
    return [str(a) for a in answers]


def view_content(db: Session, lesson_id: Optional[int]) -> int:
    if lesson_id is not None:
        items = crud_lesson_content.get_by_lesson(db, lesson_id=lesson_id)
    else:
        items = crud_lesson_content.get_multi(db, limit=10_000, sort_by=[("lesson_id", "asc"), ("content_order", "asc")])
    if not items:
        print("No lesson content found.")
    for item in items:
        print(f"[{item.id}] lesson {item.lesson_id} #{item.content_order} {item.content_type}: {item.title or '(no title)'}")
        print(f"    {item.content}")
    return 0


def view_questions(db: Session, module: Optional[str]) -> int:
    if module:
        rows = crud_question.get_by_module(db, module=module)
    else:
        rows = crud_question.get_multi(db, limit=10_000, sort_by=[("module", "asc"), ("id", "asc")])
    if not rows:
        print("No questions found.")
    for q in rows:
        answers = json.dumps(q.answers) if isinstance(q.answers, list) else (q.answers or "(none)")
        print(f"[{q.id}] {q.module} ({q.type}) {q.text}")
        print(f"    Answers: {answers}")
        print(f"    Correct Answer: {q.correct_answer or '(none)'}")
    return 0


def import_file(db: Session, path: Path) -> int:
    """Append the lesson content and questions of a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    contents = [LessonContentCreate(**item) for item in data.get("lesson_content", [])]
    questions = [QuestionCreate(**item) for item in data.get("questions", [])]
    for item in contents:
        crud_lesson_content.create(db, obj_in=item)
    for item in questions:
        crud_question.create(db, obj_in=item)
    print(f"Imported {len(contents)} lesson content blocks and {len(questions)} questions.")
    return 0


def _update(db: Session, crud, obj_id: int, obj_in) -> int:
    db_obj = crud.get(db, obj_id)
    if db_obj is None:
        print(f"Record {obj_id} not found.")
        return 1
    crud.update(db, db_obj=db_obj, obj_in=obj_in)
    print(f"Record {obj_id} updated.")
    return 0


def _delete(db: Session, crud, obj_id: int) -> int:
    if crud.remove(db, obj_id=obj_id) is None:
        print(f"Record {obj_id} not found.")
        return 1
    print(f"Record {obj_id} deleted.")
    return 0


def run(args: argparse.Namespace, db: Session) -> int:
    if args.command == "import":
        return import_file(db, args.file)

    if args.command == "content":
        if args.action == "view":
            return view_content(db, args.lesson)
        if args.action == "add":
            item = crud_lesson_content.create(db, obj_in=LessonContentCreate(
                lesson_id=args.lesson, content_type=args.type, content_order=args.order,
                title=args.title, content=args.text,
            ))
            print(f"Lesson content {item.id} added.")
            return 0
        if args.action == "edit":
            fields = {"content_type": args.type, "content_order": args.order, "title": args.title, "content": args.text}
            return _update(db, crud_lesson_content, args.id,
                           LessonContentUpdate(**{k: v for k, v in fields.items() if v is not None}))
        if args.action == "delete":
            return _delete(db, crud_lesson_content, args.id)
        if args.action == "clear":
            deleted = crud_lesson_content.remove_by_lesson(db, lesson_id=args.lesson)
            print(f"Deleted {deleted} content blocks of lesson {args.lesson}.")
            return 0

    if args.command == "questions":
        if args.action == "view":
            return view_questions(db, args.module)
        if args.action == "add":
            item = crud_question.create(db, obj_in=QuestionCreate(
                module=args.module, type=args.type, text=args.text,
                answers=_parse_answers(args.answers), correct_answer=args.correct,
                comments=args.comments, source=args.source,
            ))
            print(f"Question {item.id} added.")
            return 0
        if args.action == "edit":
            fields = {
                "module": args.module, "type": args.type, "text": args.text,
                "answers": _parse_answers(args.answers), "correct_answer": args.correct,
                "comments": args.comments, "source": args.source,
            }
            return _update(db, crud_question, args.id,
                           QuestionUpdate(**{k: v for k, v in fields.items() if v is not None}))
        if args.action == "delete":
            return _delete(db, crud_question, args.id)

    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage grassroutes lesson content and questions")
    commands = parser.add_subparsers(dest="command", required=True)

    content = commands.add_parser("content", help="lesson reading material")
    content_actions = content.add_subparsers(dest="action", required=True)
    view = content_actions.add_parser("view")
    view.add_argument("--lesson", type=int)
    add = content_actions.add_parser("add")
    add.add_argument("--lesson", type=int, required=True)
    add.add_argument("--type", default="paragraph", choices=["header", "paragraph", "tip", "list"])
    add.add_argument("--order", type=int, default=1)
    add.add_argument("--title")
    add.add_argument("--text", required=True)
    edit = content_actions.add_parser("edit")
    edit.add_argument("id", type=int)
    edit.add_argument("--type", choices=["header", "paragraph", "tip", "list"])
    edit.add_argument("--order", type=int)
    edit.add_argument("--title")
    edit.add_argument("--text")
    delete = content_actions.add_parser("delete")
    delete.add_argument("id", type=int)
    clear = content_actions.add_parser("clear", help="delete all content blocks of a lesson")
    clear.add_argument("--lesson", type=int, required=True)

    questions = commands.add_parser("questions", help="quiz questions")
    question_actions = questions.add_subparsers(dest="action", required=True)
    view = question_actions.add_parser("view")
    view.add_argument("--module")
    for name in ("add", "edit"):
        sub = question_actions.add_parser(name)
        if name == "edit":
            sub.add_argument("id", type=int)
        sub.add_argument("--module", required=name == "add")
        sub.add_argument("--type", choices=["mc", "tf", "fill_in", "select", "select_all"],
                         default="mc" if name == "add" else None)
        sub.add_argument("--text", required=name == "add")
        sub.add_argument("--answers", help='JSON array, e.g. \'["option1", "option2"]\'')
        sub.add_argument("--correct", required=name == "add")
        sub.add_argument("--comments")
        sub.add_argument("--source")
    delete = question_actions.add_parser("delete")
    delete.add_argument("id", type=int)

    imp = commands.add_parser("import", help="append content and questions from a JSON file")
    imp.add_argument("file", type=Path)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    init_db()
    db = SessionLocal()
    try:
        return run(args, db)
    except (ValidationError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
