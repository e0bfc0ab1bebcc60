# backend/grassroutes/api/endpoints/content.py
from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from grassroutes.config.dependency_injection import get_db
from grassroutes.crud.crud_question import question as crud_question
from grassroutes.schemas.content import Lesson, LessonContentItem, Section, Unit
from grassroutes.schemas.quiz import QuizQuestion
from grassroutes.schemas.response import StandardResponse
from grassroutes.services import content_loader

router = APIRouter()


@router.get("/units", response_model=StandardResponse[List[Unit]])
def get_units():
    """All units of the pathway."""
    try:
        return StandardResponse(data=content_loader.get_units())
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/sections/{unit_id}", response_model=StandardResponse[List[Section]])
def get_sections(unit_id: int = Path(..., ge=1)):
    try:
        return StandardResponse(data=content_loader.get_sections(unit_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/lessons/{section_id}", response_model=StandardResponse[List[Lesson]])
def get_lessons(section_id: int = Path(..., ge=1)):
    try:
        return StandardResponse(data=content_loader.get_lessons(section_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/lesson/{lesson_id}", response_model=StandardResponse[Lesson])
def get_lesson(lesson_id: int = Path(..., ge=1)):
    try:
        return StandardResponse(data=content_loader.get_lesson(lesson_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/questions/{lesson_id}", response_model=StandardResponse[List[QuizQuestion]])
def get_questions(lesson_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    """
    Questions of a lesson, transformed from the stored authoring format.
    """
    try:
        content_loader.get_lesson(lesson_id)
        return StandardResponse(data=content_loader.load_lesson_questions(db, lesson_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/lesson-content/{lesson_id}", response_model=StandardResponse[List[LessonContentItem]])
def get_lesson_content(lesson_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    try:
        content_loader.get_lesson(lesson_id)
        return StandardResponse(data=content_loader.load_lesson_content(db, lesson_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/sources", response_model=StandardResponse[Dict[str, Dict[str, Dict[str, List[str]]]]])
def get_sources(db: Session = Depends(get_db)):
    """
    Question sources grouped as {unit: {section letter: {lesson index: [sources]}}}.
    """
    try:
        pairs = crud_question.get_module_sources(db)
        return StandardResponse(data=content_loader.group_sources(pairs))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
