from sqlalchemy import Column, Integer, JSON, String, Text
from grassroutes.db.base_class import Base


class Question(Base):
    """Quiz question as stored by the content team.

    The stored shape is the authoring format; the API shape is produced by
    ``services.content_loader.transform_question``.

    Attributes:
        id: auto-increment id
        text: question text
        type: authoring type code ('mc', 'tf', 'fill_in', 'select', 'select_all')
        difficulty: free-form difficulty tag
        location_tag: free-form location tag
        answers: option texts, a JSON list (older rows hold a JSON string)
        correct_answer: correct option text, or a JSON list for select-all
        module: '<unit>-<section letter>-<lesson index>', e.g. '1-a-1'
        source: citation shown after a correct answer
        comments: explanation shown after a correct answer
    """
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    type = Column(String, nullable=True)
    difficulty = Column(String, nullable=True)
    location_tag = Column(String, nullable=True)
    answers = Column(JSON, nullable=True)
    correct_answer = Column(Text, nullable=True)
    module = Column(String, index=True, nullable=True)
    source = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
