import json
import os
from typing import Dict, List, Tuple
import logging

from .models import ClassLevel, Course, QuestionBank, QuestionType, TraitCategory

logger = logging.getLogger(__name__)


def _read_json(file_path: str, kind: str) -> dict:
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"{kind} file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_question_bank(file_path: str) -> QuestionBank:
    try:
        data = _read_json(file_path, "Question bank")
        bank = QuestionBank(**data)

        logger.info(
            f"Loaded question bank for class {bank.class_level}: "
            f"{len(bank.baseline)} baseline, {len(bank.all_questions()) - len(bank.baseline)} deep-dive"
        )
        return bank

    except Exception as e:
        logger.error(f"Failed to load question bank {file_path}: {e}")
        raise


def load_question_banks(files: Dict[ClassLevel, str]) -> Dict[ClassLevel, QuestionBank]:
    return {level: load_question_bank(path) for level, path in files.items()}


def load_courses(file_path: str) -> List[Course]:
    try:
        data = _read_json(file_path, "Courses")
        courses = [Course(**course_data) for course_data in data['courses']]

        logger.info(f"Successfully loaded {len(courses)} courses")
        return courses

    except Exception as e:
        logger.error(f"Failed to load courses: {e}")
        raise


def validate_data_integrity(banks: Dict[ClassLevel, QuestionBank], courses: List[Course]) -> Tuple[bool, List[str]]:
    """Report catalog problems; the selector tolerates them, so this only warns"""
    errors = []

    for level, bank in banks.items():
        if bank.class_level != level.value:
            errors.append(f"Bank for class {level.value} declares class {bank.class_level}")

        if len(bank.baseline) < 3:
            errors.append(f"Class {level.value} bank has {len(bank.baseline)} baseline questions, expected 3")

        for category in TraitCategory:
            if not bank.pool(category):
                errors.append(f"Class {level.value} bank has no deep-dive pool for {category.full_name}")

        seen = set()
        for question in bank.all_questions():
            if question.id in seen:
                errors.append(f"Duplicate question id {question.id} in class {level.value} bank")
            seen.add(question.id)

            if question.type == QuestionType.RATING:
                if not question.options and not question.scale_weights:
                    errors.append(f"Rating question {question.id} has no weights")
            elif not question.options:
                errors.append(f"Question {question.id} has no options")

        for key, pool in bank.deepdive.items():
            for question in pool:
                if question.category is None or question.category.full_name != key:
                    errors.append(f"Question {question.id} sits in the {key} pool but targets {question.category}")

    course_ids = set()
    for course in courses:
        if course.id in course_ids:
            errors.append(f"Duplicate course id {course.id}")
        course_ids.add(course.id)

    is_valid = len(errors) == 0
    if is_valid:
        logger.info("Data validation passed")
    else:
        logger.warning(f"Data validation failed with {len(errors)} errors")

    return is_valid, errors
