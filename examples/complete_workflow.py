"""
Complete workflow example: Quiz → Score → Reconcile → Store

Demonstrates one submission cycle twice for the same learner and topic:
1. Load a stored quiz
2. Score the first attempt (open-ended answers graded in one batch)
3. Store the reconciled learning profile
4. Retake the quiz and watch contradicted entries move between lists
5. Show dashboard statistics

Set GRADING_API_URL (or GRADING_BACKEND=llm with OPENAI_API_KEY) to grade
open-ended answers; without a grader they get the fallback credit.
"""

import tempfile

from tutorai.agents import create_grader
from tutorai.config import config, configure_logging
from tutorai.orchestrator import QuizSubmissionService, load_quiz
from tutorai.utils import JsonFileProfileStore, learning_stats

QUIZ = {
    "id": "quiz-python-basics",
    "title": "Python Basics",
    "topic": "Python",
    "difficulty": "easy",
    "questions": [
        {"question": "Which keyword defines a function?", "type": "single",
         "options": ["func", "def", "lambda"], "correct_answer": "def"},
        {"question": "Which types are immutable?", "type": "multiple",
         "options": ["list", "tuple", "str", "dict"], "correct_answer": [1, 2]},
        {"question": "Indentation is significant in Python", "type": "true_false",
         "correct_answer": True},
        {"question": "Explain what a list comprehension is", "type": "open_ended",
         "correct_answer": "A concise expression that builds a list from an iterable"},
    ],
}


def print_profile(profile):
    print(f"  Score: {profile.progress_score}%")
    print("  Weak areas:")
    for entry in profile.weak_areas:
        print(f"    - {entry}")
    print("  Strengths:")
    for entry in profile.strengths:
        print(f"    + {entry}")
    print()


def main():
    configure_logging()

    grader = None
    if not config.validate():
        grader = create_grader()
    else:
        print("⚠ No grader configured, open-ended answers get fallback credit\n")

    store = JsonFileProfileStore(tempfile.mkdtemp())
    service = QuizSubmissionService(grader=grader, store=store)
    quiz = load_quiz(QUIZ)

    # ==================== Attempt 1 ====================
    print("=" * 60)
    print("ATTEMPT 1")
    print("=" * 60)
    answers = [[1], [2, 0], False, "It's a loop written inside brackets"]
    result = service.submit(quiz, answers, user_id="alice")
    print_profile(result.profile)

    for number, feedback in enumerate(service.review(quiz, answers, result.attempt), start=1):
        mark = "✓" if feedback["is_correct"] else "✗"
        print(f"  {mark} Q{number}: {feedback['explanation'] or feedback['correct_answer']}")
    print()

    # ==================== Attempt 2 ====================
    print("=" * 60)
    print("ATTEMPT 2")
    print("=" * 60)
    answers = [[1], [1, 2], True, "An expression that builds a new list from an iterable"]
    result = service.submit(quiz, answers, user_id="alice")
    print_profile(result.profile)

    # ==================== Dashboard ====================
    stats = learning_stats(store.list_profiles("alice"))
    print(f"Topics: {stats['total_topics']}  Level: {stats['current_level']}  "
          f"Overall: {stats['overall_progress']}%")


if __name__ == "__main__":
    main()
