"""
Practice question generation.

Math questions are synthesized from random operands scaled by grade; English
questions are drawn from a fixed template bank. Nothing here touches the
database or the network.
"""
import random
from typing import List, Optional

from eduquest.schemas.question import Question

SUPPORTED_SUBJECTS = ("math", "english")

# Grades at or above this also get multiplication
MULTIPLICATION_MIN_GRADE = 3

# (question, answer, explanation)
ENGLISH_TEMPLATES = [
    ("What is the opposite of 'hot'?", "cold",
     "'Hot' and 'cold' are antonyms: words with opposite meanings."),
    ("What is the opposite of 'happy'?", "sad",
     "'Happy' and 'sad' describe opposite feelings."),
    ("What is the plural of 'child'?", "children",
     "'Child' is an irregular noun; its plural is 'children', not 'childs'."),
    ("What is the plural of 'box'?", "boxes",
     "Nouns ending in 'x' take '-es' in the plural."),
    ("What is the plural of 'mouse'?", "mice",
     "'Mouse' is an irregular noun; its plural is 'mice'."),
    ("Which is spelled correctly: 'freind' or 'friend'?", "friend",
     "Remember 'i before e': f-r-i-e-n-d."),
    ("Which is spelled correctly: 'becuase' or 'because'?", "because",
     "'Because' is spelled b-e-c-a-u-s-e."),
    ("What punctuation mark ends a question?", "?",
     "A question mark (?) goes at the end of every question."),
    ("What is a synonym for 'big'?", "large",
     "'Big' and 'large' are synonyms: words with the same meaning."),
    ("What is a synonym for 'quick'?", "fast",
     "'Quick' and 'fast' both mean moving with speed."),
    ("What is the past tense of 'run'?", "ran",
     "'Run' is an irregular verb; its past tense is 'ran'."),
    ("What is the past tense of 'jump'?", "jumped",
     "Regular verbs form the past tense by adding '-ed'."),
    ("Which word is a noun in 'The dog barked'?", "dog",
     "A noun names a person, place or thing; 'dog' is the thing doing the barking."),
    ("Which word is a verb in 'Sam reads books'?", "reads",
     "A verb is an action word; 'reads' is what Sam does."),
    ("What letter should start the first word of a sentence: capital or lowercase?", "capital",
     "Every sentence begins with a capital letter."),
]


def _math_question(grade: int, rng: random.Random) -> Question:
    operations = ["+", "-"]
    if grade >= MULTIPLICATION_MIN_GRADE:
        operations.append("*")
    op = rng.choice(operations)

    if op == "*":
        max_factor = grade + 2
        a = rng.randint(1, max_factor)
        b = rng.randint(1, max_factor)
        return Question(
            subject="math",
            grade=grade,
            question=f"What is {a} × {b}?",
            answer=str(a * b),
            explanation=f"Multiplying {a} by {b} gives us {a * b}",
        )

    max_operand = 10 * grade
    a = rng.randint(1, max_operand)
    b = rng.randint(1, max_operand)

    if op == "+":
        return Question(
            subject="math",
            grade=grade,
            question=f"What is {a} + {b}?",
            answer=str(a + b),
            explanation=f"Adding {a} and {b} gives us {a + b}",
        )

    # Larger operand first so the difference is never negative
    if b > a:
        a, b = b, a
    return Question(
        subject="math",
        grade=grade,
        question=f"What is {a} - {b}?",
        answer=str(a - b),
        explanation=f"Subtracting {b} from {a} gives us {a - b}",
    )


def _english_question(grade: int, rng: random.Random) -> Question:
    question, answer, explanation = rng.choice(ENGLISH_TEMPLATES)
    return Question(
        subject="english",
        grade=grade,
        question=question,
        answer=answer,
        explanation=explanation,
    )


def generate(subject: str, grade: int, count: int, rng: Optional[random.Random] = None) -> List[Question]:
    """
    Generate `count` practice questions for a subject and grade.

    Returns an empty list for an unrecognized subject or a non-positive count.
    Pass `rng` for reproducible output.
    """
    rng = rng or random.Random()
    subject = (subject or "").strip().lower()

    if subject == "math":
        make = _math_question
    elif subject == "english":
        make = _english_question
    else:
        return []

    grade = max(1, int(grade))
    return [make(grade, rng) for _ in range(max(0, count))]
