# Example capsule written on first run

from models.capsule import Capsule, Flashcard, Note, QuizQuestion
from utils.clock import now_iso
from utils.ids import new_id
from .schema import SCHEMA_VERSION


def sample_capsule() -> Capsule:
    now = now_iso()
    return Capsule(
        id="sample-" + new_id(),
        version=SCHEMA_VERSION,
        title="Introduction to JavaScript",
        description="Learn the basics of JavaScript programming",
        author="Pocket Classroom",
        tags=["programming", "javascript", "beginner"],
        created_at=now,
        updated_at=now,
        notes=[
            Note(
                id=new_id(),
                content=(
                    "# Variables\n\n"
                    "Variables are containers for storing data values. In JavaScript, you can "
                    "declare variables using `let`, `const`, or `var`.\n\n"
                    "**Example:**\n```javascript\nlet name = \"John\";\nconst age = 30;\n```"
                ),
            ),
            Note(
                id=new_id(),
                content=(
                    "# Functions\n\n"
                    "Functions are reusable blocks of code that perform specific tasks.\n\n"
                    "**Example:**\n```javascript\nfunction greet(name) {\n"
                    "  return \"Hello, \" + name;\n}\n```"
                ),
            ),
        ],
        flashcards=[
            Flashcard(
                id=new_id(),
                front="What is a variable?",
                back="A variable is a container for storing data values.",
            ),
            Flashcard(
                id=new_id(),
                front="What are the three ways to declare a variable in JavaScript?",
                back="let, const, and var",
            ),
            Flashcard(
                id=new_id(),
                front="What is a function?",
                back="A function is a reusable block of code that performs a specific task.",
            ),
        ],
        quiz=[
            QuizQuestion(
                id=new_id(),
                question="Which keyword is used to declare a constant in JavaScript?",
                choices=["var", "let", "const", "constant"],
                correct_index=2,
                explanation="The `const` keyword is used to declare constants that cannot be reassigned.",
            ),
            QuizQuestion(
                id=new_id(),
                question="What does a function return if no return statement is specified?",
                choices=["null", "undefined", "0", "false"],
                correct_index=1,
                explanation="Functions return `undefined` by default if no return statement is specified.",
            ),
        ],
        attachments=[],
    )
