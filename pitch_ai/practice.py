"""Terminal practice loop over the reference technical questions.

Run with ``pitch-ai-practice``. Needs the same COHERE_API_KEY as the API
server, since answers are scored with the hybrid semantic and keyword
evaluator.
"""

import random

from pitch_ai.services.technical_evaluator import get_technical_evaluator

RULE = "-" * 60


def format_score(score: int) -> str:
    if score >= 85:
        return f"{score}/100 (Excellent)"
    if score >= 70:
        return f"{score}/100 (Good)"
    if score >= 50:
        return f"{score}/100 (Partial)"
    return f"{score}/100 (Needs Improvement)"


def format_similarity(similarity: float) -> str:
    percent = f"{similarity * 100:.1f}%"
    if similarity >= 0.8:
        return f"{percent} (Very High)"
    if similarity >= 0.6:
        return f"{percent} (High)"
    if similarity >= 0.4:
        return f"{percent} (Moderate)"
    if similarity >= 0.2:
        return f"{percent} (Low)"
    return f"{percent} (Very Low)"


def _roles(questions: list[dict]) -> list[str]:
    roles = []
    for q in questions:
        if q["role"] not in roles:
            roles.append(q["role"])
    return roles


def choose_questions(questions: list[dict]) -> list[dict]:
    """Ask for a role and narrow the pool; anything invalid keeps every role."""
    roles = _roles(questions)
    print("\nAvailable roles:")
    for i, role in enumerate(roles, start=1):
        count = sum(1 for q in questions if q["role"] == role)
        print(f"{i}. {role} ({count} questions)")

    choice = input("\nEnter role number: ").strip()
    if choice.isdigit() and 1 <= int(choice) <= len(roles):
        role = roles[int(choice) - 1]
        selected = [q for q in questions if q["role"] == role]
        print(f"\nSelected: {role} ({len(selected)} questions)")
        return selected
    print("Invalid choice, using a random question from any role")
    return questions


def read_answer() -> str:
    """Read lines until a blank line follows some content."""
    print("\nType your answer below (press Enter on an empty line when done):")
    lines = []
    has_content = False
    while True:
        line = input()
        if not line.strip() and has_content:
            break
        if line.strip():
            has_content = True
        lines.append(line)
    return "\n".join(lines).strip()


def show_question(question: dict) -> None:
    print(f"\nQuestion ID: {question['id']}")
    print(f"Role: {question['role']}")
    print(f"Keywords to consider: [{', '.join(question['keywords'])}]")
    print("\nQUESTION:")
    print(RULE)
    print(question["question"])
    print(RULE)


def show_evaluation(question: dict, evaluation: dict) -> None:
    matches = evaluation["keywordMatches"]
    print("\nEVALUATION RESULTS")
    print(f"Overall Score: {format_score(evaluation['score'])}")
    print(f"Semantic Similarity: {format_similarity(evaluation['similarity'])}")
    print(f"Keywords Found: [{', '.join(matches)}] ({len(matches)}/{len(question['keywords'])})")
    print(f"Considered Correct: {'Yes' if evaluation['isCorrect'] else 'No'}")
    print("\nFEEDBACK:")
    print(RULE)
    print(evaluation["feedback"])
    print(RULE)
    if evaluation["suggestions"]:
        print("\nSUGGESTIONS FOR IMPROVEMENT:")
        for i, suggestion in enumerate(evaluation["suggestions"], start=1):
            print(f"{i}. {suggestion}")


def run_session(evaluator) -> None:
    questions = evaluator.get_all_questions()
    print(f"System ready! Loaded {len(questions)} technical questions.")
    print(f"Available roles: {', '.join(_roles(questions))}")

    while True:
        print("\n" + "=" * 80)
        print("NEW QUESTION")
        print("=" * 80)
        print("\nWould you like to:")
        print("1. Random question from any role")
        print("2. Choose a specific role")
        print("3. Exit")
        choice = input("\nEnter your choice (1-3): ").strip()

        if choice == "3":
            print("\nThanks for practicing!")
            return

        pool = choose_questions(questions) if choice == "2" else questions
        question = random.choice(pool)
        show_question(question)

        answer = read_answer()
        if not answer:
            print("No answer provided, skipping evaluation...")
            continue

        print("\nEvaluating your answer...")
        try:
            evaluation = evaluator.evaluate_answer(question["id"], answer)
        except Exception as e:
            print(f"Evaluation failed: {e}")
            print("Please try again with a different question.")
            continue

        show_evaluation(question, evaluation)
        reference = input("\nWould you like to see the reference answer? (y/n): ").strip().lower()
        if reference in ("y", "yes"):
            print("\nREFERENCE ANSWER:")
            print(RULE)
            print(question["reference_answer"])
            print(RULE)
        input("\nPress Enter to continue...")


def main() -> int:
    """Console entry point for the practice loop."""
    print("Technical interview practice")
    print("Answers are scored 70% on semantic similarity to a reference answer")
    print("and 30% on technical keywords.\n")
    print("Initializing the evaluation system...")

    evaluator = get_technical_evaluator()
    try:
        evaluator.initialize()
    except Exception as e:
        print(f"Failed to initialize the practice session: {e}")
        return 1

    try:
        run_session(evaluator)
    except (EOFError, KeyboardInterrupt):
        print("\nBye!")
    return 0
