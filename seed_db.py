"""One-time DB setup: create tables and seed a demo chapter of ordering questions."""
from ordering_quiz.db.session import Base, get_engine, get_session_factory
from ordering_quiz.db.models import Chapter, Question, QuestionItem, Topic
from ordering_quiz.services.content_cache import invalidate_topic

DEMO_QUESTIONS = [
    {
        "title": "Order the stages of mitosis",
        "explanation": "Prophase, metaphase, anaphase and telophase always follow each other in this order.",
        "difficulty": "easy",
        "items": ["Prophase", "Metaphase", "Anaphase", "Telophase"],
    },
    {
        "title": "Order the planets by distance from the Sun",
        "explanation": "The inner rocky planets come first, then the gas and ice giants.",
        "difficulty": "medium",
        "items": ["Mercury", "Venus", "Earth", "Mars", "Jupiter", "Saturn"],
    },
    {
        "title": "Order these events chronologically",
        "explanation": "From the printing press to the first crewed Moon landing.",
        "difficulty": "hard",
        "time_limit": 120,
        "items": [
            "Gutenberg printing press (c. 1440)",
            "Columbus reaches the Americas (1492)",
            "Newton's Principia (1687)",
            "French Revolution (1789)",
            "First powered flight (1903)",
            "Apollo 11 Moon landing (1969)",
        ],
    },
]

# 1. Create all tables
engine = get_engine()
Base.metadata.create_all(bind=engine)
print("✅ All tables created")

session_factory = get_session_factory()
with session_factory() as db:
    # 2. Demo chapter + topic
    chapter = db.query(Chapter).filter(Chapter.name == "General Knowledge").first()
    if not chapter:
        chapter = Chapter(name="General Knowledge", description="Warm-up ordering quizzes")
        db.add(chapter)
        db.commit()
        db.refresh(chapter)
        print("✅ Created chapter: General Knowledge")
    else:
        print("  Chapter already exists")

    topic = db.query(Topic).filter(Topic.chapter_id == chapter.id, Topic.name == "Sequences").first()
    if not topic:
        topic = Topic(chapter_id=chapter.id, name="Sequences", description="Put things in the right order")
        db.add(topic)
        db.commit()
        db.refresh(topic)
        print("✅ Created topic: Sequences")
    else:
        print("  Topic already exists")

    # 3. Questions with their items in correct order
    created = 0
    for order_index, entry in enumerate(DEMO_QUESTIONS):
        exists = (
            db.query(Question)
            .filter(Question.topic_id == topic.id, Question.title == entry["title"])
            .first()
        )
        if exists:
            continue
        question = Question(
            topic_id=topic.id,
            title=entry["title"],
            explanation=entry["explanation"],
            difficulty=entry["difficulty"],
            time_limit=entry.get("time_limit"),
            order_index=order_index,
        )
        question.items = [
            QuestionItem(item_text=text, correct_position=position)
            for position, text in enumerate(entry["items"], start=1)
        ]
        db.add(question)
        created += 1
    db.commit()
    print(f"✅ Seeded {created} questions ({len(DEMO_QUESTIONS) - created} already present)")

    # 4. Cached topic listings are now stale
    invalidate_topic(topic.id)
    print(f"\n  Topic id for POST /api/quiz/start: {topic.id}")
