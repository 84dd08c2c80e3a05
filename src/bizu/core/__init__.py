"""Core business logic.

Modules:
- stats: usage statistics and streak rule
- quiz_generator: multiple-choice quiz generation and scoring
- tutor: BizuBot conversation turns
- materials: material suggestions and full content
- routine_planner: weekly study routine
- radar: public exam news radar
- actions: action registry used by the generation proxy
"""

__all__ = [
    "stats",
    "quiz_generator",
    "tutor",
    "materials",
    "routine_planner",
    "radar",
    "actions",
]
