"""LangGraph workflow and state management."""

# Note: Avoid importing workflow here to prevent circular imports
# Import directly from modules as needed:
# from adaptive_quiz.graph.state import QuizTurnState, create_initial_state
# from adaptive_quiz.graph.workflow import compile_workflow, submit_answer
