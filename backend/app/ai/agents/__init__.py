# AI Agents Package - feedback and question generation
from app.ai.agents.base import BaseAgent, AgentContext, AgentResult, AgentState
from app.ai.agents.examiner import ExaminerAgent, get_examiner_agent
from app.ai.agents.feedback import FeedbackAgent, get_feedback_agent, fallback_feedback

__all__ = [
    # Base
    "BaseAgent",
    "AgentContext",
    "AgentResult",
    "AgentState",

    # Agents
    "ExaminerAgent",
    "FeedbackAgent",

    # Providers
    "get_examiner_agent",
    "get_feedback_agent",
    "fallback_feedback",
]
