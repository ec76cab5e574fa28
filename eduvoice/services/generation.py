"""
Structured generation: mind maps and quizzes from study materials.

The reasoning model is asked for a JSON object; its reply is parsed and
validated before the caller persists anything. Anything that is not the
requested structure raises GenerationError.
"""

import json
import logging
import re
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from eduvoice.config import Settings
from eduvoice.db.models import Material
from eduvoice.errors import GenerationError
from eduvoice.schemas.mindmaps import MindMapGraph
from eduvoice.schemas.quizzes import QuestionResult, QuizQuestion, QuizQuestionSet
from eduvoice.services.chat_service import build_material_context
from eduvoice.services.gateway import GatewayClient, ModelTask

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)

MINDMAP_NODE_FORMAT_2D = """{
  "nodes": [
    {"id": "unique_id", "label": "Node Label", "x": number, "y": number, "type": "central|branch|leaf", "color": "hex_color"}
  ],
  "connections": [
    {"from": "node_id", "to": "node_id", "label": "optional_connection_label"}
  ]
}"""

MINDMAP_NODE_FORMAT_3D = """{
  "nodes": [
    {"id": "unique_id", "label": "Node Label", "position": [x, y, z], "type": "central|branch|leaf", "color": "hex_color", "size": number}
  ],
  "connections": [
    {"from": "node_id", "to": "node_id", "label": "optional_connection_label", "strength": number}
  ]
}"""

QUIZ_FORMAT = """{
  "questions": [
    {
      "id": "unique_id",
      "type": "multiple_choice",
      "question": "Question text",
      "options": ["A) Option 1", "B) Option 2", "C) Option 3", "D) Option 4"],
      "correct_answer": "A",
      "explanation": "Detailed explanation of why this is correct"
    }
  ]
}"""


def strip_code_fences(text: str) -> str:
    match = _CODE_FENCE.match(text)
    return match.group(1) if match else text.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse a model reply that should be a single JSON object."""
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model output is not valid JSON: {e}", body=text) from e
    if not isinstance(data, dict):
        raise GenerationError("Model output is not a JSON object", body=text)
    return data


def mind_map_prompt(topic: str, content: str, layout: str) -> str:
    if layout == "3d":
        intro = (
            f'Create a 3D mind map structure for the topic "{topic}" based on the following content. '
            "Return a JSON object with nodes and connections suitable for 3D visualization."
        )
        node_format = MINDMAP_NODE_FORMAT_3D
        outro = (
            "Make the 3D layout interesting with nodes at different depths (z-axis) "
            "and create a visually appealing educational structure."
        )
    else:
        intro = (
            f'Create a mind map structure for the topic "{topic}" based on the following content. '
            "Return a JSON object with nodes and connections suitable for visualization."
        )
        node_format = MINDMAP_NODE_FORMAT_2D
        outro = "Use exactly one central node and connect every other node to the graph."

    content_block = f"Content:\n{content}\n\n" if content else ""
    return f"{intro}\n\n{content_block}Return the response in this JSON format:\n{node_format}\n\n{outro}"


def quiz_prompt(topic: str, content: str, difficulty: str, num_questions: int) -> str:
    content_block = f"Content:\n{content}\n\n" if content else ""
    return (
        f'Generate {num_questions} {difficulty} level quiz questions about "{topic}" '
        f"based on the provided content.\n\n{content_block}"
        f"Return a JSON object with this structure:\n{QUIZ_FORMAT}\n\n"
        "Make sure questions are educational, accurate, and test understanding of key concepts."
    )


class GenerationService:
    """Mind map and quiz generation with the reasoning model."""

    def __init__(self, gateway: GatewayClient, settings: Settings) -> None:
        self.gateway = gateway
        self.settings = settings

    async def _generate_json(self, prompt: str, temperature: float) -> dict[str, Any]:
        completion = await self.gateway.chat(
            [{"role": "user", "content": prompt}],
            task=ModelTask.REASONING,
            temperature=temperature,
            max_tokens=self.settings.llm_generation_max_tokens,
            json_mode=True,
        )
        return parse_json_object(completion.text)

    async def mind_map(self, topic: str, materials: Sequence[Material], layout: str = "2d") -> MindMapGraph:
        """Generate and validate a mind map graph. An empty graph is rejected."""
        content = build_material_context(materials, self.settings)
        data = await self._generate_json(mind_map_prompt(topic, content, layout), temperature=0.8)
        try:
            graph = MindMapGraph.model_validate(data)
        except ValidationError as e:
            raise GenerationError(f"Generated mind map is invalid: {e}") from e
        if not graph.nodes:
            raise GenerationError("Generated mind map has no nodes")

        logger.info(
            "Generated %s mind map for %r: %d nodes, %d connections",
            layout,
            topic,
            len(graph.nodes),
            len(graph.connections),
        )
        return graph

    async def quiz(
        self,
        topic: str,
        materials: Sequence[Material],
        difficulty: str = "medium",
        num_questions: int = 10,
    ) -> list[QuizQuestion]:
        """Generate and validate quiz questions."""
        content = build_material_context(materials, self.settings)
        data = await self._generate_json(quiz_prompt(topic, content, difficulty, num_questions), temperature=0.7)
        try:
            question_set = QuizQuestionSet.model_validate(data)
        except ValidationError as e:
            raise GenerationError(f"Generated quiz is invalid: {e}") from e

        if len(question_set.questions) != num_questions:
            logger.warning(
                "Asked for %d questions on %r, model returned %d",
                num_questions,
                topic,
                len(question_set.questions),
            )
        logger.info("Generated %s quiz for %r: %d questions", difficulty, topic, len(question_set.questions))
        return question_set.questions


def score_attempt(
    questions: Sequence[QuizQuestion], answers: dict[str, str]
) -> tuple[int, list[QuestionResult]]:
    """
    Score submitted answers by exact match against each question's correct answer.

    Unanswered questions count as wrong; answers for unknown ids are ignored.
    """
    results = []
    for question in questions:
        user_answer = answers.get(question.id)
        results.append(
            QuestionResult(
                question_id=question.id,
                user_answer=user_answer,
                correct_answer=question.correct_answer,
                is_correct=user_answer == question.correct_answer,
                explanation=question.explanation,
            )
        )
    return sum(result.is_correct for result in results), results
