"""Simulated subjects for demos, local runs and tests.

Each target type answers with a canned payload shaped like the real
executor's response, after an optional random latency.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any
from uuid import uuid4

from verdict.adapters.base import CancelToken, Deadline, run_within_deadline
from verdict.errors import RunCancelledError
from verdict.models import TargetType, TestInput


class SimulatedTargetAdapter:
    """Answers every target type with a deterministic-shaped mock payload.

    Args:
        latency_ms: ``(low, high)`` bounds for the simulated call latency.
        seed: Seed for the latency and metric jitter.
    """

    def __init__(self, latency_ms: tuple[float, float] = (0, 0), seed: int | None = None) -> None:
        self.latency_ms = latency_ms
        self._random = random.Random(seed)

    async def execute(
        self,
        target_type: TargetType,
        target_id: str,
        test_input: TestInput,
        deadline: Deadline,
        cancel: CancelToken,
    ) -> Any:
        low, high = self.latency_ms
        delay = self._random.uniform(low, high) / 1000 if high > 0 else 0
        await run_within_deadline(asyncio.sleep(delay), deadline, cancel)

        if cancel.cancelled:
            raise RunCancelledError()

        match target_type:
            case TargetType.AGENT:
                return self._agent_response(test_input)
            case TargetType.WORKFLOW:
                return self._workflow_response(target_id)
            case TargetType.DEPLOYMENT:
                return self._deployment_response(target_id)
            case TargetType.PERSONA:
                return self._persona_response(target_id, test_input)

    def _agent_response(self, test_input: TestInput) -> dict[str, Any]:
        match test_input.type:
            case "text":
                return {
                    "type": "text",
                    "content": f"Agent response to: {test_input.content}",
                    "confidence": 0.95,
                    "processingTime": self._random.uniform(0, 1000),
                }
            case "voice":
                return {"type": "voice", "content": "Generated voice response", "duration": 3.5, "format": "mp3"}
            case "image":
                return {
                    "type": "text",
                    "content": "I can see an image with various objects",
                    "detectedObjects": ["person", "car", "building"],
                    "confidence": 0.87,
                }
            case _:
                return {"type": "text", "content": "Default agent response", "confidence": 0.8}

    def _workflow_response(self, workflow_id: str) -> dict[str, Any]:
        return {
            "workflowId": workflow_id,
            "executionId": str(uuid4()),
            "status": "completed",
            "steps": [
                {"id": "step1", "status": "completed", "output": "Step 1 result"},
                {"id": "step2", "status": "completed", "output": "Step 2 result"},
            ],
            "finalOutput": "Workflow completed successfully",
            "executionTime": self._random.uniform(0, 2000),
        }

    def _deployment_response(self, deployment_id: str) -> dict[str, Any]:
        return {
            "deploymentId": deployment_id,
            "status": "healthy",
            "responseTime": self._random.uniform(0, 500),
            "uptime": 99.9,
            "version": "1.0.0",
            "endpoints": [
                {"url": "/api/chat", "status": "healthy", "responseTime": 120},
                {"url": "/api/status", "status": "healthy", "responseTime": 45},
            ],
        }

    def _persona_response(self, persona_id: str, test_input: TestInput) -> dict[str, Any]:
        return {
            "personaId": persona_id,
            "response": f"Persona-specific response to: {test_input.content}",
            "personality": {"tone": "professional", "style": "helpful", "expertise": "demonstrated"},
            "consistency": 0.92,
        }
