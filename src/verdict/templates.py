"""Built-in suite templates."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from verdict.errors import TemplateNotFoundError
from verdict.models import RecordModel, TargetType, TestConfiguration


class TestTemplate(RecordModel):
    """A reusable suite blueprint.

    ``test_cases`` holds case payloads without ids; fresh ids are generated
    each time a suite is created from the template.
    """

    __test__ = False

    id: str
    name: str
    description: str
    category: str
    target_type: TargetType
    test_cases: list[dict[str, Any]] = Field(default_factory=list)
    configuration: TestConfiguration = Field(default_factory=TestConfiguration)
    is_official: bool = False
    usage_count: int = 0


_BUILTIN_TEMPLATES: list[dict[str, Any]] = [
    {
        "id": "basic-agent",
        "name": "Basic Agent Test",
        "description": "Basic test suite for agent functionality",
        "category": "agent",
        "targetType": "agent",
        "testCases": [
            {
                "name": "Text Response Test",
                "description": "Test agent response to text input",
                "type": "unit",
                "input": {"type": "text", "content": "Hello, how are you?"},
                "expectedOutput": {"type": "text", "contains": ["hello", "good", "fine"]},
                "assertions": [{"type": "contains", "field": "content", "operator": "includes", "value": "hello"}],
                "timeout": 5000,
                "retries": 2,
                "tags": ["basic", "text"],
                "enabled": True,
                "priority": "high",
            }
        ],
        "configuration": {
            "environment": "development",
            "parallel": False,
            "maxConcurrency": 1,
            "timeout": 30000,
            "retries": 1,
            "failFast": False,
            "reporting": {"enabled": True, "formats": ["json"]},
            "notifications": {"enabled": False},
        },
        "isOfficial": True,
    },
    {
        "id": "performance",
        "name": "Performance Test",
        "description": "Performance and load testing template",
        "category": "performance",
        "targetType": "deployment",
        "testCases": [
            {
                "name": "Response Time Test",
                "description": "Test response time under load",
                "type": "performance",
                "input": {"type": "text", "content": "Performance test message"},
                "expectedOutput": {"type": "text"},
                "assertions": [{"type": "range", "field": "responseTime", "operator": "between", "value": [0, 1000]}],
                "timeout": 10000,
                "retries": 0,
                "tags": ["performance", "load"],
                "enabled": True,
                "priority": "critical",
            }
        ],
        "configuration": {
            "environment": "staging",
            "parallel": True,
            "maxConcurrency": 10,
            "timeout": 60000,
            "retries": 0,
            "failFast": False,
            "reporting": {"enabled": True, "formats": ["json", "html"]},
            "notifications": {"enabled": True, "channels": ["email"]},
        },
        "isOfficial": True,
    },
]


class TemplateRegistry:
    """Holds templates by id and counts how often each one is used."""

    def __init__(self, templates: list[TestTemplate] | None = None) -> None:
        if templates is None:
            templates = [TestTemplate.model_validate(t) for t in _BUILTIN_TEMPLATES]
        self._templates = {t.id: t for t in templates}

    def add(self, template: TestTemplate) -> None:
        self._templates[template.id] = template

    def list_all(self) -> list[TestTemplate]:
        return [t.model_copy(deep=True) for t in self._templates.values()]

    def get(self, template_id: str) -> TestTemplate:
        try:
            return self._templates[template_id].model_copy(deep=True)
        except KeyError:
            raise TemplateNotFoundError(template_id) from None

    def use(self, template_id: str) -> TestTemplate:
        """Return a copy of the template and bump its usage count."""
        template = self.get(template_id)
        self._templates[template_id].usage_count += 1
        return template
