"""
Données et doubles de test partagés.

`make_snapshot_data()` retourne un snapshot brut (clés camelCase, comme le document JSON lu par le
chargeur) avec deux éléments par type de ressource.
"""

from __future__ import annotations

import copy
from typing import Any

TEST_API_KEY = "test-internal-api-key"
NEXT_API_KEY = "test-next-key"

_SNAPSHOT: dict[str, Any] = {
    "uses": {
        "lastUpdated": "2026-02-20T00:00:00.000Z",
        "sections": [
            {
                "title": "Dev stack",
                "items": [
                    {"label": "Editor", "value": "VS Code"},
                    {"label": "Terminal", "value": "Ghostty"},
                ],
            },
            {"title": "AI stack", "items": [{"label": "Coding", "value": "Codex"}]},
        ],
    },
    "now": {
        "lastUpdated": "2026-02-21T00:00:00.000Z",
        "narrative": "Current loop: ship and learn.",
        "entries": [
            {"label": "Focus", "text": "Shipping API endpoints.", "href": None},
            {
                "label": "Learning",
                "text": "Tightening backend fundamentals.",
                "href": "https://example.com/learning",
            },
        ],
    },
    "projects": {
        "lastUpdated": "2026-02-22T00:00:00.000Z",
        "items": [
            {
                "sourceGroup": "active_projects",
                "title": "Project One",
                "summary": "Primary active project.",
                "href": "https://example.com/project-one",
                "payload": {
                    "source": "test",
                    "sourceGroup": "active_projects",
                    "track": "core",
                    "status": "live",
                },
            },
            {
                "sourceGroup": "ai_projects",
                "title": "Project Two",
                "summary": "Secondary AI project.",
                "href": "https://example.com/project-two",
                "payload": {
                    "source": "test",
                    "sourceGroup": "ai_projects",
                    "status": "in-progress",
                },
            },
        ],
    },
    "posts": {
        "lastUpdated": "2026-02-24T00:00:00.000Z",
        "items": [
            {
                "slug": "building-with-agents",
                "title": "Building with agents",
                "summary": "Practical lessons from shipping with coding agents.",
                "bodyMarkdown": (
                    "# Building with agents\n\nUse tight feedback loops and explicit constraints."
                ),
                "publishedAt": "2026-02-20T00:00:00.000Z",
                "updatedAtSource": "2026-02-24T00:00:00.000Z",
                "author": "Shan",
                "featured": True,
                "tags": ["agents", "backend"],
                "readingTimeText": "1 min read",
                "readingTimeMinutes": 1,
                "payload": {
                    "source": "test",
                    "sourcePath": "content/writing/building-with-agents.md",
                },
            },
            {
                "slug": "shipping-principles",
                "title": "Shipping principles",
                "summary": "Execution rules for maintaining momentum.",
                "bodyMarkdown": "# Shipping principles\n\nPrefer small, auditable changes.",
                "publishedAt": "2026-02-18T00:00:00.000Z",
                "updatedAtSource": None,
                "author": None,
                "featured": False,
                "tags": ["execution"],
                "readingTimeText": "1 min read",
                "readingTimeMinutes": 1,
                "payload": {
                    "source": "test",
                    "sourcePath": "content/writing/shipping-principles.md",
                },
            },
        ],
    },
}


def make_snapshot_data() -> dict[str, Any]:
    """Copie profonde du snapshot de référence (modifiable par chaque test)."""
    return copy.deepcopy(_SNAPSHOT)


def make_project(title: str, source_group: str = "active_projects") -> dict[str, Any]:
    return {
        "sourceGroup": source_group,
        "title": title,
        "summary": f"{title} summary.",
        "href": None,
        "payload": {"source": "test"},
    }
