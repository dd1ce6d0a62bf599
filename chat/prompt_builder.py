"""System prompt composition."""

import re
from pathlib import Path
from typing import Optional, Any, Dict

import yaml

from accounts.models import UserContext

MAX_FIELD_LENGTH = 120

SIGN_UP_NOTE = (
    "The visitor is not signed in. Where it helps, encourage them to create a "
    "free account to get personalised help and keep their conversation history."
)


def _clean(value: Optional[str]) -> str:
    """Collapse whitespace and cap length so profile fields stay on one line."""
    text = re.sub(r"\s+", " ", value or "").strip()
    if len(text) > MAX_FIELD_LENGTH:
        text = text[:MAX_FIELD_LENGTH - 1].rstrip() + "…"
    return text


def render_knowledge(knowledge: Dict[str, Any]) -> str:
    """Render the knowledge document as the base system prompt."""
    company = knowledge.get("company", {})
    lines = [
        f"You are the {company.get('name', 'Edge AI')} assistant on {company.get('website', 'our website')}.",
        company.get("tagline", ""),
        "",
        "## What we stand for",
    ]
    for pillar in knowledge.get("pillars", []):
        lines.append(f"- {pillar['name']}: {pillar['description']}")

    lines += ["", "## Products"]
    for product in knowledge.get("products", []):
        entry = f"- {product['name']}: {product['description']}"
        if product.get("hardware"):
            entry += f" {product['hardware']}"
        if product.get("url"):
            entry += f" ({product['url']})"
        lines.append(entry)

    pricing = knowledge.get("pricing", {})
    lines += ["", "## Pricing"]
    for plan in pricing.get("plans", []):
        lines.append(f"- {plan['name']}: {plan['description']}")
    if pricing.get("note"):
        lines.append(pricing["note"])

    lines += ["", "## How it works"]
    for i, step in enumerate(knowledge.get("process", []), 1):
        lines.append(f"{i}. {step}")

    lines += ["", "## Guidelines"]
    for rule in knowledge.get("guidelines", []):
        lines.append(f"- {rule}")
    if company.get("contact"):
        lines.append(f"- Contact: {company['contact']}")

    return "\n".join(lines).strip()


class PromptBuilder:
    """Builds the system prompt from static knowledge plus the user's context."""

    def __init__(self, knowledge_path: Optional[str] = None):
        """
        Initialize prompt builder.

        Args:
            knowledge_path: Path to knowledge.yaml (default: config/knowledge.yaml)
        """
        if knowledge_path is None:
            base_path = Path(__file__).parent.parent
            knowledge_path = base_path / "config" / "knowledge.yaml"

        with open(knowledge_path, 'r', encoding='utf-8') as f:
            self.knowledge = yaml.safe_load(f) or {}

        self.base_prompt = render_knowledge(self.knowledge)

    def personalization(self, context: UserContext) -> str:
        """Personalization block for a signed-in user."""
        if context.products:
            products = ", ".join(f"{_clean(p.name)} ({_clean(p.plan)})" for p in context.products)
        else:
            products = "None"

        return "\n".join([
            "## Current user",
            f"- Name: {_clean(context.name) or 'Unknown'}",
            f"- Email: {_clean(context.email)}",
            f"- Role: {context.role.value}",
            f"- Organization: {_clean(context.organization_name) or 'no organization'}",
            f"- Products: {products}",
            f"- Admin: {'Yes' if context.is_admin else 'No'}",
            "",
            "Personalize your responses for this user: address them by name, "
            "refer to the products they already use, and skip sign-up pitches.",
        ])

    def build(self, context: Optional[UserContext] = None) -> str:
        """
        Compose the system prompt.

        Args:
            context: Resolved user context, or None for anonymous visitors

        Returns:
            System prompt text
        """
        if context is None:
            return f"{self.base_prompt}\n\n{SIGN_UP_NOTE}"
        return f"{self.base_prompt}\n\n{self.personalization(context)}"
