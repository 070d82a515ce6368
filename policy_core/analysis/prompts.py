"""
Prompt templates for the policy LLM tasks.

Templates use str.format; literal JSON braces are doubled.
"""

STRUCTURE_SYSTEM_PROMPT = (
    "You are a corporate policy analyst. You convert policy documents into "
    "structured JSON data."
)

STRUCTURE_PROMPT = """Analyze the following policy and return it as structured JSON.

Policy title: {title}
Policy content: {content}

Respond in this format:
{{
  "category": "Policy category (Security Policy, HR Policy, Finance Policy, Operations Policy, Technology Policy, Legal Policy)",
  "policyType": "Policy type (rule, guideline, process, standard)",
  "keyPoints": ["Key point 1", "Key point 2", "Key point 3"],
  "tags": ["tag1", "tag2", "tag3"],
  "businessArea": "Business area the policy applies to",
  "compliance": {{
    "isRequired": true,
    "checkpoints": ["Checkpoint 1", "Checkpoint 2"]
  }},
  "summary": "Two to three sentence summary",
  "riskLevel": "high/medium/low",
  "targetAudience": ["Who the policy applies to"],
  "effectiveScope": "Scope of application"
}}

Return JSON only."""

SUMMARY_SYSTEM_PROMPT = "You summarize policy documents concisely and clearly."

SUMMARY_PROMPT = """Summarize the following policy in 2-3 sentences:

Title: {title}
Content: {content}

Summary:"""

TAGS_SYSTEM_PROMPT = (
    "You extract the keywords that are most useful for searching and "
    "classifying policy documents."
)

TAGS_PROMPT = """Extract 5 tags from the following policy that would help people find it. Separate them with commas.

Title: {title}
Content: {content}

Tags: """

QUICK_PROMPT = """Quickly classify the following policy. Return only its category and tags.

Title: {title}
Content: {content}

Respond with JSON:
{{
  "category": "Policy category",
  "tags": ["tag1", "tag2", "tag3"]
}}"""


def build_messages(system_prompt: str | None, user_prompt: str) -> list[dict[str, str]]:
    """Role-tagged chat messages, system message first when given."""
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    return messages
