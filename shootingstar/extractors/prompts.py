"""
Task extraction prompt for starred emails.
"""

from shootingstar.labels.taxonomy import LabelCategory, LabelTaxonomy

PROMPT = """You are a GTD (Getting Things Done) task extraction expert.

Extract a single actionable task from this email:

FROM: {sender}
SUBJECT: {subject}

BODY:
{body}

RULES:
1. Task format: [Action verb] + [What] + [Detail]
   Examples: "Review proposal for Q3 budget", "Call John about project deadline"

2. Use ONLY these label IDs (pick by ID string, not name):

   DURATION (pick exactly ONE):
{duration_labels}

   CONTEXT (pick 1-3 relevant):
{context_labels}

   THEME (pick 0-1 if applicable):
{theme_labels}

3. The "labels" array must contain label ID strings like "{example_id}", NOT names.

4. If a due date is mentioned, extract it as dueString in natural language.

5. Notes should include sender context and key details from the email.

Return valid JSON only, with this shape:
{{"task": "...", "labels": ["..."], "notes": "...", "dueString": "..."}}"""


def _label_lines(taxonomy: LabelTaxonomy, category: LabelCategory) -> str:
    return "\n".join(
        f'  - "{label.id}" = {label.display_name}'
        for label in taxonomy.by_category(category)
    )


def build_prompt(
    taxonomy: LabelTaxonomy,
    sender: str,
    subject: str,
    body: str,
) -> str:
    """Format the extraction prompt with the approved labels listed by ID."""
    durations = taxonomy.by_category(LabelCategory.DURATION)
    return PROMPT.format(
        sender=sender,
        subject=subject,
        body=body,
        duration_labels=_label_lines(taxonomy, LabelCategory.DURATION),
        context_labels=_label_lines(taxonomy, LabelCategory.CONTEXT),
        theme_labels=_label_lines(taxonomy, LabelCategory.THEME),
        example_id=durations[0].id if durations else "",
    )
