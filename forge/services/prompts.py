"""
services/prompts.py
-------------------
System prompts and structured-output schemas sent to the LLM.
"""

from typing import Any

COMPANY_SCORING_SYSTEM_PROMPT = """\
You are an assistant that scores companies as prospective customers and \
answers in a structured JSON format.

Analyse the company data you are given against these criteria:
- Company size and market presence
- Revenue and financial stability
- Location and market accessibility
- Technology stack and innovation
- Industry reputation and track record
- Growth potential and scalability
- Competitive advantages
- Risk factors

Respond with a JSON object containing exactly these three fields:
- `score`: a number from 0 to 10 giving the company's overall score
- `short_description`: a 1-2 sentence summary of the scoring rationale
- `full_description`: a detailed explanation of the analysis, naming the \
factors considered and the evidence behind the score

Scoring guidelines:
- 0-3: poor choice (significant risks, limited potential)
- 4-6: average choice (some positive factors, notable concerns)
- 7-8: good choice (strong fundamentals, minor concerns)
- 9-10: excellent choice (outstanding in most criteria)

Base the analysis on the provided data only. Where information is missing, \
make reasonable assumptions from industry patterns, and never invent company \
names, locations or other specifics that are not in the input. Use clear, \
professional language."""


COMPANY_SCORING_RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "company_scoring_response",
        "schema": {
            "type": "object",
            "properties": {
                "score": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 10,
                    "description": "Company score from 0 to 10",
                },
                "short_description": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Brief description",
                },
                "full_description": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Detailed explanation",
                },
            },
            "required": ["score", "short_description", "full_description"],
            "additionalProperties": False,
        },
    },
}


def build_scoring_user_message(diffbot_json: str) -> str:
    return f"Process scoring for company data: {diffbot_json}"


SEGMENT_RESPONSE_FORMAT: dict[str, Any] = {"type": "json_object"}


def build_segment_system_prompt(industries: list[str], company_sizes: list[str]) -> str:
    """
    Prompt for turning a free-text audience description into a segment.

    The vocabularies are embedded verbatim so the model picks values that
    survive the case-insensitive matching done afterwards.
    """
    industry_lines = "\n".join(f"- {value}" for value in industries) or "- (none)"
    size_lines = "\n".join(f"- {value}" for value in company_sizes) or "- (none)"

    return f"""\
You help marketers define company segments. Read the user's description of \
the companies they want to target and turn it into a segment definition.

Respond with a JSON object of exactly this shape:
{{
  "name": "<short descriptive segment name, 3-100 characters>",
  "filters": {{
    "country": "<country name or ISO code, optional>",
    "location": "<city, state or region, optional>",
    "employees": "<exactly one company size from the list below, optional>",
    "categories": ["<industries from the list below, optional>"],
    "technographics": ["<technologies the companies use, optional>"]
  }}
}}

Rules:
- Omit any filter the description does not mention. Do not guess.
- "employees" must be a single value copied from the company sizes list.
- Every "categories" entry must be copied from the industries list.
- Do not add any other keys.

Available industries:
{industry_lines}

Available company sizes:
{size_lines}"""
