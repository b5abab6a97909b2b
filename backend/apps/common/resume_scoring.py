"""Reshaping of resume analysis replies.

The analysis itself comes from an external text model; this module only
pulls the JSON object out of the reply and recalculates the weighted
section rubric after a recruiter edits the skill matches.
"""
import copy
import json
import logging

from apps.goals.domain import round_half_up, to_decimal

logger = logging.getLogger(__name__)

MATCH_SCORES = {"yes": 10, "partial": 5, "no": 0}
MATCH_SYMBOLS = {"yes": "✅", "partial": "⚠️", "no": "❌"}
REQUIRED_KEYS = ("overall_match_score", "section_wise_scoring")

SUBMENU_KEYWORDS = {
    "Core Skills": ("for", "programming"),
    "Tools": ("familiarity", "knowledge"),
    "Relevant Experience": ("experience",),
    "Duration": ("experience",),
    "Personal Projects": ("project",),
    "Professional Projects": ("project",),
    "Degree": ("degree",),
    "Certifications": ("certification",),
    "Awards": ("award",),
    "Recognitions": ("recognition",),
    "Leadership": ("leadership",),
    "Communication": ("communication",),
}


class ResumeScoreError(ValueError):
    pass


def _balanced_object_end(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_json_object(text: str) -> dict:
    """Parse the first balanced ``{...}`` in a model reply."""
    start = (text or "").find("{")
    if start < 0:
        raise ResumeScoreError("No JSON object found in response")
    end = _balanced_object_end(text, start)
    if end is None:
        raise ResumeScoreError("Unbalanced JSON object in response")
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        logger.warning("Model reply held malformed JSON: %s", exc)
        raise ResumeScoreError(f"Malformed JSON in response: {exc}") from exc


def parse_analysis(text: str) -> dict:
    result = extract_json_object(text)
    missing = [key for key in REQUIRED_KEYS if not result.get(key)]
    if missing:
        raise ResumeScoreError(f"Analysis is missing {', '.join(missing)}")
    return result


def skills_for_submenu(submenu: str, skills) -> list[dict]:
    keywords = SUBMENU_KEYWORDS.get(submenu, ())
    return [
        skill
        for skill in skills
        if any(keyword in (skill.get("requirement") or "").lower() for keyword in keywords)
    ]


def _number(value) -> float:
    return float(to_decimal(value or 0))


def overall_match_score(section_wise_scoring: dict) -> int:
    total = 0.0
    for section in section_wise_scoring.values():
        section_score = sum(_number(submenu.get("weighted_score")) for submenu in section.get("submenus", []))
        total += section_score * _number(section.get("weightage")) / 100
    return round_half_up(total)


def rescore_sections(section_wise_scoring: dict, skills) -> dict:
    """Recalculate submenu scores from edited skill matches.

    Submenus with no mapped skill keep their score and remarks. Returns a new
    ``{"overall_match_score", "section_wise_scoring"}`` mapping and leaves the
    input untouched.
    """
    scoring = copy.deepcopy(section_wise_scoring)
    for section in scoring.values():
        for submenu in section.get("submenus", []):
            mapped = skills_for_submenu(submenu.get("submenu", ""), skills)
            if not mapped:
                continue
            average = sum(MATCH_SCORES.get(skill.get("matched"), 0) for skill in mapped) / len(mapped)
            submenu["score"] = round_half_up(average)
            submenu["weighted_score"] = _number(submenu.get("weightage")) * submenu["score"] / 100
            submenu["remarks"] = ", ".join(
                f"{skill.get('requirement')}: {MATCH_SYMBOLS.get(skill.get('matched'), MATCH_SYMBOLS['no'])}"
                for skill in mapped
            )
    return {
        "overall_match_score": overall_match_score(scoring),
        "section_wise_scoring": scoring,
    }
