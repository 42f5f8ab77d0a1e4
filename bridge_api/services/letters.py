"""
letters.py — Prompting and scoring for AI-drafted character letters.

The draft itself comes from GeminiClient; this module builds the prompt
and grades the result so the UI can nudge the author before they submit.
"""

from __future__ import annotations

from bridge_api.models.letters import LetterGenerationRequest

_LETTER_PROMPT = """\
Please write a professional character witness letter for {defendant} who has a \
court hearing on {court_date}. The letter should be addressed to {judge}.

Author Information:
- Name: {author_name}
- Relationship to defendant: {relationship}
- How they know the defendant: {context}
{examples}{impact}
Please format the letter professionally with:
1. Proper court letter heading with date and judge's address
2. Formal salutation
3. Introduction of the author and their relationship
4. Specific examples of the defendant's character, growth, and positive impact
5. Statement about rehabilitation and future potential
6. Professional closing with signature line

Length: 400-600 words
Tone: Professional, respectful, compelling
Focus: Character, rehabilitation, and community value"""


def build_letter_prompt(request: LetterGenerationRequest) -> str:
    case = request.case_details
    return _LETTER_PROMPT.format(
        defendant=case.defendant_name if case else "the defendant",
        court_date=case.court_date if case else "an upcoming date",
        judge=case.judge_name if case else "the Honorable Judge",
        author_name=request.author_name,
        relationship=request.relationship,
        context=request.context,
        examples=(
            f"\nSpecific examples of character: {request.specific_examples}\n"
            if request.specific_examples else ""
        ),
        impact=(
            f"Why they deserve consideration: {request.impact_statement}\n"
            if request.impact_statement else ""
        ),
    )


def letter_impact_score(letter: str, request: LetterGenerationRequest) -> int:
    """Score a draft out of 100: length, supporting detail and formatting."""
    score = 60
    word_count = len(letter.split())
    if 400 <= word_count <= 600:
        score += 15
    elif word_count >= 300:
        score += 10
    if request.specific_examples and len(request.specific_examples) > 50:
        score += 10
    if request.impact_statement and len(request.impact_statement) > 30:
        score += 10
    if "Honorable" in letter and "Sincerely" in letter:
        score += 5
    return min(score, 100)


def letter_suggestions(letter: str, request: LetterGenerationRequest) -> list[str]:
    suggestions: list[str] = []
    word_count = len(letter.split())
    lowered = letter.lower()

    if word_count < 300:
        suggestions.append("Consider adding more specific examples of positive character traits")
    if word_count > 700:
        suggestions.append("Consider condensing the letter to be more concise and impactful")
    if not request.specific_examples or len(request.specific_examples) < 30:
        suggestions.append("Adding specific examples or anecdotes would strengthen the letter")
    if "rehabilitation" not in lowered:
        suggestions.append("Mentioning rehabilitation and personal growth would enhance the impact")
    if "community" not in lowered:
        suggestions.append("Highlighting community involvement or impact would be beneficial")
    return suggestions
