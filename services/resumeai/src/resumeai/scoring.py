from __future__ import annotations

from common.utils import tokenize

from resumeai.models import RESUME_SECTIONS, ResumeDocument, ResumeScore

KEYWORD_WEIGHT = 0.8
COMPLETENESS_WEIGHT = 0.2
MIN_TERM_LENGTH = 3


def _significant_terms(text: str) -> set[str]:
    return {token for token in tokenize(text) if len(token) >= MIN_TERM_LENGTH}


def section_completeness(document: ResumeDocument) -> float:
    filled = sum(1 for section in RESUME_SECTIONS if getattr(document, section))
    return filled / len(RESUME_SECTIONS)


def score_resume(document: ResumeDocument, job_description: str) -> ResumeScore:
    job_terms = _significant_terms(job_description)
    resume_terms = _significant_terms(document.plain_text())
    matched = job_terms.intersection(resume_terms)
    keyword_overlap = len(matched) / len(job_terms) if job_terms else 0.0
    completeness = section_completeness(document)
    score = 100 * (KEYWORD_WEIGHT * keyword_overlap + COMPLETENESS_WEIGHT * completeness)
    return ResumeScore(
        score=round(score, 2),
        keyword_overlap=round(keyword_overlap, 4),
        completeness=round(completeness, 4),
        matched_terms=sorted(matched)[:25],
        missing_terms=sorted(job_terms - resume_terms)[:25],
    )
