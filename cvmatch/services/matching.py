from cvmatch.helpers.vocabulary import DEFAULT_VOCABULARY
from cvmatch.models.models import ControlledVocabulary, TextDocument, clamp_percentage
from cvmatch.services.features import extract_skills, tokenize
from cvmatch.utils.logging_config import get_logger

logger = get_logger(__name__)

# Changing these changes every score globally.
SKILL_WEIGHT = 0.7
TEXT_WEIGHT = 0.3


def lexical_similarity(text_a: str, text_b: str) -> float:
    """Share of text_a's unique tokens that also occur in text_b, as 0..100.

    The denominator is always text_a (the job description), so this is not
    symmetric.
    """
    words_a = set(tokenize(text_a))
    if not words_a:
        return 0.0
    words_b = set(tokenize(text_b))
    return len(words_a & words_b) / len(words_a) * 100


def skill_overlap(job_skills, candidate_skills) -> float:
    if not job_skills:
        return 0.0
    return len(set(job_skills) & set(candidate_skills)) / len(job_skills) * 100


def aggregate(
    job: TextDocument,
    candidate: TextDocument,
    vocabulary: ControlledVocabulary = DEFAULT_VOCABULARY
) -> float:
    """Combine skill overlap (70%) and lexical similarity (30%) into 0..100.

    Returns 0 when the job text names no vocabulary skill, and 0 when the
    inputs cannot be scored at all.
    """
    try:
        job_skills = extract_skills(job.text, vocabulary)
        if not job_skills:
            logger.warning("No requirements found in job description")
            return 0.0

        candidate_skills = extract_skills(candidate.text, vocabulary)
        skill_score = skill_overlap(job_skills, candidate_skills)
        text_score = lexical_similarity(job.text, candidate.text)
        logger.debug(
            f"Skills {len(job_skills & candidate_skills)}/{len(job_skills)} = {skill_score:.2f}%, "
            f"text overlap = {text_score:.2f}%"
        )
        return clamp_percentage(skill_score * SKILL_WEIGHT + text_score * TEXT_WEIGHT)
    except Exception as e:
        logger.error(f"Error in aggregate: {e}", exc_info=True)
        return 0.0
