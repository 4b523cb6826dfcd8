SYSTEM_PROMPT = (
    "You are an expert HR analyst who evaluates CV matches. "
    "Always respond with clean JSON only, no markdown."
)

ANALYSIS_PROMPT = """As an expert HR analyst, analyze the match between this job description and CV.
Return ONLY a JSON object without any additional text or markdown formatting.

Job Description:
{job_description}

CV:
{cv_text}

Response format (fill in the values):
{{
  "matchPercentage": number between 0-100,
  "technicalSkillsMatch": {{
    "matching": ["skill1", "skill2", ...],
    "missing": ["skill1", "skill2", ...],
    "score": number between 0-100
  }},
  "experienceMatch": {{
    "relevantExperience": ["experience1", "experience2", ...],
    "score": number between 0-100
  }},
  "overallAnalysis": "detailed analysis string"
}}
"""

VERIFY_PROMPT = "Test message"

TEST_PROMPT = "What are three key principles of good software development?"
