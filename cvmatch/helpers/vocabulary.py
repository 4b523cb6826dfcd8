import json
from pathlib import Path

from cvmatch.models.models import ControlledVocabulary
from cvmatch.utils.exceptions import ConfigurationError

DEFAULT_TERMS = [
    # Programming Languages
    "javascript", "python", "java", "c++", "c#", "ruby", "php", "swift", "kotlin", "go", "rust",
    # Web Technologies
    "react", "angular", "vue", "next.js", "node.js", "express", "django", "flask", "spring", "laravel",
    # Databases
    "sql", "mysql", "postgresql", "mongodb", "redis", "cassandra", "elasticsearch",
    # Cloud & DevOps
    "aws", "azure", "gcp", "docker", "kubernetes", "jenkins", "git", "ci/cd", "terraform",
    # Frontend
    "html", "css", "sass", "less", "typescript", "redux", "graphql", "webpack", "babel",
    # Testing
    "jest", "mocha", "cypress", "selenium", "junit", "pytest",
    # Methodologies
    "agile", "scrum", "kanban", "waterfall",
    # Soft Skills
    "leadership", "communication", "teamwork", "problem-solving", "time management",
    # Other
    "rest", "api", "microservices", "machine learning", "ai", "data science", "big data", "analytics",
]

DEFAULT_VOCABULARY = ControlledVocabulary(name="default", version="1.0", terms=DEFAULT_TERMS)


def load_vocabulary_file(path: str) -> ControlledVocabulary:
    """Read a vocabulary from a JSON file holding name, version and terms."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Could not read vocabulary file {path}: {e}", config_key="VOCABULARY_PATH", config_value=path, cause=e
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("terms"), list):
        raise ConfigurationError(
            "Vocabulary file must be a JSON object with a 'terms' list",
            config_key="VOCABULARY_PATH", config_value=path
        )

    return ControlledVocabulary(
        name=data.get("name") or p.stem,
        version=str(data.get("version", "1.0")),
        terms=data["terms"],
    )
