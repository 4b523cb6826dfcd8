import os

# Keep test runs off the log files and independent of any local .env
os.environ["ENVIRONMENT"] = "testing"
os.environ["OPENAI_API_KEY"] = ""
os.environ.pop("VOCABULARY_PATH", None)
