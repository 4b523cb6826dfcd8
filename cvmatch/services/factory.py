from cvmatch.models.settings import MatcherSettings, load_settings, load_vocabulary
from cvmatch.services.analysis import AnalysisServiceClient
from cvmatch.services.ranker import BatchRanker


def build_analysis_client(settings: MatcherSettings = None) -> AnalysisServiceClient:
    settings = settings or load_settings()
    return AnalysisServiceClient.from_settings(settings)


def build_ranker(with_analysis: bool = False, settings: MatcherSettings = None) -> BatchRanker:
    """Ranker wired from configuration; the analysis client is only built on request."""
    settings = settings or load_settings()
    return BatchRanker(
        vocabulary=load_vocabulary(settings),
        analysis_client=build_analysis_client(settings) if with_analysis else None,
        max_concurrent=settings.processing.max_concurrent,
    )
