from fastapi import APIRouter, Depends

from AIP.api.schemas import CheatingSignalsRequest, SentimentAnalyzeRequest
from AIP.api.dependencies import get_sentiment_analyzer
from packages.aip_sentiment.analyzer import SentimentAnalyzer
from packages.aip_sentiment.schema import CheatingAnalysis, SentimentSample

router = APIRouter()

@router.post("/analyze", response_model=SentimentSample, response_model_by_alias=True)
def analyze(
    request: SentimentAnalyzeRequest,
    analyzer: SentimentAnalyzer = Depends(get_sentiment_analyzer)
):
    """
    Classify audio and/or face features into one timestamped sample.
    """
    return analyzer.sample(request.audio_features, request.face_features, request.timestamp)

@router.post("/cheating", response_model=CheatingAnalysis, response_model_by_alias=True)
def analyze_cheating(
    request: CheatingSignalsRequest,
    analyzer: SentimentAnalyzer = Depends(get_sentiment_analyzer)
):
    return analyzer.analyze_cheating_signals(request.signals, request.timestamp)
